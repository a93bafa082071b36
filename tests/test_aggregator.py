"""
Tests for the Aggregator module.
"""

import threading

import pytest

from storage_usage.core.aggregator import TIB, AggregateState, SharedAggregator
from storage_usage.core.exceptions import PartialFailure
from storage_usage.core.models import GIB, EntityKind, StorageEntity


def make_volume(volume_id, size_gib, region="us-east-1"):
    return StorageEntity(volume_id, size_gib * GIB, region, EntityKind.VOLUME)


class TestSharedAggregator:
    """Tests for SharedAggregator."""

    def test_merge_returns_batch_bytes(self):
        aggregator = SharedAggregator(["us-east-1"])
        batch = [make_volume("vol-1", 1), make_volume("vol-2", 2)]

        assert aggregator.merge(batch) == 3 * GIB
        assert aggregator.total_bytes == 3 * GIB
        assert len(aggregator) == 2

    def test_merge_empty_batch(self):
        aggregator = SharedAggregator()
        assert aggregator.merge([]) == 0
        assert aggregator.state().total_bytes == 0

    def test_concurrent_merges_keep_total_consistent(self):
        """Total equals the sum of entity sizes after many parallel merges."""
        aggregator = SharedAggregator(["us-east-1"])
        start = threading.Barrier(16)

        def worker(n):
            start.wait()
            for i in range(50):
                aggregator.merge([make_volume(f"vol-{n}-{i}", 1), make_volume(f"vol-{n}-{i}b", 2)])

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = aggregator.state()
        assert len(state.entities) == 16 * 50 * 2
        assert state.total_bytes == sum(e.size_bytes for e in state.entities)
        assert state.total_bytes == 16 * 50 * 3 * GIB

    def test_state_is_a_snapshot(self):
        aggregator = SharedAggregator(["us-east-1"])
        aggregator.merge([make_volume("vol-1", 1)])
        state = aggregator.state()

        aggregator.merge([make_volume("vol-2", 1)])
        aggregator.record_error("us-east-1", "late")

        assert len(state.entities) == 1
        assert state.total_bytes == GIB
        assert state.errors == {}

    def test_record_error(self):
        aggregator = SharedAggregator(["us-east-1", "eu-west-1"])
        aggregator.record_error("eu-west-1", "volume: denied")
        aggregator.record_error("eu-west-1", "snapshot: denied")

        state = aggregator.state()
        assert state.errors == {"eu-west-1": ["volume: denied", "snapshot: denied"]}
        assert state.completed_regions == ["us-east-1"]
        assert state.failed_regions == ["eu-west-1"]


class TestAggregateState:
    """Tests for AggregateState."""

    def test_total_terabytes(self):
        state = AggregateState(total_bytes=TIB // 2)
        assert state.total_terabytes == pytest.approx(0.5)

    def test_raise_for_errors(self):
        state = AggregateState(
            regions_scanned=["us-east-1", "eu-west-1"],
            errors={"eu-west-1": ["volume: timeout"]},
        )

        with pytest.raises(PartialFailure) as exc_info:
            state.raise_for_errors()
        assert exc_info.value.completed_regions == ["us-east-1"]
        assert exc_info.value.errors == {"eu-west-1": ["volume: timeout"]}

    def test_raise_for_errors_clean_run(self):
        AggregateState(regions_scanned=["us-east-1"]).raise_for_errors()

    def test_to_dict(self):
        state = AggregateState(
            regions_scanned=["us-east-1"],
            total_bytes=GIB,
            entities=[make_volume("vol-1", 1)],
        )
        data = state.to_dict()

        assert data["entity_count"] == 1
        assert data["total_bytes"] == GIB
        assert "scan_time" in data


class TestStorageEntity:
    """Tests for the entity value type."""

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            StorageEntity("vol-1", -1, "us-east-1", EntityKind.VOLUME)

    def test_attachment(self):
        attached = StorageEntity("vol-1", 0, "us-east-1", EntityKind.VOLUME, "web")
        assert attached.is_volume
        assert attached.is_attached
        assert not make_volume("vol-2", 1).is_attached
