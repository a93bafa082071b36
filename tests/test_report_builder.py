"""
Tests for the report builder.
"""

import pytest

from storage_usage.core.models import GIB, EntityKind, StorageEntity
from storage_usage.reporters.report_builder import (
    NOT_ATTACHED,
    build_report,
    console_link,
    entity_link,
    format_bytes,
    rank_entities,
)


def entity(entity_id, size_bytes, kind=EntityKind.VOLUME, label="", region="us-east-1"):
    return StorageEntity(entity_id, size_bytes, region, kind, label)


class TestFormatBytes:
    """Tests for format_bytes."""

    @pytest.mark.parametrize(
        "size_bytes, expected",
        [
            (0, "0 bytes"),
            (1023, "1023 bytes"),
            (1024, "1 KB"),
            (1536 * 1024, "2 MB"),
            (100 * GIB, "100 GB"),
            (1023 * GIB, "1023 GB"),
            (1024 * GIB, "1 TB"),
            (3 * 1024 ** 5, "3 PB"),
            (2 * 1024 ** 6, "2 EB"),
        ],
    )
    def test_units(self, size_bytes, expected):
        assert format_bytes(size_bytes) == expected

    def test_caps_at_exabytes(self):
        assert format_bytes(2048 * 1024 ** 6) == "2048 EB"


class TestLinks:
    """Tests for console links."""

    def test_snapshot_link(self):
        assert console_link(EntityKind.SNAPSHOT, "snap-1", "eu-west-1") == (
            "https://eu-west-1.console.aws.amazon.com/ec2/home"
            "?region=eu-west-1#SnapshotDetails:snapshotId=snap-1"
        )

    def test_volume_link(self):
        assert console_link(EntityKind.VOLUME, "vol-1", "us-east-1").endswith(
            "?region=us-east-1#VolumeDetails:volumeId=vol-1"
        )

    def test_attached_volume_has_no_link(self):
        assert entity_link(entity("vol-1", GIB, label="web")) == ""

    def test_unattached_volume_has_link(self):
        assert "VolumeDetails" in entity_link(entity("vol-1", GIB))

    def test_labelled_snapshot_has_link(self):
        snapshot = entity("snap-1", GIB, kind=EntityKind.SNAPSHOT, label="backup")
        assert "SnapshotDetails" in entity_link(snapshot)


class TestBuildReport:
    """Tests for ranking and row formatting."""

    def test_descending_order(self):
        rows = build_report(
            [entity("small", GIB), entity("large", 10 * GIB), entity("mid", 5 * GIB)]
        )
        assert [r.id for r in rows] == ["large", "mid", "small"]

    def test_ties_keep_merge_order(self):
        ranked = rank_entities(
            [entity("first", GIB), entity("big", 2 * GIB), entity("second", GIB)]
        )
        assert [e.id for e in ranked] == ["big", "first", "second"]

    def test_row_fields(self):
        (row,) = build_report([entity("vol-1", 100 * GIB)])

        assert row.to_dict() == {
            "Type": "Volume",
            "ID": "vol-1",
            "StorageUsed": "100",
            "Region": "us-east-1",
            "AttachedInstance": NOT_ATTACHED,
            "Link": console_link(EntityKind.VOLUME, "vol-1", "us-east-1"),
        }
        assert row.size_display == "100 GB"
        assert row.size_bytes == 100 * GIB

    def test_snapshot_row(self):
        (row,) = build_report([entity("snap-1", 8 * GIB, EntityKind.SNAPSHOT, "Volume: db")])
        assert row.type == "Snapshot"
        assert row.attached_instance == "Volume: db"

    def test_empty(self):
        assert build_report([]) == []
