"""
Metrics Publisher Module
========================

Turns an aggregation result into Prometheus gauges.

Metrics
-------
``aws_ebs_storage_used{volume_id, region, attached_instance}``
    Bytes used by each volume.
``aws_snapshot_storage_used{snapshot_id, region, attached_instance}``
    Bytes used by each snapshot.
``aws_total_storage_used``
    Bytes used by all volumes and snapshots.

Publishing overwrites: labelled gauges are cleared before new values are
set, so publishing the same result twice gives the same series and an
entity that disappeared between runs loses its series.

Example
-------
>>> from storage_usage.metrics import MetricsPublisher
>>>
>>> publisher = MetricsPublisher()
>>> publisher.publish(state.entities, state.total_bytes)
>>> print(publisher.render())
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from storage_usage.core.models import EntityKind, StorageEntity

# Module logger
logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Prometheus gauges for storage usage.

    Parameters
    ----------
    registry : CollectorRegistry, optional
        Registry the gauges are registered on. A private registry is
        created when omitted, so several publishers can coexist.

    Attributes
    ----------
    registry : CollectorRegistry
        The registry served by the metrics endpoint.
    publish_count : int
        Number of completed :meth:`publish` calls.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self.publish_count = 0

        self.volume_storage_used = Gauge(
            "aws_ebs_storage_used",
            "EBS storage used by volume",
            ["volume_id", "region", "attached_instance"],
            registry=self.registry,
        )

        self.snapshot_storage_used = Gauge(
            "aws_snapshot_storage_used",
            "Snapshot storage used by snapshot",
            ["snapshot_id", "region", "attached_instance"],
            registry=self.registry,
        )

        self.total_storage_used = Gauge(
            "aws_total_storage_used",
            "Total storage used by all volumes and snapshots",
            registry=self.registry,
        )

    def publish(self, entities: Iterable[StorageEntity], total_bytes: int) -> None:
        """
        Replace all gauge values with the given aggregate.

        Parameters
        ----------
        entities : iterable of StorageEntity
            Every entity of the run.
        total_bytes : int
            The run's total.
        """
        entities = list(entities)

        with self._lock:
            self.volume_storage_used.clear()
            self.snapshot_storage_used.clear()

            for entity in entities:
                gauge = (
                    self.volume_storage_used
                    if entity.kind is EntityKind.VOLUME
                    else self.snapshot_storage_used
                )
                gauge.labels(entity.id, entity.region, entity.attachment_label).set(
                    entity.size_bytes
                )

            self.total_storage_used.set(total_bytes)
            self.publish_count += 1

        logger.debug(f"Published {len(entities)} entity gauges, total={total_bytes}")

    def render(self) -> bytes:
        """Text exposition of the registry."""
        return generate_latest(self.registry)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"MetricsPublisher(publish_count={self.publish_count})"
