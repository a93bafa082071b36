"""
Aggregator Module
=================

Holds the state of one aggregation run and merges per-unit results into
it under a single lock.

Classes
-------
AggregateState
    Result of a run: total bytes, entities, per-region errors.
SharedAggregator
    Lock-guarded accumulator that every completed unit merges into.

Invariant
---------
``total_bytes == sum(e.size_bytes for e in entities)`` holds after every
merge, because the total and the entity list are updated in the same
critical section.

Example
-------
>>> aggregator = SharedAggregator(regions=["us-east-1"])
>>> aggregator.merge(entities)
>>> state = aggregator.state()
>>> state.total_bytes
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from storage_usage.core.exceptions import PartialFailure
from storage_usage.core.models import StorageEntity

# Module logger
logger = logging.getLogger(__name__)

TIB = 1024 ** 4


@dataclass
class AggregateState:
    """
    Result of one aggregation run.

    Parameters
    ----------
    regions_scanned : list of str
        Regions that were dispatched.
    total_bytes : int
        Sum of ``size_bytes`` over ``entities``.
    entities : list of StorageEntity
        Every entity found, in merge order.
    errors : dict
        Mapping of region name to recorded error messages.
    scan_time : datetime
        When the run started.

    Examples
    --------
    >>> state = dispatcher.run_aggregation(["us-east-1", "eu-west-1"])
    >>> print(f"{state.total_terabytes:.2f} TB in {len(state.entities)} entities")
    >>> if state.has_errors:
    ...     print(state.failed_regions)
    """

    regions_scanned: List[str] = field(default_factory=list)
    total_bytes: int = 0
    entities: List[StorageEntity] = field(default_factory=list)
    errors: Dict[str, List[str]] = field(default_factory=dict)
    scan_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def completed_regions(self) -> List[str]:
        """Regions with no recorded error, in dispatch order."""
        return [r for r in self.regions_scanned if r not in self.errors]

    @property
    def failed_regions(self) -> List[str]:
        return list(self.errors.keys())

    @property
    def total_terabytes(self) -> float:
        """Total in binary terabytes (TiB), as printed in the console summary."""
        return self.total_bytes / TIB

    def raise_for_errors(self) -> None:
        """
        Raise if any unit recorded an error.

        Raises
        ------
        PartialFailure
            Carrying the completed regions and the recorded errors.
        """
        if self.has_errors:
            raise PartialFailure(self.completed_regions, self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for JSON serialization (entities excluded)."""
        return {
            "regions_scanned": self.regions_scanned,
            "total_bytes": self.total_bytes,
            "entity_count": len(self.entities),
            "scan_time": self.scan_time.isoformat(),
            "errors": self.errors,
        }

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"AggregateState(regions={len(self.regions_scanned)}, "
            f"entities={len(self.entities)}, total_bytes={self.total_bytes})"
        )


class SharedAggregator:
    """
    Lock-guarded accumulator for one run.

    Parameters
    ----------
    regions : iterable of str, optional
        Regions the run covers, recorded on the resulting state.

    Notes
    -----
    The critical section only copies references and adds integers; no
    I/O or logging happens while the lock is held.
    """

    def __init__(self, regions: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.Lock()
        self._state = AggregateState(regions_scanned=list(regions or []))

    def merge(self, entities: Iterable[StorageEntity]) -> int:
        """
        Merge one unit's batch.

        Parameters
        ----------
        entities : iterable of StorageEntity
            Entities produced by a single unit.

        Returns
        -------
        int
            Bytes contributed by this batch.
        """
        batch = list(entities)
        batch_bytes = sum(e.size_bytes for e in batch)

        with self._lock:
            self._state.total_bytes += batch_bytes
            self._state.entities.extend(batch)

        return batch_bytes

    def record_error(self, region: str, message: str) -> None:
        """Record a unit failure against ``region``."""
        with self._lock:
            self._state.errors.setdefault(region, []).append(message)

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._state.total_bytes

    def state(self) -> AggregateState:
        """
        Return a consistent copy of the current state.

        The copy shares entity objects (they are immutable) but not the
        containers, so later merges do not affect it.
        """
        with self._lock:
            return AggregateState(
                regions_scanned=list(self._state.regions_scanned),
                total_bytes=self._state.total_bytes,
                entities=list(self._state.entities),
                errors={r: list(m) for r, m in self._state.errors.items()},
                scan_time=self._state.scan_time,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._state.entities)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SharedAggregator(entities={len(self)}, total_bytes={self.total_bytes})"
