"""
Dispatcher Module
=================

Fans out the per-region units of work and joins them.

For every region two units are scheduled, one per scanner class
(volumes and snapshots). Each unit runs on its own worker thread:

1. build the region's EC2 client (no admission token needed)
2. acquire an admission token, issue the single discovery call, release
3. resolve attachment labels (no token held)
4. merge the batch into the :class:`SharedAggregator`

At most ``max_concurrency`` discovery calls are in flight at any time
across the whole run. A failing unit is logged, recorded against its
region and contributes nothing; it never cancels other units.
:meth:`BoundedDispatcher.run_aggregation` returns only once every unit
has finished.

Example
-------
>>> from storage_usage.core.dispatcher import BoundedDispatcher
>>> from storage_usage.core.provider import StorageProvider
>>>
>>> dispatcher = BoundedDispatcher(StorageProvider(), max_concurrency=20)
>>> state = dispatcher.run_aggregation(["us-east-1", "eu-west-1"])
>>> print(state.total_bytes)

Notes
-----
Merge order across regions is whatever order units finish in. Consumers
must sort (see :func:`storage_usage.reporters.report_builder.build_report`).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence, Tuple, Type

from storage_usage.core.aggregator import AggregateState, SharedAggregator
from storage_usage.core.base_scanner import BaseScanner
from storage_usage.core.config import DEFAULT_MAX_CONCURRENCY
from storage_usage.core.exceptions import (
    ClientConstructionError,
    ProviderQueryError,
    ResourceNotFoundError,
)
from storage_usage.scanners.snapshot_scanner import SnapshotScanner
from storage_usage.scanners.volume_scanner import VolumeScanner

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_SCANNERS: Tuple[Type[BaseScanner], ...] = (VolumeScanner, SnapshotScanner)

ProgressCallback = Callable[[str, str, str], None]


class AdmissionGate:
    """
    Counting limiter on in-flight provider calls.

    Parameters
    ----------
    capacity : int or None
        Number of tokens. None disables the limit.

    Attributes
    ----------
    peak : int
        Highest number of tokens held at once.
    """

    def __init__(self, capacity: Optional[int]) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._semaphore = (
            threading.BoundedSemaphore(capacity) if capacity is not None else None
        )
        self._counter_lock = threading.Lock()
        self.in_flight = 0
        self.peak = 0

    def __enter__(self) -> "AdmissionGate":
        if self._semaphore is not None:
            self._semaphore.acquire()
        with self._counter_lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        with self._counter_lock:
            self.in_flight -= 1
        if self._semaphore is not None:
            self._semaphore.release()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"AdmissionGate(capacity={self.capacity}, in_flight={self.in_flight})"


class BoundedDispatcher:
    """
    Bounded-parallelism aggregation across regions.

    Parameters
    ----------
    provider : StorageProvider
        Discovery collaborator shared by every unit.
    max_concurrency : int or None, default=100
        Admission gate capacity. None means unbounded.
    scanner_classes : sequence of BaseScanner subclasses, optional
        Units scheduled per region. Defaults to volumes and snapshots.
    progress_callback : callable, optional
        Called with ``(region, resource_type, status)``; status is one of
        ``scanning``, ``complete``, ``error``, ``skipped``.

    Attributes
    ----------
    peak_in_flight : int
        Highest number of simultaneous discovery calls in the last run.

    Examples
    --------
    Fully serial run, handy in tests:

    >>> dispatcher = BoundedDispatcher(provider, max_concurrency=1)

    With progress tracking:

    >>> def on_progress(region, resource_type, status):
    ...     print(f"{region} {resource_type}: {status}")
    >>> dispatcher = BoundedDispatcher(provider, progress_callback=on_progress)
    """

    def __init__(
        self,
        provider,
        max_concurrency: Optional[int] = DEFAULT_MAX_CONCURRENCY,
        scanner_classes: Optional[Sequence[Type[BaseScanner]]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be at least 1 or None, got {max_concurrency}"
            )
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.scanner_classes = tuple(scanner_classes or DEFAULT_SCANNERS)
        self.progress_callback = progress_callback
        self.peak_in_flight = 0

        logger.debug(
            f"Initialized BoundedDispatcher with max_concurrency={max_concurrency}"
        )

    def run_aggregation(self, regions: Sequence[str]) -> AggregateState:
        """
        Scan every region and return the merged result.

        Parameters
        ----------
        regions : sequence of str
            Regions to scan.

        Returns
        -------
        AggregateState
            Fresh state for this run. Per-unit failures are in
            ``state.errors``; call ``state.raise_for_errors()`` to treat
            them as fatal.
        """
        # Each region is scanned once, in first-seen order
        regions = list(dict.fromkeys(regions))
        aggregator = SharedAggregator(regions)
        gate = AdmissionGate(self.max_concurrency)

        units = [
            (region, scanner_class)
            for region in regions
            for scanner_class in self.scanner_classes
        ]

        logger.info(
            f"Starting aggregation across {len(regions)} regions "
            f"({len(units)} units, max_concurrency={self.max_concurrency})"
        )

        if units:
            # One thread per unit; the gate, not the pool, bounds provider calls
            with ThreadPoolExecutor(
                max_workers=len(units),
                thread_name_prefix="storage-unit",
            ) as executor:
                futures = [
                    executor.submit(self._run_unit, region, scanner_class, gate, aggregator)
                    for region, scanner_class in units
                ]
                wait(futures)

            for future in futures:
                # Re-raises errors from progress callbacks
                future.result()

        self.peak_in_flight = gate.peak
        state = aggregator.state()

        logger.info(
            f"Aggregation complete: {len(state.entities)} entities, "
            f"{state.total_bytes} bytes across {len(state.completed_regions)}"
            f"/{len(regions)} regions"
        )
        return state

    def run_region(self, region: str) -> AggregateState:
        """Convenience wrapper scanning a single region."""
        return self.run_aggregation([region])

    def _run_unit(
        self,
        region: str,
        scanner_class: Type[BaseScanner],
        gate: AdmissionGate,
        aggregator: SharedAggregator,
    ) -> None:
        """Run one (region, scanner) unit; never raises for provider errors."""
        scanner = scanner_class(self.provider, region)
        resource_type = scanner.get_resource_type()

        try:
            scanner.prepare()
        except ClientConstructionError as e:
            logger.warning(f"Failed to create EC2 client for region {region}: {e}")
            aggregator.record_error(region, f"{resource_type}: {e.message}")
            self._notify(region, resource_type, "skipped")
            return

        self._notify(region, resource_type, "scanning")
        logger.info(f"Querying {resource_type}s in region: {region}")

        try:
            with gate:
                descriptors = scanner.describe()
            entities = scanner.build_entities(descriptors)
        except ResourceNotFoundError as e:
            logger.warning(f"{resource_type.capitalize()} listing in {region} returned not found: {e.message}")
            self._notify(region, resource_type, "complete")
            return
        except (ProviderQueryError, ClientConstructionError) as e:
            logger.warning(f"Failed to describe {resource_type}s in region {region}: {e.message}")
            aggregator.record_error(region, f"{resource_type}: {e.message}")
            self._notify(region, resource_type, "error")
            return
        except Exception as e:
            # Malformed descriptor or scanner bug; the unit contributes nothing
            logger.exception(f"Unexpected error scanning {resource_type}s in {region}")
            aggregator.record_error(region, f"{resource_type}: {e}")
            self._notify(region, resource_type, "error")
            return

        aggregator.merge(entities)

        logger.debug(f"Merged {len(entities)} {resource_type}s from {region}")
        self._notify(region, resource_type, "complete")

    def _notify(self, region: str, resource_type: str, status: str) -> None:
        if self.progress_callback:
            self.progress_callback(region, resource_type, status)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"BoundedDispatcher(max_concurrency={self.max_concurrency}, "
            f"scanners={[c.__name__ for c in self.scanner_classes]})"
        )
