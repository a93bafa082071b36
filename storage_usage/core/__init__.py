"""
Core Components
===============

- :class:`AWSClient` - boto3 wrapper with retries and per-call deadlines
- :class:`StorageProvider` - EC2 discovery calls (regions, volumes, snapshots, tags)
- :class:`RegionDirectory` - region list with a persistent cache
- :class:`BaseScanner` - per-region unit of work
- :class:`SharedAggregator` / :class:`AggregateState` - merged run results
- :class:`BoundedDispatcher` - fan-out with an admission gate and a join barrier
- Exception hierarchy rooted at :class:`StorageUsageError`
"""

from storage_usage.core.aggregator import AggregateState, SharedAggregator
from storage_usage.core.aws_client import AWSClient
from storage_usage.core.base_scanner import BaseScanner
from storage_usage.core.config import ExporterConfig
from storage_usage.core.dispatcher import AdmissionGate, BoundedDispatcher
from storage_usage.core.exceptions import (
    AWSClientError,
    CacheError,
    CacheReadError,
    CacheWriteError,
    ClientConstructionError,
    ConfigurationError,
    CredentialsError,
    DiscoveryError,
    PartialFailure,
    ProviderQueryError,
    RegionError,
    ReportWriteError,
    ResourceNotFoundError,
    StorageUsageError,
)
from storage_usage.core.models import (
    EntityKind,
    ReportRow,
    SnapshotDescriptor,
    StorageEntity,
    VolumeDescriptor,
)
from storage_usage.core.provider import StorageProvider
from storage_usage.core.region_cache import RegionDirectory

__all__ = [
    # Client and provider
    "AWSClient",
    "StorageProvider",
    "RegionDirectory",
    "ExporterConfig",
    # Aggregation
    "AdmissionGate",
    "AggregateState",
    "BaseScanner",
    "BoundedDispatcher",
    "SharedAggregator",
    # Data model
    "EntityKind",
    "ReportRow",
    "SnapshotDescriptor",
    "StorageEntity",
    "VolumeDescriptor",
    # Exceptions
    "StorageUsageError",
    "ConfigurationError",
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ClientConstructionError",
    "DiscoveryError",
    "ProviderQueryError",
    "ResourceNotFoundError",
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    "ReportWriteError",
    "PartialFailure",
]
