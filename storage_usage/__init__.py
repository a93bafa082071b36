"""
Storage Usage Exporter
======================

Inventories EBS volumes and snapshots across every region of an AWS
account, computes aggregate usage, writes a ranked report and exposes
the figures as Prometheus gauges.

Modules
-------
core
    AWS client, provider, region cache, aggregator and dispatcher
scanners
    Per-region units of work (volumes, snapshots)
reporters
    Report builder, console and JSON output
metrics
    Prometheus gauges and the /metrics endpoint

Example
-------
>>> from storage_usage import BoundedDispatcher, RegionDirectory, StorageProvider
>>> from storage_usage.reporters import build_report
>>>
>>> provider = StorageProvider(profile="production")
>>> regions = RegionDirectory(provider).resolve_regions()
>>> state = BoundedDispatcher(provider, max_concurrency=50).run_aggregation(regions)
>>> rows = build_report(state.entities)

Notes
-----
Requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Public API
from storage_usage.core.aggregator import AggregateState, SharedAggregator
from storage_usage.core.aws_client import AWSClient
from storage_usage.core.dispatcher import BoundedDispatcher
from storage_usage.core.exceptions import StorageUsageError
from storage_usage.core.models import EntityKind, ReportRow, StorageEntity
from storage_usage.core.provider import StorageProvider
from storage_usage.core.region_cache import RegionDirectory

__all__ = [
    "__version__",
    "__license__",
    "AWSClient",
    "AggregateState",
    "BoundedDispatcher",
    "EntityKind",
    "RegionDirectory",
    "ReportRow",
    "SharedAggregator",
    "StorageEntity",
    "StorageProvider",
    "StorageUsageError",
]
