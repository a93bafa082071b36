"""
Exporter Configuration
======================

A single dataclass holding every tunable of a run. The command line
builds it from click options (each option also reads a
``STORAGE_USAGE_*`` environment variable) and library callers can build
it directly.

Example
-------
>>> from storage_usage.core.config import ExporterConfig
>>>
>>> config = ExporterConfig(max_concurrency=20, report_path="out.json")
>>> config.validate()
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from storage_usage.core.exceptions import ConfigurationError

ENV_PREFIX = "STORAGE_USAGE"

DEFAULT_BOOTSTRAP_REGION = "us-west-2"
DEFAULT_REGION_CACHE_PATH = "regions_cache.json"
DEFAULT_REPORT_PATH = "storage.json"
DEFAULT_MAX_CONCURRENCY = 100
DEFAULT_METRICS_PORT = 8080


@dataclass
class ExporterConfig:
    """
    Settings for one aggregation run and the metrics endpoint.

    Parameters
    ----------
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    bootstrap_region : str, default="us-west-2"
        Region used to list all other regions.
    region_cache_path : str, default="regions_cache.json"
        Location of the persisted region list.
    report_path : str, default="storage.json"
        Location of the JSON report.
    max_concurrency : int, default=100
        Admission gate capacity (in-flight provider calls).
    max_retries : int, default=3
        Retries after the first attempt of each provider call.
    timeout : int, default=30
        Connect/read deadline per provider call, in seconds.
    metrics_host : str, default="0.0.0.0"
        Bind address of the metrics endpoint.
    metrics_port : int, default=8080
        Port of the metrics endpoint.
    log_level : str, default="INFO"
        Root log level.
    log_file : str, optional
        Optional log file path.
    """

    profile: Optional[str] = None
    bootstrap_region: str = DEFAULT_BOOTSTRAP_REGION
    region_cache_path: str = DEFAULT_REGION_CACHE_PATH
    report_path: str = DEFAULT_REPORT_PATH
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    max_retries: int = 3
    timeout: int = 30
    metrics_host: str = "0.0.0.0"
    metrics_port: int = DEFAULT_METRICS_PORT
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> "ExporterConfig":
        """
        Check value ranges.

        Returns
        -------
        ExporterConfig
            ``self``, for chaining.

        Raises
        ------
        ConfigurationError
            If any value is out of range.
        """
        if self.max_concurrency < 1:
            raise ConfigurationError(
                "max_concurrency must be at least 1",
                details={"max_concurrency": self.max_concurrency},
            )
        if self.max_retries < 0:
            raise ConfigurationError(
                "max_retries cannot be negative",
                details={"max_retries": self.max_retries},
            )
        if self.timeout <= 0:
            raise ConfigurationError(
                "timeout must be positive",
                details={"timeout": self.timeout},
            )
        if not 0 < self.metrics_port < 65536:
            raise ConfigurationError(
                "metrics_port must be between 1 and 65535",
                details={"metrics_port": self.metrics_port},
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings as a plain dictionary."""
        return asdict(self)


def env_var(name: str) -> str:
    """Environment variable read by the click option for ``name``."""
    return f"{ENV_PREFIX}_{name.upper()}"
