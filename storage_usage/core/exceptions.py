"""
Custom Exceptions for Storage Usage Exporter
============================================

This module defines the exception hierarchy used throughout the
application for consistent error handling and reporting.

Exception Hierarchy
-------------------
::

    StorageUsageError (base)
    ├── ConfigurationError
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ClientConstructionError
    ├── DiscoveryError
    ├── ProviderQueryError
    │   └── ResourceNotFoundError
    ├── CacheError
    │   ├── CacheReadError
    │   └── CacheWriteError
    ├── ReportWriteError
    └── PartialFailure

Fatal vs. recoverable
---------------------
Only :class:`DiscoveryError` (no region list) and :class:`ReportWriteError`
(report cannot be persisted) end a run. Client construction, provider
query and cache errors are recovered where they happen: the affected unit
contributes nothing and the run continues.

Example
-------
>>> from storage_usage.core.exceptions import DiscoveryError
>>>
>>> try:
...     regions = directory.resolve_regions()
... except DiscoveryError as e:
...     print(f"Cannot list regions: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class StorageUsageError(Exception):
    """
    Base exception for all Storage Usage Exporter errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Example
    -------
    >>> raise StorageUsageError("Something went wrong", details={"code": 500})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(StorageUsageError):
    """Raised when a configuration value is out of range."""

    pass


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(StorageUsageError):
    """
    Base exception for AWS client-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """
    Raised when AWS credentials are invalid, missing, or expired.

    Example
    -------
    >>> raise CredentialsError(
    ...     "AWS credentials not found",
    ...     details={"hint": "Run 'aws configure' to set up credentials"}
    ... )
    """

    pass


class RegionError(AWSClientError):
    """Raised when the requested AWS region is invalid or missing."""

    pass


class ClientConstructionError(AWSClientError):
    """
    Raised when a per-region client cannot be built.

    The dispatcher skips both units of the affected region.
    """

    pass


# =============================================================================
# Discovery and Query Exceptions
# =============================================================================


class DiscoveryError(StorageUsageError):
    """
    Raised when the region list cannot be obtained from the provider.

    Fatal: the run stops before any region is dispatched.
    """

    def __init__(
        self,
        message: str,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.region = region
        full_details = details or {}
        if region:
            full_details["bootstrap_region"] = region
        super().__init__(message, full_details)


class ProviderQueryError(StorageUsageError):
    """
    Raised when a volume, snapshot or tag lookup fails.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_type : str, optional
        Resource being listed (``volume`` or ``snapshot``).
    region : str, optional
        Region the call was made against.
    error_code : str, optional
        Provider error code, when one was returned.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.region = region
        self.error_code = error_code
        full_details = details or {}
        if resource_type:
            full_details["resource_type"] = resource_type
        if region:
            full_details["region"] = region
        if error_code:
            full_details["error_code"] = error_code
        super().__init__(message, full_details)


class ResourceNotFoundError(ProviderQueryError):
    """
    Raised for provider ``*.NotFound`` error codes.

    Treated as an empty result, never escalated.
    """

    pass


# =============================================================================
# Cache Exceptions
# =============================================================================


class CacheError(StorageUsageError):
    """Base exception for region cache errors."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.path = path
        full_details = details or {}
        if path:
            full_details["path"] = path
        super().__init__(message, full_details)


class CacheReadError(CacheError):
    """Raised when the region cache is missing or cannot be decoded."""

    pass


class CacheWriteError(CacheError):
    """Raised when the region cache cannot be written."""

    pass


# =============================================================================
# Reporting Exceptions
# =============================================================================


class ReportWriteError(StorageUsageError):
    """
    Raised when the JSON report cannot be written.

    Fatal: the run produced a result but cannot persist it.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.path = path
        full_details = details or {}
        if path:
            full_details["path"] = path
        super().__init__(message, full_details)


class PartialFailure(StorageUsageError):
    """
    Raised on request when some units of an aggregation run failed.

    Parameters
    ----------
    completed_regions : list of str
        Regions whose units all finished without a recorded error.
    errors : dict
        Mapping of region name to the error messages recorded for it.

    Example
    -------
    >>> try:
    ...     state.raise_for_errors()
    ... except PartialFailure as e:
    ...     print(f"{len(e.errors)} region(s) failed")
    """

    def __init__(
        self,
        completed_regions: List[str],
        errors: Dict[str, List[str]],
    ) -> None:
        self.completed_regions = list(completed_regions)
        self.errors = {region: list(msgs) for region, msgs in errors.items()}
        super().__init__(
            f"{len(self.errors)} region(s) reported errors",
            details={"failed_regions": sorted(self.errors)},
        )
