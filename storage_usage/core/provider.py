"""
Storage Provider Module
=======================

Wraps the EC2 discovery calls the exporter needs behind one interface:

- ``list_regions`` - all regions enabled for the account
- ``list_volumes`` - every EBS volume in a region
- ``list_snapshots`` - every snapshot owned by the account in a region
- ``resolve_name_tag`` - the ``Name`` tag of any EC2 resource

Classes
-------
StorageProvider
    Region-aware facade over :class:`AWSClient`.

Example
-------
>>> from storage_usage.core.provider import StorageProvider
>>>
>>> provider = StorageProvider(profile="production", timeout=20)
>>> provider.connect("eu-west-1")
>>> volumes = provider.list_volumes("eu-west-1")

Notes
-----
Provider failures surface as :class:`ProviderQueryError`. Error codes
ending in ``.NotFound`` surface as :class:`ResourceNotFoundError`, which
callers treat as an empty result. Connect and read timeouts are part of
the same taxonomy, so a hung call ends after ``timeout`` seconds and is
handled like any other failed query.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from storage_usage.core.aws_client import AWSClient
from storage_usage.core.exceptions import (
    AWSClientError,
    ClientConstructionError,
    DiscoveryError,
    ProviderQueryError,
    ResourceNotFoundError,
)
from storage_usage.core.models import GIB, SnapshotDescriptor, VolumeDescriptor

# Module logger
logger = logging.getLogger(__name__)

NAME_TAG = "Name"


def _tag_value(tags: Optional[List[Dict[str, str]]], key: str = NAME_TAG) -> Optional[str]:
    """Return the value of ``key`` from an EC2 tag list, if present and non-empty."""
    for tag in tags or []:
        if tag.get("Key") == key and tag.get("Value"):
            return tag["Value"]
    return None


class StorageProvider:
    """
    Region-aware EC2 storage discovery.

    Parameters
    ----------
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_retries : int, default=3
        Retries after the first attempt of each API call.
    timeout : int, default=30
        Connect/read deadline per API call, in seconds.

    Attributes
    ----------
    profile : str or None
        The configured AWS profile.
    max_retries : int
        Retries after the first attempt.
    timeout : int
        Per-call deadline.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._clients: Dict[str, AWSClient] = {}
        self._lock = threading.Lock()

        logger.debug(f"Initialized StorageProvider (profile={profile!r})")

    # =========================================================================
    # Client Management
    # =========================================================================

    def get_client_for_region(self, region: str) -> AWSClient:
        """Return the cached :class:`AWSClient` for ``region``, creating it once."""
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                client = AWSClient(
                    region=region,
                    profile=self.profile,
                    max_retries=self.max_retries,
                    timeout=self.timeout,
                )
                self._clients[region] = client
            return client

    def connect(self, region: str) -> Any:
        """
        Build the EC2 client for ``region``.

        Returns
        -------
        EC2.Client
            The boto3 EC2 client for the region.

        Raises
        ------
        ClientConstructionError
            If the client cannot be built (bad profile, missing
            credentials, unknown region, ...).
        """
        try:
            return self.get_client_for_region(region).get_ec2_client()
        except ClientConstructionError:
            raise
        except AWSClientError as e:
            raise ClientConstructionError(
                f"Failed to create EC2 client for {region}: {e.message}",
                service="ec2",
                region=region,
            )

    # =========================================================================
    # Discovery Calls
    # =========================================================================

    def list_regions(self, bootstrap_region: str) -> List[Dict[str, Any]]:
        """
        List region descriptors enabled for the account.

        Parameters
        ----------
        bootstrap_region : str
            Region the ``DescribeRegions`` call is sent to.

        Returns
        -------
        list of dict
            Region descriptors (``RegionName``, ``Endpoint``,
            ``OptInStatus``) in provider order.

        Raises
        ------
        DiscoveryError
            If the call fails for any reason. No retry happens here beyond
            the client's own retry policy.
        """
        try:
            ec2 = self.connect(bootstrap_region)
            response = ec2.describe_regions()
        except (ClientConstructionError, ClientError, BotoCoreError) as e:
            logger.error(f"Failed to describe regions from {bootstrap_region}: {e}")
            raise DiscoveryError(
                f"Failed to describe AWS regions: {e}",
                region=bootstrap_region,
            )

        regions = [
            {key: value for key, value in r.items() if key in ("RegionName", "Endpoint", "OptInStatus")}
            for r in response.get("Regions", [])
        ]
        logger.info(f"Discovered {len(regions)} regions via {bootstrap_region}")
        return regions

    def list_volumes(self, region: str) -> List[VolumeDescriptor]:
        """
        List every EBS volume in ``region``.

        Returns
        -------
        list of VolumeDescriptor
            Sizes are converted from GiB to bytes; only the first
            attachment is kept.

        Raises
        ------
        ClientConstructionError
            If the EC2 client cannot be built.
        ResourceNotFoundError
            For ``InvalidVolume.NotFound`` and similar codes.
        ProviderQueryError
            For any other provider failure, including timeouts.
        """
        ec2 = self.connect(region)
        volumes: List[VolumeDescriptor] = []

        try:
            paginator = ec2.get_paginator("describe_volumes")
            for page in paginator.paginate():
                for volume in page.get("Volumes", []):
                    attachments = volume.get("Attachments") or []
                    volumes.append(
                        VolumeDescriptor(
                            id=volume["VolumeId"],
                            size_bytes=int(volume.get("Size", 0)) * GIB,
                            attached_instance_id=(
                                attachments[0].get("InstanceId") if attachments else None
                            ),
                            name_tag=_tag_value(volume.get("Tags")),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise self._query_error(e, "volume", region)

        logger.debug(f"Found {len(volumes)} volumes in {region}")
        return volumes

    def list_snapshots(
        self,
        region: str,
        owner_scope: str = "self",
    ) -> List[SnapshotDescriptor]:
        """
        List snapshots owned by ``owner_scope`` in ``region``.

        Parameters
        ----------
        region : str
            Region to query.
        owner_scope : str, default="self"
            Value passed as ``OwnerIds``; ``self`` means the caller's account.

        Raises
        ------
        ClientConstructionError
            If the EC2 client cannot be built.
        ResourceNotFoundError
            For ``InvalidSnapshot.NotFound`` and similar codes.
        ProviderQueryError
            For any other provider failure, including timeouts.
        """
        ec2 = self.connect(region)
        snapshots: List[SnapshotDescriptor] = []

        try:
            paginator = ec2.get_paginator("describe_snapshots")
            for page in paginator.paginate(OwnerIds=[owner_scope]):
                for snapshot in page.get("Snapshots", []):
                    snapshots.append(
                        SnapshotDescriptor(
                            id=snapshot["SnapshotId"],
                            size_bytes=int(snapshot.get("VolumeSize", 0)) * GIB,
                            source_volume_id=snapshot.get("VolumeId"),
                            name_tag=_tag_value(snapshot.get("Tags")),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise self._query_error(e, "snapshot", region)

        logger.debug(f"Found {len(snapshots)} snapshots in {region}")
        return snapshots

    def resolve_name_tag(self, region: str, resource_id: str) -> Optional[str]:
        """
        Look up the ``Name`` tag of an EC2 resource.

        Works for instances, volumes and any other taggable EC2 resource.

        Returns
        -------
        str or None
            The tag value, or None if the resource is gone, untagged, or
            the lookup failed (failures are logged, never raised).
        """
        if not resource_id:
            return None

        try:
            ec2 = self.connect(region)
            response = ec2.describe_tags(
                Filters=[
                    {"Name": "resource-id", "Values": [resource_id]},
                    {"Name": "key", "Values": [NAME_TAG]},
                ]
            )
        except (ClientConstructionError, ClientError, BotoCoreError) as e:
            logger.warning(f"Failed to resolve Name tag of {resource_id} in {region}: {e}")
            return None

        tags = response.get("Tags", [])
        if not tags:
            logger.debug(f"No Name tag found for {resource_id} in {region}")
            return None
        return tags[0].get("Value") or None

    # =========================================================================
    # Error Mapping
    # =========================================================================

    @staticmethod
    def _query_error(
        error: Exception,
        resource_type: str,
        region: str,
    ) -> ProviderQueryError:
        """Translate a botocore exception into the query error taxonomy."""
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "Unknown")
            message = error.response.get("Error", {}).get("Message", str(error))
            if code.endswith(".NotFound"):
                return ResourceNotFoundError(
                    f"{resource_type} not found in {region}: {message}",
                    resource_type=resource_type,
                    region=region,
                    error_code=code,
                )
            return ProviderQueryError(
                f"Failed to describe {resource_type}s in {region}: {message}",
                resource_type=resource_type,
                region=region,
                error_code=code,
            )

        return ProviderQueryError(
            f"Failed to describe {resource_type}s in {region}: {error}",
            resource_type=resource_type,
            region=region,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"StorageProvider(profile={self.profile!r}, "
            f"timeout={self.timeout}, clients={len(self._clients)})"
        )
