"""
Base Scanner Module
===================

Abstract base class for the per-region units of work.

A scan is split in two phases so the dispatcher can hold an admission
token only for the discovery call:

1. :meth:`BaseScanner.describe` - the single provider listing call
2. :meth:`BaseScanner.build_entities` - turning descriptors into
   :class:`StorageEntity` objects, including any name-tag lookups

Example
-------
>>> from storage_usage.scanners import VolumeScanner
>>>
>>> scanner = VolumeScanner(provider, "us-east-1")
>>> entities = scanner.scan()
>>> sum(e.size_bytes for e in entities)

See Also
--------
VolumeScanner : EBS volumes.
SnapshotScanner : EBS snapshots owned by the account.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from storage_usage.core.models import EntityKind, StorageEntity

# Module logger
logger = logging.getLogger(__name__)


class BaseScanner(ABC):
    """
    Abstract base class for storage scanners.

    Parameters
    ----------
    provider : StorageProvider
        Discovery collaborator.
    region : str
        Region this scanner covers.

    Attributes
    ----------
    provider : StorageProvider
        The discovery collaborator.
    region : str
        The region being scanned.
    """

    kind: EntityKind

    def __init__(self, provider, region: str) -> None:
        self.provider = provider
        self.region = region
        logger.debug(f"Initialized {self.__class__.__name__} for region {region}")

    @abstractmethod
    def get_resource_type(self) -> str:
        """
        Get the type of resource this scanner handles.

        Returns
        -------
        str
            Lowercase identifier (``volume`` or ``snapshot``).
        """
        pass

    def prepare(self) -> None:
        """
        Build the region's client ahead of the discovery call.

        Raises
        ------
        ClientConstructionError
            If the client cannot be built.
        """
        self.provider.connect(self.region)

    @abstractmethod
    def describe(self) -> List[Any]:
        """
        Issue the discovery call for this unit.

        Raises
        ------
        ProviderQueryError
            If the provider call fails.
        """
        pass

    @abstractmethod
    def build_entities(self, descriptors: Sequence[Any]) -> List[StorageEntity]:
        """Convert descriptors into entities, resolving attachment labels."""
        pass

    def scan(self) -> List[StorageEntity]:
        """
        Run both phases without any admission control.

        Returns
        -------
        list of StorageEntity
            Entities found in the region.
        """
        logger.info(f"Querying {self.get_resource_type()}s in region: {self.region}")
        descriptors = self.describe()
        entities = self.build_entities(descriptors)
        logger.debug(
            f"Found {len(entities)} {self.get_resource_type()}s in {self.region}"
        )
        return entities

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"{self.__class__.__name__}("
            f"region='{self.region}', "
            f"resource_type='{self.get_resource_type()}')"
        )
