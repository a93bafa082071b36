"""
Snapshot Scanner Module
=======================

Lists the account's own EBS snapshots in a region and labels them.

Labelling
---------
1. The snapshot's own ``Name`` tag
2. ``"Volume: <name>"`` when the source volume still exists and is named
3. Otherwise an empty label

Example
-------
>>> scanner = SnapshotScanner(provider, "eu-west-1")
>>> snapshots = scanner.scan()
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from storage_usage.core.base_scanner import BaseScanner
from storage_usage.core.models import EntityKind, SnapshotDescriptor, StorageEntity

# Module logger
logger = logging.getLogger(__name__)

VOLUME_LABEL_PREFIX = "Volume: "


class SnapshotScanner(BaseScanner):
    """
    Scanner for EBS snapshots.

    Parameters
    ----------
    provider : StorageProvider
        Discovery collaborator.
    region : str
        Region this scanner covers.
    owner_scope : str, default="self"
        Owner filter passed to ``DescribeSnapshots``.
    """

    kind = EntityKind.SNAPSHOT

    def __init__(self, provider, region: str, owner_scope: str = "self") -> None:
        super().__init__(provider, region)
        self.owner_scope = owner_scope

    def get_resource_type(self) -> str:
        return "snapshot"

    def describe(self) -> List[SnapshotDescriptor]:
        return self.provider.list_snapshots(self.region, self.owner_scope)

    def build_entities(self, descriptors: Sequence[SnapshotDescriptor]) -> List[StorageEntity]:
        entities: List[StorageEntity] = []
        volume_names = {}

        for snapshot in descriptors:
            label = snapshot.name_tag or ""

            if not label and snapshot.source_volume_id:
                volume_id = snapshot.source_volume_id
                if volume_id not in volume_names:
                    volume_names[volume_id] = self.provider.resolve_name_tag(
                        self.region, volume_id
                    )
                if volume_names[volume_id]:
                    label = f"{VOLUME_LABEL_PREFIX}{volume_names[volume_id]}"

            entities.append(
                StorageEntity(
                    id=snapshot.id,
                    size_bytes=snapshot.size_bytes,
                    region=self.region,
                    kind=self.kind,
                    attachment_label=label,
                )
            )

        return entities
