"""
Volume Scanner Module
=====================

Lists EBS volumes in a region and labels each with the instance it is
attached to.

Labelling
---------
- Attached volume: the instance's ``Name`` tag, or the instance id when
  the instance has no name
- Unattached volume: empty label

Example
-------
>>> scanner = VolumeScanner(provider, "us-east-1")
>>> for volume in scanner.scan():
...     print(volume.id, volume.attachment_label or "Not Attached")
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from storage_usage.core.base_scanner import BaseScanner
from storage_usage.core.models import EntityKind, StorageEntity, VolumeDescriptor

# Module logger
logger = logging.getLogger(__name__)


class VolumeScanner(BaseScanner):
    """Scanner for EBS volumes."""

    kind = EntityKind.VOLUME

    def get_resource_type(self) -> str:
        return "volume"

    def describe(self) -> List[VolumeDescriptor]:
        return self.provider.list_volumes(self.region)

    def build_entities(self, descriptors: Sequence[VolumeDescriptor]) -> List[StorageEntity]:
        entities: List[StorageEntity] = []
        instance_names = {}

        for volume in descriptors:
            label = ""
            instance_id = volume.attached_instance_id
            if instance_id:
                # Several volumes usually share one instance
                if instance_id not in instance_names:
                    instance_names[instance_id] = self.provider.resolve_name_tag(
                        self.region, instance_id
                    )
                label = instance_names[instance_id] or instance_id

            entities.append(
                StorageEntity(
                    id=volume.id,
                    size_bytes=volume.size_bytes,
                    region=self.region,
                    kind=self.kind,
                    attachment_label=label,
                )
            )

        return entities
