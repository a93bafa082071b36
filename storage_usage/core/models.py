"""
Data Model
==========

Value types shared by the scanners, the aggregator and the reporters.

Classes
-------
EntityKind
    Volume or snapshot.
StorageEntity
    One billable storage object found during a run.
VolumeDescriptor, SnapshotDescriptor
    Raw provider records, before attachment labels are resolved.
ReportRow
    One formatted row of the final report.

Notes
-----
All entity and descriptor types are frozen: once a scanner has built an
entity it is only ever read.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

GIB = 1024 ** 3


class EntityKind(Enum):
    """Kind of storage entity."""

    VOLUME = "Volume"
    SNAPSHOT = "Snapshot"


@dataclass(frozen=True)
class StorageEntity:
    """
    One billable storage object.

    Parameters
    ----------
    id : str
        Provider-assigned identifier (e.g. ``vol-0abc``, ``snap-0def``).
    size_bytes : int
        Size at query time, in bytes. Never negative.
    region : str
        Region the entity lives in.
    kind : EntityKind
        Volume or snapshot.
    attachment_label : str, default=""
        Instance name, ``"Volume: <name>"``, snapshot name, or empty for
        unattached/untagged entities.

    Raises
    ------
    ValueError
        If ``size_bytes`` is negative.
    """

    id: str
    size_bytes: int
    region: str
    kind: EntityKind
    attachment_label: str = ""

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(
                f"size_bytes must be non-negative, got {self.size_bytes} for {self.id}"
            )

    @property
    def is_volume(self) -> bool:
        return self.kind is EntityKind.VOLUME

    @property
    def is_attached(self) -> bool:
        return bool(self.attachment_label)


@dataclass(frozen=True)
class VolumeDescriptor:
    """A volume as returned by ``DescribeVolumes``."""

    id: str
    size_bytes: int
    attached_instance_id: Optional[str] = None
    name_tag: Optional[str] = None


@dataclass(frozen=True)
class SnapshotDescriptor:
    """A snapshot as returned by ``DescribeSnapshots``."""

    id: str
    size_bytes: int
    source_volume_id: Optional[str] = None
    name_tag: Optional[str] = None


@dataclass(frozen=True)
class ReportRow:
    """
    One row of the storage report.

    ``storage_used`` is the size in whole GiB, as a string, which is what
    the JSON report carries. ``size_display`` is the human-readable size
    used on the console.
    """

    type: str
    id: str
    storage_used: str
    region: str
    attached_instance: str
    link: str
    size_bytes: int = 0
    size_display: str = ""

    @property
    def has_link(self) -> bool:
        return bool(self.link)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the report file schema.

        Returns
        -------
        dict
            Keys ``Type, ID, StorageUsed, Region, AttachedInstance, Link``,
            in that order.
        """
        return {
            "Type": self.type,
            "ID": self.id,
            "StorageUsed": self.storage_used,
            "Region": self.region,
            "AttachedInstance": self.attached_instance,
            "Link": self.link,
        }
