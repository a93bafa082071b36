"""
Report Builder Module
=====================

Ranks aggregated entities and formats them as report rows.

Pure functions: no I/O and no shared state, so the output depends only
on the input entity sequence.

Ranking
-------
Entities are ordered by ``size_bytes`` descending. Entities of equal size
keep their merge order (Python's sort is stable).

Links
-----
Snapshots and unattached volumes get an EC2 console link. A volume
attached to an instance gets none; it is reached through the instance.

Example
-------
>>> from storage_usage.reporters.report_builder import build_report
>>>
>>> rows = build_report(state.entities)
>>> rows[0].to_dict()
{'Type': 'Volume', 'ID': 'vol-0abc', 'StorageUsed': '100', ...}
"""

from __future__ import annotations

from typing import Iterable, List

from storage_usage.core.models import GIB, EntityKind, ReportRow, StorageEntity

NOT_ATTACHED = "Not Attached"

CONSOLE_URL = "https://{host}.console.aws.amazon.com/ec2/home?region={region}#{fragment}"

_UNITS = ("KB", "MB", "GB", "TB", "PB", "EB")


def format_bytes(size_bytes: int) -> str:
    """
    Format a byte count with the largest binary unit not exceeding it.

    Parameters
    ----------
    size_bytes : int
        Non-negative byte count.

    Returns
    -------
    str
        Whole-number size, e.g. ``"512 bytes"``, ``"100 GB"``, ``"2 TB"``.

    Examples
    --------
    >>> format_bytes(1023)
    '1023 bytes'
    >>> format_bytes(100 * 1024 ** 3)
    '100 GB'
    """
    if size_bytes < 1024:
        return f"{size_bytes} bytes"

    divisor = 1024
    exponent = 0
    while size_bytes // divisor >= 1024 and exponent < len(_UNITS) - 1:
        divisor *= 1024
        exponent += 1
    return f"{size_bytes / divisor:.0f} {_UNITS[exponent]}"


def format_gib(size_bytes: int) -> str:
    """Size in whole GiB, as carried by the ``StorageUsed`` report field."""
    return f"{size_bytes / GIB:.0f}"


def console_link(kind: EntityKind, entity_id: str, region: str) -> str:
    """
    Build the EC2 console detail URL for a volume or snapshot.

    Examples
    --------
    >>> console_link(EntityKind.SNAPSHOT, "snap-1", "eu-west-1")
    'https://eu-west-1.console.aws.amazon.com/ec2/home?region=eu-west-1#SnapshotDetails:snapshotId=snap-1'
    """
    if kind is EntityKind.SNAPSHOT:
        fragment = f"SnapshotDetails:snapshotId={entity_id}"
    else:
        fragment = f"VolumeDetails:volumeId={entity_id}"
    return CONSOLE_URL.format(host=region.lower(), region=region, fragment=fragment)


def entity_link(entity: StorageEntity) -> str:
    """Console link for ``entity``, or an empty string for attached volumes."""
    if entity.is_volume and entity.is_attached:
        return ""
    return console_link(entity.kind, entity.id, entity.region)


def rank_entities(entities: Iterable[StorageEntity]) -> List[StorageEntity]:
    """Sort by size descending, keeping merge order for ties."""
    return sorted(entities, key=lambda e: e.size_bytes, reverse=True)


def to_report_row(entity: StorageEntity) -> ReportRow:
    """Format a single entity."""
    return ReportRow(
        type=entity.kind.value,
        id=entity.id,
        storage_used=format_gib(entity.size_bytes),
        region=entity.region,
        attached_instance=entity.attachment_label or NOT_ATTACHED,
        link=entity_link(entity),
        size_bytes=entity.size_bytes,
        size_display=format_bytes(entity.size_bytes),
    )


def build_report(entities: Iterable[StorageEntity]) -> List[ReportRow]:
    """
    Rank entities and format them as report rows.

    Parameters
    ----------
    entities : iterable of StorageEntity
        Entities in merge order.

    Returns
    -------
    list of ReportRow
        Rows ordered by size descending, ties in merge order.
    """
    return [to_report_row(entity) for entity in rank_entities(entities)]
