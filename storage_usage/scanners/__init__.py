"""
Storage Scanners
================

The per-region units of work scheduled by the dispatcher.

VolumeScanner
    EBS volumes, labelled with the attached instance's name.
SnapshotScanner
    Snapshots owned by the account, labelled with their own name or
    their source volume's name.

Adding a scanner
----------------
Subclass :class:`storage_usage.core.base_scanner.BaseScanner`, implement
``get_resource_type``, ``describe`` and ``build_entities``, and pass the
class to ``BoundedDispatcher(scanner_classes=...)``.
"""

from storage_usage.scanners.snapshot_scanner import SnapshotScanner
from storage_usage.scanners.volume_scanner import VolumeScanner

__all__ = [
    "SnapshotScanner",
    "VolumeScanner",
]
