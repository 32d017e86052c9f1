"""
Data models for todo-tree.
"""

from .config import ScanConfig, GlobalSettings, TAGS_PLACEHOLDER
from .scan import (
    Match,
    FolderScan,
    FileScan,
    ScanUnit,
    ScanOptions,
    Trigger,
    TriggerKind,
)

__all__ = [
    "ScanConfig",
    "GlobalSettings",
    "TAGS_PLACEHOLDER",
    "Match",
    "FolderScan",
    "FileScan",
    "ScanUnit",
    "ScanOptions",
    "Trigger",
    "TriggerKind",
]
