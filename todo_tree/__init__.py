"""
todo-tree - Incremental TODO/FIXME marker discovery.

Delegates line matching to ripgrep, aggregates matches across a workspace
and keeps them current as files are saved, closed and switched between.
"""

__version__ = "1.0.0"

from .exceptions import TodoTreeError, ResolutionError, AdapterError
from .models.config import ScanConfig, GlobalSettings
from .models.scan import Match, FolderScan, FileScan, Trigger, TriggerKind
from .sync.engine import TodoTreeEngine

__all__ = [
    "TodoTreeError",
    "ResolutionError",
    "AdapterError",
    "ScanConfig",
    "GlobalSettings",
    "Match",
    "FolderScan",
    "FileScan",
    "Trigger",
    "TriggerKind",
    "TodoTreeEngine",
    "__version__",
]
