"""
Scan orchestration and result aggregation.

Key Components:
- ScanUnitQueue: LIFO worklist of folder and file scan units
- ResultAggregate: authoritative in-memory set of matches
- ScanPlanner: maps triggers to scan plans
- ScanExecutor: sequential, single-in-flight queue drainer
- TodoTreeEngine: owns the state and exposes the trigger surface
- WorkspaceWatcher: watchdog-driven source of file triggers
"""

from .aggregate import ResultAggregate
from .queue import ScanUnitQueue
from .planner import ScanPlan, ScanPlanner
from .executor import ScanExecutor
from .engine import TodoTreeEngine
from .watcher import WorkspaceWatcher

__all__ = [
    "ResultAggregate",
    "ScanUnitQueue",
    "ScanPlan",
    "ScanPlanner",
    "ScanExecutor",
    "TodoTreeEngine",
    "WorkspaceWatcher",
]
