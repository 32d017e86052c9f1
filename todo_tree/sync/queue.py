"""
Scan Unit Queue.

Ordered worklist of pending scan units. The planner pushes units, the
executor pops them one at a time, most recently pushed first.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..models.scan import FileScan, FolderScan, ScanUnit

logger = logging.getLogger(__name__)


@dataclass
class QueueMetrics:
    """Metrics for monitoring queue usage"""
    total_units_enqueued: int = 0
    total_units_dequeued: int = 0
    total_units_discarded: int = 0
    total_replacements: int = 0
    max_queue_size_reached: int = 0
    units_by_kind: Dict[str, int] = field(default_factory=lambda: {"folder": 0, "file": 0})


class ScanUnitQueue:
    """
    LIFO worklist of scan units.

    Operations are synchronous: they never suspend, so a trigger can
    replace or extend the queue between two adapter invocations without
    interleaving with a merge.
    """

    def __init__(self, units: Optional[Iterable[ScanUnit]] = None):
        self._units: List[ScanUnit] = []
        self.metrics = QueueMetrics()
        self._start_time = datetime.now()
        if units:
            self.extend(units)

    def push(self, unit: ScanUnit) -> None:
        """Add a unit on top of the queue"""
        if not isinstance(unit, (FolderScan, FileScan)):
            raise TypeError(f"Not a scan unit: {unit!r}")

        self._units.append(unit)
        self.metrics.total_units_enqueued += 1
        self.metrics.units_by_kind[unit.kind] += 1
        self.metrics.max_queue_size_reached = max(
            self.metrics.max_queue_size_reached,
            len(self._units)
        )
        logger.debug(f"Enqueued {unit} (queue size: {len(self._units)})")

    def extend(self, units: Iterable[ScanUnit]) -> None:
        """Push units in order; the last one given is popped first"""
        for unit in units:
            self.push(unit)

    def pop(self) -> Optional[ScanUnit]:
        """Remove and return the most recently pushed unit, or None if empty"""
        if not self._units:
            return None
        unit = self._units.pop()
        self.metrics.total_units_dequeued += 1
        return unit

    def replace(self, units: Iterable[ScanUnit]) -> int:
        """Discard pending units and load a new batch. Returns the count discarded"""
        discarded = self.clear()
        self.metrics.total_replacements += 1
        self.extend(units)
        return discarded

    def clear(self) -> int:
        """Clear all pending units and return count cleared"""
        count = len(self._units)
        self._units = []
        self.metrics.total_units_discarded += count
        if count:
            logger.debug(f"Discarded {count} pending scan units")
        return count

    def peek(self) -> Optional[ScanUnit]:
        return self._units[-1] if self._units else None

    def pending(self) -> List[ScanUnit]:
        """Pending units in the order they will run"""
        return list(reversed(self._units))

    def is_empty(self) -> bool:
        return not self._units

    def get_metrics(self) -> Dict[str, Any]:
        """Get queue metrics"""
        return {
            "current_size": len(self._units),
            "max_size_reached": self.metrics.max_queue_size_reached,
            "units_enqueued": self.metrics.total_units_enqueued,
            "units_dequeued": self.metrics.total_units_dequeued,
            "units_discarded": self.metrics.total_units_discarded,
            "replacements": self.metrics.total_replacements,
            "units_by_kind": dict(self.metrics.units_by_kind),
            "uptime_seconds": (datetime.now() - self._start_time).total_seconds(),
        }

    def __len__(self) -> int:
        return len(self._units)

    def __bool__(self) -> bool:
        return bool(self._units)
