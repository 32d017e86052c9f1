"""
Scan Executor.

Drains the scan unit queue one unit at a time through the scanner adapter
and folds every result into the aggregate.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import AdapterError
from ..models.config import ScanConfig
from ..models.scan import FileScan, ScanOptions, ScanUnit
from ..presentation import Projection
from ..reporting import Reporter
from ..scanner.base import ScannerAdapter
from .aggregate import ResultAggregate
from .queue import ScanUnitQueue

logger = logging.getLogger(__name__)


@dataclass
class ExecutorMetrics:
    """Counters for the executor's lifetime"""
    units_processed: int = 0
    units_failed: int = 0
    stale_results_dropped: int = 0
    matches_merged: int = 0
    drains_completed: int = 0
    last_drain_duration_ms: float = 0.0
    last_drain_completed_at: Optional[datetime] = None
    last_error_message: Optional[str] = None


class ScanExecutor:
    """
    Sequential scan runner.

    Exactly one adapter invocation is outstanding at any time: the next unit
    is only popped after the previous unit's result (or failure) has been
    applied to the aggregate. Units pushed while a drain is running are
    picked up by that same drain.
    """

    def __init__(
        self,
        adapter: ScannerAdapter,
        aggregate: ResultAggregate,
        projection: Projection,
        reporter: Reporter,
        config_provider: Callable[[], ScanConfig]
    ):
        self.adapter = adapter
        self.aggregate = aggregate
        self.projection = projection
        self.reporter = reporter
        self.config_provider = config_provider
        self.metrics = ExecutorMetrics()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def build_options(self, unit: ScanUnit, executable: Path) -> ScanOptions:
        """Scanner options for one unit from the current configuration"""
        config = self.config_provider()
        return ScanOptions(
            executable=executable,
            pattern=config.resolved_pattern(),
            globs=list(config.globs),
            restrict_to_file=unit.path if isinstance(unit, FileScan) else None,
            timeout_seconds=config.timeout_seconds
        )

    async def run(self, queue: ScanUnitQueue, executable: Callable[[], Path]) -> int:
        """
        Drain `queue` in LIFO order, then project the sorted aggregate once.

        `executable` is read per unit so a drain that outlives a config
        change uses the newest resolved scanner.

        Returns:
            Number of units processed in this drain
        """
        if self._running:
            raise RuntimeError("ScanExecutor.run() is already draining a queue")

        self._running = True
        start_time = time.perf_counter()
        processed = 0

        try:
            while True:
                unit = queue.pop()
                if unit is None:
                    break
                await self._scan_unit(unit, executable())
                processed += 1
        finally:
            self._running = False

        self.projection.project(self.aggregate.sorted_view())
        self.reporter.status(None)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.metrics.drains_completed += 1
        self.metrics.last_drain_duration_ms = duration_ms
        self.metrics.last_drain_completed_at = datetime.now()

        logger.info(
            f"Scan completed: {processed} units, {len(self.aggregate)} matches "
            f"in {duration_ms:.1f}ms"
        )
        return processed

    async def _scan_unit(self, unit: ScanUnit, executable: Path) -> None:
        options = self.build_options(unit, executable)
        generation = self.aggregate.generation

        logger.debug(f"Scanning {unit}")
        try:
            matches = await self.adapter.invoke(unit.path, options)
        except AdapterError as e:
            self.metrics.units_failed += 1
            self.metrics.last_error_message = e.describe()
            self.reporter.warning(f"todo-tree: {e.describe()}")
            return
        finally:
            self.metrics.units_processed += 1

        if generation != self.aggregate.generation:
            # A full refresh cleared the aggregate while this unit was in flight
            self.metrics.stale_results_dropped += 1
            logger.debug(f"Dropping {len(matches)} stale matches from {unit}")
            return

        # The newest result for a file replaces whatever an earlier unit merged
        if isinstance(unit, FileScan):
            self.aggregate.remove_file(unit.path)
        else:
            for path in dict.fromkeys(match.file for match in matches):
                self.aggregate.remove_file(path)
        self.metrics.matches_merged += self.aggregate.merge(matches)
        logger.debug(f"{unit}: {len(matches)} matches")

    def get_metrics(self) -> dict:
        return {
            "units_processed": self.metrics.units_processed,
            "units_failed": self.metrics.units_failed,
            "stale_results_dropped": self.metrics.stale_results_dropped,
            "matches_merged": self.metrics.matches_merged,
            "drains_completed": self.metrics.drains_completed,
            "last_drain_duration_ms": self.metrics.last_drain_duration_ms,
            "last_error_message": self.metrics.last_error_message,
        }
