"""
todo-tree Scan Engine.

Central coordinator that owns the root folder, the scan unit queue and the
result aggregate, and exposes the trigger surface front ends call into.
"""

import asyncio
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import ResolutionError
from ..models.config import ScanConfig
from ..models.scan import Trigger
from ..presentation import MatchTreeProjection, Projection
from ..reporting import LoggingReporter, Reporter
from ..scanner.base import ScannerAdapter
from ..scanner.locate import locate_ripgrep
from ..scanner.ripgrep import RipgrepAdapter
from .aggregate import ResultAggregate
from .executor import ScanExecutor
from .planner import ScanPlan, ScanPlanner
from .queue import ScanUnitQueue

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _normalize(path: PathLike) -> str:
    return os.path.abspath(os.fspath(path))


class TodoTreeEngine:
    """
    Scan orchestrator for one workspace session.

    Lifecycle: construct, start() (the Startup trigger), call the on_*
    trigger methods as things happen, stop() at shutdown. All state lives on
    this object and is only mutated on the event loop thread, either
    synchronously inside a trigger method or by the single drain task
    between adapter invocations.

    Trigger methods plan and apply synchronously, then make sure a drain
    task is running; they return without waiting for the scan. Use
    wait_until_idle() to wait for the queue to empty.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        adapter: Optional[ScannerAdapter] = None,
        projection: Optional[Projection] = None,
        reporter: Optional[Reporter] = None,
        locator: Callable[[Optional[Path]], Optional[Path]] = locate_ripgrep,
        workspace: Optional[PathLike] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Scan configuration (defaults to ScanConfig())
            adapter: Scanner adapter (defaults to RipgrepAdapter)
            projection: Consumer of the sorted matches after each drain
            reporter: Sink for user-visible errors, warnings and status
            locator: Resolves the scanner executable from the configured path
            workspace: Initially active workspace folder, if any
        """
        self.config = config or ScanConfig()
        self.adapter = adapter or RipgrepAdapter()
        self.reporter = reporter or LoggingReporter()
        self.projection = projection or MatchTreeProjection(
            root_provider=lambda: self.last_root_folder,
            flat_provider=lambda: self.config.flat
        )
        self.locator = locator

        # Root folder state
        self.active_workspace: Optional[str] = _normalize(workspace) if workspace else None
        self.last_root_folder: Optional[str] = None

        # Open documents, in the order they were opened
        self.open_documents: Dict[str, None] = {}

        # Scan state
        self.aggregate = ResultAggregate()
        self.queue = ScanUnitQueue()
        self.planner = ScanPlanner(locator=lambda: self.locator(self.config.ripgrep))
        self.executor = ScanExecutor(
            adapter=self.adapter,
            aggregate=self.aggregate,
            projection=self.projection,
            reporter=self.reporter,
            config_provider=lambda: self.config
        )
        self.executable: Optional[Path] = None

        # Background drain
        self._drain_task: Optional[asyncio.Task] = None
        self._stopped = False

        # Error tracking
        self._resolution_reported = False
        self.scanning_disabled = False
        self.last_error_message: Optional[str] = None
        self.last_scan_started_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Root folder
    # ------------------------------------------------------------------

    @property
    def root_folder(self) -> Optional[str]:
        """
        Current scan root: configured root, else the active workspace, else
        the root used by the last scan, else None (unset).
        """
        if self.config.root_folder:
            return _normalize(self.config.root_folder)
        if self.active_workspace:
            return self.active_workspace
        return self.last_root_folder

    # ------------------------------------------------------------------
    # Trigger surface
    # ------------------------------------------------------------------

    async def start(self) -> Optional[ScanPlan]:
        """Run the Startup trigger"""
        self._stopped = False
        logger.info(f"Starting todo-tree engine (root: {self.root_folder or 'unset'})")
        return self.handle(Trigger.startup())

    async def on_full_refresh_requested(self) -> Optional[ScanPlan]:
        return self.handle(Trigger.full_refresh())

    async def on_configuration_changed(self, config: Optional[ScanConfig] = None) -> Optional[ScanPlan]:
        """
        Apply a new configuration.

        Existing results are only re-sorted and re-projected unless the
        resolved match pattern changed, which forces a full rescan.
        """
        previous = self.config
        if config is not None:
            self.config = config
        pattern_changed = previous.affects_pattern(self.config)
        if pattern_changed:
            logger.info("Match pattern changed, rescanning")
        return self.handle(Trigger.config_changed(), pattern_changed=pattern_changed)

    async def on_file_saved(self, path: PathLike) -> Optional[ScanPlan]:
        return self.handle(Trigger.file_saved(_normalize(path)))

    async def on_file_closed(self, path: PathLike) -> Optional[ScanPlan]:
        normalized = _normalize(path)
        self.open_documents.pop(normalized, None)
        return self.handle(Trigger.file_closed(normalized))

    async def on_active_context_changed(self, workspace: Optional[PathLike]) -> Optional[ScanPlan]:
        """
        The active document moved to `workspace` (None: outside any workspace).

        Only rescans when the workspace differs from the root of the previous
        scan.
        """
        normalized = _normalize(workspace) if workspace else None
        self.active_workspace = normalized
        return self.handle(Trigger.active_editor_changed(normalized))

    def open_document(self, path: PathLike) -> None:
        """Track an open document; out-of-root documents get their own scan unit"""
        self.open_documents[_normalize(path)] = None

    # ------------------------------------------------------------------
    # Planning and applying
    # ------------------------------------------------------------------

    def handle(self, trigger: Trigger, pattern_changed: bool = False) -> Optional[ScanPlan]:
        """
        Plan `trigger` and apply the plan.

        Runs without suspending, so the aggregate clear and the queue update
        can never interleave with a merge from the drain task.

        Returns:
            The applied plan, or None if scanning is disabled because no
            scanner executable could be found
        """
        if self._stopped:
            logger.debug(f"Engine stopped, ignoring {trigger}")
            return None

        root = self.root_folder
        try:
            plan = self.planner.plan(
                trigger,
                root_folder=root,
                open_documents=list(self.open_documents),
                last_root_folder=self.last_root_folder,
                pattern_changed=pattern_changed
            )
        except ResolutionError as e:
            self._on_resolution_failed(e)
            return None

        logger.debug(f"Plan: {plan}")
        self._apply(plan)
        return plan

    def _on_resolution_failed(self, error: ResolutionError) -> None:
        self.scanning_disabled = True
        self.last_error_message = str(error)
        if self._resolution_reported:
            logger.debug(f"Scanning still disabled: {error}")
            return
        self._resolution_reported = True
        self.reporter.error(f"todo-tree: {error}")

    def _apply(self, plan: ScanPlan) -> None:
        if plan.executable is not None:
            self.executable = plan.executable
            self.scanning_disabled = False
            self._resolution_reported = False

        if plan.reproject_only:
            # A running drain projects when it finishes
            if not self.is_scanning:
                self.projection.project(self.aggregate.sorted_view())
            return

        if plan.is_noop:
            return

        if plan.clear_aggregate:
            self.aggregate.clear()
            if plan.root_folder is not None:
                self.last_root_folder = plan.root_folder
            self.last_scan_started_at = datetime.now()
            self.reporter.status(f"todo-tree: Scanning {plan.root_folder or 'open documents'}...")

        for path in plan.remove_files:
            self.aggregate.remove_file(path)

        if plan.replace_queue:
            self.queue.replace(plan.units)
        else:
            self.queue.extend(plan.units)

        self._ensure_draining()

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        try:
            await self.executor.run(self.queue, lambda: self.executable)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error_msg = f"todo-tree: scan failed unexpectedly: {e}"
            logger.exception(error_msg)
            self.last_error_message = error_msg
            self.reporter.error(error_msg)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_scanning(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    async def wait_until_idle(self) -> None:
        """Wait until the queue is drained and the results projected"""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)

    async def stop(self) -> None:
        """Stop accepting triggers and tear down the drain task"""
        self._stopped = True
        self.queue.clear()
        if self._drain_task and not self._drain_task.done():
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
        self._drain_task = None
        logger.info("Stopped todo-tree engine")

    def matches(self) -> List:
        """Current aggregate in display order"""
        return self.aggregate.sorted_view()

    def get_status(self) -> Dict[str, Any]:
        return {
            "root_folder": self.root_folder,
            "last_root_folder": self.last_root_folder,
            "executable": str(self.executable) if self.executable else None,
            "scanning": self.is_scanning,
            "scanning_disabled": self.scanning_disabled,
            "open_documents": len(self.open_documents),
            "pending_units": len(self.queue),
            "aggregate": self.aggregate.stats(),
            "executor": self.executor.get_metrics(),
            "queue": self.queue.get_metrics(),
            "last_error": self.last_error_message,
        }
