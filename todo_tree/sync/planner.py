"""
Scan Planner.

Turns a trigger into a ScanPlan: whether to clear the aggregate, which
files to drop from it, and which scan units to enqueue.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..exceptions import ResolutionError
from ..models.scan import FileScan, FolderScan, ScanUnit, Trigger, TriggerKind

logger = logging.getLogger(__name__)

Locator = Callable[[], Optional[Path]]


@dataclass
class ScanPlan:
    """What a trigger does to the aggregate and the queue"""
    trigger: Trigger
    clear_aggregate: bool = False
    replace_queue: bool = False
    remove_files: List[str] = field(default_factory=list)
    units: List[ScanUnit] = field(default_factory=list)
    reproject_only: bool = False
    executable: Optional[Path] = None
    root_folder: Optional[str] = None

    @property
    def is_noop(self) -> bool:
        return not (
            self.clear_aggregate or self.remove_files or self.units or self.reproject_only
        )

    def __str__(self) -> str:
        if self.is_noop:
            return f"{self.trigger} -> no-op"
        if self.reproject_only:
            return f"{self.trigger} -> re-project"
        action = "full rescan" if self.clear_aggregate else "file rescan"
        return f"{self.trigger} -> {action} ({len(self.units)} units)"


def is_within(path: str, folder: str) -> bool:
    """True if `path` lies inside `folder` (or is the folder itself)"""
    try:
        Path(path).relative_to(Path(folder))
        return True
    except ValueError:
        return False


class ScanPlanner:
    """
    Decides which scan units a trigger needs.

    The planner only builds plans; applying them to the aggregate and the
    queue is the engine's job. Any plan that enqueues units resolves the
    scanner executable first and raises ResolutionError without enqueueing
    anything if it cannot be found.
    """

    def __init__(self, locator: Locator):
        self.locator = locator

    def plan(
        self,
        trigger: Trigger,
        root_folder: Optional[str],
        open_documents: Iterable[str] = (),
        last_root_folder: Optional[str] = None,
        pattern_changed: bool = False
    ) -> ScanPlan:
        kind = trigger.kind

        if kind in (TriggerKind.STARTUP, TriggerKind.FULL_REFRESH):
            return self._plan_full(trigger, root_folder, open_documents)

        if trigger.is_file_scoped:
            if not trigger.path:
                raise ValueError(f"{kind.value} trigger requires a path")
            executable = self._resolve()
            return ScanPlan(
                trigger=trigger,
                remove_files=[trigger.path],
                units=[FileScan(path=trigger.path)],
                executable=executable,
                root_folder=root_folder
            )

        if kind == TriggerKind.CONFIG_CHANGED:
            if pattern_changed:
                return self._plan_full(trigger, root_folder, open_documents)
            return ScanPlan(trigger=trigger, reproject_only=True, root_folder=root_folder)

        if kind == TriggerKind.ACTIVE_EDITOR_CHANGED:
            if trigger.workspace is None or trigger.workspace != last_root_folder:
                return self._plan_full(trigger, root_folder, open_documents)
            logger.debug(f"Active workspace unchanged ({last_root_folder}), nothing to do")
            return ScanPlan(trigger=trigger, root_folder=root_folder)

        raise ValueError(f"Unknown trigger kind: {kind}")

    def _plan_full(
        self,
        trigger: Trigger,
        root_folder: Optional[str],
        open_documents: Iterable[str]
    ) -> ScanPlan:
        executable = self._resolve()

        units: List[ScanUnit] = []
        for document in open_documents:
            if root_folder is None or not is_within(document, root_folder):
                units.append(FileScan(path=document))
        if root_folder is not None:
            units.append(FolderScan(path=root_folder))

        return ScanPlan(
            trigger=trigger,
            clear_aggregate=True,
            replace_queue=True,
            units=units,
            executable=executable,
            root_folder=root_folder
        )

    def _resolve(self) -> Path:
        executable = self.locator()
        if executable is None:
            raise ResolutionError()
        return executable
