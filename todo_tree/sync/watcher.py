"""
Workspace File System Watcher.

Turns watchdog file system events into engine triggers: modified and
created files are rescanned as saves, deleted files as closes (the rescan
finds nothing and drops their matches), moves as both.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Set

from watchdog.events import FileSystemEvent as WatchdogEvent
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .engine import TodoTreeEngine

logger = logging.getLogger(__name__)


class WorkspaceWatcher:
    """
    Watches a root folder and feeds file-scoped triggers into the engine.

    Events for the same path inside the debounce window collapse into one
    trigger, so an editor's write-rename-touch sequence costs one rescan.
    """

    # Directories to ignore
    IGNORED_DIRECTORIES = {
        'node_modules', '.git', '__pycache__', '.pytest_cache',
        '.venv', 'venv', 'build', 'dist', '.cache', 'target',
        '.svn', '.hg', '.mypy_cache', '.tox', '.todo-tree'
    }

    def __init__(
        self,
        engine: TodoTreeEngine,
        root: Path,
        debounce_ms: int = 500,
        recursive: bool = True
    ):
        self.engine = engine
        self.root = Path(root).resolve()
        self.debounce_ms = debounce_ms
        self.recursive = recursive

        self.observer: Optional[Observer] = None
        self.event_handler: Optional['WatcherEventHandler'] = None

        # Debouncing state: path -> "saved" or "closed"
        self._pending: Dict[str, str] = {}
        self._debounce_tasks: Dict[str, asyncio.Task] = {}

        self._is_monitoring = False
        self.events_received = 0
        self.triggers_fired = 0

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    def is_ignored(self, path: Path) -> bool:
        try:
            parts = path.relative_to(self.root).parts
        except ValueError:
            return True
        return any(part in self.IGNORED_DIRECTORIES for part in parts[:-1])

    async def start_monitoring(self) -> bool:
        """
        Start watching the root folder.

        Returns:
            True if monitoring started successfully, False otherwise
        """
        if self._is_monitoring:
            logger.warning("File system monitoring is already active")
            return True

        if not self.root.is_dir():
            logger.error(f"Cannot watch {self.root}: not a directory")
            return False

        self.event_handler = WatcherEventHandler(self, asyncio.get_running_loop())
        self.observer = Observer()
        self.observer.schedule(self.event_handler, str(self.root), recursive=self.recursive)
        self.observer.start()

        self._is_monitoring = True
        logger.info(f"Watching {self.root} (debounce: {self.debounce_ms}ms)")
        return True

    async def stop_monitoring(self) -> None:
        if self.observer:
            self.observer.stop()
            await asyncio.get_running_loop().run_in_executor(None, self.observer.join, 3.0)
            self.observer = None

        for task in self._debounce_tasks.values():
            task.cancel()
        self._debounce_tasks.clear()
        self._pending.clear()

        self._is_monitoring = False
        logger.info(f"Stopped watching {self.root}")

    def handle_watchdog_event(self, event: WatchdogEvent) -> None:
        """Map a watchdog event to pending triggers. Runs on the event loop"""
        if event.is_directory:
            return
        self.events_received += 1

        event_type = event.event_type
        if event_type in ("created", "modified", "closed"):
            self._schedule(event.src_path, "saved")
        elif event_type == "deleted":
            self._schedule(event.src_path, "closed")
        elif event_type == "moved":
            self._schedule(event.src_path, "closed")
            self._schedule(getattr(event, "dest_path", ""), "saved")

    def _schedule(self, raw_path, action: str) -> None:
        if not raw_path:
            return
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode("utf-8", errors="replace")
        path = Path(raw_path)
        if self.is_ignored(path):
            return

        key = str(path)
        self._pending[key] = action

        existing = self._debounce_tasks.get(key)
        if existing and not existing.done():
            existing.cancel()
        self._debounce_tasks[key] = asyncio.create_task(self._fire_after_debounce(key))

    async def _fire_after_debounce(self, key: str) -> None:
        try:
            await asyncio.sleep(self.debounce_ms / 1000)
        except asyncio.CancelledError:
            return

        self._debounce_tasks.pop(key, None)
        action = self._pending.pop(key, None)
        if action is None:
            return

        self.triggers_fired += 1
        logger.debug(f"File {action}: {key}")
        if action == "closed":
            await self.engine.on_file_closed(key)
        else:
            await self.engine.on_file_saved(key)

    async def flush(self) -> None:
        """Wait for all pending debounced triggers to fire"""
        while self._debounce_tasks:
            await asyncio.gather(*list(self._debounce_tasks.values()), return_exceptions=True)

    async def __aenter__(self):
        await self.start_monitoring()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop_monitoring()


class WatcherEventHandler(FileSystemEventHandler):
    """
    Watchdog event handler that forwards events to WorkspaceWatcher.

    Watchdog calls this from its observer thread, so every event is handed
    to the event loop with call_soon_threadsafe.
    """

    def __init__(self, watcher: WorkspaceWatcher, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self.watcher = watcher
        self._event_loop = loop

    def on_any_event(self, event: WatchdogEvent) -> None:
        if self._event_loop.is_closed():
            logger.debug(f"Event loop closed, dropping event: {event}")
            return
        try:
            self._event_loop.call_soon_threadsafe(self.watcher.handle_watchdog_event, event)
        except RuntimeError as e:
            # Loop shutting down between the check and the call
            logger.debug(f"Failed to schedule event on loop: {e}")
