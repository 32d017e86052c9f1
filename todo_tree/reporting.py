"""
Operator-facing reporting.

The engine and executor surface failures and progress through a Reporter so
front ends decide how they are shown.
"""

import logging
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from rich.console import Console

logger = logging.getLogger(__name__)


@runtime_checkable
class Reporter(Protocol):
    """Sink for user-visible messages"""

    def error(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def status(self, message: Optional[str]) -> None:
        """Show a transient status line; None hides it"""
        ...


class LoggingReporter:
    """Reporter that writes everything to the module logger"""

    def error(self, message: str) -> None:
        logger.error(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def status(self, message: Optional[str]) -> None:
        if message:
            logger.info(message)


class ConsoleReporter:
    """Reporter for the CLI, printing through a rich console"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def error(self, message: str) -> None:
        self.console.print(f"[red]❌ {message}[/red]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠️  {message}[/yellow]")

    def status(self, message: Optional[str]) -> None:
        if message:
            self.console.print(f"[dim]{message}[/dim]")


class RecordingReporter:
    """Reporter that keeps every message, for tests and embedding front ends"""

    def __init__(self):
        self.messages: List[Tuple[str, Optional[str]]] = []

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def status(self, message: Optional[str]) -> None:
        self.messages.append(("status", message))

    def of_level(self, level: str) -> List[str]:
        return [message for lvl, message in self.messages if lvl == level and message is not None]

    @property
    def errors(self) -> List[str]:
        return self.of_level("error")

    @property
    def warnings(self) -> List[str]:
        return self.of_level("warning")
