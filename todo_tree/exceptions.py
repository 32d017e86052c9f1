"""
Error taxonomy for todo-tree.

ResolutionError is fatal to a scan attempt, AdapterError is fatal to a single
scan unit, and MalformedLineError never leaves the adapter.
"""

from typing import Optional


class TodoTreeError(Exception):
    """Base class for all todo-tree errors"""
    pass


class ConfigurationError(TodoTreeError):
    """Raised when a configuration file cannot be read or validated"""
    pass


class ResolutionError(TodoTreeError):
    """Raised when no usable ripgrep executable can be located"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Failed to find ripgrep - install ripgrep and set 'ripgrep' "
               "in the todo-tree configuration to point to the executable"
        )


class AdapterError(TodoTreeError):
    """
    Raised when a single scanner invocation fails.

    Carries whatever diagnostic output the underlying process produced
    (usually captured stderr) so it can be shown alongside the message.
    """

    def __init__(self, message: str, diagnostic_output: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.diagnostic_output = diagnostic_output or None

    def describe(self) -> str:
        """Message with diagnostic detail appended, as shown to the operator"""
        if self.diagnostic_output:
            return f"{self.message} ({self.diagnostic_output.strip()})"
        return self.message


class MalformedLineError(TodoTreeError):
    """Raised by the output parser for a line that is not file:line:col:text"""

    def __init__(self, line: str):
        super().__init__(f"Malformed scanner output line: {line!r}")
        self.line = line
