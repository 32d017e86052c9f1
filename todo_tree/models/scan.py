"""
Scan data models for todo-tree.

Defines matches, scan units, scanner options and the triggers that drive
the scan planner.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Match(BaseModel):
    """
    One marker occurrence reported by the scanner.

    Line and column are 1-based, exactly as ripgrep reports them.
    """
    model_config = ConfigDict(frozen=True)

    file: str
    line: int = Field(ge=0)
    column: int = Field(default=1, ge=0)
    text: str = ""

    @field_validator('text')
    @classmethod
    def strip_line_ending(cls, v: str) -> str:
        """Drop the trailing newline ripgrep leaves on each line"""
        return v.rstrip('\r\n')

    @property
    def location(self) -> str:
        """path:line:column, the format editors accept for jumping to a match"""
        return f"{self.file}:{self.line}:{self.column}"

    def __str__(self) -> str:
        return f"{self.location}: {self.text.strip()}"


class FolderScan(BaseModel):
    """Recursive scan rooted at a folder"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["folder"] = "folder"
    path: str

    def __str__(self) -> str:
        return f"FOLDER: {self.path}"


class FileScan(BaseModel):
    """Scan restricted to a single file"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str

    def __str__(self) -> str:
        return f"FILE: {self.path}"


ScanUnit = Annotated[Union[FolderScan, FileScan], Field(discriminator="kind")]


class ScanOptions(BaseModel):
    """Everything the scanner adapter needs for one invocation"""
    model_config = ConfigDict(frozen=True)

    executable: Path
    pattern: str = Field(min_length=1)
    globs: List[str] = Field(default_factory=list)
    restrict_to_file: Optional[str] = None
    timeout_seconds: float = Field(default=120.0, gt=0)


class TriggerKind(Enum):
    """Events that cause the planner to (re)build the scan queue"""
    STARTUP = "startup"
    FULL_REFRESH = "full_refresh"
    CONFIG_CHANGED = "config_changed"
    FILE_SAVED = "file_saved"
    FILE_CLOSED = "file_closed"
    ACTIVE_EDITOR_CHANGED = "active_editor_changed"


class Trigger(BaseModel):
    """A trigger plus the data its kind needs"""
    model_config = ConfigDict(frozen=True)

    kind: TriggerKind
    path: Optional[str] = None
    workspace: Optional[str] = None

    @classmethod
    def startup(cls) -> 'Trigger':
        return cls(kind=TriggerKind.STARTUP)

    @classmethod
    def full_refresh(cls) -> 'Trigger':
        return cls(kind=TriggerKind.FULL_REFRESH)

    @classmethod
    def config_changed(cls) -> 'Trigger':
        return cls(kind=TriggerKind.CONFIG_CHANGED)

    @classmethod
    def file_saved(cls, path: Union[str, Path]) -> 'Trigger':
        return cls(kind=TriggerKind.FILE_SAVED, path=str(path))

    @classmethod
    def file_closed(cls, path: Union[str, Path]) -> 'Trigger':
        return cls(kind=TriggerKind.FILE_CLOSED, path=str(path))

    @classmethod
    def active_editor_changed(cls, workspace: Optional[Union[str, Path]]) -> 'Trigger':
        return cls(
            kind=TriggerKind.ACTIVE_EDITOR_CHANGED,
            workspace=str(workspace) if workspace is not None else None
        )

    @property
    def is_file_scoped(self) -> bool:
        return self.kind in (TriggerKind.FILE_SAVED, TriggerKind.FILE_CLOSED)

    def __str__(self) -> str:
        target = self.path or self.workspace
        return f"{self.kind.value.upper()}" + (f": {target}" if target else "")
