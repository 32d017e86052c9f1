"""
Configuration models for todo-tree.

Handles per-project scan settings and process-wide settings loaded from the
environment.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TAGS_PLACEHOLDER = "$TAGS"


class ScanConfig(BaseModel):
    """Marker scan configuration"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )

    # Matching
    regex: str = "($TAGS)"
    tags: List[str] = Field(default_factory=lambda: ["TODO", "FIXME"])
    globs: List[str] = Field(default_factory=list)

    # Scanner
    ripgrep: Optional[Path] = None
    timeout_seconds: float = Field(default=120.0, ge=1.0, le=3600.0)

    # Scope
    root_folder: Optional[Path] = None

    # Presentation
    flat: bool = False

    @field_validator('regex')
    @classmethod
    def validate_regex(cls, v: str) -> str:
        """Ensure a pattern was given"""
        if not v:
            raise ValueError('regex cannot be empty')
        return v

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        """Strip blanks and require at least one tag"""
        tags = [tag.strip() for tag in v if tag and tag.strip()]
        if not tags:
            raise ValueError('At least one tag must be configured')
        return tags

    @field_validator('globs')
    @classmethod
    def validate_globs(cls, v: List[str]) -> List[str]:
        return [glob.strip() for glob in v if glob and glob.strip()]

    @field_validator('ripgrep', 'root_folder', mode='before')
    @classmethod
    def empty_path_is_unset(cls, v: Any) -> Any:
        """An empty string in a config file means 'not configured'"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def resolved_pattern(self) -> str:
        """
        Pattern handed to the scanner.

        When the regex contains the "($TAGS)" group, the placeholder is
        replaced by the configured tags joined with '|'.
        """
        if f"({TAGS_PLACEHOLDER})" in self.regex:
            return self.regex.replace(TAGS_PLACEHOLDER, "|".join(self.tags))
        return self.regex

    def affects_pattern(self, other: 'ScanConfig') -> bool:
        """True if switching to `other` changes what the scanner matches"""
        return self.resolved_pattern() != other.resolved_pattern()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data = self.model_dump()
        data['ripgrep'] = str(self.ripgrep) if self.ripgrep else None
        data['root_folder'] = str(self.root_folder) if self.root_folder else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScanConfig':
        """Create from dictionary"""
        return cls(**data)


class GlobalSettings(BaseSettings):
    """Process-wide settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_prefix="TODO_TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Watch mode
    debounce_ms: int = Field(default=500, ge=0, le=60000)
