"""
Configuration Models

Pydantic model for the cache configuration with validation, defaults and
field documentation.
"""

import logging
import re
import tempfile
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


FILE_PREFIX = "elcache."
FILE_EXTENSION = ".php"

_CONTEXT_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


class CacheConfig(BaseModel):
    """Configuration for one cache context."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra='forbid',
    )

    path: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory the cache files are stored in"
    )
    context: str = Field(
        default="default",
        description="Namespace of the cache; each context has its own file"
    )
    ttl: int = Field(
        default=3600,
        alias="default_expiry",
        description="Default time-to-live in seconds for set() and push()"
    )
    max_buffer: Optional[int] = Field(
        default=4096,
        ge=1,
        description="Maximum encoded cache size in KiB (None disables the limit)"
    )
    purge_on_init: bool = Field(
        default=True,
        description="Drop expired entries from memory when the cache is initialized"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level used by the command-line interface"
    )

    @field_validator('context')
    @classmethod
    def validate_context(cls, v):
        """Context becomes part of a file name, so keep it to a safe charset."""
        if not v or v in {'.', '..'} or not _CONTEXT_PATTERN.match(v):
            raise ValueError(
                f"Invalid context {v!r}: use letters, digits, '.', '_' or '-'"
            )
        return v

    @field_validator('path', mode='before')
    @classmethod
    def expand_path(cls, v):
        """Expand ~ in configured paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is a standard logging level name."""
        level = str(v).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def file_path(self) -> Path:
        """Path of the cache file backing this context."""
        return self.path / f"{FILE_PREFIX}{self.context}{FILE_EXTENSION}"

    @property
    def max_buffer_bytes(self) -> Optional[int]:
        """Size budget in bytes, or None when unlimited."""
        if self.max_buffer is None:
            return None
        return self.max_buffer * 1024
