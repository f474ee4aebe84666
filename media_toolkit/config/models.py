"""
Configuration models using Pydantic.

This module defines the configuration structure for the process runner.
"""

import codecs
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RunnerConfig(BaseModel):
    """Process runner configuration."""

    working_directory: Optional[Path] = Field(
        default=None,
        description="Default working directory for tools (None = system temp directory)",
    )
    encoding: str = Field(default="utf-8", description="Encoding used to decode tool output")
    kill_timeout: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="Seconds to wait for a killed process to be reaped",
    )
    read_chunk_size: int = Field(
        default=4096, ge=64, le=1048576, description="Bytes read per stream read call"
    )
    hide_console_window: bool = Field(
        default=True, description="Suppress the console window of spawned tools on Windows"
    )
    log_output_lines: bool = Field(
        default=False, description="Echo every output line to the debug log"
    )

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Validate output encoding."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding: {v}")
        return v

    @field_validator("working_directory")
    @classmethod
    def validate_working_directory(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand user home in working directory."""
        return v.expanduser() if v is not None else None

    @classmethod
    def create_default(cls) -> "RunnerConfig":
        """Create default configuration."""
        return cls()
