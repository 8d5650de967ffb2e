"""Settings schema for fsprobe."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Isolation = Literal["subprocess", "thread"]

DEFAULT_TIMEOUT = "10"
DEFAULT_JOBS = 8

_DURATION_RE = re.compile(r"^\s*(?P<value>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>[smhd]?)\s*$")
_UNIT_SECONDS: dict[str, float] = {"": 1.0, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}


def parse_duration(value: str | float | int) -> float:
    """Parse ``30``, ``1.5``, ``45s``, ``2m``, ``1h`` or ``1d`` into seconds."""

    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(value.lower())
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        seconds = float(match.group("value")) * _UNIT_SECONDS[match.group("unit")]
    if seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds


class ProbeDefaults(BaseModel):
    """User-persisted defaults; command-line options take precedence."""

    schema_version: int = Field(default=1)
    timeout: str = Field(default=DEFAULT_TIMEOUT, description="Per-probe deadline")
    jobs: int = Field(default=DEFAULT_JOBS, ge=1, le=4096)
    access_check: bool = Field(default=False)
    isolation: Isolation = Field(default="subprocess")
    exclude: list[str] = Field(default_factory=list)
    stripe_tool: str = Field(default="lfs")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, value: str) -> str:
        parse_duration(value)
        return value.strip()


class ProbeConfig(BaseModel):
    """Immutable run configuration shared read-only by every worker."""

    model_config = ConfigDict(frozen=True)

    root: Path
    timeout: float = Field(gt=0)
    access_check: bool = Field(default=False)
    concurrency: int = Field(default=DEFAULT_JOBS, ge=1)
    stripe_diagnostics: bool = Field(default=False)
    isolation: Isolation = Field(default="subprocess")
    exclude: tuple[str, ...] = Field(default=())
    absolute_paths: bool = Field(default=False)
    stripe_tool: str = Field(default="lfs")

    @field_validator("timeout", mode="before")
    @classmethod
    def validate_timeout(cls, value: str | float | int) -> float:
        return parse_duration(value)

    @field_validator("root")
    @classmethod
    def validate_root(cls, value: Path) -> Path:
        path = Path(value).expanduser()
        if not path.is_dir():
            raise ValueError(f"not a directory: {value}")
        return path.resolve()
