"""Process-wide defaults, optionally taken from environment variables."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, PositiveInt
from typing_extensions import Final, Literal

ENV_PREFIX: Final[str] = "H5SLAB_"
"""Prefix of the environment variables that override the defaults."""

DEFAULT_CHUNK_SIZE: Final[int] = 256
"""Chunk length of growable 1-axis datasets created without explicit chunking."""


class Settings(BaseModel):
    """Defaults used when a caller does not pass an explicit value."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_chunk_size: PositiveInt = DEFAULT_CHUNK_SIZE
    """Chunk length used by `Location.create_growable_dataset`."""

    default_file_mode: Literal["rw", "trunc"] = "rw"
    """Mode used by `File` when no mode is passed."""

    trace_engine: bool = False
    """Wrap the default engine into a `TracingEngine` (logs every engine call)."""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """Build settings from `H5SLAB_*` variables (unset ones keep the default)."""
        environ = os.environ if environ is None else environ
        values = {}
        for field in cls.model_fields:
            key = f"{ENV_PREFIX}{field.upper()}"
            if key in environ:
                values[field] = environ[key]
        return cls.model_validate(values)


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the settings of this process (read from the environment once)."""
    return Settings.from_env()
