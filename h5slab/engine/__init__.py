"""Storage engines and the process-wide default engine."""
from __future__ import annotations

from typing import Optional

from ..settings import get_settings
from .h5 import H5Engine
from .protocols import EngineId, StorageEngine
from .tracing import TracingEngine

_default_engine: Optional[StorageEngine] = None


def get_engine() -> StorageEngine:
    """Return the engine used by handles that are not given one explicitly."""
    global _default_engine
    if _default_engine is None:
        engine: StorageEngine = H5Engine()
        if get_settings().trace_engine:
            engine = TracingEngine(engine)
        _default_engine = engine
    return _default_engine


def set_engine(engine: Optional[StorageEngine]) -> None:
    """Replace the default engine.

    Passing None restores the lazily created default on the next `get_engine()`.
    Handles that are already open keep the engine they were created with.
    """
    global _default_engine
    _default_engine = engine


__all__ = [
    "EngineId",
    "H5Engine",
    "StorageEngine",
    "TracingEngine",
    "get_engine",
    "set_engine",
]
