from __future__ import annotations

import functools
import logging
from collections import Counter
from typing import Any, Callable

import wrapt
from typing_extensions import Final

logger = logging.getLogger(__name__)

ACQUIRING_OPS: Final[frozenset] = frozenset(
    {
        "open_file",
        "create_file",
        "open_group",
        "create_group",
        "open_dataset",
        "create_dataset",
        "dataset_space",
        "dataset_type",
        "create_space",
    }
)
"""Engine operations that hand out a resource the caller has to release."""

RELEASING_OPS: Final[frozenset] = frozenset(
    {"close_file", "close_group", "close_dataset", "close_space", "close_type"}
)


class TracingEngine(wrapt.ObjectProxy):
    """Wrapper for a storage engine logging and counting every successful call.

    Useful to audit resource handling: each acquiring call must eventually be
    matched by exactly one releasing call.
    """

    def __init__(self, engine, level: int = logging.DEBUG):
        super().__init__(engine)
        self._self_calls: Counter = Counter()
        self._self_level = level

    @property
    def calls(self) -> Counter:
        """Number of successful calls per engine operation."""
        return self._self_calls

    @property
    def acquired(self) -> int:
        return sum(self._self_calls[op] for op in ACQUIRING_OPS)

    @property
    def released(self) -> int:
        return sum(self._self_calls[op] for op in RELEASING_OPS)

    @property
    def outstanding(self) -> int:
        """Number of resources acquired, but not released yet."""
        return self.acquired - self.released

    def reset(self) -> None:
        self._self_calls.clear()

    def _traced(self, op: str, method: Callable) -> Callable:
        @functools.wraps(method)
        def traced(*args, **kwargs):
            logger.log(self._self_level, "engine.%s%r", op, args)
            ret = method(*args, **kwargs)
            self._self_calls[op] += 1
            return ret

        return traced

    def __getattr__(self, key: str) -> Any:
        attr = getattr(self.__wrapped__, key)
        if key[0] == "_" or not callable(attr):
            return attr
        return self._traced(key, attr)

    def __repr__(self) -> str:
        return f"<TracingEngine {self.__wrapped__!r}>"
