"""Exceptions raised by h5slab.

Precondition violations are `ValueError`s (or `TypeError`s for type mismatches),
failures reported by the storage engine are `OSError`s.
"""
from __future__ import annotations

from typing import Any, Optional


class H5SlabError(Exception):
    """Base class of all errors raised by h5slab."""


class PreconditionError(H5SlabError, ValueError):
    """An operation was called with arguments or in a state it does not accept."""


class RankMismatchError(PreconditionError):
    """A size vector does not have as many entries as the dataspace has axes."""

    def __init__(self, what: str, expected: int, got: int):
        super().__init__(f"{what} has rank {got}, but rank {expected} was expected!")
        self.expected = expected
        self.got = got


class TypeMismatchError(PreconditionError, TypeError):
    """Buffer type and dataset type are not the same engine type."""


class AlreadyInitializedError(PreconditionError):
    """Tried to create a resource on a handle that already owns one."""


class InvalidHandleError(PreconditionError):
    """The handle was released or moved from and does not own a resource."""


class UnsupportedTypeError(H5SlabError, TypeError):
    """The scalar type has no engine type mapped to it."""


class EngineError(H5SlabError, OSError):
    """The storage engine failed to carry out an operation."""

    op: str
    target: Optional[Any]

    def __init__(self, op: str, target: Optional[Any] = None, reason: str = ""):
        msg = f"Engine operation '{op}' failed"
        if target is not None:
            msg += f" for '{target}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.op = op
        self.target = target
