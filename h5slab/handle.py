"""
Single-owner wrappers around engine resource identifiers.

Every engine resource (file, group, dataset, dataspace, type) is owned by
exactly one handle object, which releases it exactly once.

Ownership can be handed over with `move()` (returns a new owner) or `assign()`
(makes an existing handle the new owner, releasing what it held before).
The handle the resource was taken from stays behind inert: closing it is a no-op.

Handles cannot be copied. Two copies would both try to release the resource,
so `copy.copy`, `copy.deepcopy` and pickling raise a `TypeError`.
"""
from __future__ import annotations

from typing import Optional, Type, TypeVar

from .engine import EngineId, StorageEngine, get_engine
from .errors import InvalidHandleError

H = TypeVar("H", bound="Handle")


class Handle:
    """Owner of a single engine resource identifier.

    Subclasses implement `_release` with the engine call freeing their kind
    of resource.
    """

    _engine: StorageEngine
    _ident: Optional[EngineId]
    _initialized: bool

    def __init__(
        self,
        engine: Optional[StorageEngine] = None,
        ident: Optional[EngineId] = None,
    ):
        self._engine = engine if engine is not None else get_engine()
        self._ident = None
        self._initialized = False
        if ident is not None:
            self._set_id(ident)

    @property
    def engine(self) -> StorageEngine:
        """Engine the resource belongs to."""
        return self._engine

    @property
    def initialized(self) -> bool:
        """Return whether this handle currently owns a resource."""
        return self._initialized

    @property
    def id(self) -> EngineId:
        """Return the engine identifier of the owned resource."""
        self._expect_initialized()
        return self._ident

    def _set_id(self, ident: EngineId) -> None:
        self._ident = ident
        self._initialized = True

    def _expect_initialized(self) -> None:
        if not self._initialized:
            msg = f"{type(self).__name__} does not own a resource (released or moved)!"
            raise InvalidHandleError(msg)

    def invalidate(self) -> None:
        """Forget the identifier without releasing the resource."""
        self._ident = None
        self._initialized = False

    def _release(self, ident: EngineId) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release the owned resource.

        Does nothing if the handle is not initialized, i.e. it was closed
        before or the resource was moved to another handle.
        """
        if not self._initialized:
            return
        ident = self._ident
        self.invalidate()
        self._release(ident)

    # ---- ownership transfer ----

    def _transfer_to(self, other: Handle) -> None:
        """Leave this handle inert after `other` took over its state."""
        self.invalidate()

    def move(self: H) -> H:
        """Return a new handle owning the resource of this one.

        Afterwards this handle is inert and closing it does nothing.
        """
        cls: Type[H] = type(self)
        ret = cls.__new__(cls)
        ret.__dict__.update(self.__dict__)
        self._transfer_to(ret)
        return ret

    def assign(self: H, other: H) -> H:
        """Take over the resource of `other` (move assignment).

        If this handle owns a resource already, it is released first.
        Afterwards `other` is inert.
        """
        if other is self:
            return self
        if type(other) is not type(self):
            msg = f"Cannot assign {type(other).__name__} to {type(self).__name__}!"
            raise TypeError(msg)
        self.close()
        self.__dict__.update(other.__dict__)
        other._transfer_to(self)
        return self

    # ---- forbid copies ----

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} owns a resource and cannot be copied!")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} owns a resource and cannot be copied!")

    def __reduce_ex__(self, protocol):
        raise TypeError(f"{type(self).__name__} owns a resource and cannot be pickled!")

    # ---- context manager support (i.e. to use `with`) ----

    def __enter__(self: H) -> H:
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback):
        self.close()

    def __repr__(self):
        state = "open" if self._initialized else "closed"
        return f"<{type(self).__name__} ({state})>"


class NamedHandle(Handle):
    """Handle of a resource that has a name inside its container."""

    _name: str

    def __init__(
        self,
        name: str = "",
        engine: Optional[StorageEngine] = None,
        ident: Optional[EngineId] = None,
    ):
        super().__init__(engine, ident)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self):
        state = "open" if self._initialized else "closed"
        return f"<{type(self).__name__} '{self._name}' ({state})>"
