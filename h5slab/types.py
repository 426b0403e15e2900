"""Mapping of numpy scalar types to engine types."""
from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import DTypeLike
from typing_extensions import Final

from .engine import EngineId, StorageEngine
from .errors import UnsupportedTypeError
from .handle import Handle

SCALAR_DTYPES: Final[frozenset] = frozenset(
    map(
        np.dtype,
        [
            "int8",  # byte / char
            "uint8",
            "int16",
            "uint16",
            "int32",
            "uint32",
            "int64",
            "uint64",
            "float32",
            "float64",
        ],
    )
)
"""Scalar types that can be stored in datasets."""


def scalar_dtype(dtype: DTypeLike) -> np.dtype:
    """Normalize a dtype, rejecting types that no engine type is mapped to."""
    try:
        ret = np.dtype(dtype)
    except TypeError as err:
        raise UnsupportedTypeError(f"Not a scalar type: {dtype!r}") from err
    if ret not in SCALAR_DTYPES:
        raise UnsupportedTypeError(f"No engine type mapped to dtype '{ret}'!")
    return ret


class TypeBinding(Handle):
    """An engine type tag, either borrowed or owned.

    Tags of built-in types and tags passed in by the caller are borrowed, the
    engine (or the caller) keeps managing them. Tags obtained by inspecting
    the stored type of a dataset are owned and released on `close()`.
    """

    _owns_type: bool

    def __init__(
        self,
        tag: EngineId,
        owns_type: bool = False,
        engine: Optional[StorageEngine] = None,
    ):
        super().__init__(engine, tag)
        self._owns_type = owns_type

    @classmethod
    def for_dtype(
        cls, dtype: DTypeLike, engine: Optional[StorageEngine] = None
    ) -> TypeBinding:
        """Bind a scalar type to its built-in engine type (borrowed)."""
        ret = cls.__new__(cls)
        Handle.__init__(ret, engine)
        ret._set_id(ret.engine.native_type(scalar_dtype(dtype)))
        ret._owns_type = False
        return ret

    @classmethod
    def borrow(cls, tag: EngineId, engine: Optional[StorageEngine] = None) -> TypeBinding:
        """Bind a caller-supplied engine type tag (borrowed)."""
        return cls(tag, False, engine)

    @classmethod
    def of_dataset(
        cls, dataset_id: EngineId, engine: Optional[StorageEngine] = None
    ) -> TypeBinding:
        """Look up the stored element type of a dataset (owned)."""
        ret = cls.__new__(cls)
        Handle.__init__(ret, engine)
        ret._set_id(ret.engine.dataset_type(dataset_id))
        ret._owns_type = True
        return ret

    @property
    def owns_type(self) -> bool:
        return self._owns_type

    @property
    def tag(self) -> EngineId:
        return self.id

    @property
    def dtype(self) -> np.dtype:
        """Numpy dtype described by the type tag."""
        return self.engine.type_dtype(self.id)

    def matches(self, other_tag: EngineId) -> bool:
        """Return whether the other tag denotes the same type (per the engine)."""
        return self.engine.types_equal(self.id, other_tag)

    def _release(self, ident: EngineId) -> None:
        if self._owns_type:
            self.engine.close_type(ident)

    def __repr__(self):
        kind = "owned" if self._owns_type else "borrowed"
        state = "" if self._initialized else ", closed"
        return f"<TypeBinding ({kind}{state})>"
