"""Typed, shaped views over contiguous memory used as source or target of I/O."""
from __future__ import annotations

import math
from typing import Any, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, DTypeLike

from .engine import EngineId
from .errors import PreconditionError
from .types import scalar_dtype


class Buffer:
    """Named block of scalar data with dimensions.

    The memory is either borrowed from the caller (`wrap`, `borrow`) or owned
    by the buffer (`take`). In both cases it is a C-contiguous numpy array,
    flattened row-major into the dimensions of the buffer.

    A buffer takes part in one read, write or append at a time and is not
    tied to any dataset.
    """

    _name: str
    _dimensions: Tuple[int, ...]
    _data: np.ndarray
    _owns_storage: bool
    _type_tag: Optional[EngineId]

    def __init__(
        self,
        name: str,
        data: ArrayLike,
        dtype: Optional[DTypeLike] = None,
        type_tag: Optional[EngineId] = None,
    ):
        """Create a buffer from an array (borrowed) or other array-like (copied).

        A numpy array is borrowed unless a different `dtype` is requested,
        everything else is copied into storage owned by the buffer.
        """
        if isinstance(data, np.ndarray) and (dtype is None or data.dtype == dtype):
            arr = data
            owns = False
            self._check_contiguous(arr)
        else:
            arr = np.array(data, dtype=dtype, order="C")
            owns = True
        self._init(name, arr.shape, arr, owns, type_tag)

    def _init(self, name, dimensions, data, owns, type_tag) -> None:
        scalar_dtype(data.dtype)
        dims = tuple(int(d) for d in dimensions)
        if any(d < 0 for d in dims):
            raise PreconditionError(f"Dimensions must not be negative: {dims}")
        if math.prod(dims) != data.size:
            msg = f"Dimensions {dims} do not match the number of elements ({data.size})!"
            raise PreconditionError(msg)
        self._name = name
        self._dimensions = dims
        self._data = data
        self._owns_storage = owns
        self._type_tag = type_tag

    @staticmethod
    def _check_contiguous(arr: np.ndarray) -> None:
        if not arr.flags.c_contiguous:
            raise PreconditionError("Can only use C-contiguous arrays as buffer!")

    @classmethod
    def wrap(
        cls,
        name: str,
        dimensions: Sequence[int],
        data: np.ndarray,
        type_tag: Optional[EngineId] = None,
    ) -> Buffer:
        """Use caller memory with explicit dimensions (never owned).

        The array may have any shape, as long as it holds exactly as many
        elements as the dimensions describe.
        """
        cls._check_contiguous(data)
        ret = cls.__new__(cls)
        ret._init(name, dimensions, data, False, type_tag)
        return ret

    @classmethod
    def borrow(
        cls, name: str, data: np.ndarray, type_tag: Optional[EngineId] = None
    ) -> Buffer:
        """Use the storage of an existing array (not owned)."""
        cls._check_contiguous(data)
        ret = cls.__new__(cls)
        ret._init(name, data.shape, data, False, type_tag)
        return ret

    @classmethod
    def take(
        cls,
        name: str,
        data: ArrayLike,
        dtype: Optional[DTypeLike] = None,
        type_tag: Optional[EngineId] = None,
    ) -> Buffer:
        """Copy the data into storage owned by the buffer."""
        arr = np.array(data, dtype=dtype, order="C")
        ret = cls.__new__(cls)
        ret._init(name, arr.shape, arr, True, type_tag)
        return ret

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> Tuple[int, ...]:
        return self._dimensions

    @property
    def rank(self) -> int:
        return len(self._dimensions)

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def data(self) -> np.ndarray:
        """The underlying array (borrowed or owned)."""
        return self._data

    @property
    def owns_storage(self) -> bool:
        return self._owns_storage

    @property
    def type_tag(self) -> Optional[EngineId]:
        """Explicit engine type of the elements, if one was passed."""
        return self._type_tag

    def __array__(self, dtype: Any = None, copy: Optional[bool] = None) -> np.ndarray:
        ret = self._data.reshape(self._dimensions)
        needs_copy = dtype is not None and np.dtype(dtype) != ret.dtype
        if copy is False and needs_copy:
            raise ValueError(f"Buffer '{self._name}' cannot be converted without a copy!")
        if needs_copy:
            return ret.astype(dtype)
        return ret.copy() if copy else ret

    def __repr__(self):
        kind = "owned" if self._owns_storage else "borrowed"
        return f"<Buffer '{self._name}' {self._dimensions} {self.dtype} ({kind})>"
