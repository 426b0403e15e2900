"""Typed, extensible N-dimensional arrays stored by the engine."""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import DTypeLike
from typing_extensions import Final

from .buffer import Buffer
from .dataspace import Dataspace
from .engine import EngineId, StorageEngine
from .errors import PreconditionError, RankMismatchError, TypeMismatchError
from .handle import Handle, NamedHandle
from .types import TypeBinding, scalar_dtype

logger = logging.getLogger(__name__)

NOT_FOUND: Final[int] = -1
"""Returned by `Dataset.search` if no element matches."""


def _has_entries(vals: Optional[Sequence[int]]) -> bool:
    return vals is not None and len(vals) > 0


class Dataset(NamedHandle):
    """A named, typed array in a file or group.

    The shape is never cached: `dimensions`, `rank` and all I/O methods ask the
    engine for the current extent, so a dataset object stays consistent with
    changes made through other handles of the same engine.

    Reads and writes check that the buffer has the same element type as the
    dataset before any data is transferred.
    """

    _binding: TypeBinding

    def __init__(
        self,
        name: str,
        ident: EngineId,
        binding: TypeBinding,
        engine: Optional[StorageEngine] = None,
    ):
        super().__init__(name, engine, ident)
        self._binding = binding

    def _release(self, ident: EngineId) -> None:
        self.engine.close_dataset(ident)

    def close(self) -> None:
        """Release the dataset and, if it was looked up, its stored type."""
        try:
            super().close()
        finally:
            self._binding.close()

    def _transfer_to(self, other: Handle) -> None:
        super()._transfer_to(other)
        assert isinstance(other, Dataset)
        other._binding = self._binding.move()

    @property
    def type_binding(self) -> TypeBinding:
        return self._binding

    @property
    def dtype(self) -> np.dtype:
        """Numpy dtype of the stored elements."""
        return self._binding.dtype

    # ---- extent ----

    def get_space(self) -> Dataspace:
        """Return a new dataspace with the current extent of the dataset."""
        return Dataspace._adopt(self.engine.dataset_space(self.id), self.engine)

    @property
    def rank(self) -> int:
        with self.get_space() as space:
            return space.rank

    @property
    def dimensions(self) -> Tuple[int, ...]:
        with self.get_space() as space:
            return space.dimensions

    def set_extent(self, new_dimensions: Sequence[int]) -> None:
        """Resize the dataset to the given dimensions.

        The dimensions are the new total size, NOT the amount to grow by.
        """
        dims = tuple(int(d) for d in new_dimensions)
        rank = self.rank
        if len(dims) != rank:
            raise RankMismatchError("new_dimensions", rank, len(dims))
        logger.debug("Setting extent of dataset '%s' to %s", self.name, dims)
        self.engine.set_extent(self.id, dims)

    def expand_by(self, delta_dimensions: Sequence[int]) -> None:
        """Grow the dataset by the given number of elements along each axis."""
        with self.get_space() as space:
            if len(delta_dimensions) != space.rank:
                raise RankMismatchError(
                    "delta_dimensions", space.rank, len(delta_dimensions)
                )
            old_dims = space.dimensions
        self.set_extent([d + int(dd) for d, dd in zip(old_dims, delta_dimensions)])

    # ---- I/O ----

    def _checked_type(self, buffer: Buffer) -> EngineId:
        """Return engine type of the buffer, if it matches the dataset type."""
        tag = buffer.type_tag
        if tag is None:
            tag = self.engine.native_type(buffer.dtype)
        if not self._binding.matches(tag):
            msg = f"Buffer '{buffer.name}' ({buffer.dtype}) does not match "
            msg += f"the type of dataset '{self.name}' ({self.dtype})!"
            raise TypeMismatchError(msg)
        return tag

    @staticmethod
    def _check_selected_size(space: Dataspace, buffer: Buffer) -> None:
        if space.selected_size != buffer.size:
            msg = f"Selection holds {space.selected_size} elements, "
            msg += f"but buffer '{buffer.name}' holds {buffer.size}!"
            raise PreconditionError(msg)

    def write(self, target_space: Dataspace, buffer: Buffer) -> None:
        """Write the whole buffer into the region selected on `target_space`."""
        mem_type = self._checked_type(buffer)
        self._check_selected_size(target_space, buffer)
        if buffer.size == 0:
            return
        with Dataspace.from_dimensions(buffer.dimensions, engine=self.engine) as mem:
            self.engine.write(self.id, mem_type, mem.id, target_space.id, buffer.data)

    def append(self, buffer: Buffer) -> None:
        """Grow the dataset by the buffer dimensions and write the buffer into the new tail.

        Every axis grows by the extent of the buffer along that axis, and the
        buffer is written at the old dimensions as offset.
        """
        self._checked_type(buffer)
        old_dims = self.dimensions
        self.expand_by(buffer.dimensions)
        if buffer.size == 0:
            return
        with self.get_space() as hyperslab:
            hyperslab.select_hyperslab(old_dims, None, buffer.dimensions, None)
            self.write(hyperslab, buffer)

    def read_selection(self, hyperslab: Dataspace, buffer: Buffer) -> None:
        """Read the region selected on `hyperslab` into the buffer."""
        mem_type = self._checked_type(buffer)
        if not buffer.data.flags.writeable:
            raise PreconditionError(f"Buffer '{buffer.name}' is read-only!")
        self._check_selected_size(hyperslab, buffer)
        if buffer.size == 0:
            return
        with Dataspace.from_dimensions(buffer.dimensions, engine=self.engine) as mem:
            self.engine.read(self.id, mem_type, mem.id, hyperslab.id, buffer.data)

    def read_into(self, offsets: Optional[Sequence[int]], buffer: Buffer) -> None:
        """Read a contiguous region shaped like the buffer, starting at `offsets`."""
        self._checked_type(buffer)
        with self.get_space() as hyperslab:
            hyperslab.select_contiguous(offsets, buffer.dimensions)
            self.read_selection(hyperslab, buffer)

    def read(
        self,
        offsets: Optional[Sequence[int]] = None,
        read_dims: Optional[Sequence[int]] = None,
        dtype: Optional[DTypeLike] = None,
    ) -> np.ndarray:
        """Return a region of the dataset as a new flat (row-major) array.

        Args:
            offsets: start of the region (default: origin)
            read_dims: shape of the region (default: whole dataset)
            dtype: element type of the result (default: stored type)

        If given, `offsets` and `read_dims` need an entry for each axis.
        """
        with self.get_space() as space:
            rank, dims = space.rank, space.dimensions
        if _has_entries(offsets) and len(offsets) != rank:
            raise RankMismatchError("offsets", rank, len(offsets))
        if _has_entries(read_dims) and len(read_dims) != rank:
            raise RankMismatchError("read_dims", rank, len(read_dims))

        offs = tuple(offsets) if _has_entries(offsets) else (0,) * rank
        rdims = tuple(int(d) for d in read_dims) if _has_entries(read_dims) else dims
        if dtype is None:
            dtype = self.dtype.newbyteorder("=")

        ret = np.empty(math.prod(rdims), dtype=scalar_dtype(dtype))
        if ret.size == 0:
            return ret
        self.read_into(offs, Buffer.wrap("data", rdims, ret))
        return ret

    def search(
        self,
        predicate: Callable[[Any], bool],
        from_end: bool = False,
        dtype: Optional[DTypeLike] = None,
    ) -> int:
        """Return index of the first element for which `predicate` is true.

        Scans one element at a time, from the first element onwards, or from
        the last element backwards if `from_end` is set.
        Only works for datasets with a single axis.

        Returns `NOT_FOUND` (-1) if no element matches.
        """
        with self.get_space() as space:
            if space.rank != 1:
                raise RankMismatchError(f"dataset '{self.name}'", 1, space.rank)
            length = space.length(0)
        if dtype is None:
            dtype = self.dtype.newbyteorder("=")

        element = np.empty(1, dtype=scalar_dtype(dtype))
        buf = Buffer.wrap("element", (1,), element)
        indices = range(length - 1, -1, -1) if from_end else range(length)
        for idx in indices:
            self.read_into((idx,), buf)
            if predicate(element[0]):
                return idx
        return NOT_FOUND
