"""
Containers (files and groups) holding nested groups and datasets.

`Location` is generic over the group type it hands out for its children,
so that files and groups can share all of the navigation and dataset
creation logic while both producing groups.

Note that nothing keeps track of open children: opening the same group or
dataset twice yields two independent handles to the same engine object.
"""
from __future__ import annotations

import logging
from typing import Generic, List, Optional, Sequence, Type, TypeVar

import numpy as np
from numpy.typing import DTypeLike

from .buffer import Buffer
from .dataset import Dataset
from .dataspace import Dataspace
from .engine import EngineId, StorageEngine
from .errors import EngineError, PreconditionError, RankMismatchError
from .handle import NamedHandle
from .settings import get_settings
from .types import TypeBinding

logger = logging.getLogger(__name__)

G = TypeVar("G", bound="Location")

MAX_COMPRESSION_LEVEL = 9


class Location(NamedHandle, Generic[G]):
    """A file or group that can open or create child groups and datasets."""

    _existed: bool

    def __init__(
        self,
        name: str = "",
        engine: Optional[StorageEngine] = None,
        ident: Optional[EngineId] = None,
        existed: bool = False,
    ):
        super().__init__(name, engine, ident)
        self._existed = existed

    @property
    def existed(self) -> bool:
        """Return whether the location existed already or had to be created."""
        return self._existed

    def _child_type(self) -> Type[G]:
        """Return the class of groups created below this location."""
        raise NotImplementedError

    # ---- groups ----

    def get_group(self, name: str) -> G:
        """Open the named child group, creating it if it does not exist."""
        return self._child_type()(self, name)

    def get_nested_groups(self, names: Sequence[str]) -> List[G]:
        """Open or create a chain of nested groups.

        Each group is opened (or created) inside the previous one,
        the returned list contains all of them, outermost first.
        """
        ret: List[G] = []
        parent: Location = self
        try:
            for name in names:
                ret.append(parent.get_group(name))
                parent = ret[-1]
        except Exception:
            for group in reversed(ret):
                group.close()
            raise
        return ret

    # ---- datasets ----

    def open_dataset(self, name: str) -> Dataset:
        """Open an existing dataset.

        Raises `EngineError` if there is no such dataset.
        """
        ident = self.engine.open_dataset(self.id, name)
        try:
            binding = TypeBinding.of_dataset(ident, self.engine)
        except Exception:
            self.engine.close_dataset(ident)
            raise
        return Dataset(name, ident, binding, self.engine)

    def has_dataset(self, name: str) -> bool:
        """Return whether a dataset with given name can be opened here."""
        try:
            ident = self.engine.open_dataset(self.id, name)
        except EngineError:
            return False
        self.engine.close_dataset(ident)
        return True

    def read_dataset(
        self,
        name: str,
        offsets: Optional[Sequence[int]] = None,
        read_dims: Optional[Sequence[int]] = None,
        dtype: Optional[DTypeLike] = None,
    ) -> np.ndarray:
        """Read a contiguous region of the named dataset (see `Dataset.read`)."""
        with self.open_dataset(name) as dataset:
            return dataset.read(offsets, read_dims, dtype)

    def create_dataset(
        self,
        name: str,
        dtype: DTypeLike,
        dimensions: Sequence[int],
        chunk_dimensions: Optional[Sequence[int]] = None,
        compression_level: int = 0,
        type_tag: Optional[EngineId] = None,
    ) -> Dataset:
        """Create a dataset of given element type and dimensions.

        Args:
            name: name of the new dataset
            dtype: scalar element type
            dimensions: initial extent
            chunk_dimensions: chunk shape (enables chunked layout, needed to grow it later)
            compression_level: compression level between 1 and 9 (0 disables compression)
            type_tag: explicit engine type to use instead of the one mapped to `dtype`

        Without chunking the dataset cannot be resized, its maximal dimensions
        are the initial dimensions.
        """
        chunks = tuple(chunk_dimensions or ())
        if chunks and len(chunks) != len(dimensions):
            raise RankMismatchError("chunk_dimensions", len(dimensions), len(chunks))
        if not 0 <= compression_level <= MAX_COMPRESSION_LEVEL:
            msg = f"Compression level must be in 0..{MAX_COMPRESSION_LEVEL}, got {compression_level}"
            raise PreconditionError(msg)

        if type_tag is None:
            binding = TypeBinding.for_dtype(dtype, self.engine)
        else:
            binding = TypeBinding.borrow(type_tag, self.engine)

        # the engine only allows unbounded extents for chunked layouts
        max_dims = None if chunks else dimensions
        with Dataspace.from_dimensions(dimensions, max_dims, self.engine) as space:
            ident = self.engine.create_dataset(
                self.id, name, binding.tag, space.id, chunks, compression_level
            )
        logger.debug("Created dataset '%s' in '%s'", name, self.name)
        return Dataset(name, ident, binding, self.engine)

    def create_growable_dataset(
        self,
        name: str,
        dtype: DTypeLike,
        chunk_size: Optional[int] = None,
        compression_level: int = 0,
    ) -> Dataset:
        """Create an empty dataset with one axis, ready to be appended to.

        Uses the configured default chunk size if none is given.
        """
        if chunk_size is None:
            chunk_size = get_settings().default_chunk_size
        return self.create_dataset(name, dtype, [0], [chunk_size], compression_level)

    def create_dataset_from(
        self,
        buffer: Buffer,
        chunk_dimensions: Optional[Sequence[int]] = None,
        compression_level: int = 0,
    ) -> Dataset:
        """Create a dataset named and shaped like the buffer and write the buffer into it."""
        dataset = self.create_dataset(
            buffer.name,
            buffer.dtype,
            buffer.dimensions,
            chunk_dimensions,
            compression_level,
            buffer.type_tag,
        )
        if buffer.size == 0:
            return dataset
        try:
            with dataset.get_space() as hyperslab:
                hyperslab.select_hyperslab(None, None, buffer.dimensions, None)
                dataset.write(hyperslab, buffer)
        except Exception:
            dataset.close()
            raise
        return dataset

    def append(self, buffer: Buffer) -> Dataset:
        """Append the buffer to the existing dataset of the same name."""
        dataset = self.open_dataset(buffer.name)
        try:
            dataset.append(buffer)
        except Exception:
            dataset.close()
            raise
        return dataset
