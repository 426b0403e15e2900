"""
Protocol formalizing the primitive calls h5slab needs from a storage engine.

Identifiers returned by an engine are opaque to h5slab. Each identifier is
owned by exactly one handle object, which calls the matching `close_*` method
exactly once.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

EngineId = Any
"""Opaque resource identifier issued by an engine."""

MaxDims = Sequence[Optional[int]]
"""Per-axis upper bounds, `None` meaning unbounded."""


@runtime_checkable
class StorageEngine(Protocol):
    # containers

    def open_file(self, path: str) -> EngineId:
        """Open an existing file for reading and writing."""

    def create_file(self, path: str) -> EngineId:
        """Create a file, truncating any existing one."""

    def close_file(self, file_id: EngineId) -> None:
        ...

    # namespaces

    def open_group(self, loc_id: EngineId, name: str) -> EngineId:
        ...

    def create_group(self, loc_id: EngineId, name: str) -> EngineId:
        ...

    def close_group(self, group_id: EngineId) -> None:
        ...

    # arrays

    def open_dataset(self, loc_id: EngineId, name: str) -> EngineId:
        ...

    def create_dataset(
        self,
        loc_id: EngineId,
        name: str,
        type_id: EngineId,
        space_id: EngineId,
        chunk_dimensions: Sequence[int] = (),
        compression_level: int = 0,
    ) -> EngineId:
        """Create a dataset.

        Non-empty `chunk_dimensions` select chunked layout, a positive
        `compression_level` enables the compression filter.
        """

    def close_dataset(self, dataset_id: EngineId) -> None:
        ...

    def dataset_space(self, dataset_id: EngineId) -> EngineId:
        """Return a new dataspace describing the current extent (caller owns it)."""

    def dataset_type(self, dataset_id: EngineId) -> EngineId:
        """Return a new type describing the stored elements (caller owns it)."""

    def set_extent(self, dataset_id: EngineId, dimensions: Sequence[int]) -> None:
        ...

    # shapes and selections

    def create_space(
        self, dimensions: Sequence[int], max_dimensions: MaxDims
    ) -> EngineId:
        ...

    def space_extent(
        self, space_id: EngineId
    ) -> Tuple[Tuple[int, ...], Tuple[Optional[int], ...]]:
        """Return current and maximum dimensions of a dataspace."""

    def select_hyperslab(
        self,
        space_id: EngineId,
        offsets: Sequence[int],
        block_counts: Sequence[int],
        strides: Optional[Sequence[int]] = None,
        block_sizes: Optional[Sequence[int]] = None,
    ) -> None:
        """Replace the selection of the dataspace.

        `None` strides and block sizes leave the engine defaults in place.
        """

    def close_space(self, space_id: EngineId) -> None:
        ...

    # data transfer

    def read(
        self,
        dataset_id: EngineId,
        mem_type: EngineId,
        mem_space: EngineId,
        file_space: EngineId,
        out: np.ndarray,
    ) -> None:
        ...

    def write(
        self,
        dataset_id: EngineId,
        mem_type: EngineId,
        mem_space: EngineId,
        file_space: EngineId,
        data: np.ndarray,
    ) -> None:
        ...

    # types

    def native_type(self, dtype: np.dtype) -> EngineId:
        """Return the built-in engine type for a scalar dtype (engine keeps ownership)."""

    def types_equal(self, type_a: EngineId, type_b: EngineId) -> bool:
        ...

    def type_dtype(self, type_id: EngineId) -> np.dtype:
        ...

    def close_type(self, type_id: EngineId) -> None:
        ...
