"""
HDF5 storage engine built on the low-level API of h5py.

h5py already frees identifiers when their Python objects are collected, but
h5slab closes them explicitly through the handle objects, so that the moment
of release does not depend on the garbage collector.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
from h5py import h5d, h5f, h5g, h5p, h5s, h5t
from typing_extensions import Final

from ..errors import EngineError, UnsupportedTypeError
from .protocols import MaxDims

NATIVE_TYPES: Final[Dict[np.dtype, h5t.TypeID]] = {
    np.dtype("int8"): h5t.NATIVE_INT8,
    np.dtype("uint8"): h5t.NATIVE_UINT8,
    np.dtype("int16"): h5t.NATIVE_INT16,
    np.dtype("uint16"): h5t.NATIVE_UINT16,
    np.dtype("int32"): h5t.NATIVE_INT32,
    np.dtype("uint32"): h5t.NATIVE_UINT32,
    np.dtype("int64"): h5t.NATIVE_INT64,
    np.dtype("uint64"): h5t.NATIVE_UINT64,
    np.dtype("float32"): h5t.NATIVE_FLOAT,
    np.dtype("float64"): h5t.NATIVE_DOUBLE,
}
"""Built-in HDF5 types for the supported scalar dtypes (locked, never closed)."""

# errors h5py raises when the HDF5 library reports a failure
_H5PY_ERRORS = (OSError, KeyError, ValueError, RuntimeError, TypeError)


@contextmanager
def _engine_call(op: str, target=None):
    """Translate h5py failures into `EngineError`."""
    try:
        yield
    except EngineError:
        raise
    except _H5PY_ERRORS as err:
        raise EngineError(op, target, str(err)) from err


def _bname(name: str) -> bytes:
    return name.encode("utf-8")


def _unbounded(dim: int) -> Optional[int]:
    return None if dim == h5s.UNLIMITED else int(dim)


class H5Engine:
    """`StorageEngine` backed by the HDF5 library (via h5py)."""

    def __repr__(self):
        return "<H5Engine>"

    # ---- files ----

    def open_file(self, path: str) -> h5f.FileID:
        with _engine_call("open_file", path):
            return h5f.open(os.fsencode(path), h5f.ACC_RDWR)

    def create_file(self, path: str) -> h5f.FileID:
        with _engine_call("create_file", path):
            return h5f.create(os.fsencode(path), h5f.ACC_TRUNC)

    def close_file(self, file_id: h5f.FileID) -> None:
        with _engine_call("close_file"):
            file_id.close()

    # ---- groups ----

    def open_group(self, loc_id: h5g.GroupID, name: str) -> h5g.GroupID:
        with _engine_call("open_group", name):
            return h5g.open(loc_id, _bname(name))

    def create_group(self, loc_id: h5g.GroupID, name: str) -> h5g.GroupID:
        with _engine_call("create_group", name):
            return h5g.create(loc_id, _bname(name))

    def close_group(self, group_id: h5g.GroupID) -> None:
        with _engine_call("close_group"):
            group_id._close()

    # ---- datasets ----

    def open_dataset(self, loc_id: h5g.GroupID, name: str) -> h5d.DatasetID:
        with _engine_call("open_dataset", name):
            return h5d.open(loc_id, _bname(name))

    def create_dataset(
        self,
        loc_id: h5g.GroupID,
        name: str,
        type_id: h5t.TypeID,
        space_id: h5s.SpaceID,
        chunk_dimensions: Sequence[int] = (),
        compression_level: int = 0,
    ) -> h5d.DatasetID:
        with _engine_call("create_dataset", name):
            dcpl = h5p.create(h5p.DATASET_CREATE)
            if chunk_dimensions:
                dcpl.set_chunk(tuple(chunk_dimensions))
            if compression_level > 0:
                # only add the filter if needed, it costs even at level 0
                dcpl.set_deflate(compression_level)
            return h5d.create(loc_id, _bname(name), type_id, space_id, dcpl=dcpl)

    def close_dataset(self, dataset_id: h5d.DatasetID) -> None:
        with _engine_call("close_dataset"):
            dataset_id._close()

    def dataset_space(self, dataset_id: h5d.DatasetID) -> h5s.SpaceID:
        with _engine_call("dataset_space"):
            return dataset_id.get_space()

    def dataset_type(self, dataset_id: h5d.DatasetID) -> h5t.TypeID:
        with _engine_call("dataset_type"):
            return dataset_id.get_type()

    def set_extent(self, dataset_id: h5d.DatasetID, dimensions: Sequence[int]) -> None:
        with _engine_call("set_extent", tuple(dimensions)):
            dataset_id.set_extent(tuple(dimensions))

    # ---- dataspaces ----

    def create_space(
        self, dimensions: Sequence[int], max_dimensions: MaxDims
    ) -> h5s.SpaceID:
        maxdims = tuple(h5s.UNLIMITED if m is None else m for m in max_dimensions)
        with _engine_call("create_space", tuple(dimensions)):
            return h5s.create_simple(tuple(dimensions), maxdims)

    def space_extent(
        self, space_id: h5s.SpaceID
    ) -> Tuple[Tuple[int, ...], Tuple[Optional[int], ...]]:
        with _engine_call("space_extent"):
            dims = space_id.get_simple_extent_dims()
            maxdims = space_id.get_simple_extent_dims(True)
        return tuple(map(int, dims)), tuple(map(_unbounded, maxdims))

    def select_hyperslab(
        self,
        space_id: h5s.SpaceID,
        offsets: Sequence[int],
        block_counts: Sequence[int],
        strides: Optional[Sequence[int]] = None,
        block_sizes: Optional[Sequence[int]] = None,
    ) -> None:
        stride = None if strides is None else tuple(strides)
        block = None if block_sizes is None else tuple(block_sizes)
        with _engine_call("select_hyperslab", tuple(offsets)):
            space_id.select_hyperslab(
                tuple(offsets), tuple(block_counts), stride, block, h5s.SELECT_SET
            )

    def close_space(self, space_id: h5s.SpaceID) -> None:
        with _engine_call("close_space"):
            space_id._close()

    # ---- data transfer ----

    def read(
        self,
        dataset_id: h5d.DatasetID,
        mem_type: h5t.TypeID,
        mem_space: h5s.SpaceID,
        file_space: h5s.SpaceID,
        out: np.ndarray,
    ) -> None:
        with _engine_call("read"):
            dataset_id.read(mem_space, file_space, out, mem_type)

    def write(
        self,
        dataset_id: h5d.DatasetID,
        mem_type: h5t.TypeID,
        mem_space: h5s.SpaceID,
        file_space: h5s.SpaceID,
        data: np.ndarray,
    ) -> None:
        with _engine_call("write"):
            dataset_id.write(mem_space, file_space, data, mem_type)

    # ---- types ----

    def native_type(self, dtype: np.dtype) -> h5t.TypeID:
        try:
            return NATIVE_TYPES[np.dtype(dtype)]
        except KeyError:
            raise UnsupportedTypeError(f"No HDF5 type mapped to dtype '{dtype}'!")

    def types_equal(self, type_a: h5t.TypeID, type_b: h5t.TypeID) -> bool:
        with _engine_call("types_equal"):
            return bool(type_a == type_b)

    def type_dtype(self, type_id: h5t.TypeID) -> np.dtype:
        with _engine_call("type_dtype"):
            return type_id.dtype

    def close_type(self, type_id: h5t.TypeID) -> None:
        with _engine_call("close_type"):
            type_id._close()
