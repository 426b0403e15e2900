"""
Safe handles for HDF5 files, groups and extensible datasets.

Every engine resource is owned by exactly one handle object and released
exactly once (use handles as context managers). Datasets are read and written
through hyperslab selections with buffers whose element type must match the
stored type.
"""
from .buffer import Buffer
from .dataset import NOT_FOUND, Dataset
from .dataspace import Dataspace, Hyperslab, resolve_offset
from .engine import H5Engine, StorageEngine, TracingEngine, get_engine, set_engine
from .errors import (
    AlreadyInitializedError,
    EngineError,
    H5SlabError,
    InvalidHandleError,
    PreconditionError,
    RankMismatchError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from .file import File, FileMode
from .group import Group
from .handle import Handle, NamedHandle
from .location import Location
from .settings import Settings, get_settings
from .types import SCALAR_DTYPES, TypeBinding, scalar_dtype

__all__ = [
    "AlreadyInitializedError",
    "Buffer",
    "Dataset",
    "Dataspace",
    "EngineError",
    "File",
    "FileMode",
    "Group",
    "H5Engine",
    "H5SlabError",
    "Handle",
    "Hyperslab",
    "InvalidHandleError",
    "Location",
    "NOT_FOUND",
    "NamedHandle",
    "PreconditionError",
    "RankMismatchError",
    "SCALAR_DTYPES",
    "Settings",
    "StorageEngine",
    "TracingEngine",
    "TypeBinding",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "get_engine",
    "get_settings",
    "resolve_offset",
    "scalar_dtype",
    "set_engine",
]
