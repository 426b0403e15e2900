"""
Dataspaces (N-dimensional shapes) and hyperslab selections on them.

A hyperslab is a rectangular sub-region of a dataspace, given per axis by
an offset, a stride, a number of blocks and a block size. A dataspace carries
at most one current selection, which restricts the next read or write.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .engine import EngineId, StorageEngine
from .errors import AlreadyInitializedError, PreconditionError, RankMismatchError
from .handle import Handle

Sizes = Tuple[int, ...]


@dataclass(frozen=True)
class Hyperslab:
    """Selection that was applied to a dataspace (offsets already resolved).

    `None` strides or block sizes mean that the engine defaults were used
    (stride 1, blocks of a single element), which is not the same as passing
    explicit values.
    """

    offsets: Sizes
    block_counts: Sizes
    strides: Optional[Sizes] = None
    block_sizes: Optional[Sizes] = None

    @property
    def is_contiguous(self) -> bool:
        return self.strides is None and self.block_sizes is None


def resolve_offset(offset: int, length: int) -> int:
    """Interpret a negative offset as counting backwards from the end of an axis.

    The result always lies in `[0, length)`: `-1` is the last element,
    `-length` is the first one, and offsets below `-length` wrap around
    again instead of being rejected.
    """
    if offset >= 0:
        return offset
    if length == 0:
        msg = f"Cannot resolve negative offset {offset} on an axis of length 0!"
        raise PreconditionError(msg)
    return offset % length


def _is_empty(vals: Optional[Sequence[int]]) -> bool:
    return vals is None or len(vals) == 0


def _as_sizes(what: str, vals: Sequence[int], negative_ok: bool = False) -> Sizes:
    ret = tuple(int(v) for v in vals)
    if not negative_ok and any(v < 0 for v in ret):
        raise PreconditionError(f"{what} must not contain negative values: {ret}")
    return ret


class Dataspace(Handle):
    """Shape of an array (rank and extent per axis) plus its current selection.

    A dataspace is either created from dimensions, or obtained from a dataset
    (see `Dataset.get_space`), in which case it describes the current extent of
    the dataset and owns the engine dataspace that was returned for it.
    """

    _dimensions: Sizes
    _max_dimensions: Tuple[Optional[int], ...]
    _selection: Optional[Hyperslab]

    def __init__(self, engine: Optional[StorageEngine] = None):
        super().__init__(engine)
        self._dimensions = ()
        self._max_dimensions = ()
        self._selection = None

    @classmethod
    def from_dimensions(
        cls,
        dimensions: Sequence[int],
        max_dimensions: Optional[Sequence[Optional[int]]] = None,
        engine: Optional[StorageEngine] = None,
    ) -> Dataspace:
        ret = cls(engine)
        ret.create(dimensions, max_dimensions)
        return ret

    @classmethod
    def _adopt(cls, space_id: EngineId, engine: StorageEngine) -> Dataspace:
        """Take ownership of a dataspace handed out by the engine."""
        ret = cls(engine)
        ret._set_id(space_id)
        try:
            dims, maxdims = engine.space_extent(space_id)
        except Exception:
            ret.close()
            raise
        ret._dimensions = dims
        ret._max_dimensions = maxdims
        return ret

    def create(
        self,
        dimensions: Sequence[int],
        max_dimensions: Optional[Sequence[Optional[int]]] = None,
    ) -> None:
        """Create the engine dataspace with given dimensions.

        If `max_dimensions` is None, every axis may grow without bound,
        otherwise it holds an upper bound per axis (None entries are unbounded).

        Fails if this dataspace was created already (the old one would leak).
        """
        if self.initialized:
            raise AlreadyInitializedError("Dataspace exists already, cannot create it!")

        dims = _as_sizes("dimensions", dimensions)
        if max_dimensions is None:
            maxdims: Tuple[Optional[int], ...] = (None,) * len(dims)
        else:
            maxdims = tuple(None if m is None else int(m) for m in max_dimensions)
            if len(maxdims) != len(dims):
                raise RankMismatchError("max_dimensions", len(dims), len(maxdims))

        self._set_id(self.engine.create_space(dims, maxdims))
        self._dimensions = dims
        self._max_dimensions = maxdims
        self._selection = None

    def _release(self, ident: EngineId) -> None:
        self.engine.close_space(ident)

    # ---- shape ----

    @property
    def rank(self) -> int:
        return len(self._dimensions)

    @property
    def dimensions(self) -> Sizes:
        return self._dimensions

    @property
    def max_dimensions(self) -> Tuple[Optional[int], ...]:
        """Upper bound of each axis (None means unbounded)."""
        return self._max_dimensions

    def length(self, axis: int) -> int:
        return self._dimensions[axis]

    @property
    def size(self) -> int:
        """Total number of elements."""
        return math.prod(self._dimensions)

    @property
    def selection(self) -> Optional[Hyperslab]:
        """Most recent hyperslab selected on this dataspace, if any."""
        return self._selection

    @property
    def selected_size(self) -> int:
        """Number of elements addressed by I/O on this dataspace."""
        sel = self._selection
        if sel is None:  # nothing selected means everything
            return self.size
        block = 1 if sel.block_sizes is None else math.prod(sel.block_sizes)
        return math.prod(sel.block_counts) * block

    # ---- selections ----

    def _check_rank(self, what: str, vals: Sizes) -> None:
        if len(vals) != self.rank:
            raise RankMismatchError(what, self.rank, len(vals))

    def select_hyperslab(
        self,
        offsets: Optional[Sequence[int]] = None,
        strides: Optional[Sequence[int]] = None,
        block_counts: Optional[Sequence[int]] = None,
        block_sizes: Optional[Sequence[int]] = None,
    ) -> None:
        """Select `block_counts` blocks shaped like `block_sizes`, starting at `offsets`.

        Consecutive blocks are `strides` elements (not blocks) apart.

        * without `block_counts`, nothing is selected (the selection stays as is)
        * without `offsets`, the selection starts at the origin
        * negative offsets count from the end of their axis (see `resolve_offset`)
        * without `strides` or `block_sizes` (None or empty), the engine
          defaults are used (stride 1, blocks of one element)

        All given vectors must have one entry per axis.
        """
        if _is_empty(block_counts):
            return
        self._expect_initialized()

        counts = _as_sizes("block_counts", block_counts)
        self._check_rank("block_counts", counts)

        if _is_empty(offsets):
            offs: Sizes = (0,) * self.rank
        else:
            offs = _as_sizes("offsets", offsets, negative_ok=True)
            self._check_rank("offsets", offs)
        offs = tuple(resolve_offset(o, self.length(i)) for i, o in enumerate(offs))

        strd: Optional[Sizes] = None
        if not _is_empty(strides):
            strd = _as_sizes("strides", strides)
            self._check_rank("strides", strd)
        blks: Optional[Sizes] = None
        if not _is_empty(block_sizes):
            blks = _as_sizes("block_sizes", block_sizes)
            self._check_rank("block_sizes", blks)

        self.engine.select_hyperslab(self.id, offs, counts, strd, blks)
        self._selection = Hyperslab(offs, counts, strd, blks)

    def select_contiguous(
        self,
        offsets: Optional[Sequence[int]] = None,
        counts: Optional[Sequence[int]] = None,
    ) -> None:
        """Select a plain rectangular region of shape `counts` starting at `offsets`."""
        self.select_hyperslab(offsets, None, counts, None)

    def select_all(self) -> None:
        """Select the whole extent."""
        self.select_contiguous(None, self._dimensions)

    def __repr__(self):
        state = "open" if self._initialized else "closed"
        return f"<Dataspace {self._dimensions} ({state})>"
