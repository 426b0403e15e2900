import copy
import pickle
from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from h5slab import Dataspace, InvalidHandleError
from h5slab.handle import Handle, NamedHandle


class Token(Handle):
    """Handle that records releases instead of calling an engine."""

    def __init__(self, ident: int, released: List[int]):
        super().__init__(engine=object(), ident=ident)
        self._released = released

    def _release(self, ident):
        self._released.append(ident)


class OtherToken(Token):
    pass


def test_close_releases_once():
    released = []
    tok = Token(1, released)
    assert tok.initialized
    assert tok.id == 1

    tok.close()
    assert released == [1]
    assert not tok.initialized
    tok.close()  # no-op
    assert released == [1]


def test_uninitialized_handle_has_no_id():
    tok = Token(1, [])
    tok.invalidate()
    with pytest.raises(InvalidHandleError):
        tok.id


def test_move_leaves_source_inert():
    released = []
    src = Token(1, released)
    dst = src.move()

    assert type(dst) is Token
    assert dst.id == 1
    assert not src.initialized

    src.close()
    assert released == []
    dst.close()
    assert released == [1]


def test_assign_releases_destination_first():
    released = []
    a, b = Token(1, released), Token(2, released)

    assert b.assign(a) is b
    assert released == [2]
    assert b.id == 1
    assert not a.initialized

    a.close()
    b.close()
    assert released == [2, 1]


def test_assign_to_uninitialized_destination():
    released = []
    a, b = Token(1, released), Token(2, released)
    b.close()
    b.assign(a)
    assert released == [2]
    b.close()
    assert released == [2, 1]


def test_assign_self_is_noop():
    released = []
    a = Token(1, released)
    a.assign(a)
    assert a.initialized
    assert released == []


def test_assign_other_handle_type_fails():
    released = []
    a, b = Token(1, released), OtherToken(2, released)
    with pytest.raises(TypeError):
        a.assign(b)
    assert a.initialized and b.initialized
    assert released == []


def test_copy_is_forbidden():
    tok = Token(1, [])
    with pytest.raises(TypeError):
        copy.copy(tok)
    with pytest.raises(TypeError):
        copy.deepcopy(tok)
    with pytest.raises(TypeError):
        pickle.dumps(tok)
    assert tok.initialized


def test_context_manager_releases_on_error():
    released = []
    with pytest.raises(RuntimeError):
        with Token(1, released):
            raise RuntimeError("boom")
    assert released == [1]


def test_named_handle_keeps_name_on_move():
    class NamedToken(NamedHandle):
        def _release(self, ident):
            pass

    tok = NamedToken("foo", object(), 1)
    moved = tok.move()
    assert moved.name == "foo"
    assert "foo" in repr(moved)
    assert "closed" in repr(tok)


# an operation is (kind, source index, target index), indices taken modulo pool size
transfer_ops = st.lists(
    st.tuples(
        st.sampled_from(["move", "assign", "close"]),
        st.integers(0, 100),
        st.integers(0, 100),
    ),
    max_size=30,
)


@given(transfer_ops)
def test_random_transfers_release_each_resource_once(ops):
    released: List[int] = []
    pool = [Token(i, released) for i in range(4)]
    for kind, i, j in ops:
        src, dst = pool[i % len(pool)], pool[j % len(pool)]
        if kind == "move":
            pool.append(src.move())
        elif kind == "assign":
            dst.assign(src)
        else:
            src.close()
    for tok in pool:
        tok.close()

    assert sorted(released) == [0, 1, 2, 3]
    assert all(not tok.initialized for tok in pool)


def test_dataspace_moves_release_engine_resource_once(engine):
    space = Dataspace.from_dimensions([3, 4])
    moved = space.move()
    again = moved.move()

    space.close()
    moved.close()
    assert engine.calls["close_space"] == 0
    assert again.dimensions == (3, 4)

    again.close()
    again.close()
    assert engine.calls["close_space"] == 1
    assert engine.outstanding == 0


def test_dataspace_assign_releases_overwritten_space(engine):
    a = Dataspace.from_dimensions([2])
    b = Dataspace.from_dimensions([5])
    b.assign(a)
    assert engine.calls["close_space"] == 1
    assert b.dimensions == (2,)
    a.close()
    b.close()
    assert engine.calls["close_space"] == 2
    assert engine.outstanding == 0
