import numpy as np
import pytest

from h5slab import Buffer, PreconditionError, UnsupportedTypeError


def test_borrowed_array_shares_memory():
    arr = np.arange(6, dtype="int32").reshape(2, 3)
    buf = Buffer("x", arr)
    assert not buf.owns_storage
    assert np.shares_memory(buf.data, arr)
    assert buf.dimensions == (2, 3)
    assert buf.rank == 2
    assert buf.size == 6
    assert buf.dtype == np.dtype("int32")
    assert buf.type_tag is None

    buf = Buffer.borrow("x", arr)
    assert not buf.owns_storage
    assert np.shares_memory(buf.data, arr)


def test_lists_are_copied_into_owned_storage():
    buf = Buffer("x", [[1, 2], [3, 4]], dtype="int8")
    assert buf.owns_storage
    assert buf.dtype == np.dtype("int8")
    assert buf.dimensions == (2, 2)


def test_other_dtype_is_copied():
    arr = np.arange(4, dtype="int64")
    buf = Buffer("x", arr, dtype="float32")
    assert buf.owns_storage
    assert not np.shares_memory(buf.data, arr)
    assert buf.dtype == np.dtype("float32")


def test_take_copies():
    arr = np.arange(4, dtype="uint16")
    buf = Buffer.take("x", arr)
    assert buf.owns_storage
    arr[0] = 42
    assert buf.data[0] == 0


def test_wrap_with_explicit_dimensions():
    flat = np.zeros(12, dtype="float64")
    buf = Buffer.wrap("x", [3, 4], flat)
    assert buf.dimensions == (3, 4)
    assert not buf.owns_storage
    assert np.asarray(buf).shape == (3, 4)
    buf.data[5] = 1.0
    assert flat[5] == 1.0


def test_wrap_dimension_mismatch():
    with pytest.raises(PreconditionError):
        Buffer.wrap("x", [3, 5], np.zeros(12, dtype="float64"))
    with pytest.raises(PreconditionError):
        Buffer.wrap("x", [-3, -4], np.zeros(12, dtype="float64"))


def test_empty_buffer():
    buf = Buffer.wrap("x", [0, 5], np.zeros(0, dtype="int32"))
    assert buf.size == 0
    assert buf.dimensions == (0, 5)


def test_non_contiguous_is_rejected():
    arr = np.arange(10, dtype="int32")[::2]
    with pytest.raises(PreconditionError):
        Buffer("x", arr)
    with pytest.raises(PreconditionError):
        Buffer.borrow("x", arr)
    with pytest.raises(PreconditionError):
        Buffer.wrap("x", [5], arr)
    # fortran order is not row-major
    with pytest.raises(PreconditionError):
        Buffer("x", np.asfortranarray(np.zeros((2, 3), dtype="int32")))


@pytest.mark.parametrize("dtype", ["bool", "complex128", "float16"])
def test_unsupported_element_type(dtype):
    with pytest.raises(UnsupportedTypeError):
        Buffer("x", np.zeros(3, dtype=dtype))


def test_array_conversion():
    data = np.arange(6, dtype="int32")
    buf = Buffer.wrap("x", [2, 3], data)

    view = np.asarray(buf)
    assert view.shape == (2, 3)
    assert np.shares_memory(view, data)

    copied = buf.__array__(copy=True)
    assert not np.shares_memory(copied, data)
    assert buf.__array__(np.dtype("float64")).dtype == np.dtype("float64")
    assert np.shares_memory(buf.__array__("int32", copy=False), data)

    with pytest.raises(ValueError):
        buf.__array__(np.dtype("float64"), copy=False)
