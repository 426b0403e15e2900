import numpy as np
import pytest

from h5slab import SCALAR_DTYPES, TypeBinding, UnsupportedTypeError, scalar_dtype


@pytest.mark.parametrize("dtype", sorted(SCALAR_DTYPES, key=str))
def test_scalar_dtype_accepts_supported(dtype):
    assert scalar_dtype(dtype) == dtype
    assert scalar_dtype(dtype.name) == dtype


@pytest.mark.parametrize("dtype", ["bool", "complex64", "float16", "U3", object])
def test_scalar_dtype_rejects_unsupported(dtype):
    with pytest.raises(UnsupportedTypeError):
        scalar_dtype(dtype)


def test_scalar_dtype_rejects_garbage():
    with pytest.raises(UnsupportedTypeError):
        scalar_dtype("not a type")


def test_unsupported_type_is_type_error():
    with pytest.raises(TypeError):
        scalar_dtype("complex128")


def test_builtin_binding_is_borrowed(engine):
    binding = TypeBinding.for_dtype("int32")
    assert not binding.owns_type
    assert binding.dtype == np.dtype("int32")
    assert binding.matches(engine.native_type(np.dtype("int32")))
    assert not binding.matches(engine.native_type(np.dtype("uint32")))
    assert not binding.matches(engine.native_type(np.dtype("float32")))

    binding.close()
    assert engine.calls["close_type"] == 0
    # the built-in type is still usable
    assert engine.type_dtype(engine.native_type(np.dtype("int32"))) == np.dtype("int32")


def test_for_dtype_rejects_unsupported(engine):
    with pytest.raises(UnsupportedTypeError):
        TypeBinding.for_dtype("bool")


def test_explicit_tag_is_borrowed(engine):
    tag = engine.native_type(np.dtype("float64"))
    binding = TypeBinding.borrow(tag)
    assert binding.tag is tag
    assert not binding.owns_type
    binding.close()
    assert engine.calls["close_type"] == 0


def test_dataset_type_is_owned(engine, h5file):
    with h5file.create_dataset("x", "float32", [3]) as dataset:
        binding = TypeBinding.of_dataset(dataset.id)
        assert binding.owns_type
        assert binding.dtype == np.dtype("float32")
        assert binding.matches(engine.native_type(np.dtype("float32")))

        moved = binding.move()
        binding.close()
        assert engine.calls["close_type"] == 0
        moved.close()
        moved.close()
        assert engine.calls["close_type"] == 1
