import secrets
from pathlib import Path

import pytest

from h5slab import File, H5Engine, TracingEngine, set_engine


@pytest.fixture(scope="session")
def h5_dir(tmpdir_factory):
    """Create a fresh temporary directory for files created in the tests."""
    return Path(tmpdir_factory.mktemp("h5slab_tests"))


def fresh_h5_path(h5_dir: Path) -> Path:
    """Return an unused file path in the given directory."""
    return h5_dir / f"{secrets.token_hex(4)}.h5"


@pytest.fixture
def tmp_h5_path_factory(h5_dir):
    """Return a file path generator to be used for creating files.

    All files will be cleaned up after completing the test.
    """
    paths = []

    def fresh_path() -> Path:
        path = fresh_h5_path(h5_dir)
        paths.append(path)
        return path

    yield fresh_path

    # clean up
    for path in paths:
        if path.is_file():
            path.unlink()


@pytest.fixture
def tmp_h5_path(tmp_h5_path_factory):
    """Generate a file path to be used for creating a file.

    The file will be cleaned up after completing the test.
    """
    return tmp_h5_path_factory()


@pytest.fixture
def engine():
    """Tracing engine that is the default engine during the test."""
    eng = TracingEngine(H5Engine())
    set_engine(eng)
    yield eng
    set_engine(None)


@pytest.fixture
def h5file(tmp_h5_path, engine):
    """Freshly created file, closed after the test."""
    with File(tmp_h5_path, "trunc") as f:
        yield f
