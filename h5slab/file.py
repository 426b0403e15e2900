from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Type, Union

from .engine import EngineId, StorageEngine
from .errors import EngineError
from .group import Group
from .location import Location
from .settings import get_settings

logger = logging.getLogger(__name__)


class FileMode(str, Enum):
    rw = "rw"
    """Open for reading and writing, create the file if opening fails."""

    trunc = "trunc"
    """Always create a fresh file, discarding previous contents."""


class File(Location[Group]):
    """The root location: a container file."""

    def __init__(
        self,
        path: Union[str, Path],
        mode: Optional[Union[FileMode, str]] = None,
        engine: Optional[StorageEngine] = None,
    ):
        """Open or create a file.

        With mode 'rw' (default, unless configured otherwise), an existing file
        is opened for reading and writing. If that fails, the file is created
        (truncating whatever is there). With mode 'trunc', the file is always
        created from scratch.

        Check `existed` to learn whether an existing file was opened.
        """
        super().__init__(str(path), engine)
        mode = FileMode(mode or get_settings().default_file_mode)
        self._mode = mode

        if mode == FileMode.rw:
            try:
                self._set_id(self.engine.open_file(self.name))
                self._existed = True
                return
            except EngineError as err:
                logger.info("Could not open '%s' (%s), creating it", self.name, err)

        self._set_id(self.engine.create_file(self.name))
        self._existed = False

    @property
    def mode(self) -> FileMode:
        return self._mode

    def _child_type(self) -> Type[Group]:
        return Group

    def _release(self, ident: EngineId) -> None:
        self.engine.close_file(ident)
