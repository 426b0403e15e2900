from __future__ import annotations

import logging
from typing import Type

from .engine import EngineId
from .errors import EngineError
from .location import Location

logger = logging.getLogger(__name__)


class Group(Location["Group"]):
    """A group nested inside a file or another group."""

    def __init__(self, location: Location, name: str):
        """Open the named group inside `location`, creating it if it does not exist."""
        super().__init__(name, location.engine)
        engine = self.engine
        try:
            self._set_id(engine.open_group(location.id, name))
            self._existed = True
        except EngineError:
            logger.debug("Creating group '%s' in '%s'", name, location.name)
            self._set_id(engine.create_group(location.id, name))
            self._existed = False

    def _child_type(self) -> Type[Group]:
        return Group

    def _release(self, ident: EngineId) -> None:
        self.engine.close_group(ident)
