"""
Persistence collaborator interface.

The run stage performs exactly one of these calls per request. Records are
plain dicts; related records are nested under their relation name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


Record = dict[str, Any]


class Persistence(ABC):
    """
    Five primitives the pipeline needs from a data store.

    Implementations raise PersistenceError on failure and return None from
    the single-record primitives when nothing matched.
    """

    @abstractmethod
    async def find_many(self, model: Any, conditions: dict[str, Any], relations: list[str]) -> list[Record]:
        ...

    @abstractmethod
    async def find_one(self, model: Any, conditions: dict[str, Any], relations: list[str]) -> Optional[Record]:
        ...

    @abstractmethod
    async def insert_one(self, model: Any, data: dict[str, Any]) -> Record:
        ...

    @abstractmethod
    async def update_one(self, model: Any, conditions: dict[str, Any], data: dict[str, Any]) -> Optional[Record]:
        ...

    @abstractmethod
    async def delete_one(self, model: Any, conditions: dict[str, Any]) -> Optional[Record]:
        """Delete the matching record and return it as it was before deletion."""
        ...
