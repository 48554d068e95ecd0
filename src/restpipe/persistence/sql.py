"""
SQLAlchemy implementation of the persistence collaborator.

Usage:
    from restpipe.persistence import SQLAlchemyPersistence
    from restpipe.service import get_session_maker

    persistence = SQLAlchemyPersistence(get_session_maker())
    posts = await persistence.find_many(Post, {}, ["writer"])
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import false, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, selectinload

from ..core.errors import PersistenceError
from .base import Persistence, Record

logger = logging.getLogger(__name__)


class SQLAlchemyPersistence(Persistence):
    """
    Persistence over an async SQLAlchemy session factory.

    One session is opened per call, so a single instance can be shared by
    every in-flight request.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | Callable[[], AsyncSession]):
        self.session_maker = session_maker

    # =========================================================================
    # Primitives
    # =========================================================================

    async def find_many(self, model: type[DeclarativeBase], conditions: dict[str, Any], relations: list[str]) -> list[Record]:
        try:
            async with self.session_maker() as session:
                stmt = self._select(model, conditions, relations)
                result = await session.execute(stmt)
                rows = result.scalars().all()
                return [self._model_to_dict(row, relations) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), operation="list") from e

    async def find_one(self, model: type[DeclarativeBase], conditions: dict[str, Any], relations: list[str]) -> Optional[Record]:
        try:
            async with self.session_maker() as session:
                stmt = self._select(model, conditions, relations).limit(1)
                result = await session.execute(stmt)
                row = result.scalars().first()
                return self._model_to_dict(row, relations) if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), operation="read") from e

    async def insert_one(self, model: type[DeclarativeBase], data: dict[str, Any]) -> Record:
        values = self._coerce_data(model, self._known_columns(model, data))
        try:
            async with self.session_maker() as session:
                instance = model(**values)
                session.add(instance)
                await session.commit()
                await session.refresh(instance)
                return self._model_to_dict(instance, [])
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), operation="create") from e

    async def update_one(self, model: type[DeclarativeBase], conditions: dict[str, Any], data: dict[str, Any]) -> Optional[Record]:
        values = self._coerce_data(model, self._known_columns(model, data))
        try:
            async with self.session_maker() as session:
                result = await session.execute(self._select(model, conditions, []).limit(1))
                instance = result.scalars().first()
                if instance is None:
                    return None
                for key, value in values.items():
                    setattr(instance, key, value)
                await session.commit()
                await session.refresh(instance)
                return self._model_to_dict(instance, [])
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), operation="update") from e

    async def delete_one(self, model: type[DeclarativeBase], conditions: dict[str, Any]) -> Optional[Record]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(self._select(model, conditions, []).limit(1))
                instance = result.scalars().first()
                if instance is None:
                    return None
                snapshot = self._model_to_dict(instance, [])
                await session.delete(instance)
                await session.commit()
                return snapshot
        except SQLAlchemyError as e:
            raise PersistenceError(str(e), operation="delete") from e

    # =========================================================================
    # Helpers
    # =========================================================================

    def _select(self, model: type[DeclarativeBase], conditions: dict[str, Any], relations: list[str]):
        """Build a select with equality conditions and eager-loaded relations."""
        stmt = select(model)

        for field_name, value in conditions.items():
            column = getattr(model, field_name, None)
            if column is None:
                raise PersistenceError(f"Unknown field '{field_name}' on {model.__name__}")
            try:
                value = self._coerce_data(model, {field_name: value})[field_name]
            except PersistenceError as e:
                # A value the column type cannot hold matches no row
                logger.debug(f"Condition never matches: {e.message}")
                stmt = stmt.where(false())
                continue
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)

        mapper = inspect(model)
        for name in relations:
            if name not in mapper.relationships:
                raise PersistenceError(f"Unknown relation '{name}' on {model.__name__}")
            stmt = stmt.options(selectinload(getattr(model, name)))

        return stmt

    def _known_columns(self, model: type[DeclarativeBase], data: dict[str, Any]) -> dict[str, Any]:
        """Drop keys that are not mapped columns."""
        columns = inspect(model).columns
        known = {key: value for key, value in data.items() if key in columns}
        ignored = set(data) - set(known)
        if ignored:
            logger.debug(f"Ignoring unknown fields for {model.__name__}: {sorted(ignored)}")
        return known

    def _columns_to_dict(self, instance: Any) -> Record:
        return {
            column.key: getattr(instance, column.key)
            for column in inspect(type(instance)).column_attrs
        }

    def _model_to_dict(self, instance: Any, relations: list[str]) -> Record:
        """Convert model instance to dict, nesting the requested relations."""
        result = self._columns_to_dict(instance)
        for name in relations:
            related = getattr(instance, name)
            if related is None:
                result[name] = None
            elif isinstance(related, (list, tuple, set)):
                result[name] = [self._columns_to_dict(item) for item in related]
            else:
                result[name] = self._columns_to_dict(related)
        return result

    def _coerce_data(self, model: type[DeclarativeBase], data: dict[str, Any]) -> dict[str, Any]:
        """
        Coerce values to match model column types.

        Handles:
        - int -> str for String columns
        - str -> int for Integer columns (path params arrive as strings)
        - str -> date / datetime for Date / DateTime columns
        """
        if not data:
            return data

        mapper = inspect(model)
        coerced = {}

        for key, value in data.items():
            column = mapper.columns.get(key)
            if value is None or column is None:
                coerced[key] = value
                continue

            col_type = column.type.__class__.__name__.lower()

            if col_type in ('string', 'text', 'varchar') and isinstance(value, (int, float)) and not isinstance(value, bool):
                coerced[key] = str(value)

            elif col_type in ('integer', 'biginteger', 'smallinteger') and isinstance(value, str):
                if not value.lstrip("-").isdigit():
                    raise PersistenceError(f"Invalid integer for {model.__name__}.{key}: {value!r}")
                coerced[key] = int(value)

            elif col_type == 'date' and isinstance(value, str):
                try:
                    coerced[key] = datetime.strptime(value[:10], '%Y-%m-%d').date()
                except ValueError as e:
                    raise PersistenceError(f"Invalid date for {model.__name__}.{key}: {value!r}") from e

            elif col_type in ('datetime', 'timestamp') and isinstance(value, str):
                try:
                    coerced[key] = datetime.fromisoformat(value.replace('Z', '+00:00'))
                except ValueError as e:
                    raise PersistenceError(f"Invalid datetime for {model.__name__}.{key}: {value!r}") from e

            elif isinstance(value, (list, tuple, set)):
                coerced[key] = [self._coerce_data(model, {key: item})[key] for item in value]

            else:
                coerced[key] = value

        return coerced
