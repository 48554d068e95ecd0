import asyncio
import itertools
from typing import Any, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from restpipe import (
    ActionContext,
    PersistenceError,
    Principal,
    RequestData,
    compose,
    install_error_handlers,
)
from restpipe.persistence import Persistence


# Plain model classes: the pipeline only needs a name and a primary key
class Account:
    pass


class User:
    pass


class Post:
    pass


class Comment:
    pass


class Tag:
    __primary_key__ = "slug"


class MemoryPersistence(Persistence):
    """In-memory store keyed by model name. Records every call made."""

    def __init__(self):
        self.tables: dict[str, dict[Any, dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None
        self._ids = itertools.count(1)

    def seed(self, model, *records: dict) -> list[dict]:
        table = self.tables.setdefault(model.__name__, {})
        for record in records:
            record.setdefault("id", next(self._ids))
            table[str(record["id"])] = dict(record)
        return list(records)

    def _matches(self, record: dict, conditions: dict) -> bool:
        return all(str(record.get(key)) == str(value) for key, value in conditions.items())

    def _record(self, name: str, model):
        self.calls.append((name, model.__name__))
        if self.fail_with is not None:
            raise self.fail_with

    async def find_many(self, model, conditions, relations):
        self._record("find_many", model)
        table = self.tables.get(model.__name__, {})
        return [dict(r) for r in table.values() if self._matches(r, conditions)]

    async def find_one(self, model, conditions, relations):
        self._record("find_one", model)
        for record in self.tables.get(model.__name__, {}).values():
            if self._matches(record, conditions):
                return dict(record)
        return None

    async def insert_one(self, model, data):
        self._record("insert_one", model)
        record = dict(data)
        record["id"] = next(self._ids)
        self.tables.setdefault(model.__name__, {})[str(record["id"])] = record
        return dict(record)

    async def update_one(self, model, conditions, data):
        self._record("update_one", model)
        for record in self.tables.get(model.__name__, {}).values():
            if self._matches(record, conditions):
                record.update(data)
                return dict(record)
        return None

    async def delete_one(self, model, conditions):
        self._record("delete_one", model)
        table = self.tables.get(model.__name__, {})
        for key, record in list(table.items()):
            if self._matches(record, conditions):
                del table[key]
                return dict(record)
        return None

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture()
def persistence():
    return MemoryPersistence()


@pytest.fixture()
def broken_persistence():
    store = MemoryPersistence()
    store.fail_with = PersistenceError("database is down", operation="list")
    return store


@pytest.fixture()
def admin():
    return Principal(id=1, type="admin", owner="u0")


@pytest.fixture()
def writer():
    return Principal(id=2, type="user", owner="u1")


@pytest.fixture()
def other_user():
    return Principal(id=3, type="user", owner="u2")


def make_request(method="GET", path="/", params=None, body=None, headers=None) -> RequestData:
    return RequestData(
        method=method,
        path=path,
        params=dict(params or {}),
        body=dict(body or {}),
        headers=dict(headers or {}),
    )


def make_context(operation="list", model=Post, **request_kwargs) -> ActionContext:
    return ActionContext(request=make_request(**request_kwargs), model=model, operation=operation)


def run_async(coro):
    return asyncio.run(coro)


def as_principal(principal: Principal):
    """before-query hook standing in for token authentication."""

    def fake_auth(context: ActionContext) -> None:
        context.principal = principal

    return fake_auth


def make_client(*tables) -> TestClient:
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(compose(tables).to_router())
    return TestClient(app)
