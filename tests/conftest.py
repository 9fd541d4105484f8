import itertools
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


BACKEND_PATH = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.append(str(BACKEND_PATH))

from app.records.application.repository import Repositories  # noqa: E402
from app.records.domain.errors import PersistenceError  # noqa: E402
from app.records.infrastructure.local_store import LocalJsonRecordStore  # noqa: E402

WRITE_METHODS = ("insert", "upsert", "delete")


class RecordingStore:
    """Delegates to a real store and remembers every call."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls = []

    @property
    def writes(self):
        return [call for call in self.calls if call[0] in WRITE_METHODS]

    def transaction(self):
        return self.inner.transaction()

    async def select_all(self, table):
        self.calls.append(("select_all", table))
        return await self.inner.select_all(table)

    async def select_where(self, table, **filters):
        self.calls.append(("select_where", table))
        return await self.inner.select_where(table, **filters)

    async def get(self, table, record_id):
        self.calls.append(("get", table))
        return await self.inner.get(table, record_id)

    async def insert(self, table, row):
        self.calls.append(("insert", table))
        return await self.inner.insert(table, row)

    async def upsert(self, table, record_id, row):
        self.calls.append(("upsert", table))
        return await self.inner.upsert(table, record_id, row)

    async def delete(self, table, record_id):
        self.calls.append(("delete", table))
        return await self.inner.delete(table, record_id)


class FailingStore:
    """Every call fails the way a policy-denied remote store does."""

    @asynccontextmanager
    async def transaction(self):
        yield self

    def _error(self, table):
        return PersistenceError(
            f"permission denied for table {table}",
            detail="new row violates row-level security policy",
            hint="Check the table's access policies",
        )

    async def select_all(self, table):
        raise self._error(table)

    async def select_where(self, table, **filters):
        raise self._error(table)

    async def get(self, table, record_id):
        raise self._error(table)

    async def insert(self, table, row):
        raise self._error(table)

    async def upsert(self, table, record_id, row):
        raise self._error(table)

    async def delete(self, table, record_id):
        raise self._error(table)


class BrokenWriteStore(RecordingStore):
    """Delegates to a real store but fails one write, e.g. ('upsert', 'inventory')."""

    def __init__(self, inner, method, table) -> None:
        super().__init__(inner)
        self.broken = (method, table)

    def _check(self, method, table):
        if (method, table) == self.broken:
            raise PersistenceError(f"Could not {method} {table}", detail="disk full")

    async def insert(self, table, row):
        self._check("insert", table)
        return await super().insert(table, row)

    async def upsert(self, table, record_id, row):
        self._check("upsert", table)
        return await super().upsert(table, record_id, row)


def ticking_clock(start=datetime(2026, 1, 17, 10, 0, 0, tzinfo=timezone.utc)):
    counter = itertools.count()
    return lambda: start + timedelta(minutes=next(counter))


@pytest.fixture
def local_store(tmp_path):
    return LocalJsonRecordStore(tmp_path / "data", clock=ticking_clock())


@pytest.fixture
def store(local_store):
    return RecordingStore(local_store)


@pytest.fixture
def repositories(store):
    return Repositories.from_store(store)


@pytest.fixture
def break_write(local_store):
    """Repositories whose store fails the given write while everything else works."""

    def build(method, table):
        return Repositories.from_store(BrokenWriteStore(local_store, method, table))

    return build


@pytest.fixture
def failing_repositories():
    return Repositories.from_store(FailingStore())
