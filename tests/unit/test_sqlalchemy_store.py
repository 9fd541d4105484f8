import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from app.records.domain.errors import PersistenceError
from app.records.infrastructure.sqlalchemy_store import SqlAlchemyRecordStore


class FakeSession:
    """Stands in for AsyncSession; records flush/commit/rollback in order."""

    def __init__(self, fail_on_flush=None) -> None:
        self.records = {}
        self.events = []
        self.fail_on_flush = fail_on_flush
        self.flushes = 0

    async def get(self, model, record_id):
        return self.records.get((model.__tablename__, record_id))

    def add(self, record):
        self.records[(record.__tablename__, record.id)] = record

    async def delete(self, record):
        self.records.pop((record.__tablename__, record.id), None)

    async def flush(self):
        self.flushes += 1
        self.events.append("flush")
        if self.flushes == self.fail_on_flush:
            raise OperationalError("INSERT", {}, Exception("disk full"))

    async def commit(self):
        self.events.append("commit")

    async def rollback(self):
        self.events.append("rollback")


def run(coro):
    return asyncio.run(coro)


def test_writes_outside_a_transaction_commit_one_by_one():
    session = FakeSession()
    store = SqlAlchemyRecordStore(session)

    async def scenario():
        await store.insert("customers", {"name": "Meera"})
        await store.insert("workers", {"name": "Suresh"})

    run(scenario())

    assert session.events == ["commit", "commit"]


def test_transaction_flushes_writes_and_commits_once():
    session = FakeSession()
    store = SqlAlchemyRecordStore(session, id_generator=lambda: "material-1")

    async def scenario():
        async with store.transaction():
            await store.insert("inventory", {"name": "Teak veneer", "unit": "sheet"})
            await store.upsert("inventory", "material-1", {"total_quantity": 30})

    run(scenario())

    assert session.events == ["flush", "flush", "commit"]
    assert session.records[("inventory", "material-1")].total_quantity == 30


def test_failed_write_rolls_back_the_transaction():
    session = FakeSession(fail_on_flush=2)
    store = SqlAlchemyRecordStore(session)

    async def scenario():
        async with store.transaction():
            await store.insert("customer_material_issue", {"quantity": 10})
            await store.insert("inventory_history", {"quantity_change": -10})

    with pytest.raises(PersistenceError) as exc_info:
        run(scenario())

    assert "commit" not in session.events
    assert "rollback" in session.events
    assert exc_info.value.message == "Could not insert inventory_history"
    assert exc_info.value.detail == "disk full"
