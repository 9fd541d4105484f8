import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.records.application.ports import RecordStore, Row
from app.records.domain.errors import PersistenceError
from database import TABLE_MODELS

logger = logging.getLogger(__name__)

IMMUTABLE_COLUMNS = ("id", "created_at")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlAlchemyRecordStore(RecordStore):
    """RecordStore over the PostgreSQL tables.

    Outside `transaction()` every write commits on its own. Inside it, writes
    are flushed and committed once when the block exits.
    """

    def __init__(
        self,
        session: AsyncSession,
        id_generator: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session = session
        self._id_generator = id_generator
        self._clock = clock
        self._in_transaction = False

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlAlchemyRecordStore"]:
        if self._in_transaction:
            yield self
            return

        self._in_transaction = True
        try:
            yield self
            await self._session.commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "commit", "transaction")
        except Exception:
            await self._session.rollback()
            raise
        finally:
            self._in_transaction = False

    async def _commit(self) -> None:
        if self._in_transaction:
            await self._session.flush()
        else:
            await self._session.commit()

    def _model(self, table: str):
        model = TABLE_MODELS.get(table)
        if model is None:
            raise PersistenceError(f"Unknown table: {table}")
        return model

    @staticmethod
    def _to_row(record) -> Row:
        return {
            column.name: getattr(record, column.key)
            for column in record.__table__.columns
        }

    async def _fail(self, exc: SQLAlchemyError, verb: str, table: str) -> PersistenceError:
        await self._session.rollback()
        detail = str(getattr(exc, "orig", None) or exc)
        hint = None
        if isinstance(exc, IntegrityError):
            hint = "The change violates a constraint on the table"
        logger.error(f"Database error on {verb} {table}: {detail}")
        return PersistenceError(f"Could not {verb} {table}", detail, hint)

    async def select_all(self, table: str) -> List[Row]:
        model = self._model(table)
        try:
            result = await self._session.execute(select(model).order_by(model.created_at))
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "fetch", table)
        return [self._to_row(record) for record in result.scalars().all()]

    async def select_where(self, table: str, **filters: Any) -> List[Row]:
        model = self._model(table)
        query = select(model)
        for column, value in filters.items():
            query = query.where(getattr(model, column) == value)
        query = query.order_by(model.created_at)
        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "fetch", table)
        return [self._to_row(record) for record in result.scalars().all()]

    async def get(self, table: str, record_id: str) -> Optional[Row]:
        model = self._model(table)
        try:
            record = await self._session.get(model, record_id)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "fetch", table)
        return self._to_row(record) if record is not None else None

    async def insert(self, table: str, row: Row) -> Row:
        return await self._insert(table, self._id_generator(), row)

    async def _insert(self, table: str, record_id: str, row: Row) -> Row:
        model = self._model(table)
        values = {key: value for key, value in row.items() if key not in IMMUTABLE_COLUMNS}
        record = model(id=record_id, created_at=self._clock(), **values)
        self._session.add(record)
        try:
            await self._commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "insert", table)
        return self._to_row(record)

    async def upsert(self, table: str, record_id: str, row: Row) -> Row:
        model = self._model(table)
        try:
            record = await self._session.get(model, record_id)
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "update", table)
        if record is None:
            return await self._insert(table, record_id, row)

        for key, value in row.items():
            if key not in IMMUTABLE_COLUMNS:
                setattr(record, key, value)
        try:
            await self._commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "update", table)
        return self._to_row(record)

    async def delete(self, table: str, record_id: str) -> bool:
        model = self._model(table)
        try:
            record = await self._session.get(model, record_id)
            if record is None:
                return False
            await self._session.delete(record)
            await self._commit()
        except SQLAlchemyError as exc:
            raise await self._fail(exc, "delete", table)
        return True
