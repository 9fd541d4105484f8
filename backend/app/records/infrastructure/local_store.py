"""
Local fallback record store
One JSON document per table, used when no database is configured
"""
import asyncio
import json
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

from app.records.application.ports import RecordStore, Row
from app.records.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

IMMUTABLE_COLUMNS = ("id", "created_at")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


class LocalJsonRecordStore(RecordStore):
    """RecordStore persisted as `<table>.json` files under `data_dir`.

    The process is the only writer. An asyncio lock serializes access, file
    I/O runs in a worker thread, and each file is replaced atomically. Inside
    `transaction()` the lock is held for the whole block and writes are kept
    in memory until the block exits.
    """

    def __init__(
        self,
        data_dir: Path,
        id_generator: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._data_dir = Path(data_dir)
        self._id_generator = id_generator
        self._clock = clock
        self._lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None
        self._pending: Dict[str, List[Row]] = {}
        self._dirty: Set[str] = set()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, table: str) -> Path:
        return self._data_dir / f"{table}.json"

    def _tmp_path(self, table: str) -> Path:
        return self._path(table).with_suffix(".json.tmp")

    # ==================== FILE I/O (worker thread) ====================

    def _read(self, table: str) -> List[Row]:
        path = self._path(table)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                rows = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read local table {table}: {e}")
            raise PersistenceError(f"Could not fetch {table}", str(e))
        if not isinstance(rows, list):
            raise PersistenceError(f"Could not fetch {table}", f"{path} is not a list of rows")
        return rows

    def _write_tables(self, tables: Dict[str, List[Row]]) -> None:
        """Stage every table to a temp file, then swap them all in."""
        staged = []
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            for table, rows in tables.items():
                with open(self._tmp_path(table), "w", encoding="utf-8") as f:
                    json.dump(rows, f, ensure_ascii=False, indent=2, default=_encode)
                staged.append(table)
        except (OSError, TypeError) as e:
            for table in staged:
                self._tmp_path(table).unlink(missing_ok=True)
            names = ", ".join(tables)
            logger.error(f"Could not write local tables {names}: {e}")
            raise PersistenceError(f"Could not save {names}", str(e))

        try:
            for table in staged:
                os.replace(self._tmp_path(table), self._path(table))
        except OSError as e:
            logger.error(f"Could not replace local table files: {e}")
            raise PersistenceError("Could not save " + ", ".join(tables), str(e))

    # ==================== TRANSACTIONS ====================

    def _in_transaction(self) -> bool:
        return self._owner is not None and self._owner is asyncio.current_task()

    @asynccontextmanager
    async def _access(self) -> AsyncIterator[None]:
        if self._in_transaction():
            yield
            return
        async with self._lock:
            yield

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["LocalJsonRecordStore"]:
        if self._in_transaction():
            yield self
            return

        async with self._lock:
            self._owner = asyncio.current_task()
            self._pending = {}
            self._dirty = set()
            try:
                yield self
                changed = {table: self._pending[table] for table in self._dirty}
                if changed:
                    await asyncio.to_thread(self._write_tables, changed)
            finally:
                self._owner = None
                self._pending = {}
                self._dirty = set()

    async def _rows(self, table: str) -> List[Row]:
        if not self._in_transaction():
            return await asyncio.to_thread(self._read, table)
        if table not in self._pending:
            self._pending[table] = await asyncio.to_thread(self._read, table)
        return list(self._pending[table])

    async def _save(self, table: str, rows: List[Row]) -> None:
        if self._in_transaction():
            self._pending[table] = rows
            self._dirty.add(table)
            return
        await asyncio.to_thread(self._write_tables, {table: rows})

    @staticmethod
    def _normalize(row: Row) -> Row:
        return json.loads(json.dumps(row, default=_encode))

    # ==================== RECORD STORE ====================

    async def select_all(self, table: str) -> List[Row]:
        async with self._access():
            return await self._rows(table)

    async def select_where(self, table: str, **filters: Any) -> List[Row]:
        async with self._access():
            rows = await self._rows(table)
        return [
            row for row in rows
            if all(row.get(column) == value for column, value in filters.items())
        ]

    async def get(self, table: str, record_id: str) -> Optional[Row]:
        async with self._access():
            rows = await self._rows(table)
        return next((row for row in rows if row.get("id") == record_id), None)

    async def insert(self, table: str, row: Row) -> Row:
        async with self._access():
            rows = await self._rows(table)
            new_row = self._new_row(self._id_generator(), row)
            rows.append(new_row)
            await self._save(table, rows)
        return new_row

    def _new_row(self, record_id: str, row: Row) -> Row:
        values = {key: value for key, value in row.items() if key not in IMMUTABLE_COLUMNS}
        return self._normalize({"id": record_id, **values, "created_at": self._clock()})

    async def upsert(self, table: str, record_id: str, row: Row) -> Row:
        async with self._access():
            rows = await self._rows(table)
            for index, existing in enumerate(rows):
                if existing.get("id") == record_id:
                    values = {
                        key: value for key, value in row.items() if key not in IMMUTABLE_COLUMNS
                    }
                    updated = self._normalize({**existing, **values})
                    rows[index] = updated
                    break
            else:
                updated = self._new_row(record_id, row)
                rows.append(updated)
            await self._save(table, rows)
        return updated

    async def delete(self, table: str, record_id: str) -> bool:
        async with self._access():
            rows = await self._rows(table)
            remaining = [row for row in rows if row.get("id") != record_id]
            if len(remaining) == len(rows):
                return False
            await self._save(table, remaining)
        return True
