from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol

Row = Dict[str, Any]


class RecordStore(Protocol):
    """Table-addressed record store.

    Implementations raise PersistenceError on failure. Ids are assigned on
    insert and `created_at` is stamped once; `upsert` never overwrites it.

    Writes made inside `transaction()` are applied together when the block
    exits normally and discarded when it raises. Nested blocks join the
    outer one.
    """

    def transaction(self) -> AsyncContextManager["RecordStore"]:
        ...

    async def select_all(self, table: str) -> List[Row]:
        ...

    async def select_where(self, table: str, **filters: Any) -> List[Row]:
        ...

    async def get(self, table: str, record_id: str) -> Optional[Row]:
        ...

    async def insert(self, table: str, row: Row) -> Row:
        ...

    async def upsert(self, table: str, record_id: str, row: Row) -> Row:
        ...

    async def delete(self, table: str, record_id: str) -> bool:
        ...
