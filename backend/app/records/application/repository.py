import logging
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Generic, List, Optional, TypeVar

from app.records.application import mappings
from app.records.application.mappings import EntityMapping
from app.records.application.ports import RecordStore
from app.records.domain.errors import PersistenceError
from app.records.domain.models import (
    Create,
    Customer,
    Material,
    MaterialIssueEvent,
    MaterialLog,
    Payment,
    Profile,
    Project,
    Result,
    SaveOperation,
    Update,
    Vendor,
    VendorPurchase,
    Worker,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityRepository(Generic[T]):
    """CRUD facade for one entity over any RecordStore.

    Store failures are logged and returned as `Result.failure`, never raised,
    so an empty list always means "no rows".
    """

    def __init__(self, store: RecordStore, mapping: EntityMapping[T]) -> None:
        self._store = store
        self._mapping = mapping

    @property
    def table(self) -> str:
        return self._mapping.table

    async def list(self) -> Result[List[T]]:
        try:
            rows = await self._store.select_all(self.table)
        except PersistenceError as exc:
            logger.error(f"Error fetching {self.table}: {exc.message}")
            return Result.failure(exc)
        return Result.success([self._mapping.from_row(row) for row in rows])

    async def list_where(self, **filters: Any) -> Result[List[T]]:
        remote_filters = {
            self._mapping.remote_name(name): value for name, value in filters.items()
        }
        try:
            rows = await self._store.select_where(self.table, **remote_filters)
        except PersistenceError as exc:
            logger.error(f"Error fetching {self.table} where {remote_filters}: {exc.message}")
            return Result.failure(exc)
        return Result.success([self._mapping.from_row(row) for row in rows])

    async def get(self, record_id: str) -> Result[Optional[T]]:
        try:
            row = await self._store.get(self.table, record_id)
        except PersistenceError as exc:
            logger.error(f"Error fetching {self.table} {record_id}: {exc.message}")
            return Result.failure(exc)
        return Result.success(self._mapping.from_row(row) if row is not None else None)

    async def save(self, operation: SaveOperation) -> Result[T]:
        row = self._mapping.to_row(operation.fields)
        try:
            if isinstance(operation, Update):
                saved = await self._store.upsert(self.table, operation.id, row)
            elif isinstance(operation, Create):
                saved = await self._store.insert(self.table, row)
            else:
                raise TypeError(f"Unsupported save operation: {operation!r}")
        except PersistenceError as exc:
            action = "updating" if isinstance(operation, Update) else "inserting"
            logger.error(f"Error {action} {self.table}: {exc.message}")
            return Result.failure(exc)
        return Result.success(self._mapping.from_row(saved))

    async def delete(self, record_id: str) -> Result[bool]:
        """Delete by id; an unknown id succeeds with `False`."""
        try:
            deleted = await self._store.delete(self.table, record_id)
        except PersistenceError as exc:
            logger.error(f"Error deleting {self.table} {record_id}: {exc.message}")
            return Result.failure(exc)
        if not deleted:
            logger.info(f"Delete of missing {self.table} {record_id} ignored")
        return Result.success(deleted)


class MaterialLogRepository:
    """Append-only access to the material log."""

    def __init__(self, store: RecordStore) -> None:
        self._entities = EntityRepository(store, mappings.MATERIAL_LOGS)

    async def list(self) -> Result[List[MaterialLog]]:
        return await self._entities.list()

    async def list_for_material(self, material_id: str) -> Result[List[MaterialLog]]:
        return await self._entities.list_where(material_id=material_id)

    async def append(
        self,
        material_id: str,
        quantity_change: int,
        used_by: Optional[str],
        project_id: Optional[str] = None,
        reason: str = "correction",
    ) -> Result[MaterialLog]:
        return await self._entities.save(
            Create(
                fields={
                    "material_id": material_id,
                    "quantity_change": quantity_change,
                    "used_by": used_by,
                    "project_id": project_id,
                    "reason": reason,
                }
            )
        )


@dataclass
class Repositories:
    store: RecordStore
    profiles: EntityRepository[Profile]
    customers: EntityRepository[Customer]
    materials: EntityRepository[Material]
    projects: EntityRepository[Project]
    vendors: EntityRepository[Vendor]
    workers: EntityRepository[Worker]
    material_issues: EntityRepository[MaterialIssueEvent]
    vendor_purchases: EntityRepository[VendorPurchase]
    payments: EntityRepository[Payment]
    material_logs: MaterialLogRepository

    @classmethod
    def from_store(cls, store: RecordStore) -> "Repositories":
        return cls(
            store=store,
            profiles=EntityRepository(store, mappings.PROFILES),
            customers=EntityRepository(store, mappings.CUSTOMERS),
            materials=EntityRepository(store, mappings.MATERIALS),
            projects=EntityRepository(store, mappings.PROJECTS),
            vendors=EntityRepository(store, mappings.VENDORS),
            workers=EntityRepository(store, mappings.WORKERS),
            material_issues=EntityRepository(store, mappings.MATERIAL_ISSUES),
            vendor_purchases=EntityRepository(store, mappings.VENDOR_PURCHASES),
            payments=EntityRepository(store, mappings.PAYMENTS),
            material_logs=MaterialLogRepository(store),
        )

    def transaction(self) -> AsyncContextManager[RecordStore]:
        """Group writes across repositories so they apply together or not at all."""
        return self.store.transaction()
