"""Remote column names <-> domain field names, per entity.

Rows coming from the remote store carry native types; rows from the local
JSON store carry strings for decimals and timestamps, so every reader
coerces.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from app.records.application.ports import Row
from app.records.domain.models import (
    Customer,
    Material,
    MaterialIssueEvent,
    MaterialLog,
    PayeeType,
    Payment,
    Profile,
    Project,
    Vendor,
    VendorPurchase,
    Worker,
)

T = TypeVar("T")


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _int(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(value)


def _datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value


@dataclass(frozen=True)
class EntityMapping(Generic[T]):
    table: str
    from_row: Callable[[Row], T]
    renames: Mapping[str, str]
    to_row_override: Optional[Callable[[Mapping[str, Any]], Row]] = None

    def to_row(self, fields: Mapping[str, Any]) -> Row:
        """Translate writable domain fields into a remote row; unknown keys are dropped."""
        if self.to_row_override is not None:
            return self.to_row_override(fields)
        row: Dict[str, Any] = {}
        for domain_name, remote_name in self.renames.items():
            if domain_name in fields:
                row[remote_name] = _plain(fields[domain_name])
        return row

    def remote_name(self, domain_name: str) -> str:
        return self.renames.get(domain_name, domain_name)


# ==================== ROW READERS ====================

def _profile_from_row(row: Row) -> Profile:
    return Profile(
        id=row["id"],
        name=row.get("full_name") or "",
        email=row.get("email") or "",
        role=row.get("role") or "employee",
        password_hash=row.get("password") or "",
        created_at=_datetime(row.get("created_at")),
    )


def _material_from_row(row: Row) -> Material:
    return Material(
        id=row["id"],
        name=row.get("name") or "",
        quantity=_int(row.get("total_quantity")),
        unit=row.get("unit") or "",
        price=_decimal(row.get("cost_price")),
        category=row.get("category"),
        created_at=_datetime(row.get("created_at")),
    )


def _customer_from_row(row: Row) -> Customer:
    return Customer(
        id=row["id"],
        name=row.get("name") or "",
        email=row.get("email"),
        phone=row.get("phone"),
        address=row.get("address"),
        created_at=_datetime(row.get("created_at")),
    )


def _project_from_row(row: Row) -> Project:
    return Project(
        id=row["id"],
        name=row.get("name") or "",
        customer_id=row.get("customer_id") or "",
        project_value=_decimal(row.get("project_value")),
        status=row.get("status") or "pending",
        created_at=_datetime(row.get("created_at")),
    )


def _issue_from_row(row: Row) -> MaterialIssueEvent:
    return MaterialIssueEvent(
        id=row["id"],
        project_id=row.get("project_id") or "",
        material_id=row.get("product_id") or "",
        quantity=_int(row.get("quantity")),
        rate_at_issue=_decimal(row.get("rate_at_issue")),
        issued_by=row.get("issued_by"),
        created_at=_datetime(row.get("created_at")),
    )


def _vendor_from_row(row: Row) -> Vendor:
    return Vendor(
        id=row["id"],
        name=row.get("name") or "",
        phone=row.get("phone"),
        address=row.get("address"),
        created_at=_datetime(row.get("created_at")),
    )


def _worker_from_row(row: Row) -> Worker:
    return Worker(
        id=row["id"],
        name=row.get("name") or "",
        phone=row.get("phone"),
        trade=row.get("trade"),
        created_at=_datetime(row.get("created_at")),
    )


def _purchase_from_row(row: Row) -> VendorPurchase:
    return VendorPurchase(
        id=row["id"],
        customer_id=row.get("customer_id") or "",
        vendor_id=row.get("vendor_id") or "",
        item_description=row.get("item_description") or "",
        quantity=_int(row.get("quantity")),
        unit=row.get("unit"),
        rate=_decimal(row.get("rate")),
        total_amount=_decimal(row.get("total_amount")),
        purchased_by=row.get("purchased_by"),
        created_at=_datetime(row.get("created_at")),
    )


def _payment_from_row(row: Row) -> Payment:
    payee_type = row.get("payee_type") or ""
    if payee_type == PayeeType.WORKER:
        payee_id = row.get("worker_id")
    else:
        payee_id = row.get("vendor_id")
    return Payment(
        id=row["id"],
        payee_type=payee_type,
        payee_id=payee_id or "",
        amount=_decimal(row.get("amount")),
        customer_id=row.get("customer_id"),
        notes=row.get("notes"),
        paid_by=row.get("paid_by"),
        created_at=_datetime(row.get("created_at")),
    )


def _payment_to_row(fields: Mapping[str, Any]) -> Row:
    payee_type = _plain(fields.get("payee_type"))
    payee_id = fields.get("payee_id")
    return {
        "payee_type": payee_type,
        "worker_id": payee_id if payee_type == PayeeType.WORKER.value else None,
        "vendor_id": payee_id if payee_type == PayeeType.VENDOR.value else None,
        "customer_id": fields.get("customer_id") or None,
        "amount": fields.get("amount"),
        "notes": fields.get("notes"),
        "paid_by": fields.get("paid_by"),
    }


def _log_from_row(row: Row) -> MaterialLog:
    return MaterialLog(
        id=row["id"],
        material_id=row.get("inventory_item_id") or "",
        quantity_change=_int(row.get("quantity_change")),
        project_id=row.get("related_project_id"),
        used_by=row.get("created_by"),
        reason=row.get("reason") or "correction",
        timestamp=_datetime(row.get("created_at")),
    )


# ==================== MAPPINGS ====================

PROFILES = EntityMapping(
    table="profiles",
    from_row=_profile_from_row,
    renames={"name": "full_name", "email": "email", "role": "role", "password_hash": "password"},
)

MATERIALS = EntityMapping(
    table="inventory",
    from_row=_material_from_row,
    renames={
        "name": "name",
        "category": "category",
        "unit": "unit",
        "quantity": "total_quantity",
        "price": "cost_price",
    },
)

CUSTOMERS = EntityMapping(
    table="customers",
    from_row=_customer_from_row,
    renames={"name": "name", "email": "email", "phone": "phone", "address": "address"},
)

PROJECTS = EntityMapping(
    table="projects",
    from_row=_project_from_row,
    renames={
        "name": "name",
        "customer_id": "customer_id",
        "project_value": "project_value",
        "status": "status",
    },
)

MATERIAL_ISSUES = EntityMapping(
    table="customer_material_issue",
    from_row=_issue_from_row,
    renames={
        "project_id": "project_id",
        "customer_id": "customer_id",
        "material_id": "product_id",
        "quantity": "quantity",
        "rate_at_issue": "rate_at_issue",
        "issued_by": "issued_by",
    },
)

VENDORS = EntityMapping(
    table="vendors",
    from_row=_vendor_from_row,
    renames={"name": "name", "phone": "phone", "address": "address"},
)

WORKERS = EntityMapping(
    table="workers",
    from_row=_worker_from_row,
    renames={"name": "name", "phone": "phone", "trade": "trade"},
)

VENDOR_PURCHASES = EntityMapping(
    table="project_vendor_purchases",
    from_row=_purchase_from_row,
    renames={
        "customer_id": "customer_id",
        "vendor_id": "vendor_id",
        "item_description": "item_description",
        "quantity": "quantity",
        "unit": "unit",
        "rate": "rate",
        "total_amount": "total_amount",
        "purchased_by": "purchased_by",
    },
)

PAYMENTS = EntityMapping(
    table="payments",
    from_row=_payment_from_row,
    renames={
        "payee_type": "payee_type",
        "customer_id": "customer_id",
        "amount": "amount",
        "notes": "notes",
        "paid_by": "paid_by",
    },
    to_row_override=_payment_to_row,
)

MATERIAL_LOGS = EntityMapping(
    table="inventory_history",
    from_row=_log_from_row,
    renames={
        "material_id": "inventory_item_id",
        "quantity_change": "quantity_change",
        "reason": "reason",
        "project_id": "related_project_id",
        "used_by": "created_by",
    },
)
