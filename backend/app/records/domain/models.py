import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar, Union

from app.records.domain.errors import PersistenceError

LOW_STOCK_THRESHOLD = 20

T = TypeVar("T")


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class ProjectStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class PayeeType(str, enum.Enum):
    WORKER = "worker"
    VENDOR = "vendor"


@dataclass(frozen=True)
class UserSummary:
    id: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    email: str
    role: str
    password_hash: str
    created_at: Optional[datetime] = None

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id, name=self.name, role=self.role)


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    quantity: int
    unit: str
    price: Decimal
    category: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_low_stock(self, threshold: int = LOW_STOCK_THRESHOLD) -> bool:
        return self.quantity < threshold


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    customer_id: str
    project_value: Decimal
    status: str = ProjectStatus.PENDING.value
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MaterialIssueEvent:
    id: str
    project_id: str
    material_id: str
    quantity: int
    rate_at_issue: Decimal
    issued_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.rate_at_issue


@dataclass(frozen=True)
class Vendor:
    id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Worker:
    id: str
    name: str
    phone: Optional[str] = None
    trade: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class VendorPurchase:
    id: str
    customer_id: str
    vendor_id: str
    item_description: str
    quantity: int
    unit: Optional[str]
    rate: Decimal
    total_amount: Decimal
    purchased_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Payment:
    id: str
    payee_type: str
    payee_id: str
    amount: Decimal
    customer_id: Optional[str] = None
    notes: Optional[str] = None
    paid_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MaterialLog:
    """Append-only record of a stock quantity change."""

    id: str
    material_id: str
    quantity_change: int
    project_id: Optional[str] = None
    used_by: Optional[str] = None
    reason: str = "correction"
    timestamp: Optional[datetime] = None
    material_name: Optional[str] = None


@dataclass(frozen=True)
class ProjectFinancials:
    project_value: Decimal
    total_material_cost: Decimal
    profit: Decimal


@dataclass(frozen=True)
class Overview:
    material_count: int
    customer_count: int
    project_count: int
    active_project_count: int
    low_stock_materials: Sequence[Material] = field(default_factory=list)


# ==================== SAVE OPERATIONS ====================

@dataclass(frozen=True)
class Create:
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class Update:
    id: str
    fields: Mapping[str, Any]


SaveOperation = Union[Create, Update]


def save_operation(fields: Mapping[str, Any], record_id: Optional[str] = None) -> SaveOperation:
    """Build the tagged operation from a form submission and the optional id being edited."""
    if record_id:
        return Update(id=record_id, fields=fields)
    return Create(fields=fields)


# ==================== RESULT ====================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the store error that prevented producing it."""

    value: Optional[T] = None
    error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PersistenceError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
