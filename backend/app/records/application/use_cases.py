import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.records.application.financials import compute_project_financials
from app.records.application.navigation import can_view_page
from app.records.application.repository import EntityRepository, Repositories
from app.records.application.validation import (
    optional_text,
    parse_choice,
    parse_non_negative_decimal,
    parse_non_negative_int,
    parse_positive_int,
    require_selection,
    require_text,
)
from app.records.domain.errors import InvalidRequest, NotFound, PermissionDenied
from app.records.domain.models import (
    LOW_STOCK_THRESHOLD,
    Create,
    Customer,
    Material,
    MaterialIssueEvent,
    MaterialLog,
    Overview,
    PayeeType,
    Payment,
    Project,
    ProjectFinancials,
    ProjectStatus,
    Update,
    UserSummary,
    Vendor,
    VendorPurchase,
    Worker,
    save_operation,
)

FormValue = Any


# ==================== COMMANDS ====================

@dataclass(frozen=True)
class SaveMaterialCommand:
    name: str
    quantity: FormValue
    unit: str
    price: FormValue
    category: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class SaveCustomerCommand:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class SaveProjectCommand:
    name: str
    customer_id: Optional[str]
    project_value: FormValue
    status: Optional[str] = ProjectStatus.PENDING.value
    id: Optional[str] = None


@dataclass(frozen=True)
class SaveVendorCommand:
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class SaveWorkerCommand:
    name: str
    phone: Optional[str] = None
    trade: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class IssueMaterialCommand:
    project_id: Optional[str]
    material_id: Optional[str]
    quantity: FormValue
    rate_at_issue: FormValue


@dataclass(frozen=True)
class RecordVendorPurchaseCommand:
    customer_id: Optional[str]
    vendor_id: Optional[str]
    item_description: Optional[str]
    quantity: FormValue
    rate: FormValue
    unit: Optional[str] = None


@dataclass(frozen=True)
class RecordPaymentCommand:
    payee_type: Optional[str]
    payee_id: Optional[str]
    amount: FormValue
    customer_id: Optional[str] = None
    notes: Optional[str] = None


def _material_fields(material: Material) -> Dict[str, Any]:
    fields = dataclasses.asdict(material)
    fields.pop("id")
    fields.pop("created_at")
    return fields


async def _require(repository: EntityRepository, record_id: str, label: str):
    record = (await repository.get(record_id)).unwrap()
    if record is None:
        raise NotFound(f"{label} not found")
    return record


# ==================== CRUD ====================

class SaveMaterialUseCase:
    """Create or edit a material; any stock change is appended to the log."""

    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: SaveMaterialCommand, current_user: UserSummary) -> Material:
        fields = {
            "name": require_text(command.name, "name"),
            "unit": require_selection(command.unit, "unit"),
            "quantity": parse_non_negative_int(command.quantity, "quantity"),
            "price": parse_non_negative_decimal(command.price, "price"),
            "category": optional_text(command.category),
        }

        async with self._repositories.transaction():
            previous_quantity = 0
            if command.id:
                previous = (await self._repositories.materials.get(command.id)).unwrap()
                if previous is not None:
                    previous_quantity = previous.quantity

            material = (
                await self._repositories.materials.save(save_operation(fields, command.id))
            ).unwrap()

            change = material.quantity - previous_quantity
            if change:
                (
                    await self._repositories.material_logs.append(
                        material_id=material.id,
                        quantity_change=change,
                        used_by=current_user.id,
                    )
                ).unwrap()
        return material


class SaveCustomerUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: SaveCustomerCommand) -> Customer:
        fields = {
            "name": require_text(command.name, "name"),
            "email": optional_text(command.email),
            "phone": optional_text(command.phone),
            "address": optional_text(command.address),
        }
        operation = save_operation(fields, command.id)
        return (await self._repositories.customers.save(operation)).unwrap()


class SaveProjectUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: SaveProjectCommand) -> Project:
        fields = {
            "name": require_text(command.name, "name"),
            "customer_id": require_selection(command.customer_id, "customer"),
            "project_value": parse_non_negative_decimal(command.project_value, "project_value"),
            "status": parse_choice(
                command.status or ProjectStatus.PENDING.value, ProjectStatus, "status"
            ),
        }
        await _require(self._repositories.customers, fields["customer_id"], "Customer")

        operation = save_operation(fields, command.id)
        return (await self._repositories.projects.save(operation)).unwrap()


class SaveVendorUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: SaveVendorCommand) -> Vendor:
        fields = {
            "name": require_text(command.name, "name"),
            "phone": optional_text(command.phone),
            "address": optional_text(command.address),
        }
        operation = save_operation(fields, command.id)
        return (await self._repositories.vendors.save(operation)).unwrap()


class SaveWorkerUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: SaveWorkerCommand) -> Worker:
        fields = {
            "name": require_text(command.name, "name"),
            "phone": optional_text(command.phone),
            "trade": optional_text(command.trade),
        }
        operation = save_operation(fields, command.id)
        return (await self._repositories.workers.save(operation)).unwrap()


class DeleteRecordUseCase:
    """Delete by id. Deleting an id that is already gone is not an error."""

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    async def execute(self, record_id: str) -> bool:
        return (await self._repository.delete(record_id)).unwrap()


class DeleteCustomerUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, customer_id: str) -> bool:
        projects = (
            await self._repositories.projects.list_where(customer_id=customer_id)
        ).unwrap()
        if projects:
            raise InvalidRequest(
                f"Cannot delete customer with {len(projects)} linked project(s)"
            )
        return (await self._repositories.customers.delete(customer_id)).unwrap()


# ==================== MOVEMENTS ====================

class IssueMaterialUseCase:
    """Issue stock to a project at a frozen rate and log the stock movement."""

    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(
        self,
        command: IssueMaterialCommand,
        current_user: UserSummary,
    ) -> MaterialIssueEvent:
        project_id = require_selection(command.project_id, "project")
        material_id = require_selection(command.material_id, "material")
        quantity = parse_positive_int(command.quantity, "quantity")
        rate_at_issue = parse_non_negative_decimal(command.rate_at_issue, "rate_at_issue")

        async with self._repositories.transaction():
            project = await _require(self._repositories.projects, project_id, "Project")
            material = await _require(self._repositories.materials, material_id, "Material")
            if quantity > material.quantity:
                raise InvalidRequest(
                    f"Only {material.quantity} {material.unit} of {material.name} in stock"
                )

            event = (
                await self._repositories.material_issues.save(
                    Create(
                        fields={
                            "project_id": project.id,
                            "customer_id": project.customer_id,
                            "material_id": material.id,
                            "quantity": quantity,
                            "rate_at_issue": rate_at_issue,
                            "issued_by": current_user.id,
                        }
                    )
                )
            ).unwrap()

            remaining = dataclasses.replace(material, quantity=material.quantity - quantity)
            (
                await self._repositories.materials.save(
                    Update(id=material.id, fields=_material_fields(remaining))
                )
            ).unwrap()
            (
                await self._repositories.material_logs.append(
                    material_id=material.id,
                    quantity_change=-quantity,
                    used_by=current_user.id,
                    project_id=project.id,
                    reason="issue",
                )
            ).unwrap()
        return event


class RecordVendorPurchaseUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(
        self,
        command: RecordVendorPurchaseCommand,
        current_user: UserSummary,
    ) -> VendorPurchase:
        customer_id = require_selection(command.customer_id, "customer")
        vendor_id = require_selection(command.vendor_id, "vendor")
        item_description = require_text(command.item_description, "item_description")
        quantity = parse_positive_int(command.quantity, "quantity")
        rate = parse_non_negative_decimal(command.rate, "rate")

        await _require(self._repositories.customers, customer_id, "Customer")
        await _require(self._repositories.vendors, vendor_id, "Vendor")

        fields = {
            "customer_id": customer_id,
            "vendor_id": vendor_id,
            "item_description": item_description,
            "quantity": quantity,
            "unit": optional_text(command.unit),
            "rate": rate,
            "total_amount": quantity * rate,
            "purchased_by": current_user.id,
        }
        return (await self._repositories.vendor_purchases.save(Create(fields=fields))).unwrap()


class RecordPaymentUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, command: RecordPaymentCommand, current_user: UserSummary) -> Payment:
        payee_type = parse_choice(command.payee_type, PayeeType, "payee_type")
        payee_id = require_selection(command.payee_id, payee_type)
        amount = parse_non_negative_decimal(command.amount, "amount")
        customer_id = optional_text(command.customer_id)

        if payee_type == PayeeType.WORKER.value:
            await _require(self._repositories.workers, payee_id, "Worker")
        else:
            await _require(self._repositories.vendors, payee_id, "Vendor")
        if customer_id:
            await _require(self._repositories.customers, customer_id, "Customer")

        fields = {
            "payee_type": payee_type,
            "payee_id": payee_id,
            "customer_id": customer_id,
            "amount": amount,
            "notes": optional_text(command.notes),
            "paid_by": current_user.id,
        }
        return (await self._repositories.payments.save(Create(fields=fields))).unwrap()


# ==================== READ MODELS ====================

class GetProjectFinancialsUseCase:
    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, project_id: str) -> ProjectFinancials:
        project = await _require(self._repositories.projects, project_id, "Project")
        events = (
            await self._repositories.material_issues.list_where(project_id=project.id)
        ).unwrap()
        return compute_project_financials(project, events)


class GetOverviewUseCase:
    def __init__(
        self,
        repositories: Repositories,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    ) -> None:
        self._repositories = repositories
        self._low_stock_threshold = low_stock_threshold

    async def execute(self) -> Overview:
        materials = (await self._repositories.materials.list()).unwrap()
        customers = (await self._repositories.customers.list()).unwrap()
        projects = (await self._repositories.projects.list()).unwrap()

        return Overview(
            material_count=len(materials),
            customer_count=len(customers),
            project_count=len(projects),
            active_project_count=sum(
                1 for project in projects if project.status == ProjectStatus.IN_PROGRESS
            ),
            low_stock_materials=[
                material
                for material in materials
                if material.is_low_stock(self._low_stock_threshold)
            ],
        )


class ListMaterialLogsUseCase:
    """Material log for the admin-only Logs page, newest first."""

    def __init__(self, repositories: Repositories) -> None:
        self._repositories = repositories

    async def execute(self, current_user: UserSummary) -> Sequence[MaterialLog]:
        if not can_view_page("logs", current_user):
            raise PermissionDenied("Only admins can view the material logs")

        logs = (await self._repositories.material_logs.list()).unwrap()
        materials = (await self._repositories.materials.list()).unwrap()
        profiles = (await self._repositories.profiles.list()).unwrap()

        material_names = {material.id: material.name for material in materials}
        user_names = {profile.id: profile.name for profile in profiles}
        oldest = datetime.min.replace(tzinfo=timezone.utc)

        enriched: List[MaterialLog] = [
            dataclasses.replace(
                log,
                material_name=material_names.get(log.material_id),
                used_by=user_names.get(log.used_by or "", log.used_by),
            )
            for log in logs
        ]
        enriched.sort(key=lambda log: _aware(log.timestamp) or oldest, reverse=True)
        return enriched


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
