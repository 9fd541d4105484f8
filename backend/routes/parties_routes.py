"""
Parties Routes - customers, vendors and workers
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional

from app.records.application.repository import Repositories
from app.records.application.use_cases import (
    DeleteCustomerUseCase,
    DeleteRecordUseCase,
    SaveCustomerCommand,
    SaveCustomerUseCase,
    SaveVendorCommand,
    SaveVendorUseCase,
    SaveWorkerCommand,
    SaveWorkerUseCase,
)
from app.records.domain.errors import DomainError
from app.records.domain.models import UserSummary
from app.records.presentation.response_mapper import (
    customer_to_response,
    vendor_to_response,
    worker_to_response,
)
from routes.auth_routes import get_current_user
from routes.dependencies import get_repositories, to_http_error

# Create router
parties_router = APIRouter(prefix="/api", tags=["Parties"])


# ==================== PYDANTIC MODELS ====================

class CustomerForm(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class VendorForm(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


class WorkerForm(BaseModel):
    name: str
    phone: Optional[str] = None
    trade: Optional[str] = None


# ==================== CUSTOMERS ROUTES ====================

@parties_router.get("/customers")
async def get_customers(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get all customers"""
    try:
        customers = (await repositories.customers.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [customer_to_response(c) for c in customers]


async def _save_customer(form: CustomerForm, customer_id: Optional[str], repositories: Repositories):
    command = SaveCustomerCommand(
        name=form.name,
        email=form.email,
        phone=form.phone,
        address=form.address,
        id=customer_id,
    )
    try:
        customer = await SaveCustomerUseCase(repositories).execute(command)
    except DomainError as exc:
        raise to_http_error(exc)
    return customer_to_response(customer)


@parties_router.post("/customers")
async def create_customer(
    form: CustomerForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Add a customer"""
    return await _save_customer(form, None, repositories)


@parties_router.put("/customers/{customer_id}")
async def update_customer(
    customer_id: str,
    form: CustomerForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Replace a customer's fields - created_at is kept"""
    return await _save_customer(form, customer_id, repositories)


@parties_router.delete("/customers/{customer_id}")
async def delete_customer(
    customer_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Delete a customer without linked projects"""
    try:
        deleted = await DeleteCustomerUseCase(repositories).execute(customer_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return {"message": "Customer deleted", "deleted": deleted}


# ==================== VENDORS ROUTES ====================

@parties_router.get("/vendors")
async def get_vendors(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get all vendors"""
    try:
        vendors = (await repositories.vendors.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [vendor_to_response(v) for v in vendors]


async def _save_vendor(form: VendorForm, vendor_id: Optional[str], repositories: Repositories):
    command = SaveVendorCommand(name=form.name, phone=form.phone, address=form.address, id=vendor_id)
    try:
        vendor = await SaveVendorUseCase(repositories).execute(command)
    except DomainError as exc:
        raise to_http_error(exc)
    return vendor_to_response(vendor)


@parties_router.post("/vendors")
async def create_vendor(
    form: VendorForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Add a vendor"""
    return await _save_vendor(form, None, repositories)


@parties_router.put("/vendors/{vendor_id}")
async def update_vendor(
    vendor_id: str,
    form: VendorForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Replace a vendor's fields"""
    return await _save_vendor(form, vendor_id, repositories)


@parties_router.delete("/vendors/{vendor_id}")
async def delete_vendor(
    vendor_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Delete a vendor"""
    try:
        deleted = await DeleteRecordUseCase(repositories.vendors).execute(vendor_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return {"message": "Vendor deleted", "deleted": deleted}


# ==================== WORKERS ROUTES ====================

@parties_router.get("/workers")
async def get_workers(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get all workers"""
    try:
        workers = (await repositories.workers.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [worker_to_response(w) for w in workers]


async def _save_worker(form: WorkerForm, worker_id: Optional[str], repositories: Repositories):
    command = SaveWorkerCommand(name=form.name, phone=form.phone, trade=form.trade, id=worker_id)
    try:
        worker = await SaveWorkerUseCase(repositories).execute(command)
    except DomainError as exc:
        raise to_http_error(exc)
    return worker_to_response(worker)


@parties_router.post("/workers")
async def create_worker(
    form: WorkerForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Add a worker"""
    return await _save_worker(form, None, repositories)


@parties_router.put("/workers/{worker_id}")
async def update_worker(
    worker_id: str,
    form: WorkerForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Replace a worker's fields"""
    return await _save_worker(form, worker_id, repositories)


@parties_router.delete("/workers/{worker_id}")
async def delete_worker(
    worker_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Delete a worker"""
    try:
        deleted = await DeleteRecordUseCase(repositories.workers).execute(worker_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return {"message": "Worker deleted", "deleted": deleted}
