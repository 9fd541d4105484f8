"""
Projects Routes - projects, financials, material issues and vendor purchases
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional, Union

from app.records.application.repository import Repositories
from app.records.application.use_cases import (
    DeleteRecordUseCase,
    GetProjectFinancialsUseCase,
    IssueMaterialCommand,
    IssueMaterialUseCase,
    RecordVendorPurchaseCommand,
    RecordVendorPurchaseUseCase,
    SaveProjectCommand,
    SaveProjectUseCase,
)
from app.records.domain.errors import DomainError
from app.records.domain.models import ProjectStatus, UserSummary
from app.records.presentation.response_mapper import (
    financials_to_response,
    issue_to_response,
    project_to_response,
    purchase_to_response,
)
from routes.auth_routes import get_current_user
from routes.dependencies import get_repositories, to_http_error

# Create router
projects_router = APIRouter(prefix="/api", tags=["Projects"])

FormNumber = Optional[Union[int, float, str]]


# ==================== PYDANTIC MODELS ====================

class ProjectForm(BaseModel):
    name: str
    customer_id: Optional[str] = None
    project_value: FormNumber = 0
    status: Optional[str] = ProjectStatus.PENDING.value


class MaterialIssueForm(BaseModel):
    project_id: Optional[str] = None
    material_id: Optional[str] = None
    quantity: FormNumber = None
    rate_at_issue: FormNumber = None


class VendorPurchaseForm(BaseModel):
    customer_id: Optional[str] = None
    vendor_id: Optional[str] = None
    item_description: Optional[str] = None
    quantity: FormNumber = None
    unit: Optional[str] = None
    rate: FormNumber = None


# ==================== PROJECTS ROUTES ====================

@projects_router.get("/projects")
async def get_projects(
    status: Optional[str] = None,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get all projects, optionally filtered by status"""
    try:
        if status:
            projects = (await repositories.projects.list_where(status=status)).unwrap()
        else:
            projects = (await repositories.projects.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [project_to_response(p) for p in projects]


async def _save_project(form: ProjectForm, project_id: Optional[str], repositories: Repositories):
    command = SaveProjectCommand(
        name=form.name,
        customer_id=form.customer_id,
        project_value=form.project_value,
        status=form.status,
        id=project_id,
    )
    try:
        project = await SaveProjectUseCase(repositories).execute(command)
    except DomainError as exc:
        raise to_http_error(exc)
    return project_to_response(project)


@projects_router.post("/projects")
async def create_project(
    form: ProjectForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Create a project for an existing customer"""
    return await _save_project(form, None, repositories)


@projects_router.put("/projects/{project_id}")
async def update_project(
    project_id: str,
    form: ProjectForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Replace a project's fields - created_at is kept"""
    return await _save_project(form, project_id, repositories)


@projects_router.delete("/projects/{project_id}")
async def delete_project(
    project_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Delete a project"""
    try:
        deleted = await DeleteRecordUseCase(repositories.projects).execute(project_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return {"message": "Project deleted", "deleted": deleted}


@projects_router.get("/projects/{project_id}/financials")
async def get_project_financials(
    project_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Project value, material cost at issue rates, and profit"""
    try:
        financials = await GetProjectFinancialsUseCase(repositories).execute(project_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return financials_to_response(financials)


# ==================== MATERIAL ISSUE ROUTES ====================

@projects_router.post("/material-issues")
async def issue_material(
    form: MaterialIssueForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Issue material from stock to a project"""
    command = IssueMaterialCommand(
        project_id=form.project_id,
        material_id=form.material_id,
        quantity=form.quantity,
        rate_at_issue=form.rate_at_issue,
    )
    try:
        event = await IssueMaterialUseCase(repositories).execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    return issue_to_response(event)


@projects_router.get("/projects/{project_id}/material-issues")
async def get_project_material_issues(
    project_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Material issued to one project"""
    try:
        events = (await repositories.material_issues.list_where(project_id=project_id)).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [issue_to_response(e) for e in events]


# ==================== VENDOR PURCHASE ROUTES ====================

@projects_router.post("/vendor-purchases")
async def record_vendor_purchase(
    form: VendorPurchaseForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Record an item bought from a vendor for a customer's project"""
    command = RecordVendorPurchaseCommand(
        customer_id=form.customer_id,
        vendor_id=form.vendor_id,
        item_description=form.item_description,
        quantity=form.quantity,
        unit=form.unit,
        rate=form.rate,
    )
    try:
        purchase = await RecordVendorPurchaseUseCase(repositories).execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    return purchase_to_response(purchase)


@projects_router.get("/vendor-purchases")
async def get_vendor_purchases(
    customer_id: Optional[str] = None,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get vendor purchases, optionally for one customer"""
    try:
        if customer_id:
            purchases = (
                await repositories.vendor_purchases.list_where(customer_id=customer_id)
            ).unwrap()
        else:
            purchases = (await repositories.vendor_purchases.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [purchase_to_response(p) for p in purchases]
