"""
Inventory Routes - materials and the material log
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional, Union

from app.records.application.repository import Repositories
from app.records.application.use_cases import (
    DeleteRecordUseCase,
    ListMaterialLogsUseCase,
    SaveMaterialCommand,
    SaveMaterialUseCase,
)
from app.records.domain.errors import DomainError
from app.records.domain.models import UserSummary
from app.records.presentation.response_mapper import log_to_response, material_to_response
from routes.auth_routes import get_current_user
from routes.dependencies import get_low_stock_threshold, get_repositories, to_http_error

# Create router
inventory_router = APIRouter(prefix="/api", tags=["Inventory"])

FormNumber = Optional[Union[int, float, str]]


# ==================== PYDANTIC MODELS ====================

class MaterialForm(BaseModel):
    name: str
    quantity: FormNumber = None
    unit: str = ""
    price: FormNumber = None
    category: Optional[str] = None


async def _save_material(
    form: MaterialForm,
    material_id: Optional[str],
    current_user: UserSummary,
    repositories: Repositories,
    low_stock_threshold: int,
):
    use_case = SaveMaterialUseCase(repositories)
    command = SaveMaterialCommand(
        name=form.name,
        quantity=form.quantity,
        unit=form.unit,
        price=form.price,
        category=form.category,
        id=material_id,
    )
    try:
        material = await use_case.execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    return material_to_response(material, low_stock_threshold)


# ==================== INVENTORY ROUTES ====================

@inventory_router.get("/inventory")
async def get_inventory(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
    low_stock_threshold: int = Depends(get_low_stock_threshold)
):
    """Get all materials"""
    try:
        materials = (await repositories.materials.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [material_to_response(m, low_stock_threshold) for m in materials]


@inventory_router.post("/inventory")
async def create_material(
    form: MaterialForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
    low_stock_threshold: int = Depends(get_low_stock_threshold)
):
    """Add a material"""
    return await _save_material(form, None, current_user, repositories, low_stock_threshold)


@inventory_router.put("/inventory/{material_id}")
async def update_material(
    material_id: str,
    form: MaterialForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
    low_stock_threshold: int = Depends(get_low_stock_threshold)
):
    """Replace a material's fields"""
    return await _save_material(form, material_id, current_user, repositories, low_stock_threshold)


@inventory_router.delete("/inventory/{material_id}")
async def delete_material(
    material_id: str,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Delete a material"""
    try:
        deleted = await DeleteRecordUseCase(repositories.materials).execute(material_id)
    except DomainError as exc:
        raise to_http_error(exc)
    return {"message": "Material deleted", "deleted": deleted}


@inventory_router.get("/logs")
async def get_material_logs(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Material log - admin only"""
    try:
        logs = await ListMaterialLogsUseCase(repositories).execute(current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    return [log_to_response(log) for log in logs]
