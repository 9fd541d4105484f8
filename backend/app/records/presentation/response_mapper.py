from datetime import datetime
from typing import Any, Dict, Optional, Union

from app.records.application.navigation import Denied, Page
from app.records.domain.models import (
    Customer,
    Material,
    MaterialIssueEvent,
    MaterialLog,
    Overview,
    Payment,
    Profile,
    Project,
    ProjectFinancials,
    UserSummary,
    Vendor,
    VendorPurchase,
    Worker,
)
from app.records.presentation.formatting import format_inr


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_to_response(user: Union[UserSummary, Profile]) -> Dict[str, Any]:
    response = {"id": user.id, "name": user.name, "role": user.role}
    if isinstance(user, Profile):
        response["email"] = user.email
    return response


def page_to_response(page: Page) -> Dict[str, Any]:
    return {"id": page.id, "label": page.label, "icon": page.icon}


def resolution_to_response(resolution: Union[Page, Denied]) -> Dict[str, Any]:
    if isinstance(resolution, Denied):
        return {"page": None, "denied": True}
    return {"page": page_to_response(resolution), "denied": False}


def material_to_response(material: Material, low_stock_threshold: int) -> Dict[str, Any]:
    return {
        "id": material.id,
        "name": material.name,
        "quantity": material.quantity,
        "unit": material.unit,
        "price": float(material.price),
        "category": material.category,
        "low_stock": material.is_low_stock(low_stock_threshold),
        "created_at": _iso(material.created_at),
    }


def customer_to_response(customer: Customer) -> Dict[str, Any]:
    return {
        "id": customer.id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "address": customer.address,
        "created_at": _iso(customer.created_at),
    }


def project_to_response(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "customer_id": project.customer_id,
        "project_value": float(project.project_value),
        "status": project.status,
        "created_at": _iso(project.created_at),
    }


def vendor_to_response(vendor: Vendor) -> Dict[str, Any]:
    return {
        "id": vendor.id,
        "name": vendor.name,
        "phone": vendor.phone,
        "address": vendor.address,
        "created_at": _iso(vendor.created_at),
    }


def worker_to_response(worker: Worker) -> Dict[str, Any]:
    return {
        "id": worker.id,
        "name": worker.name,
        "phone": worker.phone,
        "trade": worker.trade,
        "created_at": _iso(worker.created_at),
    }


def issue_to_response(event: MaterialIssueEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "project_id": event.project_id,
        "material_id": event.material_id,
        "quantity": event.quantity,
        "rate_at_issue": float(event.rate_at_issue),
        "cost": float(event.cost),
        "issued_by": event.issued_by,
        "created_at": _iso(event.created_at),
    }


def purchase_to_response(purchase: VendorPurchase) -> Dict[str, Any]:
    return {
        "id": purchase.id,
        "customer_id": purchase.customer_id,
        "vendor_id": purchase.vendor_id,
        "item_description": purchase.item_description,
        "quantity": purchase.quantity,
        "unit": purchase.unit,
        "rate": float(purchase.rate),
        "total_amount": float(purchase.total_amount),
        "purchased_by": purchase.purchased_by,
        "created_at": _iso(purchase.created_at),
    }


def payment_to_response(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "payee_type": payment.payee_type,
        "payee_id": payment.payee_id,
        "customer_id": payment.customer_id,
        "amount": float(payment.amount),
        "notes": payment.notes,
        "paid_by": payment.paid_by,
        "created_at": _iso(payment.created_at),
    }


def log_to_response(log: MaterialLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "project_id": log.project_id,
        "material_id": log.material_id,
        "material_name": log.material_name,
        "quantity": log.quantity_change,
        "reason": log.reason,
        "used_by": log.used_by,
        "timestamp": _iso(log.timestamp),
    }


def financials_to_response(financials: ProjectFinancials) -> Dict[str, Any]:
    return {
        "project_value": float(financials.project_value),
        "total_material_cost": float(financials.total_material_cost),
        "profit": float(financials.profit),
        "display": {
            "project_value": format_inr(financials.project_value),
            "total_material_cost": format_inr(financials.total_material_cost),
            "profit": format_inr(financials.profit),
        },
    }


def overview_to_response(overview: Overview, low_stock_threshold: int) -> Dict[str, Any]:
    return {
        "material_count": overview.material_count,
        "customer_count": overview.customer_count,
        "project_count": overview.project_count,
        "active_project_count": overview.active_project_count,
        "low_stock_threshold": low_stock_threshold,
        "low_stock_materials": [
            material_to_response(material, low_stock_threshold)
            for material in overview.low_stock_materials
        ],
    }
