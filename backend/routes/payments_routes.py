"""
Payments Routes - payments to workers and vendors
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional, Union

from app.records.application.repository import Repositories
from app.records.application.use_cases import RecordPaymentCommand, RecordPaymentUseCase
from app.records.domain.errors import DomainError
from app.records.domain.models import UserSummary
from app.records.presentation.response_mapper import payment_to_response
from routes.auth_routes import get_current_user
from routes.dependencies import get_repositories, to_http_error

# Create router
payments_router = APIRouter(prefix="/api", tags=["Payments"])


class PaymentForm(BaseModel):
    payee_type: Optional[str] = None
    payee_id: Optional[str] = None
    customer_id: Optional[str] = None
    amount: Optional[Union[int, float, str]] = None
    notes: Optional[str] = None


@payments_router.post("/payments")
async def record_payment(
    form: PaymentForm,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Record a payment to a worker or a vendor"""
    command = RecordPaymentCommand(
        payee_type=form.payee_type,
        payee_id=form.payee_id,
        amount=form.amount,
        customer_id=form.customer_id,
        notes=form.notes,
    )
    try:
        payment = await RecordPaymentUseCase(repositories).execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    return payment_to_response(payment)


@payments_router.get("/payments")
async def get_payments(
    payee_type: Optional[str] = None,
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories)
):
    """Get payments, optionally for one payee type"""
    try:
        if payee_type:
            payments = (await repositories.payments.list_where(payee_type=payee_type)).unwrap()
        else:
            payments = (await repositories.payments.list()).unwrap()
    except DomainError as exc:
        raise to_http_error(exc)
    return [payment_to_response(p) for p in payments]
