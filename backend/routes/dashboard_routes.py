"""
Dashboard Routes - navigation, page resolution, overview and currency
"""
from fastapi import APIRouter, Depends
from decimal import Decimal

from app.records.application.navigation import navigation_entries, resolve_page
from app.records.application.repository import Repositories
from app.records.application.use_cases import GetOverviewUseCase
from app.records.domain.errors import DomainError
from app.records.domain.models import UserSummary
from app.records.infrastructure.exchange_rates import UsdInrRateProvider
from app.records.presentation.formatting import format_inr
from app.records.presentation.response_mapper import (
    overview_to_response,
    page_to_response,
    resolution_to_response,
)
from routes.auth_routes import get_current_user
from routes.dependencies import (
    get_low_stock_threshold,
    get_rate_provider,
    get_repositories,
    to_http_error,
)

# Create router
dashboard_router = APIRouter(prefix="/api", tags=["Dashboard"])


@dashboard_router.get("/navigation")
async def get_navigation(current_user: UserSummary = Depends(get_current_user)):
    """Navigation entries visible to the current user's role"""
    return [page_to_response(page) for page in navigation_entries(current_user)]


@dashboard_router.get("/pages/{page_id}")
async def get_page(page_id: str, current_user: UserSummary = Depends(get_current_user)):
    """Resolve a page request; a denial renders as a blank page, not an error"""
    return resolution_to_response(resolve_page(page_id, current_user))


@dashboard_router.get("/overview")
async def get_overview(
    current_user: UserSummary = Depends(get_current_user),
    repositories: Repositories = Depends(get_repositories),
    low_stock_threshold: int = Depends(get_low_stock_threshold)
):
    """Counts and low-stock alerts for the overview page"""
    use_case = GetOverviewUseCase(repositories, low_stock_threshold=low_stock_threshold)
    try:
        overview = await use_case.execute()
    except DomainError as exc:
        raise to_http_error(exc)
    return overview_to_response(overview, low_stock_threshold)


@dashboard_router.get("/currency/usd-inr")
async def convert_usd_to_inr(
    amount: Decimal = Decimal("1"),
    current_user: UserSummary = Depends(get_current_user),
    provider: UsdInrRateProvider = Depends(get_rate_provider)
):
    """Convert a USD amount to INR at the cached daily rate"""
    quote = await provider.get_quote()
    inr = amount * quote.rate
    return {
        "usd": float(amount),
        "inr": float(inr),
        "formatted": format_inr(inr),
        "rate": float(quote.rate),
        "fetched_at": quote.fetched_at.isoformat(),
        "error": quote.error,
    }
