from dataclasses import dataclass
from typing import List, Optional, Union

from app.records.domain.models import UserSummary, UserRole

DEFAULT_PAGE = "overview"
ADMIN_ONLY_PAGES = frozenset({"logs"})


@dataclass(frozen=True)
class Page:
    id: str
    label: str
    icon: str


@dataclass(frozen=True)
class Denied:
    page_id: str


PAGES = (
    Page("overview", "Overview", "📊"),
    Page("inventory", "Inventory", "📦"),
    Page("customers", "Customers", "👥"),
    Page("projects", "Projects", "🎯"),
    Page("vendors", "Vendors", "🚚"),
    Page("workers", "Workers", "🛠️"),
    Page("materialIssue", "Material Issue", "📤"),
    Page("vendorPurchase", "Vendor Purchase", "📥"),
    Page("payments", "Payments", "💰"),
    Page("logs", "Logs", "📋"),
)
PAGES_BY_ID = {page.id: page for page in PAGES}


def can_view_page(page_id: str, user: UserSummary) -> bool:
    """The one role predicate shared by navigation and page resolution."""
    if page_id in ADMIN_ONLY_PAGES:
        return user.role == UserRole.ADMIN
    return True


def navigation_entries(user: UserSummary) -> List[Page]:
    return [page for page in PAGES if can_view_page(page.id, user)]


def resolve_page(page_id: Optional[str], user: UserSummary) -> Union[Page, Denied]:
    """Map a requested page to a renderable page, or a denial rendered as blank.

    Unknown ids fall back to the overview page.
    """
    page = PAGES_BY_ID.get(page_id or "", PAGES_BY_ID[DEFAULT_PAGE])
    if not can_view_page(page.id, user):
        return Denied(page_id=page.id)
    return page


class PageTracker:
    """Hands out a token per navigation so late fetch results can be dropped.

    The server answers each request independently, so nothing here holds a
    tracker. It is the helper for callers that navigate between pages and
    fetch their data concurrently, such as a dashboard client: call
    `navigate()` when the page changes and route every fetch result
    through `apply_if_current()`.
    """

    def __init__(self) -> None:
        self._token = 0
        self._page_id: Optional[str] = None

    @property
    def current_page(self) -> Optional[str]:
        return self._page_id

    def navigate(self, page_id: str) -> int:
        self._token += 1
        self._page_id = page_id
        return self._token

    def is_current(self, token: int) -> bool:
        return token == self._token

    def apply_if_current(self, token: int, apply, value) -> bool:
        """Call `apply(value)` only while `token` is still the active navigation."""
        if not self.is_current(token):
            return False
        apply(value)
        return True
