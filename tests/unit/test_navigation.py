from app.records.application.navigation import (
    PAGES,
    Denied,
    Page,
    PageTracker,
    can_view_page,
    navigation_entries,
    resolve_page,
)
from app.records.domain.models import UserSummary

ADMIN = UserSummary(id="u-1", name="Asha", role="admin")
EMPLOYEE = UserSummary(id="u-2", name="Ravi", role="employee")


def test_logs_page_is_admin_only():
    assert resolve_page("logs", EMPLOYEE) == Denied(page_id="logs")

    page = resolve_page("logs", ADMIN)
    assert isinstance(page, Page)
    assert page.id == "logs"


def test_unknown_page_falls_back_to_overview():
    assert resolve_page("reports", EMPLOYEE).id == "overview"
    assert resolve_page(None, ADMIN).id == "overview"


def test_every_other_page_resolves_for_employees():
    for page in PAGES:
        if page.id == "logs":
            continue
        assert resolve_page(page.id, EMPLOYEE) == page


def test_navigation_matches_page_resolution():
    for user in (ADMIN, EMPLOYEE):
        visible = {page.id for page in navigation_entries(user)}
        resolvable = {
            page.id for page in PAGES if not isinstance(resolve_page(page.id, user), Denied)
        }
        assert visible == resolvable

    assert "logs" in {page.id for page in navigation_entries(ADMIN)}
    assert "logs" not in {page.id for page in navigation_entries(EMPLOYEE)}
    assert not can_view_page("logs", EMPLOYEE)


def test_page_tracker_drops_stale_results():
    tracker = PageTracker()
    applied = []

    inventory_token = tracker.navigate("inventory")
    tracker.navigate("projects")

    assert tracker.apply_if_current(inventory_token, applied.append, ["stale"]) is False
    assert applied == []
    assert tracker.current_page == "projects"


def test_page_tracker_applies_current_results():
    tracker = PageTracker()
    applied = []

    token = tracker.navigate("customers")

    assert tracker.apply_if_current(token, applied.append, ["fresh"]) is True
    assert applied == [["fresh"]]
