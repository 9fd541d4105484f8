from decimal import Decimal
from typing import Iterable

from app.records.domain.models import MaterialIssueEvent, Project, ProjectFinancials


def compute_project_financials(
    project: Project,
    issue_events: Iterable[MaterialIssueEvent],
) -> ProjectFinancials:
    """Roll up material cost and profit for one project.

    Cost uses the rate frozen on each issue event, so later price changes on
    the material never alter it. Events for other projects are ignored and
    profit is not clamped.
    """
    total_material_cost = sum(
        (event.cost for event in issue_events if event.project_id == project.id),
        Decimal("0"),
    )
    return ProjectFinancials(
        project_value=project.project_value,
        total_material_cost=total_material_cost,
        profit=project.project_value - total_material_cost,
    )
