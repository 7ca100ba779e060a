"""Realization aggregation: planned versus actual spend.

Pure functions over snapshots of budget plans, purchase requests and
projects. Nothing here reads the store or caches results: every figure is
re-derived from the collections passed in.

The only join between purchase requests and budget plans is
``PRItem.budget_plan_item_id``. Spend counts as realized only while the
owning purchase request is Approved, On Process or Closed.

Example:
    rows = build_realization_rows(budgets, prs, resolver)
    totals = summarize(rows)
    chart = category_year_summary(budgets, prs, categories, 2024)
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, Iterable, List, Optional

from .models import (
    BudgetPlanHeader, MasterOption, Project, ProjectStatus, PurchaseRequest,
    WorkflowStatus, to_jsonable,
)
from .workflow.transitions import REALIZED_STATUSES

logger = logging.getLogger('manuvest.core.realization')

OVER = 'Over'
FULL = 'Full'
NOT_FULL = 'Not Full'

FULL_THRESHOLD = 90.0
OVER_THRESHOLD = 100.0

ATTRIBUTE_BY_REQUEST = 'request'
ATTRIBUTE_BY_PLAN = 'plan'


def is_realized(pr: PurchaseRequest) -> bool:
    return WorkflowStatus(pr.status) in REALIZED_STATUSES


# ============== Per-item figures ==============

def realized_amount(budget_item_id: str, prs: Iterable[PurchaseRequest]) -> float:
    """Sum of linked PR item totals from realized purchase requests."""
    total = 0
    for pr in prs:
        if not is_realized(pr):
            continue
        for item in pr.items:
            if item.budget_plan_item_id == budget_item_id:
                total += item.est_cost_total
    return total


def utilization(plan_total: float, realized: float) -> float:
    """Realized share of plan in percent. 0 for a zero plan; never clamped."""
    if not plan_total:
        return 0.0
    return realized / plan_total * 100


def classify(percentage: float) -> str:
    if percentage > OVER_THRESHOLD:
        return OVER
    if percentage >= FULL_THRESHOLD:
        return FULL
    return NOT_FULL


def is_complete(classification: str) -> bool:
    """Full and Over items need no obstacle explanation."""
    return classification in (FULL, OVER)


# ============== Realization report ==============

@dataclass
class LinkedPR:
    pr_no: str
    date: str
    item_name: str
    amount: float
    status: WorkflowStatus


@dataclass
class RealizationRow:
    id: str
    plan_id: str
    io_number: str
    cost_center: str
    machine_name: str
    project_name: str
    dept_name: str
    fiscal_year: Optional[int]
    total_plan_cost: float
    realized_amount: float
    balance: float
    percentage_used: float
    classification: str
    linked_prs: List[LinkedPR] = field(default_factory=list)

    def to_dict(self):
        return to_jsonable(asdict(self))


Resolver = Callable[[str, str], MasterOption]


def build_realization_rows(budgets: Iterable[BudgetPlanHeader],
                           prs: Iterable[PurchaseRequest],
                           resolve: Resolver) -> List[RealizationRow]:
    """One row per budget item, with every linked PR listed.

    Args:
        budgets: Budget plan snapshots
        prs: Purchase request snapshots
        resolve: ``resolve(category, id)`` returning a MasterOption (or the
                 Unknown sentinel) for display names

    Returns:
        Rows in plan order, then item order
    """
    prs = list(prs)
    linked_by_item: Dict[str, List] = {}
    for pr in prs:
        for pr_item in pr.items:
            if pr_item.budget_plan_item_id:
                linked_by_item.setdefault(pr_item.budget_plan_item_id, []).append((pr, pr_item))

    rows = []
    for plan in budgets:
        io = resolve('ios', plan.io_no)
        cost_center = resolve('costCenters', plan.cost_center)
        project = resolve('projects', plan.project_id)
        dept = resolve('departments', plan.department_id)

        for item in plan.items:
            linked = linked_by_item.get(item.id, [])
            realized = sum(pi.est_cost_total for pr, pi in linked if is_realized(pr))
            percentage = utilization(item.estimation_cost_total, realized)
            rows.append(RealizationRow(
                id=item.id,
                plan_id=plan.id,
                io_number=io.code,
                cost_center=cost_center.code,
                machine_name=item.machine_name,
                project_name=project.name,
                dept_name=dept.name,
                fiscal_year=item.fiscal_year,
                total_plan_cost=item.estimation_cost_total,
                realized_amount=realized,
                balance=item.estimation_cost_total - realized,
                percentage_used=percentage,
                classification=classify(percentage),
                linked_prs=[
                    LinkedPR(pr_no=pr.pr_number, date=pr.pr_date, item_name=pi.description,
                             amount=pi.est_cost_total, status=WorkflowStatus(pr.status))
                    for pr, pi in linked
                ],
            ))
    return rows


def summarize(rows: Iterable[RealizationRow]) -> Dict[str, float]:
    """Grand totals across report rows."""
    rows = list(rows)
    total_plan = sum(r.total_plan_cost for r in rows)
    total_realization = sum(r.realized_amount for r in rows)
    return {
        'total_plan': total_plan,
        'total_realization': total_realization,
        'total_balance': total_plan - total_realization,
        'total_percentage': utilization(total_plan, total_realization),
    }


# ============== Dashboard aggregates ==============

def _fiscal_year_of(budget_item_id, budgets) -> Optional[int]:
    # First match wins; item ids are unique across plans
    for plan in budgets:
        for item in plan.items:
            if item.id == budget_item_id:
                return item.fiscal_year
    return None


def _plan_category_of(budget_item_id, budgets) -> Optional[str]:
    for plan in budgets:
        for item in plan.items:
            if item.id == budget_item_id:
                return plan.business_category_id
    return None


def category_year_summary(budgets: Iterable[BudgetPlanHeader],
                          prs: Iterable[PurchaseRequest],
                          categories: Iterable[MasterOption],
                          year: int,
                          attribute_by: str = ATTRIBUTE_BY_REQUEST) -> List[Dict]:
    """Budget versus realization per business category for one fiscal year.

    Budget is the plan total of items with ``fiscal_year == year``, booked to
    the plan's category. Realization is the total of realized PR items linked
    to a budget item of that year. With ``attribute_by='request'`` it is booked
    to the purchase request's own category, which may differ from the linked
    plan's; with ``attribute_by='plan'`` it follows the linked plan.
    Categories absent from ``categories`` are ignored.
    """
    if attribute_by not in (ATTRIBUTE_BY_REQUEST, ATTRIBUTE_BY_PLAN):
        raise ValueError(f'Unknown attribution: {attribute_by}')

    budgets = list(budgets)
    stats = {c.id: {'category_id': c.id, 'name': c.code, 'budget': 0, 'realization': 0}
             for c in categories}

    for plan in budgets:
        bucket = stats.get(plan.business_category_id)
        if bucket is None:
            continue
        for item in plan.items:
            if item.fiscal_year == year:
                bucket['budget'] += item.estimation_cost_total

    for pr in prs:
        if not is_realized(pr):
            continue
        for pr_item in pr.items:
            if not pr_item.budget_plan_item_id:
                continue
            if _fiscal_year_of(pr_item.budget_plan_item_id, budgets) != year:
                continue
            if attribute_by == ATTRIBUTE_BY_REQUEST:
                category_id = pr.business_category_id
            else:
                category_id = _plan_category_of(pr_item.budget_plan_item_id, budgets)
            bucket = stats.get(category_id)
            if bucket is not None:
                bucket['realization'] += pr_item.est_cost_total

    return list(stats.values())


def top_projects(projects: Iterable[Project], n: int = 5) -> List[Project]:
    """Projects with the largest budget allocation; missing allocation counts as 0."""
    return sorted(projects, key=lambda p: p.budget_allocation or 0, reverse=True)[:n]


def dashboard_metrics(budgets: Iterable[BudgetPlanHeader],
                      prs: Iterable[PurchaseRequest],
                      projects: Iterable[Project]) -> Dict:
    """Headline figures: totals, PR counts by status, project counts by status."""
    budgets, prs, projects = list(budgets), list(prs), list(projects)

    total_budget = sum(plan.total_cost for plan in budgets)
    total_realization = sum(pr.total_cost for pr in prs if is_realized(pr))

    pr_counts = {status.value: 0 for status in WorkflowStatus}
    for pr in prs:
        pr_counts[WorkflowStatus(pr.status).value] += 1

    project_counts = {status.value: 0 for status in ProjectStatus}
    for project in projects:
        project_counts[ProjectStatus(project.status).value] += 1

    return {
        'total_budget': total_budget,
        'total_realization': total_realization,
        'remaining_balance': total_budget - total_realization,
        'pr_counts': pr_counts,
        'project_counts': project_counts,
    }
