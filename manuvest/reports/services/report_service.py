"""Report Service - comparison, evaluation and dashboard figures.

Takes one snapshot of the store per call and feeds it to the pure functions
in ``manuvest.core.realization``. Nothing is cached between calls.
"""

import logging
from datetime import date
from typing import Any, Dict, List

from manuvest.budget.repositories import BudgetRepository
from manuvest.core import realization
from manuvest.core.masterdata.repositories import MasterDataRepository
from manuvest.procurement.repositories import PurchaseRequestRepository
from manuvest.projects.repositories import ProjectRepository

logger = logging.getLogger('manuvest.reports.services.report')


class ReportService:

    def __init__(self, store, attribute_by: str = realization.ATTRIBUTE_BY_REQUEST,
                 top_n: int = 5):
        self.budget_repo = BudgetRepository(store)
        self.pr_repo = PurchaseRequestRepository(store)
        self.project_repo = ProjectRepository(store)
        self.master_repo = MasterDataRepository(store)
        self.attribute_by = attribute_by
        self.top_n = top_n

    def _snapshot(self):
        return self.budget_repo.get_all(), self.pr_repo.get_all()

    def realization_rows(self) -> List[realization.RealizationRow]:
        budgets, prs = self._snapshot()
        return realization.build_realization_rows(budgets, prs, self.master_repo.resolver())

    def comparison(self) -> Dict[str, Any]:
        """Budget versus realization per item with grand totals."""
        rows = self.realization_rows()
        return {
            'rows': [r.to_dict() for r in rows],
            'summary': realization.summarize(rows),
        }

    def evaluation_report(self) -> List[Dict[str, Any]]:
        """Realization rows grouped by plan, with each item's evaluation notes."""
        budgets, prs = self._snapshot()
        resolve = self.master_repo.resolver()
        rows = {r.id: r for r in realization.build_realization_rows(budgets, prs, resolve)}

        groups = []
        for plan in budgets:
            items = []
            for item in plan.items:
                row = rows[item.id].to_dict()
                row.update({
                    'evaluation_obstacle': item.evaluation_obstacle,
                    'evaluation_difference_reason': item.evaluation_difference_reason,
                    'needs_obstacle': not realization.is_complete(row['classification']),
                })
                items.append(row)
            groups.append({
                'plan_id': plan.id,
                'plan_number': plan.plan_number,
                'project_name': resolve('projects', plan.project_id).name,
                'dept_name': resolve('departments', plan.department_id).name,
                'io_number': resolve('ios', plan.io_no).code,
                'items': items,
            })
        return groups

    def dashboard(self, year: int = None) -> Dict[str, Any]:
        """Headline metrics, per-category chart for one fiscal year and top projects."""
        year = year or date.today().year
        budgets, prs = self._snapshot()
        projects = self.project_repo.get_all()

        data = realization.dashboard_metrics(budgets, prs, projects)
        data['year'] = year
        data['category_summary'] = realization.category_year_summary(
            budgets, prs, self.master_repo.list('categories'), year,
            attribute_by=self.attribute_by)
        data['top_projects'] = [
            p.to_dict() for p in realization.top_projects(projects, n=self.top_n)]
        logger.debug(f'Dashboard built for {year}: {len(budgets)} plans, {len(prs)} PRs')
        return data
