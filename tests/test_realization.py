"""Unit tests for realization aggregation and ReportService.

Tests:
- utilization / classification thresholds
- realized amounts only from Approved, On Process and Closed requests
- realization rows, totals, evaluation grouping
- category-by-year summary (request vs plan attribution)
- dashboard metrics and top projects
"""
import pytest

from manuvest.core import realization
from manuvest.core.auth.models import SessionUser
from manuvest.core.masterdata.services import AdminService
from manuvest.core.models import (
    BudgetPlanHeader, BudgetPlanItem, MasterOption, PRItem, Project, PurchaseRequest,
    WorkflowStatus,
)
from manuvest.core.seed import create_store
from manuvest.core.workflow import hooks
from manuvest.procurement.services import WorkflowEngine
from manuvest.reports.services import ReportService

APPROVER = SessionUser({'id': 'u3', 'username': 'approver', 'name': 'Sarah Manager',
                        'role': 'Approver'})


def _plan(plan_id, category, items):
    return BudgetPlanHeader(id=plan_id, business_category_id=category, items=[
        BudgetPlanItem(id=item_id, internal_no=item_id, machine_name=item_id,
                       estimation_cost_total=total, fiscal_year=year)
        for item_id, total, year in items
    ])


def _pr(pr_id, status, category, links):
    return PurchaseRequest(id=pr_id, pr_number=pr_id, status=status,
                           business_category_id=category, items=[
        PRItem(id=f'{pr_id}-{n}', description='x', est_cost_total=amount,
               budget_plan_item_id=item_id)
        for n, (item_id, amount) in enumerate(links)
    ])


# ═══════════════════════════════════════════════
# Thresholds
# ═══════════════════════════════════════════════

class TestClassification:

    @pytest.mark.parametrize('pct, expected', [
        (95, 'Full'),
        (110, 'Over'),
        (50, 'Not Full'),
        (90, 'Full'),
        (100, 'Full'),
        (100.01, 'Over'),
        (89.99, 'Not Full'),
        (0, 'Not Full'),
    ])
    def test_classify(self, pct, expected):
        assert realization.classify(pct) == expected

    def test_is_complete(self):
        assert realization.is_complete('Full')
        assert realization.is_complete('Over')
        assert not realization.is_complete('Not Full')

    def test_utilization_zero_plan(self):
        assert realization.utilization(0, 500) == 0

    def test_utilization_not_clamped(self):
        assert realization.utilization(200, 300) == 150


class TestRealizedAmount:

    def test_only_realized_statuses_count(self):
        prs = [_pr(f'pr-{s.name}', s, 'c1', [('item-1', 10)]) for s in WorkflowStatus]
        # Approved + On Process + Closed
        assert realization.realized_amount('item-1', prs) == 30

    def test_other_items_ignored(self):
        prs = [_pr('a', WorkflowStatus.APPROVED, 'c1', [('item-1', 10), ('item-2', 99)])]
        assert realization.realized_amount('item-1', prs) == 10
        assert realization.realized_amount('item-3', prs) == 0


# ═══════════════════════════════════════════════
# Realization report
# ═══════════════════════════════════════════════

class TestRealizationReport:

    def setup_method(self):
        hooks.clear()
        self.store = create_store()
        self.reports = ReportService(self.store)

    def _rows(self):
        return {r.id: r for r in self.reports.realization_rows()}

    def test_one_row_per_budget_item(self):
        assert list(self._rows()) == ['bpi1', 'bpi2', 'bpi3']

    def test_row_figures(self):
        row = self._rows()['bpi1']
        assert row.io_number == 'IO-1001'
        assert row.cost_center == 'CC-501'
        assert row.project_name == 'Model X Harness Expansion'
        assert row.dept_name == 'Engineering'
        assert row.total_plan_cost == 1_500_000_000
        assert row.realized_amount == 740_000_000
        assert row.balance == 760_000_000
        assert row.percentage_used == pytest.approx(49.333, rel=1e-3)
        assert row.classification == 'Not Full'

    def test_submitted_pr_listed_but_not_realized(self):
        row = self._rows()['bpi3']
        assert row.realized_amount == 0
        assert len(row.linked_prs) == 1
        assert row.linked_prs[0].pr_no == 'PR-2403-005'
        assert row.linked_prs[0].status == WorkflowStatus.SUBMITTED

    def test_approval_changes_realization(self):
        WorkflowEngine(self.store).transition('pr2', 'Approved', APPROVER)
        assert self._rows()['bpi3'].realized_amount == 460_000_000

    def test_deleted_master_data_resolves_to_unknown(self):
        admin = AdminService(self.store)
        admin.manage_master_data('departments', 'delete', {'id': 'dept1'})
        admin.manage_master_data('ios', 'delete', {'id': 'io1'})
        row = self._rows()['bpi1']
        assert row.dept_name == 'Unknown'
        assert row.io_number == 'N/A'

    def test_summary(self):
        summary = self.reports.comparison()['summary']
        assert summary['total_plan'] == 2_925_000_000
        assert summary['total_realization'] == 740_000_000
        assert summary['total_balance'] == 2_185_000_000
        assert summary['total_percentage'] == pytest.approx(740 / 2925 * 100)

    def test_summary_of_nothing(self):
        assert realization.summarize([]) == {
            'total_plan': 0, 'total_realization': 0, 'total_balance': 0, 'total_percentage': 0}

    def test_report_is_recomputed_not_cached(self):
        first = self.reports.comparison()
        assert self.reports.comparison() == first
        WorkflowEngine(self.store).transition('pr2', 'Approved', APPROVER)
        assert self.reports.comparison() != first

    def test_evaluation_report_groups_by_plan(self):
        groups = self.reports.evaluation_report()
        assert [g['plan_id'] for g in groups] == ['bp1', 'bp2']
        assert [i['id'] for i in groups[0]['items']] == ['bpi1', 'bpi2']
        assert groups[0]['io_number'] == 'IO-1001'
        assert groups[0]['items'][0]['needs_obstacle'] is True


# ═══════════════════════════════════════════════
# Category / year summary
# ═══════════════════════════════════════════════

class TestCategoryYearSummary:

    def setup_method(self):
        self.categories = [MasterOption(id='c1', code='WH', name='Wiring'),
                           MasterOption(id='c2', code='PES', name='Power')]
        self.budgets = [
            _plan('p1', 'c1', [('x', 1000, 2024), ('y', 400, 2025)]),
            _plan('p2', 'c2', [('z', 500, 2024)]),
        ]
        self.prs = [
            # Booked under c2 although the linked item belongs to a c1 plan
            _pr('r1', WorkflowStatus.APPROVED, 'c2', [('x', 800)]),
            _pr('r2', WorkflowStatus.SUBMITTED, 'c1', [('x', 999)]),
            _pr('r3', WorkflowStatus.CLOSED, 'c1', [('y', 300)]),
        ]

    def _by_category(self, **kwargs):
        rows = realization.category_year_summary(
            self.budgets, self.prs, self.categories, 2024, **kwargs)
        return {r['category_id']: r for r in rows}

    def test_budget_by_plan_category_and_year(self):
        rows = self._by_category()
        assert rows['c1']['budget'] == 1000
        assert rows['c2']['budget'] == 500
        assert rows['c1']['name'] == 'WH'

    def test_realization_follows_request_category_by_default(self):
        rows = self._by_category()
        assert rows['c1']['realization'] == 0
        assert rows['c2']['realization'] == 800

    def test_realization_follows_plan_category(self):
        rows = self._by_category(attribute_by='plan')
        assert rows['c1']['realization'] == 800
        assert rows['c2']['realization'] == 0

    def test_other_year(self):
        rows = {r['category_id']: r for r in realization.category_year_summary(
            self.budgets, self.prs, self.categories, 2025)}
        assert rows['c1'] == {'category_id': 'c1', 'name': 'WH', 'budget': 400, 'realization': 300}

    def test_unknown_attribution(self):
        with pytest.raises(ValueError):
            realization.category_year_summary(self.budgets, self.prs, self.categories, 2024,
                                              attribute_by='department')


# ═══════════════════════════════════════════════
# Dashboard
# ═══════════════════════════════════════════════

class TestDashboard:

    def test_top_projects(self):
        projects = [Project(id='a', code='A', name='A', budget_allocation=10),
                    Project(id='b', code='B', name='B'),
                    Project(id='c', code='C', name='C', budget_allocation=30)]
        assert [p.id for p in realization.top_projects(projects, n=2)] == ['c', 'a']
        assert [p.id for p in realization.top_projects(projects)] == ['c', 'a', 'b']

    def test_metrics_from_seed(self):
        data = ReportService(create_store()).dashboard(2024)
        assert data['total_budget'] == 2_925_000_000
        assert data['total_realization'] == 740_000_000
        assert data['remaining_balance'] == 2_185_000_000
        assert data['pr_counts']['Approved'] == 1
        assert data['pr_counts']['Submitted'] == 1
        assert data['pr_counts']['Closed'] == 0
        assert data['project_counts'] == {'Draft': 1, 'Active': 2, 'Hold': 0, 'Completed': 0}
        assert [p['id'] for p in data['top_projects']] == ['prj2', 'prj1', 'prj3']

    def test_category_summary_for_2024(self):
        data = ReportService(create_store()).dashboard(2024)
        rows = {r['category_id']: r for r in data['category_summary']}
        assert rows['cat1']['budget'] == 1_500_000_000
        assert rows['cat1']['realization'] == 740_000_000
        assert rows['cat3']['budget'] == 1_125_000_000
        assert rows['cat2']['budget'] == 0

    def test_top_n_configurable(self):
        data = ReportService(create_store(), top_n=1).dashboard(2024)
        assert len(data['top_projects']) == 1
