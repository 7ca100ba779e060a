"""Budget Repository - Data access for budget plans and their items."""
from typing import List, Optional, Tuple

from manuvest.core.base_repository import BaseRepository
from manuvest.core.models import BudgetPlanHeader, BudgetPlanItem, WorkflowStatus


class BudgetRepository(BaseRepository):

    collection = 'budgets'

    def get_all(self, status=None, project_id=None) -> List[BudgetPlanHeader]:
        status = WorkflowStatus(status) if status else None

        def _match(plan):
            if status and WorkflowStatus(plan.status) != status:
                return False
            if project_id and plan.project_id != project_id:
                return False
            return True
        return self.query_all(_match)

    def get_approved(self, io_no: str = None, cost_center: str = None) -> List[BudgetPlanHeader]:
        """Approved plans, optionally narrowed to one IO number and cost center."""
        def _match(plan):
            if WorkflowStatus(plan.status) != WorkflowStatus.APPROVED:
                return False
            if io_no and plan.io_no != io_no:
                return False
            if cost_center and plan.cost_center != cost_center:
                return False
            return True
        return self.query_all(_match)

    def find_item(self, item_id: str) -> Tuple[Optional[BudgetPlanHeader], Optional[BudgetPlanItem]]:
        """(plan, item) for the first plan holding item_id, or (None, None)."""
        plan = self.query_one(lambda p: any(i.id == item_id for i in p.items))
        if plan is None:
            return None, None
        item = next(i for i in plan.items if i.id == item_id)
        return plan, item

    def plan_number_exists(self, plan_number: str) -> bool:
        return self.query_one(lambda p: p.plan_number == plan_number) is not None
