"""Budget Service - business logic for budget plans.

Plans are created and replaced as whole records. Users with the plain
``User`` role may read plans but never change them.
"""

import logging
import random
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from manuvest.core.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from manuvest.core.models import BudgetPlanHeader, BudgetPlanItem, UserRole, WorkflowStatus
from manuvest.core.realization import classify, is_complete, realized_amount, utilization
from manuvest.procurement.repositories import PurchaseRequestRepository
from ..repositories import BudgetRepository

logger = logging.getLogger('manuvest.budget.services.budget')

_NUMBER_ATTEMPTS = 20

REQUIRED_HEADER_FIELDS = (
    ('department_id', 'Department'),
    ('project_id', 'Project'),
    ('io_no', 'IO number'),
)


def parse_number(value, field_name, required=True) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f'{field_name} is required')
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be a number') from None


def ensure_budget_editor(actor):
    if actor is None or UserRole(actor.role) == UserRole.USER:
        raise NotAuthorizedError('Your role cannot modify budget plans')


def _as_dict(record) -> Dict[str, Any]:
    return record.to_dict() if hasattr(record, 'to_dict') else dict(record)


class BudgetService:

    def __init__(self, store):
        self.budget_repo = BudgetRepository(store)
        self.pr_repo = PurchaseRequestRepository(store)

    # ============== Queries ==============

    def list(self, status=None, project_id=None) -> List[BudgetPlanHeader]:
        return self.budget_repo.get_all(status=status, project_id=project_id)

    def get(self, plan_id) -> BudgetPlanHeader:
        plan = self.budget_repo.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError('Budget plan', plan_id)
        return plan

    # ============== Numbering & Items ==============

    def new_plan_number(self, year: int = None) -> str:
        """BP-<year>-<4 random digits>, unique among stored plans."""
        year = year or date.today().year
        for _ in range(_NUMBER_ATTEMPTS):
            number = f'BP-{year}-{random.randint(1000, 9999)}'
            if not self.budget_repo.plan_number_exists(number):
                return number
        raise ValidationError('Could not allocate a unique plan number')

    def build_item(self, data: Dict[str, Any], default_year: int = None,
                   item_id: str = None) -> BudgetPlanItem:
        """Validate one budget line and compute its estimated total.

        Any ``id`` in data is ignored: the item gets item_id when given (an
        id already owned by the plan being saved), otherwise a fresh one.
        """
        data = dict(data or {})
        machine_name = (data.get('machine_name') or '').strip()
        if not machine_name:
            raise ValidationError('Machine name is required')
        unit_cost = parse_number(data.get('estimation_cost_unit'), 'Unit cost')
        qty = parse_number(data.get('qty'), 'Quantity', required=False)
        qty = 1 if qty is None else qty
        if qty <= 0:
            raise ValidationError('Quantity must be greater than zero')

        fiscal_year = data.get('fiscal_year') or default_year
        item = BudgetPlanItem.from_dict({
            **data,
            'id': item_id or f'bpi-{uuid.uuid4().hex[:8]}',
            'internal_no': data.get('internal_no') or f'INT-{uuid.uuid4().hex[:6].upper()}',
            'machine_name': machine_name,
            'qty': qty,
            'estimation_cost_unit': unit_cost,
            'estimation_cost_total': qty * unit_cost,
            'fiscal_year': int(fiscal_year) if fiscal_year else None,
        })
        return item

    # ============== Writes ==============

    def _kept_item_ids(self, existing: BudgetPlanHeader, rows) -> List[Optional[str]]:
        """Item id to keep for each submitted row, or None for a fresh one.

        Item ids are unique across all plans: a row keeps its id only when
        the stored plan already owns it. An id owned by another plan is a
        ValidationError.
        """
        own = {item.id for item in existing.items}
        kept, seen = [], set()
        for row in rows:
            item_id = row.get('id') or None
            if item_id and item_id not in own:
                owner, _ = self.budget_repo.find_item(item_id)
                if owner is not None:
                    raise ValidationError(
                        f'Budget item {item_id} belongs to plan {owner.plan_number}')
                item_id = None
            if item_id:
                if item_id in seen:
                    raise ValidationError(f'Budget item {item_id} appears twice')
                seen.add(item_id)
            kept.append(item_id)
        return kept

    def _validate_header(self, data):
        missing = [label for key, label in REQUIRED_HEADER_FIELDS if not data.get(key)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        start, end = data.get('start_year'), data.get('end_year')
        if start and end and int(end) < int(start):
            raise ValidationError('End year cannot be before start year')

    def create(self, data: Dict[str, Any], actor) -> BudgetPlanHeader:
        """Create a budget plan (Draft unless a status is given)."""
        ensure_budget_editor(actor)
        data = dict(data or {})
        self._validate_header(data)
        start_year = int(data.get('start_year') or date.today().year)
        items = [self.build_item(_as_dict(row), default_year=start_year)
                 for row in data.get('items') or []]

        plan = BudgetPlanHeader.from_dict({
            **{k: v for k, v in data.items() if k != 'items'},
            'id': f'bp-{uuid.uuid4().hex[:8]}',
            'plan_number': self.new_plan_number(start_year),
            'start_year': start_year,
            'status': data.get('status') or WorkflowStatus.DRAFT,
            'created_at': date.today().isoformat(),
        })
        plan.items = items
        self.budget_repo.insert(plan)
        logger.info(f'Created budget plan {plan.plan_number} ({len(items)} items) by {actor.name}')
        return plan

    def update(self, plan, actor) -> BudgetPlanHeader:
        """Replace a budget plan.

        ``plan_number`` and ``created_at`` come from the stored plan. Item ids
        the plan already owns are kept; other rows get fresh ids.
        """
        ensure_budget_editor(actor)
        data = _as_dict(plan)
        self._validate_header(data)
        start_year = int(data.get('start_year') or date.today().year)
        rows = [_as_dict(row) for row in data.get('items') or []]

        def _work(store):
            existing = self.budget_repo.get_by_id(data.get('id'))
            if existing is None:
                raise NotFoundError('Budget plan', data.get('id'))
            item_ids = self._kept_item_ids(existing, rows)
            items = [self.build_item(row, default_year=start_year, item_id=item_id)
                     for row, item_id in zip(rows, item_ids)]
            updated = BudgetPlanHeader.from_dict({
                **data,
                'start_year': start_year,
                'plan_number': existing.plan_number,
                'created_at': existing.created_at,
            })
            updated.items = items
            self.budget_repo.replace(updated)
            return updated

        updated = self.budget_repo.execute_many(_work)
        logger.info(f'Updated budget plan {updated.plan_number} by {actor.name}')
        return updated

    def delete(self, plan_id, actor) -> None:
        ensure_budget_editor(actor)
        if not self.budget_repo.delete(plan_id):
            raise NotFoundError('Budget plan', plan_id)
        logger.info(f'Deleted budget plan {plan_id} by {actor.name}')

    def update_status(self, plan_id, status, actor) -> BudgetPlanHeader:
        """Set any status on a plan; budget plans have no transition rules."""
        ensure_budget_editor(actor)
        try:
            status = WorkflowStatus(status)
        except ValueError:
            raise ValidationError(f'Unknown status: {status}') from None

        def _work(store):
            plan = self.budget_repo.get_by_id(plan_id)
            if plan is None:
                raise NotFoundError('Budget plan', plan_id)
            plan.status = status
            self.budget_repo.replace(plan)
            return plan

        plan = self.budget_repo.execute_many(_work)
        logger.info(f'Budget plan {plan.plan_number} set to {status.value} by {actor.name}')
        return plan

    # ============== Evaluation ==============

    def save_evaluation(self, plan_id, evaluations: Dict[str, Dict[str, Any]], actor) -> BudgetPlanHeader:
        """Store evaluation notes for the items of one plan.

        Args:
            plan_id: Budget plan id
            evaluations: ``{item_id: {'obstacle': str, 'reason': str}}``
            actor: Acting user

        The obstacle is only recorded for items classified Not Full; for
        Full and Over items the stored obstacle is left unchanged. Item ids
        not in the plan are ignored.
        """
        ensure_budget_editor(actor)
        prs = self.pr_repo.get_all()

        def _work(store):
            plan = self.budget_repo.get_by_id(plan_id)
            if plan is None:
                raise NotFoundError('Budget plan', plan_id)
            for item in plan.items:
                entry = evaluations.get(item.id)
                if not entry:
                    continue
                if 'reason' in entry:
                    item.evaluation_difference_reason = entry['reason']
                if 'obstacle' in entry:
                    pct = utilization(item.estimation_cost_total, realized_amount(item.id, prs))
                    if not is_complete(classify(pct)):
                        item.evaluation_obstacle = entry['obstacle']
            self.budget_repo.replace(plan)
            return plan

        plan = self.budget_repo.execute_many(_work)
        logger.info(f'Saved evaluation for {plan.plan_number} ({len(evaluations)} items)')
        return plan
