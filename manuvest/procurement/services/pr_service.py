"""Purchase Request Service - business logic for purchase requests.

Routes call this service; status changes go through WorkflowEngine.
Every write validates first and raises a DomainError before touching the
store.
"""

import logging
import random
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from manuvest.budget.repositories import BudgetRepository
from manuvest.core.exceptions import (
    DeletionBlockedError, NotFoundError, RecordLockedError, ValidationError,
)
from manuvest.core.masterdata.repositories import MasterDataRepository
from manuvest.core.models import (
    BudgetPlanHeader, BudgetPlanItem, PRHistoryLog, PRItem, PurchaseRequest, WorkflowStatus,
)
from manuvest.core.workflow import hooks
from manuvest.core.workflow.transitions import can_delete, is_editable
from ..repositories import PurchaseRequestRepository

logger = logging.getLogger('manuvest.procurement.services.pr')

_NUMBER_ATTEMPTS = 20


def parse_amount(value, field_name, required=True) -> Optional[float]:
    """Coerce a form value to float; blank is None unless required."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f'{field_name} is required')
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be a number') from None


def _as_dict(record) -> Dict[str, Any]:
    return record.to_dict() if hasattr(record, 'to_dict') else dict(record)


class PurchaseRequestService:
    """Orchestrates purchase request business logic."""

    def __init__(self, store):
        self.pr_repo = PurchaseRequestRepository(store)
        self.budget_repo = BudgetRepository(store)
        self.master_repo = MasterDataRepository(store)

    # ============== Queries ==============

    def list(self, status=None) -> List[PurchaseRequest]:
        return self.pr_repo.get_all(status=status)

    def get(self, pr_id) -> PurchaseRequest:
        pr = self.pr_repo.get_by_id(pr_id)
        if pr is None:
            raise NotFoundError('Purchase request', pr_id)
        return pr

    def available_budgets(self, io_no=None, cost_center=None) -> List[BudgetPlanHeader]:
        """Approved budget plans a PR item may be linked to."""
        return self.budget_repo.get_approved(io_no=io_no, cost_center=cost_center)

    @staticmethod
    def total_cost(pr) -> float:
        return sum(item.est_cost_total for item in pr.items)

    # ============== Numbering & Items ==============

    def new_pr_number(self, today: date = None) -> str:
        """PR-<YYYY><MM>-<4 random digits>, unique among stored requests."""
        today = today or date.today()
        for _ in range(_NUMBER_ATTEMPTS):
            number = f'PR-{today:%Y%m}-{random.randint(1000, 9999)}'
            if not self.pr_repo.number_exists(number):
                return number
        raise ValidationError('Could not allocate a unique PR number')

    def _approved_budget_item(self, budget_item_id, io_no=None,
                              cost_center=None) -> BudgetPlanItem:
        """Budget item a PR line may link to.

        Only items of approved plans qualify, narrowed to the request's IO
        number and cost center when those are set.
        """
        for plan in self.budget_repo.get_approved(io_no=io_no, cost_center=cost_center):
            for item in plan.items:
                if item.id == budget_item_id:
                    return item
        _, item = self.budget_repo.find_item(budget_item_id)
        if item is None:
            raise NotFoundError('Budget item', budget_item_id)
        raise ValidationError('Budget item is not in an approved plan')

    def build_item(self, data: Dict[str, Any], io_no=None, cost_center=None) -> PRItem:
        """Validate one line item and compute its total.

        ``item_id`` may name a master item code and ``budget_plan_item_id`` a
        budget item; blank fields are filled from whichever is given. io_no
        and cost_center are the request header's, used to check the budget
        link.
        """
        data = dict(data or {})

        if data.get('item_id'):
            master = self.master_repo.get_by_code('items', data['item_id'])
            if master is not None:
                data['description'] = data.get('description') or master.name
                data['uom'] = data.get('uom') or master.uom

        if data.get('budget_plan_item_id'):
            linked = self._approved_budget_item(
                data['budget_plan_item_id'], io_no=io_no, cost_center=cost_center)
            data['description'] = data.get('description') or linked.machine_name
            if parse_amount(data.get('est_cost_unit'), 'Unit cost', required=False) is None:
                data['est_cost_unit'] = linked.estimation_cost_unit
            data['uom'] = data.get('uom') or linked.uom
            data['currency'] = data.get('currency') or linked.currency

        description = (data.get('description') or '').strip()
        if not description:
            raise ValidationError('Item description is required')
        unit_cost = parse_amount(data.get('est_cost_unit'), 'Unit cost')
        qty = parse_amount(data.get('qty'), 'Quantity', required=False)
        qty = 1 if qty is None else qty
        if qty <= 0:
            raise ValidationError('Quantity must be greater than zero')

        return PRItem(
            id=data.get('id') or f'pri-{uuid.uuid4().hex[:8]}',
            description=description,
            qty=qty,
            uom=data.get('uom') or 'Unit',
            est_cost_unit=unit_cost,
            est_cost_total=qty * unit_cost,
            currency=data.get('currency') or 'IDR',
            item_id=data.get('item_id') or None,
            budget_plan_item_id=data.get('budget_plan_item_id') or None,
            supplier_id=data.get('supplier_id') or None,
            remarks=data.get('remarks') or None,
        )

    def update_item(self, pr: PurchaseRequest, item_id: str, data: Dict[str, Any]) -> PurchaseRequest:
        """Apply an inline edit to one item of pr (not saved) and recompute its total."""
        for index, item in enumerate(pr.items):
            if item.id == item_id:
                merged = item.to_dict()
                merged.update(data)
                merged['id'] = item_id
                pr.items[index] = self.build_item(
                    merged, io_no=pr.io_no, cost_center=pr.cost_center)
                return pr
        raise NotFoundError('PR item', item_id)

    # ============== Writes ==============

    def _validate_header(self, data):
        missing = [label for key, label in (('department_id', 'Department'), ('io_no', 'IO number'))
                   if not data.get(key)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    def _build_items(self, header) -> List[PRItem]:
        items = [self.build_item(_as_dict(row), io_no=header.get('io_no'),
                                 cost_center=header.get('cost_center'))
                 for row in header.get('items') or []]
        if not items:
            raise ValidationError('At least one item is required')
        return items

    def create(self, data: Dict[str, Any], actor) -> PurchaseRequest:
        """Create a Draft purchase request with a fresh PR number."""
        data = dict(data or {})
        self._validate_header(data)
        items = self._build_items(data)

        pr = PurchaseRequest.from_dict({
            **{k: v for k, v in data.items() if k not in ('items', 'history', 'status')},
            'id': f'pr-{uuid.uuid4().hex[:8]}',
            'pr_number': self.new_pr_number(),
            'pr_date': data.get('pr_date') or date.today().isoformat(),
            'pic': data.get('pic') or actor.name,
            'status': WorkflowStatus.DRAFT,
        })
        pr.items = items
        pr.history = [PRHistoryLog(
            date=datetime.now().isoformat(timespec='seconds'),
            user=actor.name,
            action='Created',
            notes='Initial Draft',
        )]
        self.pr_repo.insert(pr)
        logger.info(f'Created PR {pr.pr_number} ({len(items)} items) by {actor.name}')
        return pr

    def update(self, pr, actor) -> PurchaseRequest:
        """Replace a purchase request's fields and items.

        Only Draft and Rejected requests can be edited. Status and history
        are kept from the stored record.
        """
        data = _as_dict(pr)
        self._validate_header(data)
        items = self._build_items(data)

        def _work(store):
            existing = self.pr_repo.get_by_id(data.get('id'))
            if existing is None:
                raise NotFoundError('Purchase request', data.get('id'))
            if not is_editable(existing.status):
                raise RecordLockedError(existing.pr_number, WorkflowStatus(existing.status).value)

            updated = PurchaseRequest.from_dict({
                **data,
                'pr_number': existing.pr_number,
                'status': existing.status,
                'history': existing.history,
            })
            updated.items = items
            self.pr_repo.replace(updated)
            return updated

        updated = self.pr_repo.execute_many(_work)
        logger.info(f'Updated PR {updated.pr_number} by {actor.name}')
        return updated

    def delete(self, pr_id, actor=None) -> None:
        """Delete a purchase request that has not been approved yet."""
        def _work(store):
            pr = self.pr_repo.get_by_id(pr_id)
            if pr is None:
                raise NotFoundError('Purchase request', pr_id)
            if not can_delete(pr.status):
                raise DeletionBlockedError(
                    f'Cannot delete {pr.pr_number}: it is already '
                    f'{WorkflowStatus(pr.status).value}')
            self.pr_repo.delete(pr_id)
            return pr

        pr = self.pr_repo.execute_many(_work)
        logger.info(f'Deleted PR {pr.pr_number}')
        hooks.fire('pr.deleted', {
            'pr_id': pr.id,
            'pr_number': pr.pr_number,
            'user': getattr(actor, 'name', None),
        })
