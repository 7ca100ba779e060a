"""Transfer Service - move a budget item from one plan to another.

A transfer removes the item from the source plan and appends a copy with a
fresh id to the target plan. The copy keeps every field and its previous
transfer log, plus one new TransferLog entry. Both plans change in a single
store transaction.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime

from manuvest.core.exceptions import NotFoundError, ValidationError
from manuvest.core.masterdata.repositories import MasterDataRepository
from manuvest.core.models import BudgetPlanItem, TransferLog
from manuvest.core.utils.logging_config import log_with_context
from manuvest.core.workflow import hooks
from ..repositories import BudgetRepository
from .budget_service import ensure_budget_editor

logger = logging.getLogger('manuvest.budget.services.transfer')

UNKNOWN_IO = 'Unknown'


class TransferService:

    def __init__(self, store):
        self.budget_repo = BudgetRepository(store)
        self.master_repo = MasterDataRepository(store)

    def _io_code(self, io_id):
        option = self.master_repo.get('ios', io_id)
        return option.code if option else UNKNOWN_IO

    def transfer(self, source_plan_id, item_id, target_plan_id, reason, actor) -> BudgetPlanItem:
        """Move item_id from source_plan_id to target_plan_id.

        Returns:
            The item as stored in the target plan

        Raises:
            ValidationError: blank reason, missing target or target == source
            NotFoundError: unknown plan or item not in the source plan
            NotAuthorizedError: actor has the User role
        """
        ensure_budget_editor(actor)
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError('A reason is required to transfer a budget item')
        if not target_plan_id:
            raise ValidationError('A target budget plan is required')
        if target_plan_id == source_plan_id:
            raise ValidationError('Target plan must differ from the source plan')

        def _work(store):
            source = self.budget_repo.get_by_id(source_plan_id)
            if source is None:
                raise NotFoundError('Budget plan', source_plan_id)
            target = self.budget_repo.get_by_id(target_plan_id)
            if target is None:
                raise NotFoundError('Budget plan', target_plan_id)
            item = next((i for i in source.items if i.id == item_id), None)
            if item is None:
                raise NotFoundError('Budget item', item_id)

            log = TransferLog(
                date=datetime.now().isoformat(timespec='seconds'),
                from_plan_id=source.id,
                from_io_no=self._io_code(source.io_no),
                to_plan_id=target.id,
                to_io_no=self._io_code(target.io_no),
                reason=reason,
                user=actor.name,
            )
            moved = replace(item, id=f'bpi-{uuid.uuid4().hex[:8]}',
                            transfers=list(item.transfers) + [log])

            source.items = [i for i in source.items if i.id != item_id]
            target.items.append(moved)
            self.budget_repo.replace(source)
            self.budget_repo.replace(target)
            return moved, source, target

        moved, source, target = self.budget_repo.execute_many(_work)
        log_with_context(
            logger, logging.INFO,
            f'Transferred {moved.machine_name} from {source.plan_number} to {target.plan_number}',
            item_id=item_id, new_item_id=moved.id, user=actor.name, reason=reason,
        )
        hooks.fire('budget.item_transferred', {
            'item_id': item_id,
            'new_item_id': moved.id,
            'from_plan_id': source.id,
            'to_plan_id': target.id,
            'reason': reason,
            'user': actor.name,
        })
        return moved
