"""WorkflowEngine: the only way a purchase request changes status.

Legal moves come from ``manuvest.core.workflow.transitions``. Every
successful move writes one history entry and fires ``pr.status_changed``.
"""

import logging
from datetime import datetime

from manuvest.core.exceptions import (
    IllegalTransitionError, NotAuthorizedError, NotFoundError, ValidationError,
)
from manuvest.core.models import PRHistoryLog, WorkflowStatus
from manuvest.core.utils.logging_config import log_with_context
from manuvest.core.workflow import hooks
from manuvest.core.workflow.transitions import (
    allowed_transitions, can_delete, find_transition, is_editable,
)
from ..repositories import PurchaseRequestRepository

logger = logging.getLogger('manuvest.procurement.services.workflow_engine')


def status_change_action(target) -> str:
    return f'Changed status to {WorkflowStatus(target).value}'


class WorkflowEngine:

    def __init__(self, store):
        self._pr_repo = PurchaseRequestRepository(store)

    # ════════════════════════════════════════════
    # Public API
    # ════════════════════════════════════════════

    def transition(self, pr_id, target_status, actor, note=None):
        """Move a purchase request to target_status.

        Args:
            pr_id: Purchase request id
            target_status: WorkflowStatus or its value
            actor: Acting user (reads ``name`` and ``role``)
            note: Free text stored with the history entry; required to reject

        Returns:
            The updated PurchaseRequest

        Raises:
            NotFoundError, IllegalTransitionError, NotAuthorizedError,
            ValidationError. Nothing is changed when any of them is raised.
        """
        try:
            target = WorkflowStatus(target_status)
        except ValueError:
            raise ValidationError(f'Unknown status: {target_status}') from None

        def _work(store):
            pr = self._pr_repo.get_by_id(pr_id)
            if pr is None:
                raise NotFoundError('Purchase request', pr_id)

            current = WorkflowStatus(pr.status)
            transition = find_transition(current, target)
            if transition is None:
                raise IllegalTransitionError(current.value, target.value)
            if not transition.permits(actor.role):
                raise NotAuthorizedError(
                    f'Role {_role_value(actor.role)} cannot {transition.action} a purchase request')
            if transition.note_required and not (note or '').strip():
                raise ValidationError(f'A note is required to {transition.action}')

            pr.status = target
            pr.history.append(PRHistoryLog(
                date=datetime.now().isoformat(timespec='seconds'),
                user=actor.name,
                action=status_change_action(target),
                notes=note or '',
            ))
            self._pr_repo.replace(pr)
            return pr, current

        try:
            pr, previous = self._pr_repo.execute_many(_work)
        except (IllegalTransitionError, NotAuthorizedError, ValidationError) as e:
            logger.warning(f'Transition of {pr_id} to {target.value} rejected: {e}')
            raise

        log_with_context(
            logger, logging.INFO, f'PR {pr.pr_number} {previous.value} -> {target.value}',
            pr_id=pr.id, user=actor.name, note=note or '',
        )
        hooks.fire('pr.status_changed', {
            'pr_id': pr.id,
            'pr_number': pr.pr_number,
            'from_status': previous.value,
            'status': target.value,
            'user': actor.name,
            'note': note or '',
        })
        return pr

    def allowed_actions(self, pr, actor):
        """Transitions the actor may trigger on this purchase request."""
        return [
            {'action': t.action, 'target': t.target.value, 'note_required': t.note_required}
            for t in allowed_transitions(pr.status, actor.role)
        ]

    @staticmethod
    def is_editable(pr) -> bool:
        return is_editable(pr.status)

    @staticmethod
    def can_delete(pr) -> bool:
        return can_delete(pr.status)


def _role_value(role):
    return getattr(role, 'value', role)
