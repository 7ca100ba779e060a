"""Unit tests for the purchase request workflow.

Tests:
- hooks: on (plain and decorator), fire, off, clear, handler errors
- transitions: table lookups, role checks, editable/deletable statuses
- WorkflowEngine: submit, approve, reject (note required), process, close,
  resubmit, illegal moves, authorization, history, events
"""
import pytest
from unittest.mock import MagicMock, patch

from manuvest.core.auth.models import SessionUser
from manuvest.core.exceptions import (
    IllegalTransitionError, NotAuthorizedError, NotFoundError, ValidationError,
)
from manuvest.core.models import UserRole, WorkflowStatus
from manuvest.core.seed import create_store
from manuvest.core.workflow import hooks
from manuvest.core.workflow.transitions import (
    TRANSITIONS, allowed_transitions, can_delete, find_transition, is_editable,
)
from manuvest.procurement.services import PurchaseRequestService, WorkflowEngine


def _actor(role, name=None):
    role = UserRole(role)
    return SessionUser({'id': f'{role.value.lower()}-1', 'username': role.value.lower(),
                        'name': name or f'{role.value} Person', 'role': role})


ADMIN = _actor('Admin', 'Admin Administrator')
APPROVER = _actor('Approver', 'Sarah Manager')
USER = _actor('User', 'John Engineer')
FINANCE = _actor('Finance', 'Fiona Finance')


def _new_draft(store):
    return PurchaseRequestService(store).create({
        'department_id': 'dept1',
        'io_no': 'io1',
        'business_category_id': 'cat1',
        'items': [{'description': 'Torque wrench', 'qty': 2, 'est_cost_unit': 1_500_000}],
    }, USER)


# ═══════════════════════════════════════════════
# Hooks Tests
# ═══════════════════════════════════════════════

class TestHooks:

    def setup_method(self):
        hooks.clear()

    def test_handler_receives_payload(self):
        handler = MagicMock()
        hooks.on('pr.deleted', handler)
        assert hooks.fire('pr.deleted', {'pr_id': 'pr2'}) == 1
        handler.assert_called_once_with({'pr_id': 'pr2'})

    def test_decorator_registration(self):
        called = []

        @hooks.on('project.deleted')
        def remember(payload):
            called.append(payload['project_id'])

        hooks.fire('project.deleted', {'project_id': 'prj3'})
        assert called == ['prj3']
        assert hooks.handlers('project.deleted') == [remember]

    def test_handlers_run_in_order(self):
        called = []
        hooks.on('pr.deleted', lambda p: called.append('a'))
        hooks.on('pr.deleted', lambda p: called.append('b'))
        hooks.fire('pr.deleted', {})
        assert called == ['a', 'b']

    def test_handler_cannot_change_payload_for_others(self):
        seen = []

        def mutate(payload):
            payload['status'] = 'Closed'

        hooks.on('pr.status_changed', mutate)
        hooks.on('pr.status_changed', lambda p: seen.append(p['status']))
        payload = {'status': 'Approved'}
        hooks.fire('pr.status_changed', payload)
        assert seen == ['Approved']
        assert payload == {'status': 'Approved'}

    def test_fire_without_handlers(self):
        assert hooks.fire('budget.item_transferred', {'item_id': 'bpi1'}) == 0

    def test_failing_handler_is_logged_and_skipped(self):
        def bad_handler(p):
            raise RuntimeError('boom')
        called = []
        hooks.on('pr.deleted', bad_handler)
        hooks.on('pr.deleted', lambda p: called.append('ok'))
        with patch.object(hooks, 'logger') as mock_logger:
            assert hooks.fire('pr.deleted', {}) == 1
        assert called == ['ok']
        mock_logger.error.assert_called_once()

    def test_off(self):
        handler = MagicMock()
        hooks.on('pr.deleted', handler)
        assert hooks.off('pr.deleted', handler) is True
        assert hooks.off('pr.deleted', handler) is False
        hooks.fire('pr.deleted', {})
        handler.assert_not_called()

    def test_clear_one_event(self):
        hooks.on('pr.deleted', lambda p: None)
        hooks.on('project.deleted', lambda p: None)
        hooks.clear('pr.deleted')
        assert hooks.handlers('pr.deleted') == []
        assert len(hooks.handlers('project.deleted')) == 1

    def test_clear_all(self):
        hooks.on('pr.deleted', lambda p: None)
        hooks.clear()
        assert hooks.handlers('pr.deleted') == []


# ═══════════════════════════════════════════════
# Transition table
# ═══════════════════════════════════════════════

class TestTransitions:

    def test_table_has_six_moves(self):
        assert [t.action for t in TRANSITIONS] == [
            'submit', 'approve', 'reject', 'process', 'close', 'resubmit']

    def test_find_transition_accepts_plain_strings(self):
        t = find_transition('Submitted', 'Rejected')
        assert t.action == 'reject'
        assert t.note_required is True

    def test_illegal_pairs_have_no_transition(self):
        assert find_transition('Draft', 'Approved') is None
        assert find_transition('Closed', 'Draft') is None
        assert find_transition('Approved', 'Rejected') is None

    def test_user_cannot_decide(self):
        assert allowed_transitions('Submitted', 'User') == []

    def test_approver_can_approve_or_reject(self):
        actions = [t.action for t in allowed_transitions('Submitted', 'Approver')]
        assert actions == ['approve', 'reject']

    def test_anyone_can_submit(self):
        for role in UserRole:
            assert [t.action for t in allowed_transitions('Draft', role)] == ['submit']

    def test_editable_statuses(self):
        assert is_editable('Draft') and is_editable('Rejected')
        for status in ('Submitted', 'Approved', 'On Process', 'Closed'):
            assert not is_editable(status)

    def test_delete_blocked_once_finalized(self):
        for status in WorkflowStatus:
            expected = status not in (WorkflowStatus.APPROVED, WorkflowStatus.ON_PROCESS,
                                      WorkflowStatus.CLOSED)
            assert can_delete(status) is expected


# ═══════════════════════════════════════════════
# WorkflowEngine Tests
# ═══════════════════════════════════════════════

class TestWorkflowEngine:

    def setup_method(self):
        hooks.clear()
        self.store = create_store()
        self.engine = WorkflowEngine(self.store)
        self.service = PurchaseRequestService(self.store)

    def test_submit_draft(self):
        pr = _new_draft(self.store)
        updated = self.engine.transition(pr.id, 'Submitted', USER)
        assert updated.status == WorkflowStatus.SUBMITTED
        assert self.service.get(pr.id).status == WorkflowStatus.SUBMITTED

    def test_full_path_to_closed(self):
        pr = _new_draft(self.store)
        self.engine.transition(pr.id, WorkflowStatus.SUBMITTED, USER)
        self.engine.transition(pr.id, WorkflowStatus.APPROVED, APPROVER)
        self.engine.transition(pr.id, WorkflowStatus.ON_PROCESS, ADMIN)
        closed = self.engine.transition(pr.id, WorkflowStatus.CLOSED, APPROVER)
        assert closed.status == WorkflowStatus.CLOSED
        # Created + four status changes
        assert len(closed.history) == 5

    def test_approve_appends_one_history_entry(self):
        before = len(self.service.get('pr2').history)
        pr = self.engine.transition('pr2', 'Approved', APPROVER)
        assert len(pr.history) == before + 1
        entry = pr.history[-1]
        assert entry.user == 'Sarah Manager'
        assert entry.action == 'Changed status to Approved'
        assert entry.notes == ''
        assert entry.date

    def test_reject_requires_note(self):
        with pytest.raises(ValidationError):
            self.engine.transition('pr2', 'Rejected', APPROVER)
        with pytest.raises(ValidationError):
            self.engine.transition('pr2', 'Rejected', APPROVER, note='   ')
        pr = self.service.get('pr2')
        assert pr.status == WorkflowStatus.SUBMITTED
        assert pr.history == []

    def test_reject_with_note(self):
        pr = self.engine.transition('pr2', 'Rejected', APPROVER, note='Quote too high')
        assert pr.status == WorkflowStatus.REJECTED
        assert len(pr.history) == 1
        assert pr.history[0].action == 'Changed status to Rejected'
        assert pr.history[0].notes == 'Quote too high'

    def test_resubmit_after_rejection(self):
        self.engine.transition('pr2', 'Rejected', APPROVER, note='Add quotation')
        pr = self.engine.transition('pr2', 'Submitted', USER)
        assert pr.status == WorkflowStatus.SUBMITTED

    def test_illegal_transition(self):
        pr = _new_draft(self.store)
        with pytest.raises(IllegalTransitionError) as exc:
            self.engine.transition(pr.id, 'Approved', ADMIN)
        assert exc.value.current == 'Draft'
        assert exc.value.target == 'Approved'
        assert self.service.get(pr.id).status == WorkflowStatus.DRAFT

    def test_closed_is_terminal(self):
        self.engine.transition('pr1', 'On Process', APPROVER)
        self.engine.transition('pr1', 'Closed', APPROVER)
        for target in WorkflowStatus:
            with pytest.raises(IllegalTransitionError):
                self.engine.transition('pr1', target, ADMIN)

    def test_user_cannot_approve(self):
        with pytest.raises(NotAuthorizedError):
            self.engine.transition('pr2', 'Approved', USER)
        assert self.service.get('pr2').status == WorkflowStatus.SUBMITTED

    def test_finance_cannot_approve(self):
        with pytest.raises(NotAuthorizedError):
            self.engine.transition('pr2', 'Approved', FINANCE)

    def test_unknown_pr(self):
        with pytest.raises(NotFoundError):
            self.engine.transition('nope', 'Submitted', USER)

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            self.engine.transition('pr2', 'Cancelled', ADMIN)

    def test_fires_status_changed(self):
        handler = MagicMock()
        hooks.on('pr.status_changed', handler)
        self.engine.transition('pr2', 'Approved', APPROVER)
        handler.assert_called_once()
        payload = handler.call_args[0][0]
        assert payload['pr_id'] == 'pr2'
        assert payload['from_status'] == 'Submitted'
        assert payload['status'] == 'Approved'
        assert payload['user'] == 'Sarah Manager'

    def test_no_event_on_failure(self):
        handler = MagicMock()
        hooks.on('pr.status_changed', handler)
        with pytest.raises(NotAuthorizedError):
            self.engine.transition('pr2', 'Approved', USER)
        handler.assert_not_called()

    def test_allowed_actions(self):
        pr = self.service.get('pr2')
        assert self.engine.allowed_actions(pr, USER) == []
        actions = self.engine.allowed_actions(pr, APPROVER)
        assert actions == [
            {'action': 'approve', 'target': 'Approved', 'note_required': False},
            {'action': 'reject', 'target': 'Rejected', 'note_required': True},
        ]

    def test_is_editable_and_can_delete(self):
        approved = self.service.get('pr1')
        assert self.engine.is_editable(approved) is False
        assert self.engine.can_delete(approved) is False
        draft = _new_draft(self.store)
        assert self.engine.is_editable(draft) is True
        assert self.engine.can_delete(draft) is True
