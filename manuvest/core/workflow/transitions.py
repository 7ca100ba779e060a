"""Purchase request status machine.

The table below is the only source of legal moves. Each entry names the
action, the status it starts from, the status it leads to, the roles allowed
to trigger it (None = any signed-in user) and whether a note is mandatory.

    Draft ──submit──▶ Submitted ──approve──▶ Approved ──process──▶ On Process ──close──▶ Closed
                          │
                          └──reject──▶ Rejected ──resubmit──▶ Submitted
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from ..models import UserRole, WorkflowStatus

APPROVER_ROLES = frozenset({UserRole.ADMIN, UserRole.APPROVER})

# Statuses that count as committed spend and lock the record
REALIZED_STATUSES = frozenset({
    WorkflowStatus.APPROVED, WorkflowStatus.ON_PROCESS, WorkflowStatus.CLOSED,
})

EDITABLE_STATUSES = frozenset({WorkflowStatus.DRAFT, WorkflowStatus.REJECTED})


@dataclass(frozen=True)
class Transition:
    action: str
    source: WorkflowStatus
    target: WorkflowStatus
    roles: Optional[FrozenSet[UserRole]] = None
    note_required: bool = False

    def permits(self, role) -> bool:
        return self.roles is None or UserRole(role) in self.roles


TRANSITIONS = (
    Transition('submit', WorkflowStatus.DRAFT, WorkflowStatus.SUBMITTED),
    Transition('approve', WorkflowStatus.SUBMITTED, WorkflowStatus.APPROVED, APPROVER_ROLES),
    Transition('reject', WorkflowStatus.SUBMITTED, WorkflowStatus.REJECTED, APPROVER_ROLES,
               note_required=True),
    Transition('process', WorkflowStatus.APPROVED, WorkflowStatus.ON_PROCESS, APPROVER_ROLES),
    Transition('close', WorkflowStatus.ON_PROCESS, WorkflowStatus.CLOSED, APPROVER_ROLES),
    Transition('resubmit', WorkflowStatus.REJECTED, WorkflowStatus.SUBMITTED),
)


def find_transition(source, target) -> Optional[Transition]:
    """Transition leading from source to target, or None if illegal."""
    source, target = WorkflowStatus(source), WorkflowStatus(target)
    for transition in TRANSITIONS:
        if transition.source == source and transition.target == target:
            return transition
    return None


def allowed_transitions(status, role) -> List[Transition]:
    """Transitions a user with this role may trigger from status."""
    status = WorkflowStatus(status)
    return [t for t in TRANSITIONS if t.source == status and t.permits(role)]


def is_editable(status) -> bool:
    return WorkflowStatus(status) in EDITABLE_STATUSES


def can_delete(status) -> bool:
    return WorkflowStatus(status) not in REALIZED_STATUSES
