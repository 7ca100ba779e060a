"""
ManuVest Domain Exceptions

Every failed domain operation raises one of these before any state is
changed. Routes translate them into JSON responses using ``status_code``.
"""


class DomainError(Exception):
    """Base exception for domain operations."""
    status_code = 400


class ValidationError(DomainError):
    """Raised when a required field is missing or a value is invalid."""
    status_code = 400


class NotAuthorizedError(DomainError):
    """Raised when the acting user's role does not permit the operation."""
    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""
    status_code = 404

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")


class IllegalTransitionError(DomainError):
    """Raised when a workflow status change is not in the transition table."""
    status_code = 409

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from {current} to {target}")


class RecordLockedError(DomainError):
    """Raised when editing a record whose status makes it read-only."""
    status_code = 409

    def __init__(self, record_id: str, status: str):
        self.record_id = record_id
        self.status = status
        super().__init__(f"Record {record_id} is {status} and cannot be edited")


class DeletionBlockedError(DomainError):
    """Raised when deleting a record that has already been finalized."""
    status_code = 409
