"""Purchase Request Repository - Data access for purchase requests."""
from typing import List, Optional

from manuvest.core.base_repository import BaseRepository
from manuvest.core.models import PurchaseRequest, WorkflowStatus


class PurchaseRequestRepository(BaseRepository):

    collection = 'purchase_requests'

    def get_all(self, status=None) -> List[PurchaseRequest]:
        """Newest first, optionally filtered by status."""
        predicate = None
        if status:
            status = WorkflowStatus(status)
            predicate = lambda pr: WorkflowStatus(pr.status) == status  # noqa: E731
        return self.query_all(predicate, sort_key=lambda pr: pr.pr_date or '', reverse=True)

    def get_by_number(self, pr_number: str) -> Optional[PurchaseRequest]:
        return self.query_one(lambda pr: pr.pr_number == pr_number)

    def number_exists(self, pr_number: str) -> bool:
        return self.get_by_number(pr_number) is not None
