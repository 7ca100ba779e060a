"""Project Repository - Data access for the project registry.

The registry also feeds the ``projects`` master-data list, so a project
saved here is immediately selectable on budget plans.
"""
from typing import List

from manuvest.core.base_repository import BaseRepository
from manuvest.core.models import Project


class ProjectRepository(BaseRepository):

    collection = 'projects'

    def get_all(self) -> List[Project]:
        return self.query_all()

    def search(self, term: str) -> List[Project]:
        """Case-insensitive substring match on name, code and customer."""
        term = (term or '').strip().lower()
        if not term:
            return self.get_all()
        return self.query_all(lambda p: any(
            term in (value or '').lower() for value in (p.name, p.code, p.customer)))

    def code_taken(self, code: str, exclude_id: str = None) -> bool:
        wanted = code.strip().lower()
        return self.query_one(
            lambda p: p.code.lower() == wanted and p.id != exclude_id) is not None
