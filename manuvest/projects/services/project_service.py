"""Project Service - project registry and milestone maintenance."""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from manuvest.core.exceptions import NotFoundError, ValidationError
from manuvest.core.models import Milestone, Project, ProjectSchedule, ProjectStatus
from manuvest.core.workflow import hooks
from ..repositories import ProjectRepository

logger = logging.getLogger('manuvest.projects.services.project')

ACTIONS = ('create', 'update', 'delete')
REQUIRED_FIELDS = (('code', 'Project code'), ('name', 'Project name'), ('customer', 'Customer'))


def _as_dict(record) -> Dict[str, Any]:
    if record is None:
        return {}
    return record.to_dict() if hasattr(record, 'to_dict') else dict(record)


class ProjectService:

    def __init__(self, store):
        self.project_repo = ProjectRepository(store)

    # ============== Queries ==============

    def list(self) -> List[Project]:
        return self.project_repo.get_all()

    def search_projects(self, term: str) -> List[Project]:
        return self.project_repo.search(term)

    def get(self, project_id) -> Project:
        project = self.project_repo.get_by_id(project_id)
        if project is None:
            raise NotFoundError('Project', project_id)
        return project

    # ============== Registry ==============

    def _normalize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for key, _ in REQUIRED_FIELDS:
            data[key] = str(data.get(key) or '').strip()
        missing = [label for key, label in REQUIRED_FIELDS if not data[key]]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        data['model'] = data.get('model') or ''
        data['description'] = data.get('description') or ''
        data['year'] = str(data.get('year') or date.today().year)
        data['schedule'] = data.get('schedule') or ProjectSchedule()
        data['custom_milestones'] = data.get('custom_milestones') or []
        try:
            data['status'] = ProjectStatus(data.get('status') or ProjectStatus.DRAFT)
        except ValueError:
            raise ValidationError(f"Unknown project status: {data.get('status')}") from None
        if data.get('budget_allocation') not in (None, ''):
            try:
                data['budget_allocation'] = float(data['budget_allocation'])
            except (TypeError, ValueError):
                raise ValidationError('Budget allocation must be a number') from None
        else:
            data['budget_allocation'] = None
        return data

    def manage_project(self, action: str, project) -> Optional[Project]:
        """Create, update or delete a project.

        The ``projects`` master-data list is derived from the registry, so
        it follows every change made here.

        Returns:
            The saved project, or None after a delete
        """
        if action not in ACTIONS:
            raise ValidationError(f'Unknown action: {action}')
        data = _as_dict(project)

        if action == 'delete':
            project_id = data.get('id')
            if not self.project_repo.delete(project_id):
                raise NotFoundError('Project', project_id)
            logger.info(f'Deleted project {project_id}')
            hooks.fire('project.deleted', {'project_id': project_id})
            return None

        data = self._normalize(data)

        if action == 'create':
            data['id'] = data.get('id') or f'prj-{uuid.uuid4().hex[:8]}'

        def _save(store):
            exclude_id = None if action == 'create' else data.get('id')
            if self.project_repo.code_taken(data['code'], exclude_id=exclude_id):
                raise ValidationError(f"Project code {data['code']} already exists")
            project = Project.from_dict(data)
            if action == 'create':
                return self.project_repo.insert(project)
            if not self.project_repo.replace(project):
                raise NotFoundError('Project', data.get('id'))
            return project

        saved = self.project_repo.execute_many(_save)
        logger.info(f'{action.capitalize()}d project {saved.code} ({saved.name})')
        return saved

    # ============== Milestones ==============

    def _change(self, project_id, mutate) -> Project:
        def _work(store):
            project = self.get(project_id)
            mutate(project)
            self.project_repo.replace(project)
            return project
        return self.project_repo.execute_many(_work)

    def add_milestone(self, project_id, name: str, milestone_date: str) -> Milestone:
        name = (name or '').strip()
        if not name or not milestone_date:
            raise ValidationError('Milestone name and date are required')
        milestone = Milestone(id=f'm-{uuid.uuid4().hex[:8]}', name=name, date=milestone_date)
        self._change(project_id, lambda p: p.custom_milestones.append(milestone))
        logger.info(f'Added milestone {name!r} to project {project_id}')
        return milestone

    def remove_milestone(self, project_id, milestone_id) -> Project:
        def _remove(project):
            before = len(project.custom_milestones)
            project.custom_milestones = [m for m in project.custom_milestones if m.id != milestone_id]
            if len(project.custom_milestones) == before:
                raise NotFoundError('Milestone', milestone_id)
        return self._change(project_id, _remove)

    def toggle_milestone(self, project_id, milestone_id) -> Project:
        def _toggle(project):
            for milestone in project.custom_milestones:
                if milestone.id == milestone_id:
                    milestone.is_completed = not milestone.is_completed
                    return
            raise NotFoundError('Milestone', milestone_id)
        return self._change(project_id, _toggle)
