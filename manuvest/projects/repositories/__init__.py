"""Project repositories package."""
from .project_repository import ProjectRepository

__all__ = ['ProjectRepository']
