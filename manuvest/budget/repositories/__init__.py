"""Budget repositories package."""
from .budget_repository import BudgetRepository

__all__ = ['BudgetRepository']
