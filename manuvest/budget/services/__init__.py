"""Budget services package."""
from .budget_service import BudgetService
from .transfer_service import TransferService

__all__ = ['BudgetService', 'TransferService']
