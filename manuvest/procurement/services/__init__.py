"""Procurement services package."""
from .pr_service import PurchaseRequestService
from .workflow_engine import WorkflowEngine

__all__ = ['PurchaseRequestService', 'WorkflowEngine']
