"""Procurement repositories package."""
from .pr_repository import PurchaseRequestRepository

__all__ = ['PurchaseRequestRepository']
