"""Master data services package."""
from .admin_service import AdminService, UserChange

__all__ = ['AdminService', 'UserChange']
