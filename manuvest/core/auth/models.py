"""ManuVest Core Auth Models.

User model for Flask-Login authentication.
"""
from flask_login import UserMixin

from ..models import UserRole


class SessionUser(UserMixin):
    """User class for Flask-Login.

    Also serves as the acting user passed to services, which only read
    ``name`` and ``role``.
    """

    def __init__(self, user_data):
        self.id = user_data['id']
        self.username = user_data['username']
        self.name = user_data['name']
        self.email = user_data.get('email', '')
        self.role = UserRole(user_data.get('role', UserRole.USER))
        self.department = user_data.get('department', '')

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def is_approver(self):
        return self.role in (UserRole.ADMIN, UserRole.APPROVER)

    @property
    def can_manage_budgets(self):
        return self.role != UserRole.USER

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
            'department': self.department,
            'is_admin': self.is_admin,
            'is_approver': self.is_approver,
            'can_manage_budgets': self.can_manage_budgets,
        }
