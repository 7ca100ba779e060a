"""Auth Service - Business logic for authentication operations.

Routes should call these methods instead of reading the user store directly.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...utils.logging_config import get_logger
from ..repositories.user_repository import UserRepository

logger = get_logger('manuvest.core.auth.services')

INVALID_CREDENTIALS = 'Invalid username or password'


@dataclass
class AuthResult:
    """Result of an authentication attempt."""
    success: bool
    user_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class AuthService:
    """Service for authentication-related business logic."""

    def __init__(self, store):
        self.user_repo = UserRepository(store)

    def authenticate(self, username: str, password: str) -> AuthResult:
        """Authenticate a user by username and password.

        Args:
            username: Login name, matched case-insensitively
            password: The user's password

        Returns:
            AuthResult with the public user data on success. Every failure
            carries the same message so callers cannot probe for usernames.
        """
        if not username or not password:
            return AuthResult(success=False, error=INVALID_CREDENTIALS)

        user = self.user_repo.authenticate(username, password)
        if user is None:
            logger.warning(f'Failed login attempt for {username!r}')
            return AuthResult(success=False, error=INVALID_CREDENTIALS)

        logger.info(f'User {user.username} logged in')
        return AuthResult(success=True, user_data=user.to_public_dict())

    def change_password(self, user_id: str, username: str,
                        current_password: str, new_password: str) -> AuthResult:
        """Change a user's password after verifying the current one."""
        if not current_password or not new_password:
            return AuthResult(success=False, error='Both current and new passwords are required')

        if self.user_repo.authenticate(username, current_password) is None:
            return AuthResult(success=False, error='Current password is incorrect')

        self.user_repo.update_password(user_id, new_password)
        return AuthResult(success=True)
