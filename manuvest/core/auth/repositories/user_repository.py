"""User Repository - Data access for user accounts.

Usernames are matched case-insensitively everywhere. Passwords are only
ever stored as Werkzeug hashes.
"""
import logging
from typing import List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ...base_repository import BaseRepository
from ...models import User

logger = logging.getLogger('manuvest.core.auth.repositories.user')


class UserRepository(BaseRepository):

    collection = 'users'

    def get_all(self) -> List[User]:
        return self.query_all(sort_key=lambda u: u.username.lower())

    def get_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        wanted = username.strip().lower()
        return self.query_one(lambda u: u.username.lower() == wanted)

    def username_taken(self, username: str, exclude_id: str = None) -> bool:
        wanted = username.strip().lower()
        with self.store.lock:
            return any(u.username.lower() == wanted and u.id != exclude_id
                       for u in self._records())

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the password matches, None otherwise."""
        user = self.get_by_username(username)
        if user and user.password_hash and check_password_hash(user.password_hash, password):
            return user
        return None

    def update_password(self, user_id: str, new_password: str) -> bool:
        def _work(store):
            user = self.get_by_id(user_id)
            if user is None:
                return False
            user.password_hash = generate_password_hash(new_password)
            return self.replace(user)

        updated = self.execute_many(_work)
        if updated:
            logger.info(f'Password updated for user {user_id}')
        return updated
