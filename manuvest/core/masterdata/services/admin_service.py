"""Admin Service - Master data and user account maintenance.

All operations validate their input before touching the store and raise a
DomainError subclass on failure.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from werkzeug.security import generate_password_hash

from ...auth.repositories import UserRepository
from ...exceptions import NotFoundError, ValidationError
from ...models import MasterOption, User, UserRole
from ..repositories import MasterDataRepository

logger = logging.getLogger('manuvest.core.masterdata.services.admin')

ACTIONS = ('create', 'update', 'delete')


@dataclass
class UserChange:
    """Outcome of a user maintenance action."""
    user: Optional[User] = None
    is_self: bool = False
    # The acting user deleted their own account
    logout_required: bool = False


def _as_dict(item) -> Dict[str, Any]:
    if item is None:
        return {}
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    return dict(item)


def _text(value) -> str:
    return str(value if value is not None else '').strip()


def _required(data, *names):
    missing = [n for n in names if not _text(data.get(n))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class AdminService:

    def __init__(self, store):
        self.master_repo = MasterDataRepository(store)
        self.user_repo = UserRepository(store)

    # ============== Master Data ==============

    def manage_master_data(self, category: str, action: str, item) -> Optional[MasterOption]:
        """Create, update or delete one option of a master-data list.

        Args:
            category: One of the master-data categories except ``projects``
            action: 'create', 'update' or 'delete'
            item: Option fields (dict or MasterOption); ``id`` for update/delete.
                An update replaces the whole option, omitted fields are cleared.

        Returns:
            The stored option, or None after a delete
        """
        self.master_repo.check_category(category)
        self.master_repo.check_writable(category)
        if action not in ACTIONS:
            raise ValidationError(f'Unknown action: {action}')
        data = _as_dict(item)

        if action == 'delete':
            option_id = data.get('id')
            if not self.master_repo.delete(category, option_id):
                raise NotFoundError(category, option_id)
            logger.info(f'Deleted {category} option {option_id}')
            return None

        _required(data, 'code', 'name')
        data['code'] = _text(data['code'])
        data['name'] = _text(data['name'])
        if data.get('is_active') is None:
            data['is_active'] = True

        if action == 'create':
            data['id'] = f'{category[:3]}-{uuid.uuid4().hex[:8]}'
            option = self.master_repo.insert(category, MasterOption.from_dict(data))
            logger.info(f'Created {category} option {option.id} ({option.code})')
            return option

        _required(data, 'id')
        option = MasterOption.from_dict(data)
        if not self.master_repo.replace(category, option):
            raise NotFoundError(category, data.get('id'))
        logger.info(f'Updated {category} option {option.id}')
        return option

    # ============== Users ==============

    def list_users(self):
        return [u.to_public_dict() for u in self.user_repo.get_all()]

    def manage_user(self, action: str, user, actor=None) -> UserChange:
        """Create, update or delete a user account.

        On update a blank password keeps the current one. Deleting the acting
        user's own account sets ``logout_required``.
        """
        if action not in ACTIONS:
            raise ValidationError(f'Unknown action: {action}')
        data = _as_dict(user)
        actor_id = getattr(actor, 'id', None)

        if action == 'delete':
            user_id = data.get('id')
            if not self.user_repo.delete(user_id):
                raise NotFoundError('User', user_id)
            is_self = user_id is not None and user_id == actor_id
            logger.info(f'Deleted user {user_id}')
            return UserChange(is_self=is_self, logout_required=is_self)

        if action == 'create':
            _required(data, 'username', 'password', 'name', 'role')
        else:
            _required(data, 'id', 'username', 'name', 'role')

        try:
            role = UserRole(data['role'])
        except ValueError:
            raise ValidationError(f"Unknown role: {data['role']}") from None

        username = _text(data['username'])
        exclude_id = data.get('id') if action == 'update' else None
        if self.user_repo.username_taken(username, exclude_id=exclude_id):
            raise ValidationError(f'Username {username} already exists')

        if action == 'create':
            record = User(
                id=f'u-{uuid.uuid4().hex[:8]}',
                username=username,
                name=_text(data['name']),
                email=_text(data.get('email')),
                role=role,
                department=_text(data.get('department')),
                password_hash=generate_password_hash(data['password']),
            )
            self.user_repo.insert(record)
            logger.info(f'Created user {record.username} ({record.role.value})')
            return UserChange(user=record)

        existing = self.user_repo.get_by_id(data['id'])
        if existing is None:
            raise NotFoundError('User', data['id'])
        existing.username = username
        existing.name = _text(data['name'])
        existing.role = role
        if data.get('email') is not None:
            existing.email = _text(data['email'])
        if data.get('department') is not None:
            existing.department = _text(data['department'])
        if data.get('password'):
            existing.password_hash = generate_password_hash(data['password'])
        self.user_repo.replace(existing)
        logger.info(f'Updated user {existing.username}')
        return UserChange(user=existing, is_self=existing.id == actor_id)
