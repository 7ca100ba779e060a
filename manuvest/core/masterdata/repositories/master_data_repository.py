"""Master Data Repository - Lookup lists keyed by category.

The ``projects`` category is not stored: it is projected from the project
registry on every read, so it always matches the registry.
"""
import copy
from typing import Callable, Dict, List, Optional

from ...exceptions import ValidationError
from ...models import MASTER_DATA_CATEGORIES, MasterOption, UNKNOWN_OPTION, to_master_option

PROJECTS = 'projects'


class MasterDataRepository:

    def __init__(self, store):
        self.store = store

    @staticmethod
    def check_category(category: str):
        if category not in MASTER_DATA_CATEGORIES:
            raise ValidationError(f'Unknown master data category: {category}')

    @staticmethod
    def check_writable(category: str):
        if category == PROJECTS:
            raise ValidationError('Projects are maintained in the project registry')

    def _rows(self, category) -> List[MasterOption]:
        # Caller holds the store lock
        if category == PROJECTS:
            return [to_master_option(p) for p in self.store.collection('projects')]
        return [copy.deepcopy(o) for o in self.store.master_list(category)]

    # ============== Reads ==============

    def list(self, category: str, active_only: bool = False) -> List[MasterOption]:
        self.check_category(category)
        with self.store.lock:
            rows = self._rows(category)
        if active_only:
            rows = [o for o in rows if o.is_active is not False]
        return rows

    def list_all(self) -> Dict[str, List[MasterOption]]:
        with self.store.lock:
            return {c: self._rows(c) for c in MASTER_DATA_CATEGORIES}

    def get(self, category: str, option_id: str) -> Optional[MasterOption]:
        for option in self.list(category):
            if option.id == option_id:
                return option
        return None

    def get_by_code(self, category: str, code: str) -> Optional[MasterOption]:
        wanted = (code or '').strip().lower()
        for option in self.list(category):
            if option.code.lower() == wanted:
                return option
        return None

    def resolve(self, category: str, option_id: str) -> MasterOption:
        """The referenced option, or the Unknown placeholder if it was deleted."""
        return self.get(category, option_id) or UNKNOWN_OPTION

    def resolver(self) -> Callable[[str, str], MasterOption]:
        """Snapshot every list once and return a ``resolve(category, id)`` lookup."""
        index = {
            category: {o.id: o for o in rows}
            for category, rows in self.list_all().items()
        }

        def resolve(category, option_id):
            return index.get(category, {}).get(option_id, UNKNOWN_OPTION)
        return resolve

    def active_items(self) -> List[MasterOption]:
        """Master items offered in the purchase request item picker."""
        return self.list('items', active_only=True)

    # ============== Writes ==============

    def insert(self, category: str, option: MasterOption) -> MasterOption:
        self.check_category(category)
        self.check_writable(category)
        with self.store.transaction():
            rows = self.store.master_list(category)
            if any(o.id == option.id for o in rows):
                raise ValidationError(f'{category} record {option.id} already exists')
            rows.append(copy.deepcopy(option))
        return copy.deepcopy(option)

    def replace(self, category: str, option: MasterOption) -> bool:
        self.check_category(category)
        self.check_writable(category)
        with self.store.transaction():
            rows = self.store.master_list(category)
            for index, existing in enumerate(rows):
                if existing.id == option.id:
                    rows[index] = copy.deepcopy(option)
                    return True
            return False

    def delete(self, category: str, option_id: str) -> bool:
        self.check_category(category)
        self.check_writable(category)
        with self.store.transaction():
            rows = self.store.master_list(category)
            for index, existing in enumerate(rows):
                if existing.id == option_id:
                    del rows[index]
                    return True
            return False
