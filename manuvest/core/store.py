"""ManuVest Domain Store.

Holds every in-memory collection (budget plans, purchase requests, projects,
users, master data) behind one explicit object. Nothing here is a module
global: the Flask app keeps its store in ``app.extensions`` and tests build
their own.

Usage:
    store = DomainStore()
    with store.transaction():
        ...  # any exception restores every collection
"""

import copy
import logging
import threading
from contextlib import contextmanager

from .models import MASTER_DATA_CATEGORIES

logger = logging.getLogger('manuvest.core.store')

# The 'projects' list is derived from the project registry, never stored
STORED_MASTER_CATEGORIES = tuple(c for c in MASTER_DATA_CATEGORIES if c != 'projects')


class DomainStore:

    COLLECTIONS = ('budgets', 'purchase_requests', 'projects', 'users')

    def __init__(self):
        # Re-entrant so repositories can nest inside an open transaction
        self._lock = threading.RLock()
        self._collections = {name: [] for name in self.COLLECTIONS}
        self._master_data = {c: [] for c in STORED_MASTER_CATEGORIES}

    @property
    def lock(self):
        return self._lock

    def collection(self, name):
        """Live list for a collection. Callers must hold ``lock``."""
        try:
            return self._collections[name]
        except KeyError:
            raise KeyError(f'Unknown collection: {name}') from None

    def master_list(self, category):
        """Live list for a stored master-data category. Callers must hold ``lock``."""
        try:
            return self._master_data[category]
        except KeyError:
            raise KeyError(f'Unknown master data category: {category}') from None

    @contextmanager
    def transaction(self):
        """Run a block of mutations atomically.

        Takes the store lock, snapshots every collection, and restores the
        snapshot if the block raises.
        """
        with self._lock:
            snapshot = copy.deepcopy((self._collections, self._master_data))
            try:
                yield self
            except Exception:
                self._collections, self._master_data = snapshot
                logger.warning('Store transaction rolled back')
                raise

    def counts(self):
        """Record counts per collection, for startup logging."""
        with self._lock:
            result = {name: len(rows) for name, rows in self._collections.items()}
            result['master_data'] = sum(len(rows) for rows in self._master_data.values())
            return result
