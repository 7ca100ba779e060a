"""Base Repository: shared access helpers for every in-memory collection.

Provides query_one(), query_all(), insert(), replace(), delete() and
execute_many() over one named DomainStore collection. Records are deep-copied
on the way in and on the way out, so callers always hold snapshots and the
only way to change state is through these methods.

Usage:
    class ThingRepository(BaseRepository):
        collection = 'things'

        def get_active(self):
            return self.query_all(lambda t: t.is_active)

        def rename(self, thing_id, name):
            def _work(store):
                thing = self.get_by_id(thing_id)
                thing.name = name
                return self.replace(thing)
            return self.execute_many(_work)
"""

import copy

from .exceptions import ValidationError


class BaseRepository:

    collection = None

    def __init__(self, store):
        self.store = store

    def _records(self):
        return self.store.collection(self.collection)

    def query_one(self, predicate):
        """Return a copy of the first record matching predicate, or None."""
        with self.store.lock:
            for record in self._records():
                if predicate(record):
                    return copy.deepcopy(record)
            return None

    def query_all(self, predicate=None, sort_key=None, reverse=False):
        """Return copies of all records matching predicate."""
        with self.store.lock:
            rows = [copy.deepcopy(r) for r in self._records()
                    if predicate is None or predicate(r)]
        if sort_key is not None:
            rows.sort(key=sort_key, reverse=reverse)
        return rows

    def get_by_id(self, record_id):
        return self.query_one(lambda r: r.id == record_id)

    def exists(self, record_id):
        with self.store.lock:
            return any(r.id == record_id for r in self._records())

    def insert(self, record):
        """Append a new record. Ids must be unique within the collection."""
        with self.store.transaction():
            if self.exists(record.id):
                raise ValidationError(f'{self.collection} record {record.id} already exists')
            self._records().append(copy.deepcopy(record))
        return copy.deepcopy(record)

    def replace(self, record):
        """Substitute the whole record with the same id. Returns False if absent."""
        with self.store.transaction():
            rows = self._records()
            for index, existing in enumerate(rows):
                if existing.id == record.id:
                    rows[index] = copy.deepcopy(record)
                    return True
            return False

    def delete(self, record_id):
        """Remove the record with this id. Returns False if absent."""
        with self.store.transaction():
            rows = self._records()
            for index, existing in enumerate(rows):
                if existing.id == record_id:
                    del rows[index]
                    return True
            return False

    def execute_many(self, callback):
        """Run several operations in a single store transaction.

        Args:
            callback: Function that receives the store and returns a result.
                      Every mutation inside it is rolled back if it raises.

        Returns:
            Whatever callback returns
        """
        with self.store.transaction() as store:
            return callback(store)
