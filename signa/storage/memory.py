"""In-process backend used for local development and tests.

Rows live in plain lists per entity set. One re-entrant lock serializes
every operation, and a transaction holds it for its whole body, which is what
makes check-then-write sequences atomic here.
"""

import copy
import logging
import threading
from contextlib import contextmanager

from signa.storage.base import ENTITIES, StorageBackend, as_filters, stamp

logger = logging.getLogger(__name__)


class MemoryBackend(StorageBackend):
    name = "memory"

    def __init__(self, seed=None):
        self._lock = threading.RLock()
        self._tables = {entity: [] for entity in ENTITIES}
        for entity, rows in (seed or {}).items():
            self._table(entity).extend(stamp(row) for row in rows)

    def _table(self, entity):
        if entity not in self._tables:
            raise ValueError(f"Unknown entity set: {entity}")
        return self._tables[entity]

    def query(self, query):
        with self._lock:
            return [dict(row) for row in self._table(query.entity) if query.matches(row)]

    def insert(self, entity, records):
        single = isinstance(records, dict)
        batch = [records] if single else list(records)
        with self._lock:
            table = self._table(entity)
            inserted = [stamp(record) for record in batch]
            table.extend(inserted)
            copies = [dict(row) for row in inserted]
        return copies[0] if single else copies

    def update(self, entity, filters, patch):
        clauses = as_filters(filters)
        updated = []
        with self._lock:
            for row in self._table(entity):
                if all(clause.matches(row) for clause in clauses):
                    row.update(patch)
                    updated.append(dict(row))
        return updated

    def delete(self, entity, filters):
        clauses = as_filters(filters)
        with self._lock:
            table = self._table(entity)
            table[:] = [
                row for row in table if not all(clause.matches(row) for clause in clauses)
            ]

    @contextmanager
    def transaction(self):
        with self._lock:
            snapshot = copy.deepcopy(self._tables)
            try:
                yield self
            except Exception:
                self._tables = snapshot
                logger.warning("Memory transaction rolled back")
                raise
