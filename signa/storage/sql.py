"""Relational backend on top of the Flask-SQLAlchemy session.

Must be used inside an application context. Each operation outside an
explicit ``transaction()`` commits on its own; inside one, nothing is
committed until the outermost scope exits cleanly.
"""

import logging
import threading
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from signa.errors import StorageError
from signa.extensions import db
from signa.models import MODELS_BY_ENTITY
from signa.storage.base import StorageBackend, as_filters, stamp

logger = logging.getLogger(__name__)


class SqlAlchemyBackend(StorageBackend):
    name = "sql"

    def __init__(self):
        self._state = threading.local()

    @property
    def session(self):
        return db.session

    def _depth(self):
        return getattr(self._state, "depth", 0)

    def _model(self, entity):
        try:
            return MODELS_BY_ENTITY[entity]
        except KeyError:
            raise ValueError(f"Unknown entity set: {entity}") from None

    def _criteria(self, model, filters):
        criteria = []
        for clause in as_filters(filters):
            column = getattr(model, clause.field)
            if clause.op == "in":
                criteria.append(column.in_(clause.value))
            else:
                criteria.append(column == clause.value)
        return criteria

    def query(self, query):
        model = self._model(query.entity)
        statement = model.query.filter(*self._criteria(model, query.filters))
        if query.for_update:
            statement = statement.with_for_update()
        try:
            return [instance.to_row() for instance in statement.all()]
        except SQLAlchemyError as exc:
            logger.exception("Query on %s failed", query.entity)
            raise StorageError(f"Could not read {query.entity}.") from exc

    def insert(self, entity, records):
        model = self._model(entity)
        single = isinstance(records, dict)
        batch = [records] if single else list(records)
        with self.transaction():
            instances = [model(**stamp(record)) for record in batch]
            self.session.add_all(instances)
            self._flush(entity)
            rows = [instance.to_row() for instance in instances]
        return rows[0] if single else rows

    def update(self, entity, filters, patch):
        model = self._model(entity)
        criteria = self._criteria(model, filters)
        with self.transaction():
            matched = [
                instance.id
                for instance in model.query.filter(*criteria).with_for_update().all()
            ]
            if not matched:
                return []
            # the UPDATE repeats the filters, so it only lands on rows that still match
            count = model.query.filter(*criteria).update(
                dict(patch), synchronize_session=False
            )
            if not count:
                return []
            self._flush(entity)
            self.session.expire_all()
            return [
                instance.to_row()
                for instance in model.query.filter(model.id.in_(matched)).all()
            ]

    def delete(self, entity, filters):
        model = self._model(entity)
        with self.transaction():
            model.query.filter(*self._criteria(model, filters)).delete(
                synchronize_session=False
            )
            self._flush(entity)

    def _flush(self, entity):
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Write to %s failed", entity)
            raise StorageError(f"Could not write {entity}.") from exc

    @contextmanager
    def transaction(self):
        depth = self._depth()
        self._state.depth = depth + 1
        try:
            yield self
            if depth == 0:
                self.session.commit()
        except SQLAlchemyError as exc:
            if depth == 0:
                self.session.rollback()
            logger.exception("Transaction rolled back")
            raise StorageError("The storage backend rejected the write.") from exc
        except Exception:
            if depth == 0:
                self.session.rollback()
                logger.warning("Transaction rolled back")
            raise
        finally:
            self._state.depth = depth
