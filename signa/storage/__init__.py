from flask import current_app

from signa.storage.base import Filter, Query, StorageBackend, eq, in_
from signa.storage.guard import FinalizationGuard
from signa.storage.memory import MemoryBackend
from signa.storage.sql import SqlAlchemyBackend

EXTENSION_KEY = "signa.storage"

BACKENDS = {
    "sql": SqlAlchemyBackend,
    "memory": MemoryBackend,
}


def build_storage(kind):
    try:
        backend_class = BACKENDS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown STORAGE_BACKEND {kind!r}; expected one of {sorted(BACKENDS)}"
        ) from None
    return FinalizationGuard(backend_class())


def init_storage(app):
    storage = build_storage(app.config["STORAGE_BACKEND"])
    app.extensions[EXTENSION_KEY] = storage
    app.logger.info("Storage backend: %s", storage.name)
    return storage


def get_storage():
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "Filter",
    "Query",
    "StorageBackend",
    "FinalizationGuard",
    "MemoryBackend",
    "SqlAlchemyBackend",
    "build_storage",
    "init_storage",
    "get_storage",
    "eq",
    "in_",
]
