# Overview: Entity store adapter; collection-scoped create/read/update/delete over customers, products and sales.

"""
Entity Store Invariants (authoritative)

- Exactly three collections: customers, products, sales.
- create() assigns the record id (uuid4 hex) and writes it into the record
  under "id" as well, so list_all() rows are self-describing.
- list_all() order is unspecified. Callers sort explicitly where it matters.
- update_partial() merges the given fields; fields not named are preserved.
- delete() never cascades. A deleted customer leaves its sales pointing at a
  dangling customer_id.
- Backend failures surface as StoreError. The store never retries.
- Last write wins on concurrent updates.
"""

from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StoredRecord


CUSTOMERS = "customers"
PRODUCTS = "products"
SALES = "sales"
COLLECTIONS = (CUSTOMERS, PRODUCTS, SALES)


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _require_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")


def new_record_id() -> str:
    return uuid.uuid4().hex


class EntityStore(ABC):
    """Async create/read/update/delete, scoped to one named collection per call."""

    @abstractmethod
    async def create(self, collection: str, record: dict) -> str:
        """Persist a new record and return its generated id."""

    @abstractmethod
    async def list_all(self, collection: str) -> list[dict]:
        """Every record in the collection, in no particular order."""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> dict | None:
        """Current persisted record, or None."""

    @abstractmethod
    async def update_partial(self, collection: str, record_id: str, fields: dict) -> bool:
        """Merge fields into an existing record. False if it does not exist."""

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record. False if it did not exist."""


class SqlEntityStore(EntityStore):
    """
    Store backed by the ``records`` table through Flask-SQLAlchemy.

    Must be used inside an application context. Every mutating call commits
    its own transaction.
    """

    def _run(self, op, *, action: str, collection: str):
        try:
            return op()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(
                f"Store {action} failed for {collection}",
                details={"collection": collection, "action": action},
            ) from exc

    def _row(self, collection: str, record_id: str) -> StoredRecord | None:
        return db.session.query(StoredRecord).filter_by(
            collection=collection, record_id=record_id
        ).first()

    async def create(self, collection: str, record: dict) -> str:
        _require_collection(collection)
        record_id = new_record_id()

        def _op():
            row = StoredRecord(
                collection=collection,
                record_id=record_id,
                data={**record, "id": record_id},
            )
            db.session.add(row)
            db.session.commit()
            return record_id

        return self._run(_op, action="create", collection=collection)

    async def list_all(self, collection: str) -> list[dict]:
        _require_collection(collection)

        def _op():
            rows = db.session.query(StoredRecord).filter_by(collection=collection).all()
            return [dict(row.data or {}) for row in rows]

        return self._run(_op, action="list", collection=collection)

    async def get(self, collection: str, record_id: str) -> dict | None:
        _require_collection(collection)

        def _op():
            row = self._row(collection, record_id)
            return dict(row.data or {}) if row else None

        return self._run(_op, action="get", collection=collection)

    async def update_partial(self, collection: str, record_id: str, fields: dict) -> bool:
        _require_collection(collection)

        def _op():
            row = self._row(collection, record_id)
            if row is None:
                return False
            # JSON columns only track reassignment, not in-place mutation
            row.data = {**(row.data or {}), **fields, "id": record_id}
            db.session.commit()
            return True

        return self._run(_op, action="update", collection=collection)

    async def delete(self, collection: str, record_id: str) -> bool:
        _require_collection(collection)

        def _op():
            row = self._row(collection, record_id)
            if row is None:
                return False
            db.session.delete(row)
            db.session.commit()
            return True

        return self._run(_op, action="delete", collection=collection)


class MemoryEntityStore(EntityStore):
    """Process-local store; nothing survives a restart."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {name: {} for name in COLLECTIONS}

    async def create(self, collection: str, record: dict) -> str:
        _require_collection(collection)
        record_id = new_record_id()
        self._collections[collection][record_id] = copy.deepcopy({**record, "id": record_id})
        return record_id

    async def list_all(self, collection: str) -> list[dict]:
        _require_collection(collection)
        return [copy.deepcopy(r) for r in self._collections[collection].values()]

    async def get(self, collection: str, record_id: str) -> dict | None:
        _require_collection(collection)
        record = self._collections[collection].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def update_partial(self, collection: str, record_id: str, fields: dict) -> bool:
        _require_collection(collection)
        existing = self._collections[collection].get(record_id)
        if existing is None:
            return False
        existing.update(copy.deepcopy(fields))
        existing["id"] = record_id
        return True

    async def delete(self, collection: str, record_id: str) -> bool:
        _require_collection(collection)
        return self._collections[collection].pop(record_id, None) is not None


def build_entity_store(backend: str) -> EntityStore:
    if backend == "sql":
        return SqlEntityStore()
    if backend == "memory":
        return MemoryEntityStore()
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


def get_entity_store() -> EntityStore:
    """Store configured for the current app (set up in create_app)."""
    return current_app.extensions["entity_store"]
