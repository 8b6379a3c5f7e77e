"""
Pytest fixtures for back-office tests.

Provides the app on an in-memory database, a logged-in test client, and
record-building helpers for the entity store.
"""

import asyncio

import bcrypt
import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.services.entity_store import (
    CUSTOMERS,
    PRODUCTS,
    SALES,
    MemoryEntityStore,
    StoreError,
)


ADMIN_EMAIL = "owner@example.com"
ADMIN_PASSWORD = "Password123"
# Low cost factor keeps the suite fast; verify_password accepts any cost
ADMIN_PASSWORD_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='function')
def app():
    """Create application for testing (fresh in-memory database per test)."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORE_BACKEND': 'sql',
        'REPORT_TIMEZONE': 'UTC',
        'ADMIN_EMAIL': ADMIN_EMAIL,
        'ADMIN_PASSWORD_HASH': ADMIN_PASSWORD_HASH,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def auth_headers(client):
    """Authorization headers for a logged-in operator."""
    token = get_auth_token(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert token
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def store(app):
    """The app's configured (SQL) entity store."""
    return app.extensions["entity_store"]


@pytest.fixture(scope='function')
def memory_store():
    return MemoryEntityStore()


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for the operator."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def run(coro):
    """Drive an async service call from a synchronous test."""
    return asyncio.run(coro)


def seed_customer(store, name="Acme Trading", **extra) -> str:
    return run(store.create(CUSTOMERS, {"name": name, "created_at": "2024-01-02T09:00:00Z", **extra}))


def seed_product(store, name="Widget", article_number="W-001", cost_cents=400, quantity=10) -> str:
    return run(store.create(PRODUCTS, {
        "name": name,
        "article_number": article_number,
        "cost_cents": cost_cents,
        "quantity": quantity,
        "created_at": "2024-01-02T09:00:00Z",
    }))


def seed_sale(store, created_at, total_amount_cents, total_cost_cents, customer_name="Acme Trading", customer_id="c1") -> str:
    return run(store.create(SALES, {
        "customer_id": customer_id,
        "customer_name": customer_name,
        "items": [],
        "total_amount_cents": total_amount_cents,
        "total_cost_cents": total_cost_cents,
        "profit_cents": total_amount_cents - total_cost_cents,
        "created_at": created_at,
    }))


class CountingStore(MemoryEntityStore):
    """Memory store that records every call made to it."""

    def __init__(self):
        super().__init__()
        self.calls = []

    async def create(self, collection, record):
        self.calls.append(("create", collection))
        return await super().create(collection, record)

    async def list_all(self, collection):
        self.calls.append(("list_all", collection))
        return await super().list_all(collection)

    async def get(self, collection, record_id):
        self.calls.append(("get", collection, record_id))
        return await super().get(collection, record_id)

    async def update_partial(self, collection, record_id, fields):
        self.calls.append(("update_partial", collection, record_id, dict(fields)))
        return await super().update_partial(collection, record_id, fields)

    async def delete(self, collection, record_id):
        self.calls.append(("delete", collection, record_id))
        return await super().delete(collection, record_id)


class FlakyStore(MemoryEntityStore):
    """Memory store whose chosen operations raise StoreError once armed."""

    def __init__(self):
        super().__init__()
        self.fail_updates_for: set[str] = set()
        self.fail_creates = False
        self.fail_lists = False

    async def create(self, collection, record):
        if self.fail_creates:
            raise StoreError("create refused", {"collection": collection})
        return await super().create(collection, record)

    async def list_all(self, collection):
        if self.fail_lists:
            raise StoreError("list refused", {"collection": collection})
        return await super().list_all(collection)

    async def update_partial(self, collection, record_id, fields):
        if record_id in self.fail_updates_for:
            raise StoreError("update refused", {"collection": collection})
        return await super().update_partial(collection, record_id, fields)
