"""
Entity store tests.

Both backends share one contract: store-assigned ids, merge-on-update,
non-cascading delete, and StoreError for backend failures.
"""

import pytest

from backoffice.extensions import db
from backoffice.services.entity_store import (
    CUSTOMERS,
    PRODUCTS,
    SALES,
    MemoryEntityStore,
    SqlEntityStore,
    StoreError,
    build_entity_store,
)

from conftest import run


@pytest.fixture(params=["sql", "memory"])
def any_store(request, app):
    if request.param == "sql":
        return SqlEntityStore()
    return MemoryEntityStore()


class TestStoreContract:

    def test_create_assigns_id_and_embeds_it(self, any_store):
        record_id = run(any_store.create(CUSTOMERS, {"name": "Acme"}))

        assert record_id
        stored = run(any_store.get(CUSTOMERS, record_id))
        assert stored == {"name": "Acme", "id": record_id}

    def test_ids_are_unique(self, any_store):
        first = run(any_store.create(PRODUCTS, {"name": "A"}))
        second = run(any_store.create(PRODUCTS, {"name": "A"}))
        assert first != second

    def test_list_all_twice_returns_equal_sets(self, any_store):
        for name in ("Acme", "Beta", "Gamma"):
            run(any_store.create(CUSTOMERS, {"name": name}))

        first = run(any_store.list_all(CUSTOMERS))
        second = run(any_store.list_all(CUSTOMERS))

        def key(r):
            return r["id"]

        assert sorted(first, key=key) == sorted(second, key=key)
        assert len(first) == 3

    def test_collections_are_separate(self, any_store):
        run(any_store.create(CUSTOMERS, {"name": "Acme"}))
        assert run(any_store.list_all(PRODUCTS)) == []
        assert run(any_store.list_all(SALES)) == []

    def test_update_partial_merges_fields(self, any_store):
        record_id = run(any_store.create(PRODUCTS, {"name": "Widget", "quantity": 10, "cost_cents": 400}))

        assert run(any_store.update_partial(PRODUCTS, record_id, {"quantity": 7})) is True

        stored = run(any_store.get(PRODUCTS, record_id))
        assert stored["quantity"] == 7
        assert stored["name"] == "Widget"
        assert stored["cost_cents"] == 400

    def test_update_partial_missing_record(self, any_store):
        assert run(any_store.update_partial(PRODUCTS, "nope", {"quantity": 1})) is False

    def test_delete(self, any_store):
        record_id = run(any_store.create(SALES, {"customer_id": "c1"}))

        assert run(any_store.delete(SALES, record_id)) is True
        assert run(any_store.get(SALES, record_id)) is None
        assert run(any_store.delete(SALES, record_id)) is False

    def test_delete_does_not_cascade(self, any_store):
        customer_id = run(any_store.create(CUSTOMERS, {"name": "Acme"}))
        sale_id = run(any_store.create(SALES, {"customer_id": customer_id}))

        run(any_store.delete(CUSTOMERS, customer_id))

        assert run(any_store.get(SALES, sale_id))["customer_id"] == customer_id

    def test_unknown_collection_rejected(self, any_store):
        with pytest.raises(ValueError):
            run(any_store.create("orders", {}))


class TestMemoryStoreIsolation:

    def test_returned_records_are_copies(self):
        store = MemoryEntityStore()
        record_id = run(store.create(SALES, {"items": [{"quantity": 1}]}))

        fetched = run(store.get(SALES, record_id))
        fetched["items"][0]["quantity"] = 99

        assert run(store.get(SALES, record_id))["items"][0]["quantity"] == 1


class TestSqlStoreFailures:

    def test_backend_error_becomes_store_error(self, app):
        store = SqlEntityStore()
        db.drop_all()

        with pytest.raises(StoreError) as exc:
            run(store.list_all(CUSTOMERS))

        assert exc.value.details == {"collection": CUSTOMERS, "action": "list"}

        db.create_all()


class TestBuildEntityStore:

    def test_known_backends(self):
        assert isinstance(build_entity_store("sql"), SqlEntityStore)
        assert isinstance(build_entity_store("memory"), MemoryEntityStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_entity_store("firestore")
