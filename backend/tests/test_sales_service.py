"""
Sales service tests.

Covers:
- Draft composition (silent no-ops, ordering, running totals)
- Commit protocol (arithmetic, preconditions, per-line decrements)
- Partial commit failure reporting
- History search, pagination, invoices
"""

import logging
from datetime import datetime

import pytest

from backoffice.models import Customer, Sale, SaleItem
from backoffice.services.cache_service import EntityCache
from backoffice.services.entity_store import PRODUCTS, SALES
from backoffice.services.sales_service import (
    DraftBook,
    SaleComposer,
    build_invoice,
    commit_sale,
    delete_sale,
    paginate,
    sale_totals,
    search_sales,
)

from conftest import CountingStore, FlakyStore, run, seed_customer, seed_product


def _loaded_cache(store) -> EntityCache:
    cache = EntityCache()
    assert run(cache.load(store))
    return cache


# =============================================================================
# DRAFT COMPOSITION
# =============================================================================


class TestSaleComposer:

    @pytest.fixture
    def composer(self, memory_store):
        self.widget = seed_product(memory_store, name="Widget", article_number="W-1", cost_cents=400)
        self.gadget = seed_product(memory_store, name="Gadget", article_number="G-1", cost_cents=1000)
        self.gizmo = seed_product(memory_store, name="Gizmo", article_number="Z-1", cost_cents=50)
        return SaleComposer(_loaded_cache(memory_store))

    def test_add_item_copies_product_snapshot(self, composer):
        item = composer.add_item(self.widget, "3", "650")

        assert item == SaleItem(
            product_id=self.widget,
            product_name="Widget",
            article_number="W-1",
            quantity=3,
            sell_price_cents=650,
            cost_price_cents=400,
            line_total_cents=1950,
        )
        assert composer.items == [item]

    @pytest.mark.parametrize(
        "product_id,quantity,price",
        [
            (None, 1, 100),
            ("", 1, 100),
            ("PRODUCT", None, 100),
            ("PRODUCT", "", 100),
            ("PRODUCT", 1, None),
            ("PRODUCT", "abc", 100),
            ("PRODUCT", 1, "1.5"),
            ("unknown-product", 1, 100),
        ],
    )
    def test_add_item_incomplete_input_is_ignored(self, composer, product_id, quantity, price):
        if product_id == "PRODUCT":
            product_id = self.widget

        assert composer.add_item(product_id, quantity, price) is None
        assert composer.items == []

    def test_duplicate_products_are_separate_lines(self, composer):
        composer.add_item(self.widget, 1, 500)
        composer.add_item(self.widget, 2, 500)

        assert [i.quantity for i in composer.items] == [1, 2]

    def test_remove_item_keeps_relative_order(self, composer):
        first = composer.add_item(self.widget, 1, 500)
        composer.add_item(self.gadget, 1, 1500)
        third = composer.add_item(self.gizmo, 1, 90)

        removed = composer.remove_item(1)

        assert removed.product_id == self.gadget
        assert composer.items == [first, third]

    @pytest.mark.parametrize("index", [-1, 3, "x", None])
    def test_remove_item_out_of_range_is_ignored(self, composer, index):
        composer.add_item(self.widget, 1, 500)
        composer.add_item(self.gadget, 1, 1500)
        composer.add_item(self.gizmo, 1, 90)

        assert composer.remove_item(index) is None
        assert len(composer.items) == 3

    def test_running_totals(self, composer):
        composer.add_item(self.widget, 2, 650)
        composer.add_item(self.gadget, 1, 1200)

        assert composer.draft_total() == 2500
        assert composer.draft_cost() == 1800
        assert composer.draft_profit() == 700

    def test_ready_and_reset(self, composer):
        assert composer.ready is False
        composer.select_customer("c1")
        assert composer.ready is False
        composer.add_item(self.widget, 1, 500)
        assert composer.ready is True

        composer.reset()

        assert composer.selected_customer_id is None
        assert composer.items == []

    def test_select_customer_clears_on_empty(self, composer):
        composer.select_customer("c1")
        composer.select_customer("")
        assert composer.selected_customer_id is None


# =============================================================================
# COMMIT PROTOCOL
# =============================================================================


class TestCommitSale:

    def _draft(self, store, lines):
        customer_id = seed_customer(store, name="Acme Trading")
        product_ids = [
            seed_product(store, name=f"P{n}", article_number=f"A-{n}", cost_cents=cost, quantity=10)
            for n, (_, _, cost) in enumerate(lines)
        ]
        cache = _loaded_cache(store)
        composer = SaleComposer(cache)
        composer.select_customer(customer_id)
        for product_id, (qty, sell, _) in zip(product_ids, lines):
            composer.add_item(product_id, qty, sell)
        return cache, composer, customer_id, product_ids

    def test_commit_arithmetic(self, memory_store):
        lines = [(2, 650, 400), (1, 1200, 1000), (5, 90, 50)]
        cache, composer, customer_id, _ = self._draft(memory_store, lines)
        when = datetime(2024, 3, 5, 10, 30)

        result = run(commit_sale(memory_store, cache, composer, now=when))

        assert result.complete
        stored = run(memory_store.get(SALES, result.sale.id))
        assert stored["total_amount_cents"] == 2 * 650 + 1200 + 5 * 90
        assert stored["total_cost_cents"] == 2 * 400 + 1000 + 5 * 50
        assert stored["profit_cents"] == stored["total_amount_cents"] - stored["total_cost_cents"]
        assert stored["customer_id"] == customer_id
        assert stored["customer_name"] == "Acme Trading"
        assert stored["created_at"] == "2024-03-05T10:30:00Z"
        assert len(stored["items"]) == 3

    def test_commit_decrements_stock(self, memory_store):
        cache, composer, _, (product_id,) = self._draft(memory_store, [(3, 500, 200)])

        run(commit_sale(memory_store, cache, composer))

        assert run(memory_store.get(PRODUCTS, product_id))["quantity"] == 7
        assert cache.product(product_id).quantity == 7

    def test_commit_resets_draft_and_reloads_cache(self, memory_store):
        cache, composer, _, _ = self._draft(memory_store, [(1, 500, 200)])

        result = run(commit_sale(memory_store, cache, composer))

        assert composer.items == []
        assert composer.selected_customer_id is None
        assert cache.sale(result.sale.id) is not None

    def test_duplicate_product_lines_both_decrement(self, memory_store):
        customer_id = seed_customer(memory_store)
        product_id = seed_product(memory_store, quantity=10)
        composer = SaleComposer(_loaded_cache(memory_store))
        composer.select_customer(customer_id)
        composer.add_item(product_id, 2, 500)
        composer.add_item(product_id, 3, 500)

        run(commit_sale(memory_store, composer._cache, composer))

        assert run(memory_store.get(PRODUCTS, product_id))["quantity"] == 5

    @pytest.mark.parametrize("with_customer,with_item", [(False, True), (True, False), (False, False)])
    def test_precondition_makes_no_store_calls(self, with_customer, with_item):
        store = CountingStore()
        customer_id = seed_customer(store)
        product_id = seed_product(store)
        cache = _loaded_cache(store)
        composer = SaleComposer(cache)
        if with_customer:
            composer.select_customer(customer_id)
        if with_item:
            composer.add_item(product_id, 1, 500)
        store.calls.clear()

        assert run(commit_sale(store, cache, composer)) is None
        assert store.calls == []

    def test_unknown_customer_is_a_no_op(self, caplog):
        store = CountingStore()
        product_id = seed_product(store)
        cache = _loaded_cache(store)
        composer = SaleComposer(cache)
        composer.select_customer("deleted-customer")
        composer.add_item(product_id, 1, 500)
        store.calls.clear()

        with caplog.at_level(logging.WARNING, logger="backoffice.services.sales_service"):
            assert run(commit_sale(store, cache, composer)) is None

        assert store.calls == []
        assert len(composer.items) == 1
        assert "customer deleted-customer not found" in caplog.text

    def test_decrements_run_in_line_order(self):
        store = CountingStore()
        cache, composer, _, product_ids = self._draft(store, [(1, 100, 10), (2, 100, 10), (3, 100, 10)])
        store.calls.clear()

        run(commit_sale(store, cache, composer))

        updates = [c[2] for c in store.calls if c[0] == "update_partial"]
        assert updates == product_ids
        assert store.calls[0] == ("create", SALES)

    def test_partial_failure_reports_pending_lines(self, caplog):
        store = FlakyStore()
        cache, composer, _, product_ids = self._draft(store, [(1, 100, 10), (2, 100, 10), (3, 100, 10)])
        store.fail_updates_for = {product_ids[1]}

        with caplog.at_level(logging.ERROR, logger="backoffice.services.sales_service"):
            result = run(commit_sale(store, cache, composer))

        assert result is not None
        assert result.complete is False
        assert [i.product_id for i in result.stock_applied] == product_ids[:1]
        assert [i.product_id for i in result.stock_pending] == product_ids[1:]

        # sale stays recorded, later lines were not attempted
        assert run(store.get(SALES, result.sale.id)) is not None
        assert run(store.get(PRODUCTS, product_ids[0]))["quantity"] == 9
        assert run(store.get(PRODUCTS, product_ids[2]))["quantity"] == 10

        assert f"Stock drift after sale {result.sale.id}" in caplog.text
        assert composer.items == []

    def test_deleted_product_is_reported_pending(self, memory_store):
        cache, composer, _, (product_id,) = self._draft(memory_store, [(1, 100, 10)])
        run(memory_store.delete(PRODUCTS, product_id))

        result = run(commit_sale(memory_store, cache, composer))

        assert [i.product_id for i in result.stock_pending] == [product_id]

    def test_failed_sale_write_keeps_draft(self):
        store = FlakyStore()
        cache, composer, _, (product_id,) = self._draft(store, [(1, 100, 10)])
        store.fail_creates = True

        assert run(commit_sale(store, cache, composer)) is None

        assert len(composer.items) == 1
        assert run(store.get(PRODUCTS, product_id))["quantity"] == 10
        assert run(store.list_all(SALES)) == []

    def test_commit_result_to_dict(self, memory_store):
        cache, composer, _, _ = self._draft(memory_store, [(1, 100, 10)])

        payload = run(commit_sale(memory_store, cache, composer)).to_dict()

        assert payload["complete"] is True
        assert payload["stock_pending"] == []
        assert payload["sale"]["total_amount_cents"] == 100


class TestSaleTotals:

    def test_empty(self):
        assert sale_totals([]) == (0, 0, 0)

    def test_negative_profit(self):
        item = SaleItem("p", "P", "A", 2, 100, 150, 200)
        assert sale_totals([item]) == (200, 300, -100)


# =============================================================================
# HISTORY
# =============================================================================


def _sale(id, name, day):
    return Sale(id=id, customer_id="c", customer_name=name, created_at=datetime(2024, 1, day))


class TestHistory:

    def test_search_newest_first(self):
        sales = [_sale("a1", "Acme", 1), _sale("b2", "Beta", 3), _sale("a3", "ACME North", 2)]

        assert [s.id for s in search_sales(sales, None)] == ["b2", "a3", "a1"]
        assert [s.id for s in search_sales(sales, "acme")] == ["a3", "a1"]
        assert [s.id for s in search_sales(sales, "b2")] == ["b2"]

    def test_delete_sale_does_not_restock(self, memory_store):
        product_id = seed_product(memory_store, quantity=4)
        sale_id = run(memory_store.create(SALES, {
            "items": [{"product_id": product_id, "quantity": 2}],
        }))

        assert run(delete_sale(memory_store, sale_id)) is True
        assert run(memory_store.get(PRODUCTS, product_id))["quantity"] == 4

    def test_paginate(self, app):
        items = list(range(25))

        page = paginate(items, 3)
        assert page["items"] == [20, 21, 22, 23, 24]
        assert page["pagination"] == {
            "page": 3,
            "per_page": 10,
            "total": 25,
            "total_pages": 3,
            "has_next": False,
            "has_prev": True,
        }

        assert paginate(items, None) == {"items": items, "count": 25}
        assert paginate(items, 1, 500)["pagination"]["per_page"] == 100

        clamped = paginate([1, 2, 3], 1, -1)
        assert clamped["items"] == [1]
        assert clamped["pagination"]["per_page"] == 1
        assert clamped["pagination"]["total_pages"] == 3

    def test_invoice_uses_live_contact_details(self):
        sale = Sale(
            id="s1",
            customer_id="c1",
            customer_name="Old Name",
            items=(SaleItem("p", "Widget", "W-1", 2, 650, 400, 1300),),
            total_amount_cents=1300,
            total_cost_cents=800,
            profit_cents=500,
            created_at=datetime(2024, 2, 15, 12, 0),
        )
        customer = Customer(id="c1", name="New Name", email="a@b.c", phone="555", address="1 Main St")

        invoice = build_invoice(sale, customer)

        assert invoice["invoice_number"] == "s1"
        assert invoice["date"] == "2024-02-15T12:00:00Z"
        assert invoice["customer"]["name"] == "New Name"
        assert invoice["customer"]["address"] == "1 Main St"
        assert invoice["total_amount_cents"] == 1300
        assert invoice["items"][0]["line_total_cents"] == 1300


class TestDraftBook:

    def test_open_get_discard(self):
        book = DraftBook()
        draft_id, composer = book.open(EntityCache())

        assert book.get(draft_id) is composer
        assert book.discard(draft_id) is True
        assert book.get(draft_id) is None
        assert book.discard(draft_id) is False
