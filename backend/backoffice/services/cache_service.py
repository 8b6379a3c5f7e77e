# Overview: In-memory copies of the three collections, refreshed from the entity store.

from __future__ import annotations

import asyncio
import logging

from flask import current_app

from ..models import Customer, Product, Sale
from .entity_store import CUSTOMERS, PRODUCTS, SALES, EntityStore, StoreError


logger = logging.getLogger(__name__)


class EntityCache:
    """
    Last successfully loaded customers, products and sales.

    A failed load leaves the previous contents in place; callers work on
    stale data rather than on nothing.
    """

    def __init__(self):
        self.customers: list[Customer] = []
        self.products: list[Product] = []
        self.sales: list[Sale] = []
        self.loaded = False

    async def load(self, store: EntityStore) -> bool:
        """Fetch all three collections concurrently and swap them in together."""
        try:
            customers, products, sales = await asyncio.gather(
                store.list_all(CUSTOMERS),
                store.list_all(PRODUCTS),
                store.list_all(SALES),
            )
        except StoreError:
            logger.exception("Error loading data; keeping cached collections")
            return False

        self.customers = [Customer.from_record(r) for r in customers]
        self.products = [Product.from_record(r) for r in products]
        self.sales = [Sale.from_record(r) for r in sales]
        self.loaded = True
        return True

    def customer(self, customer_id: str | None) -> Customer | None:
        if not customer_id:
            return None
        return next((c for c in self.customers if c.id == customer_id), None)

    def product(self, product_id: str | None) -> Product | None:
        if not product_id:
            return None
        return next((p for p in self.products if p.id == product_id), None)

    def sale(self, sale_id: str | None) -> Sale | None:
        if not sale_id:
            return None
        return next((s for s in self.sales if s.id == sale_id), None)


def get_entity_cache() -> EntityCache:
    return current_app.extensions["entity_cache"]
