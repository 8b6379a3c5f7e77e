# backend/backoffice/services/products_service.py
"""
Products Service

Products are plain store records. On-hand quantity is edited here directly
(restock, corrections) and decremented by the inventory ledger when a sale is
committed. created_at is set once on create and survives every update.
"""
from __future__ import annotations

from typing import Iterable

from ..models import Product
from ..time_utils import utcnow, to_utc_z
from .entity_store import PRODUCTS, EntityStore

PRODUCT_MUTABLE_FIELDS = {"article_number", "name", "cost_cents", "quantity"}


def _writable(patch: dict) -> dict:
    return {k: v for k, v in patch.items() if k in PRODUCT_MUTABLE_FIELDS}


async def create_product(store: EntityStore, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Returns the created product with its store-assigned id.
    """
    record = {**_writable(patch), "created_at": to_utc_z(utcnow())}
    product_id = await store.create(PRODUCTS, record)
    return Product.from_record({**record, "id": product_id})


async def update_product(store: EntityStore, product_id: str, patch: dict) -> bool:
    """
    Update product fields.

    Sale lines already committed keep the name, article number and cost
    they copied.
    """
    return await store.update_partial(PRODUCTS, product_id, _writable(patch))


async def delete_product(store: EntityStore, product_id: str) -> bool:
    return await store.delete(PRODUCTS, product_id)


def search_products(products: Iterable[Product], term: str | None) -> list[Product]:
    lowered = (term or "").strip().lower()
    return sorted(
        (
            p for p in products
            if not lowered
            or lowered in (p.name or "").lower()
            or lowered in (p.article_number or "").lower()
        ),
        key=lambda p: ((p.name or "").lower(), p.id),
    )
