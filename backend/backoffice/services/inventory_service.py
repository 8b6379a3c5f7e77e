# Overview: Inventory ledger; stock adjustments and the new-sale candidate list.

from __future__ import annotations

import logging
from typing import Iterable

from ..models import Product
from ..models.fields import int_field
from .entity_store import PRODUCTS, EntityStore

"""
Inventory Ledger Invariants (authoritative)

Stock model:
- On-hand quantity is a mutable field on the product record.
- adjust_stock() reads the persisted product and writes back exactly one
  field (quantity) as a partial update.

Known gap (kept on purpose):
- quantity SHOULD stay >= 0 but the ledger never refuses a decrement.
  A negative result is written and logged as a warning.
- Zero-stock products are only kept out of new sales by the candidate list
  (available_products); a caller holding a product id can still sell it.

Atomicity:
- Each adjust_stock() call is one store write. A sale's decrements are
  independent writes, applied in line-item order by the commit protocol.
"""


logger = logging.getLogger(__name__)


async def adjust_stock(store: EntityStore, product_id: str, delta: int) -> int | None:
    """
    Apply a signed quantity delta to a product's on-hand quantity.

    Returns the new quantity, or None if the product no longer exists.
    StoreError propagates to the caller.
    """
    record = await store.get(PRODUCTS, product_id)
    if record is None:
        logger.warning("Stock adjustment skipped: product %s not found", product_id)
        return None

    current = int_field(record, "quantity")
    new_quantity = current + delta

    if not await store.update_partial(PRODUCTS, product_id, {"quantity": new_quantity}):
        logger.warning("Stock adjustment skipped: product %s vanished before write", product_id)
        return None

    if new_quantity < 0:
        logger.warning(
            "Product %s stock is negative after adjustment: %s -> %s",
            product_id, current, new_quantity,
        )
    return new_quantity


def available_products(products: Iterable[Product]) -> list[Product]:
    """Products offered when building a new sale: in stock only, by name."""
    return sorted(
        (p for p in products if p.in_stock),
        key=lambda p: ((p.name or "").lower(), p.id),
    )


def low_stock_products(products: Iterable[Product], threshold: int = 0) -> list[Product]:
    """Products at or below threshold, lowest stock first."""
    return sorted(
        (p for p in products if p.quantity <= threshold),
        key=lambda p: (p.quantity, (p.name or "").lower()),
    )
