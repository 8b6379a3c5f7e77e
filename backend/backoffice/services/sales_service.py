"""
Sales Service - draft composition and the sale commit protocol

A sale is built in memory (SaleComposer), then committed: persisted as one
record and followed by one stock decrement per line. The two steps are not
atomic; a failed decrement after a successful persist is reported, never
rolled back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable

from flask import current_app

from ..models import Customer, Sale, SaleItem
from ..time_utils import utcnow, to_utc_z
from .cache_service import EntityCache
from .entity_store import SALES, EntityStore, StoreError
from .inventory_service import adjust_stock


logger = logging.getLogger(__name__)


def _parse_int(value) -> int | None:
    """Form-style integer parsing; None for unset or unparseable input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            return None
    return None


def sale_totals(items: Iterable[SaleItem]) -> tuple[int, int, int]:
    """(total_amount_cents, total_cost_cents, profit_cents) for a set of lines."""
    items = list(items)
    total_amount = sum(item.line_total_cents for item in items)
    total_cost = sum(item.cost_price_cents * item.quantity for item in items)
    return total_amount, total_cost, total_amount - total_cost


class SaleComposer:
    """
    Draft sale: a selected customer plus an ordered list of line items.

    Missing input is ignored rather than reported: add_item() and
    remove_item() return None and leave the draft untouched.
    """

    def __init__(self, cache: EntityCache):
        self._cache = cache
        self.selected_customer_id: str | None = None
        self.items: list[SaleItem] = []

    def select_customer(self, customer_id: str | None) -> None:
        self.selected_customer_id = customer_id or None

    def add_item(self, product_id, quantity, sell_price_cents) -> SaleItem | None:
        if not product_id:
            return None
        qty = _parse_int(quantity)
        price = _parse_int(sell_price_cents)
        if qty is None or price is None:
            return None

        product = self._cache.product(str(product_id))
        if product is None:
            return None

        item = SaleItem(
            product_id=product.id,
            product_name=product.name,
            article_number=product.article_number,
            quantity=qty,
            sell_price_cents=price,
            cost_price_cents=product.cost_cents,
            line_total_cents=qty * price,
        )
        self.items.append(item)
        return item

    def remove_item(self, index) -> SaleItem | None:
        position = _parse_int(index)
        if position is None or not 0 <= position < len(self.items):
            return None
        return self.items.pop(position)

    def draft_total(self) -> int:
        return sum(item.line_total_cents for item in self.items)

    def draft_cost(self) -> int:
        return sum(item.line_cost_cents for item in self.items)

    def draft_profit(self) -> int:
        return self.draft_total() - self.draft_cost()

    @property
    def ready(self) -> bool:
        return bool(self.selected_customer_id) and bool(self.items)

    def reset(self) -> None:
        self.selected_customer_id = None
        self.items = []

    def to_dict(self) -> dict:
        return {
            "customer_id": self.selected_customer_id,
            "items": [item.to_dict() for item in self.items],
            "total_amount_cents": self.draft_total(),
            "total_cost_cents": self.draft_cost(),
            "profit_cents": self.draft_profit(),
            "ready": self.ready,
        }


@dataclass
class CommitResult:
    """Outcome of a commit whose sale record was persisted."""
    sale: Sale
    stock_applied: list[SaleItem] = field(default_factory=list)
    stock_pending: list[SaleItem] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.stock_pending

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "complete": self.complete,
            "stock_applied": [item.to_dict() for item in self.stock_applied],
            "stock_pending": [item.to_dict() for item in self.stock_pending],
        }


async def commit_sale(
    store: EntityStore,
    cache: EntityCache,
    composer: SaleComposer,
    *,
    now: datetime | None = None,
) -> CommitResult | None:
    """
    Persist the draft as a sale and decrement stock for each line.

    Returns None, with no store calls, unless a known customer is selected
    and the draft has at least one line. Returns None as well if the sale
    record itself could not be written; the draft is then kept.
    """
    if not composer.ready:
        return None

    customer = cache.customer(composer.selected_customer_id)
    if customer is None:
        logger.warning(
            "Sale not committed: customer %s not found", composer.selected_customer_id
        )
        return None

    items = tuple(composer.items)
    total_amount, total_cost, profit = sale_totals(items)

    sale = Sale(
        id="",
        customer_id=customer.id,
        customer_name=customer.name,
        items=items,
        total_amount_cents=total_amount,
        total_cost_cents=total_cost,
        profit_cents=profit,
        created_at=now or utcnow(),
    )

    try:
        sale_id = await store.create(SALES, sale.to_record())
    except StoreError:
        logger.exception("Error completing sale for customer %s", customer.id)
        return None

    sale = replace(sale, id=sale_id)
    result = CommitResult(sale=sale)

    for item in items:
        if result.stock_pending:
            result.stock_pending.append(item)
            continue
        try:
            new_quantity = await adjust_stock(store, item.product_id, -item.quantity)
        except StoreError:
            logger.exception(
                "Stock decrement failed for product %s on sale %s",
                item.product_id, sale_id,
            )
            result.stock_pending.append(item)
            continue
        if new_quantity is None:
            # product deleted between add_item and commit
            result.stock_pending.append(item)
            continue
        result.stock_applied.append(item)

    if result.stock_pending:
        logger.error(
            "Stock drift after sale %s: %d of %d decrements applied; pending products: %s",
            sale_id,
            len(result.stock_applied),
            len(items),
            ", ".join(f"{i.product_id} x{i.quantity}" for i in result.stock_pending),
        )

    await cache.load(store)
    composer.reset()

    logger.info(
        "Sale %s committed for customer %s: total=%s cost=%s profit=%s",
        sale_id, customer.id, total_amount, total_cost, profit,
    )
    return result


async def delete_sale(store: EntityStore, sale_id: str) -> bool:
    """Remove a sale from history. Stock is not restored."""
    return await store.delete(SALES, sale_id)


def search_sales(sales: Iterable[Sale], term: str | None) -> list[Sale]:
    """Match on customer name (case-insensitive) or sale id; newest first."""
    needle = (term or "").strip()
    lowered = needle.lower()
    matched = [
        s for s in sales
        if not needle or lowered in (s.customer_name or "").lower() or needle in (s.id or "")
    ]
    return sorted(matched, key=lambda s: s.created_at or datetime.min, reverse=True)


def paginate(items: list, page: int | None, per_page: int | None = None) -> dict:
    """Slice a list the way the API paginates; page=None returns everything."""
    if page is None:
        return {"items": items, "count": len(items)}

    per_page = max(1, min(per_page or current_app.config.get("SALES_PAGE_SIZE", 10), 100))
    page = max(page, 1)

    total = len(items)
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    window = items[(page - 1) * per_page: page * per_page]

    return {
        "items": window,
        "count": len(window),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def build_invoice(sale: Sale, customer: Customer) -> dict:
    """Printable invoice data: the frozen sale joined with live contact details."""
    return {
        "invoice_number": sale.id,
        "date": to_utc_z(sale.created_at),
        "customer": {
            "id": customer.id,
            "name": customer.name,
            "email": customer.email,
            "phone": customer.phone,
            "address": customer.address,
        },
        "items": [item.to_dict() for item in sale.items],
        "total_amount_cents": sale.total_amount_cents,
    }


class DraftBook:
    """Open drafts by id. One operator per process; no locking."""

    def __init__(self):
        self._drafts: dict[str, SaleComposer] = {}

    def open(self, cache: EntityCache) -> tuple[str, SaleComposer]:
        draft_id = uuid.uuid4().hex
        composer = SaleComposer(cache)
        self._drafts[draft_id] = composer
        return draft_id, composer

    def get(self, draft_id: str) -> SaleComposer | None:
        return self._drafts.get(draft_id)

    def discard(self, draft_id: str) -> bool:
        composer = self._drafts.pop(draft_id, None)
        if composer is None:
            return False
        composer.reset()
        return True


def get_draft_book() -> DraftBook:
    return current_app.extensions["sale_drafts"]
