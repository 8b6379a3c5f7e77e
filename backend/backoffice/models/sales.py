from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..time_utils import to_utc_z
from .fields import datetime_field, int_field, str_field


@dataclass(frozen=True)
class SaleItem:
    """
    One product/quantity/price line, embedded by value in its sale.

    product_name, article_number and cost_price_cents are copies taken when
    the line was added; they do not follow later edits to the product.
    """
    product_id: str
    product_name: str
    article_number: str
    quantity: int
    sell_price_cents: int
    cost_price_cents: int
    line_total_cents: int

    @property
    def line_cost_cents(self) -> int:
        return self.cost_price_cents * self.quantity

    @classmethod
    def from_record(cls, record: dict) -> "SaleItem":
        quantity = int_field(record, "quantity")
        sell_price = int_field(record, "sell_price_cents")
        return cls(
            product_id=str_field(record, "product_id") or "",
            product_name=str_field(record, "product_name") or "",
            article_number=str_field(record, "article_number") or "",
            quantity=quantity,
            sell_price_cents=sell_price,
            cost_price_cents=int_field(record, "cost_price_cents"),
            line_total_cents=int_field(record, "line_total_cents", default=quantity * sell_price),
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "article_number": self.article_number,
            "quantity": self.quantity,
            "sell_price_cents": self.sell_price_cents,
            "cost_price_cents": self.cost_price_cents,
            "line_total_cents": self.line_total_cents,
        }


@dataclass(frozen=True)
class Sale:
    """
    Committed sale (append-only history).

    Totals are computed once at commit and frozen; they are never recomputed
    from the items or from the live products.
    """
    id: str
    customer_id: str
    customer_name: str
    items: tuple[SaleItem, ...] = field(default_factory=tuple)
    total_amount_cents: int = 0
    total_cost_cents: int = 0
    profit_cents: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: dict) -> "Sale":
        raw_items = record.get("items") or []
        if isinstance(raw_items, dict):
            raw_items = list(raw_items.values())
        return cls(
            id=str_field(record, "id") or "",
            customer_id=str_field(record, "customer_id") or "",
            customer_name=str_field(record, "customer_name") or "",
            items=tuple(SaleItem.from_record(i) for i in raw_items if isinstance(i, dict)),
            total_amount_cents=int_field(record, "total_amount_cents"),
            total_cost_cents=int_field(record, "total_cost_cents"),
            profit_cents=int_field(record, "profit_cents"),
            created_at=datetime_field(record, "created_at"),
        )

    def to_record(self) -> dict:
        """Store payload; the id is assigned by the store and left out."""
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "items": [item.to_dict() for item in self.items],
            "total_amount_cents": self.total_amount_cents,
            "total_cost_cents": self.total_cost_cents,
            "profit_cents": self.profit_cents,
            "created_at": to_utc_z(self.created_at),
        }

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_record()}
