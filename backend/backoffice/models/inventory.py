from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..time_utils import to_utc_z
from .fields import datetime_field, int_field, str_field


@dataclass(frozen=True)
class Product:
    """
    Product with its on-hand quantity.

    quantity is expected to stay >= 0 but nothing enforces it: a committed
    sale may drive it negative. cost_cents is likewise unvalidated.
    """
    id: str
    article_number: str
    name: str
    cost_cents: int = 0
    quantity: int = 0
    created_at: datetime | None = None

    @property
    def in_stock(self) -> bool:
        return self.quantity > 0

    @classmethod
    def from_record(cls, record: dict) -> "Product":
        return cls(
            id=str_field(record, "id") or "",
            article_number=str_field(record, "article_number") or "",
            name=str_field(record, "name") or "",
            cost_cents=int_field(record, "cost_cents"),
            quantity=int_field(record, "quantity"),
            created_at=datetime_field(record, "created_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "article_number": self.article_number,
            "name": self.name,
            "cost_cents": self.cost_cents,
            "quantity": self.quantity,
            "created_at": to_utc_z(self.created_at),
        }
