from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..time_utils import to_utc_z
from .fields import datetime_field, str_field


@dataclass(frozen=True)
class Customer:
    """
    Customer master data.

    No uniqueness beyond the store-assigned id. Sales copy the name at commit
    time, so renaming a customer never rewrites history.
    """
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: dict) -> "Customer":
        return cls(
            id=str_field(record, "id") or "",
            name=str_field(record, "name") or "",
            email=str_field(record, "email"),
            phone=str_field(record, "phone"),
            address=str_field(record, "address"),
            created_at=datetime_field(record, "created_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }
