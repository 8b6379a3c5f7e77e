# Overview: Customer create/update/delete against the entity store, plus list search.

from __future__ import annotations

from typing import Iterable

from ..models import Customer
from ..time_utils import utcnow, to_utc_z
from .entity_store import CUSTOMERS, EntityStore

CUSTOMER_MUTABLE_FIELDS = {"name", "email", "phone", "address"}


def _writable(patch: dict) -> dict:
    return {k: v for k, v in patch.items() if k in CUSTOMER_MUTABLE_FIELDS}


async def create_customer(store: EntityStore, patch: dict) -> Customer:
    record = {**_writable(patch), "created_at": to_utc_z(utcnow())}
    customer_id = await store.create(CUSTOMERS, record)
    return Customer.from_record({**record, "id": customer_id})


async def update_customer(store: EntityStore, customer_id: str, patch: dict) -> bool:
    """
    Merge editable fields into the stored customer.

    Sales already committed keep the customer name they copied.
    """
    return await store.update_partial(CUSTOMERS, customer_id, _writable(patch))


async def delete_customer(store: EntityStore, customer_id: str) -> bool:
    # no cascade: historical sales keep the dangling customer_id
    return await store.delete(CUSTOMERS, customer_id)


def search_customers(customers: Iterable[Customer], term: str | None) -> list[Customer]:
    needle = (term or "").strip()
    lowered = needle.lower()

    def _matches(c: Customer) -> bool:
        if not needle:
            return True
        return (
            lowered in (c.name or "").lower()
            or lowered in (c.email or "").lower()
            or needle in (c.phone or "")
        )

    return sorted(
        (c for c in customers if _matches(c)),
        key=lambda c: ((c.name or "").lower(), c.id),
    )
