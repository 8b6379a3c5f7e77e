# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..decorators import require_auth
from ..services.cache_service import get_entity_cache
from ..services.customers_service import (
    create_customer,
    update_customer,
    delete_customer,
    search_customers,
)
from ..services.entity_store import StoreError, get_entity_store
from ..validation import CUSTOMER_POLICY, ValidationError, validate_payload


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
async def list_customers():
    """
    List customers.

    Query params:
    - q: str (optional) - matches name or email (case-insensitive) or phone
    """
    cache = get_entity_cache()
    await cache.load(get_entity_store())
    customers = search_customers(cache.customers, request.args.get("q"))
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}


@customers_bp.post("")
@require_auth
async def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        customer = await create_customer(get_entity_store(), patch)
    except StoreError:
        current_app.logger.exception("Failed to create customer")
        return {"error": "Store unavailable"}, 503

    return customer.to_dict(), 201


@customers_bp.put("/<customer_id>")
@require_auth
async def update_customer_route(customer_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=CUSTOMER_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = await update_customer(get_entity_store(), customer_id, patch)
    except StoreError:
        current_app.logger.exception("Failed to update customer")
        return {"error": "Store unavailable"}, 503

    if not updated:
        return {"error": "Customer not found"}, 404

    return {"ok": True}, 200


@customers_bp.delete("/<customer_id>")
@require_auth
async def delete_customer_route(customer_id: str):
    """Delete a customer. Sales that reference it are left as they are."""
    try:
        deleted = await delete_customer(get_entity_store(), customer_id)
    except StoreError:
        current_app.logger.exception("Failed to delete customer")
        return {"error": "Store unavailable"}, 503

    if not deleted:
        return {"error": "Customer not found"}, 404

    return {"ok": True}, 200
