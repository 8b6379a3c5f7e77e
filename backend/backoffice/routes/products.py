# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/backoffice/routes/products.py
"""
Product management routes.

All routes require authentication. Writes go straight to the entity store;
reads refresh the in-memory cache first and fall back to the last good copy
if the store is unreachable.
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth
from ..services.cache_service import get_entity_cache
from ..services.entity_store import StoreError, get_entity_store
from ..services.inventory_service import available_products
from ..services.products_service import (
    create_product,
    update_product,
    delete_product,
    search_products,
)
from ..validation import PRODUCT_POLICY, ValidationError, validate_payload


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
async def list_products():
    """
    List all products.

    Query params:
    - q: str (optional) - matches name or article number (case-insensitive)
    """
    cache = get_entity_cache()
    await cache.load(get_entity_store())
    products = search_products(cache.products, request.args.get("q"))
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/available")
@require_auth
async def list_available_products():
    """Products that can be picked for a new sale (quantity > 0)."""
    cache = get_entity_cache()
    await cache.load(get_entity_store())
    products = available_products(cache.products)
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.post("")
@require_auth
async def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        product = await create_product(get_entity_store(), patch)
    except StoreError:
        current_app.logger.exception("Failed to create product")
        return {"error": "Store unavailable"}, 503

    return product.to_dict(), 201


@products_bp.put("/<product_id>")
@require_auth
async def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = await update_product(get_entity_store(), product_id, patch)
    except StoreError:
        current_app.logger.exception("Failed to update product")
        return {"error": "Store unavailable"}, 503

    if not updated:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.delete("/<product_id>")
@require_auth
async def delete_product_route(product_id: str):
    try:
        deleted = await delete_product(get_entity_store(), product_id)
    except StoreError:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Store unavailable"}, 503

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
