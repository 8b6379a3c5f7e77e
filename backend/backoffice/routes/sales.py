# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/backoffice/routes/sales.py
"""Sales API routes: draft composition, commit, history and invoices."""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services import sales_service
from ..services.cache_service import get_entity_cache
from ..services.entity_store import StoreError, get_entity_store
from ..services.sales_service import get_draft_book


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _draft_response(draft_id: str, composer, status: int = 200, **extra):
    return jsonify({"draft_id": draft_id, "draft": composer.to_dict(), **extra}), status


def _draft_not_found():
    return jsonify({"error": "Draft not found"}), 404


@sales_bp.get("")
@require_auth
async def list_sales_route():
    """
    List committed sales, newest first.

    Query params:
    - q: str (optional) - customer name (case-insensitive) or sale id fragment
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default SALES_PAGE_SIZE, max 100)
    """
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    matched = sales_service.search_sales(cache.sales, request.args.get("q"))
    result = sales_service.paginate(
        matched,
        request.args.get("page", type=int),
        request.args.get("per_page", type=int),
    )
    result["items"] = [s.to_dict() for s in result["items"]]
    return jsonify(result), 200


@sales_bp.get("/<sale_id>")
@require_auth
async def get_sale_route(sale_id: str):
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    sale = cache.sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.delete("/<sale_id>")
@require_auth
async def delete_sale_route(sale_id: str):
    """Delete a sale from history. Stock is not put back."""
    try:
        deleted = await sales_service.delete_sale(get_entity_store(), sale_id)
    except StoreError:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Store unavailable"}), 503

    if not deleted:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"ok": True}), 200


@sales_bp.get("/<sale_id>/invoice")
@require_auth
async def sale_invoice_route(sale_id: str):
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    sale = cache.sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    customer = cache.customer(sale.customer_id)
    if not customer:
        return jsonify({"error": "Customer not found"}), 404

    return jsonify({"invoice": sales_service.build_invoice(sale, customer)}), 200


@sales_bp.post("/drafts")
@require_auth
async def open_draft_route():
    """Start a new, empty draft sale."""
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    draft_id, composer = get_draft_book().open(cache)
    return _draft_response(draft_id, composer, 201)


@sales_bp.get("/drafts/<draft_id>")
@require_auth
def get_draft_route(draft_id: str):
    composer = get_draft_book().get(draft_id)
    if composer is None:
        return _draft_not_found()
    return _draft_response(draft_id, composer)


@sales_bp.put("/drafts/<draft_id>/customer")
@require_auth
def select_customer_route(draft_id: str):
    composer = get_draft_book().get(draft_id)
    if composer is None:
        return _draft_not_found()

    data = request.get_json(silent=True) or {}
    composer.select_customer(data.get("customer_id"))
    return _draft_response(draft_id, composer)


@sales_bp.post("/drafts/<draft_id>/items")
@require_auth
async def add_draft_item_route(draft_id: str):
    """
    Add a line to the draft.

    Incomplete input (missing product, quantity or price) is ignored and the
    unchanged draft is returned with "item": null.
    """
    composer = get_draft_book().get(draft_id)
    if composer is None:
        return _draft_not_found()

    await get_entity_cache().load(get_entity_store())

    data = request.get_json(silent=True) or {}
    item = composer.add_item(
        data.get("product_id"),
        data.get("quantity"),
        data.get("sell_price_cents"),
    )
    return _draft_response(draft_id, composer, item=item.to_dict() if item else None)


@sales_bp.delete("/drafts/<draft_id>/items/<index>")
@require_auth
def remove_draft_item_route(draft_id: str, index: str):
    composer = get_draft_book().get(draft_id)
    if composer is None:
        return _draft_not_found()

    removed = composer.remove_item(index)
    return _draft_response(draft_id, composer, removed=removed.to_dict() if removed else None)


@sales_bp.delete("/drafts/<draft_id>")
@require_auth
def cancel_draft_route(draft_id: str):
    if not get_draft_book().discard(draft_id):
        return _draft_not_found()
    return jsonify({"ok": True}), 200


@sales_bp.post("/drafts/<draft_id>/commit")
@require_auth
async def commit_draft_route(draft_id: str):
    """
    Commit the draft: persist the sale, then decrement stock line by line.

    A draft without a customer or without lines is left as is
    ("committed": false). "complete": false means the sale was recorded but
    some stock decrements did not land (see "stock_pending").
    """
    book = get_draft_book()
    composer = book.get(draft_id)
    if composer is None:
        return _draft_not_found()

    # the customer may have been created after the draft's last load
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    try:
        result = await sales_service.commit_sale(get_entity_store(), cache, composer)
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500

    if result is None:
        return _draft_response(draft_id, composer, committed=False)

    book.discard(draft_id)
    return jsonify({"committed": True, **result.to_dict()}), 201
