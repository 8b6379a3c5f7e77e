# backend/backoffice/routes/system.py
"""System health endpoint; reports whether the entity store answers."""

import time
from flask import Blueprint, current_app

from ..services.entity_store import COLLECTIONS, StoreError, get_entity_store

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


async def check_store_health() -> dict:
    """
    Count records per collection as a round-trip check.

    Returns dict with status and details.
    """
    start_time = time.time()
    store = get_entity_store()
    try:
        counts = {name: len(await store.list_all(name)) for name in COLLECTIONS}
    except StoreError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Entity store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }

    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "status": "healthy",
        "latency_ms": round(elapsed_ms, 2),
        "details": {
            "backend": current_app.config["STORE_BACKEND"],
            **counts,
        },
    }


@system_bp.get("/health")
async def health():
    store = await check_store_health()
    status_code = 200 if store["status"] == "healthy" else 503
    return {"status": store["status"], "checks": {"store": store}}, status_code
