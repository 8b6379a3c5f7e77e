from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..services import reporting_service
from ..services.cache_service import get_entity_cache
from ..services.entity_store import get_entity_store
from ..time_utils import parse_iso_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/pnl")
@require_auth
async def profit_and_loss_report():
    try:
        period = reporting_service.parse_period(request.args.get("period"))
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except ValueError:
        return jsonify({"error": "start and end must be YYYY-MM-DD dates"}), 400

    cache = get_entity_cache()
    await cache.load(get_entity_store())

    report = reporting_service.profit_and_loss(
        cache.sales,
        period,
        start,
        end,
        tz_name=current_app.config["REPORT_TIMEZONE"],
    )
    return jsonify(report), 200


@reports_bp.get("/dashboard")
@require_auth
async def dashboard_report():
    cache = get_entity_cache()
    await cache.load(get_entity_store())

    stats = reporting_service.dashboard_stats(
        cache.customers,
        cache.products,
        cache.sales,
        low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
    )
    return jsonify(stats), 200
