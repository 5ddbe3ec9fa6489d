from flask import Blueprint, current_app, jsonify, request

from tillbook.services import reporting_service
from tillbook.services.concurrency import PersistenceError
from tillbook.validation import coerce_int, ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _report_failed(name: str):
    current_app.logger.exception("Failed to build %s report", name)
    return jsonify({"error": f"Failed to load {name} report"}), 500


@reports_bp.get("/transactions")
def transactions_report():
    try:
        items = reporting_service.list_transactions()
    except PersistenceError:
        return _report_failed("transactions")
    return jsonify({"items": items}), 200


@reports_bp.get("/product-performance")
def product_performance_report():
    try:
        items = reporting_service.product_performance()
    except PersistenceError:
        return _report_failed("product performance")
    return jsonify({"items": items}), 200


@reports_bp.get("/low-stock")
def low_stock_report():
    threshold = request.args.get("threshold")

    try:
        if threshold is not None:
            threshold = coerce_int("threshold", threshold)
        items = reporting_service.low_stock_products(threshold=threshold)
    except (ValidationError, reporting_service.ReportError) as exc:
        return jsonify({"error": str(exc)}), 400
    except PersistenceError:
        return _report_failed("low stock")

    return jsonify({"items": items}), 200


@reports_bp.get("/revenue-overview")
def revenue_overview_report():
    try:
        overview = reporting_service.revenue_overview()
    except PersistenceError:
        return _report_failed("revenue")
    return jsonify(overview), 200
