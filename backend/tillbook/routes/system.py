# backend/tillbook/routes/system.py
"""
System health endpoint.
"""

import time

from flask import Blueprint, current_app

from ..services import storage_service
from ..services.concurrency import PersistenceError

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    """Database connectivity check with per-table row counts."""
    start_time = time.time()
    try:
        counts = storage_service.table_counts()
    except PersistenceError:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }, 503

    return {
        "status": "healthy",
        "latency_ms": round((time.time() - start_time) * 1000, 2),
        "details": counts,
    }, 200
