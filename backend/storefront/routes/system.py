# Overview: Health endpoint for deployment checks.

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import get_sessions, get_storage
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_storage_health() -> dict:
    start_time = time.time()
    try:
        storage = get_storage()
        details = {
            "categories": storage.count_categories(),
            "products": storage.count_products(),
            "users": storage.count_users(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Storage error"}


@system_bp.get("/health")
def health():
    storage = check_storage_health()
    healthy = storage["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "storage": storage,
            "sessions": {"status": "healthy", "active": get_sessions().active_count()},
        },
    }
    return jsonify(body), 200 if healthy else 503
