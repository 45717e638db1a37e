"""
Main routes (index, health).
"""

from flask import Blueprint, current_app, jsonify

from routes.helpers import get_engine


main_bp = Blueprint("main", __name__)


@main_bp.route("/", methods=["GET"])
def index():
    """Landing document listing the queue's entry points."""
    return jsonify({
        "service": "print_queue",
        "endpoints": {
            "customer_queue": "/api/queue",
            "submit": "/api/jobs",
            "quote": "/api/quote",
            "refresh": "/api/refresh",
            "operator": "/api/admin",
        },
    })


@main_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {},
    }

    engine = current_app.config.get("QUEUE_ENGINE")
    if engine is not None:
        health_status["checks"]["queue"] = f"{len(get_engine().jobs)} jobs"
    else:
        health_status["checks"]["queue"] = "not_initialized"
        health_status["status"] = "degraded"

    ticker = current_app.config.get("QUEUE_TICKER")
    health_status["checks"]["ticker"] = (
        "running" if ticker is not None and ticker.is_running else "stopped"
    )

    status_code = 200 if health_status["status"] == "ok" else 503
    return jsonify(health_status), status_code
