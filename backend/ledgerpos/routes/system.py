# Overview: Health endpoint.

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db, record_cache

system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
def health():
    """Database round-trip plus record cache counters. No authentication."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        database = {"status": "healthy", "latency_ms": round((time.time() - start_time) * 1000, 2)}
        status_code = 200
    except Exception as e:
        current_app.logger.exception("Health check failed")
        db.session.rollback()
        database = {"status": "unhealthy", "error": str(e)}
        status_code = 503

    return jsonify({
        "status": "healthy" if status_code == 200 else "unhealthy",
        "database": database,
        "cache": record_cache.stats(),
    }), status_code
