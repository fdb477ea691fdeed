"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

from __future__ import annotations

"""Administrative routes for the NWS alert poller."""

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from app_core.extensions import db
from app_core.models import SystemLog
from app_core.poll_log import clear_poll_log, read_poll_log
from app_core.poll_status import build_poll_status
from app_core.poller_settings import (
    PollerSettingsError,
    get_poller_settings,
    update_poller_settings,
)
from app_utils import POLL_INTERVAL_LABELS, local_now, utc_now
from poller import alert_importer

logger = logging.getLogger(__name__)

# Create Blueprint for poller routes
poller_bp = Blueprint("nws_poller", __name__)


def register_poller_routes(app, logger):
    """Attach NWS poller endpoints to the Flask app."""

    app.register_blueprint(poller_bp)
    logger.info("NWS poller routes registered")


# Route definitions

@poller_bp.route("/admin/nws/settings", methods=["GET", "PUT"])
def poller_settings():
    try:
        if request.method == "GET":
            return jsonify({
                "settings": get_poller_settings(),
                "intervals": POLL_INTERVAL_LABELS,
            })

        payload = request.get_json(silent=True) or {}
        updated = update_poller_settings({
            "poll_interval": payload.get("poll_interval"),
            "user_agent": payload.get("user_agent"),
        })
        return jsonify({"success": "Poller settings updated", "settings": updated})
    except PollerSettingsError as exc:
        logger.error("Error saving poller settings: %s", exc)
        return jsonify({"error": str(exc)}), 500


@poller_bp.route("/admin/nws/poll", methods=["POST"])
def poll_now():
    """Manual trigger; runs the same gated cycle as the scheduler."""

    try:
        db.session.add(
            SystemLog(
                level="INFO",
                message="Manual NWS poll triggered",
                module="admin",
                details={
                    "triggered_at_utc": utc_now().isoformat(),
                    "triggered_at_local": local_now().isoformat(),
                },
            )
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        logger.warning("Failed to record manual poll trigger: %s", exc)
        db.session.rollback()

    result = alert_importer.poll_alerts()
    status_code = 502 if result.get("status") == alert_importer.STATUS_ERROR else 200
    return jsonify({"success": True, "data": result}), status_code


@poller_bp.route("/admin/nws/status", methods=["GET"])
def poller_status():
    try:
        return jsonify(build_poll_status())
    except SQLAlchemyError as exc:
        logger.error("Failed to build poller status: %s", exc)
        db.session.rollback()
        return jsonify({"error": "Failed to load poller status."}), 500


@poller_bp.route("/admin/nws/log", methods=["GET", "DELETE"])
def poller_log():
    try:
        if request.method == "DELETE":
            removed = clear_poll_log()
            return jsonify({"cleared": removed})

        max_bytes = request.args.get("max_bytes", default=65536, type=int)
        return jsonify({"log": read_poll_log(max_bytes=max(1024, max_bytes))})
    except OSError as exc:
        logger.error("Poll log access failed: %s", exc)
        return jsonify({"error": f"Poll log unavailable: {exc}"}), 500


__all__ = ["poller_bp", "register_poller_routes"]
