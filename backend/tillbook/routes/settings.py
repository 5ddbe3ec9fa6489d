from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..services import settings_service
from ..services.concurrency import PersistenceError
from ..services.settings_service import SettingsValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def load_settings_route():
    try:
        settings = settings_service.load_settings()
    except PersistenceError:
        current_app.logger.exception("Failed to load settings")
        return jsonify({"error": "Failed to load settings"}), 500

    return jsonify(settings.to_dict()), 200


@settings_bp.put("")
def save_settings_route():
    """
    Save store settings. Keys omitted from the body keep their current value.
    """
    payload = request.get_json(silent=True)

    try:
        settings = settings_service.update_settings(payload)
    except SettingsValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except PersistenceError:
        current_app.logger.exception("Failed to save settings")
        return jsonify({"error": "Failed to save settings"}), 500

    return jsonify(settings.to_dict()), 200
