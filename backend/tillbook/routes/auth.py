# Overview: Flask API routes for auth; login check and password change.

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..services.auth_service import PasswordValidationError, UserNotFoundError
from ..services.concurrency import PersistenceError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Check a username/password pair.

    Always 200 for well-formed requests; "authenticated" is False on any
    mismatch without saying which part was wrong.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str):
        return jsonify({"error": "username and password required"}), 400

    try:
        ok = auth_service.login(username, password)
    except PersistenceError:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "authenticated": ok,
        "password_change_required": ok and auth_service.password_change_required(username),
    }), 200


@auth_bp.post("/password")
def set_password_route():
    """Replace a user's password."""
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    new_password = data.get("new_password")

    if not isinstance(username, str) or not isinstance(new_password, str):
        return jsonify({"error": "username and new_password required"}), 400

    try:
        auth_service.set_password(username, new_password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError:
        current_app.logger.exception("Failed to set password")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200
