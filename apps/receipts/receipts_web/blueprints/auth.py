"""Login endpoint backed by the Users table."""

from __future__ import annotations

from typing import Tuple

from flask import Blueprint, Response, current_app, jsonify, request, session
from sqlalchemy.exc import SQLAlchemyError

from .. import get_repository
from ..forms import parse_login_form
from ..services import authenticate

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/api/login")
def login() -> Tuple[Response, int]:
    """Authenticate a user and remember the profile in the session."""

    form_data, errors = parse_login_form(request.get_json(silent=True))
    if errors or form_data is None:
        return jsonify({"error": errors[0]}), 400

    try:
        user = authenticate(get_repository(), form_data.username, form_data.password)
    except SQLAlchemyError as exc:
        current_app.logger.error("Login query failed: %s", exc)
        return jsonify({"error": str(exc)}), 500
    if user is None:
        current_app.logger.info("Rejected login for %s.", form_data.username)
        return jsonify({"error": "Invalid credentials"}), 401

    session["user"] = user.to_dict()
    return jsonify(user.to_dict()), 200


@auth_bp.post("/api/logout")
def logout() -> Tuple[Response, int]:
    """Clear the signed-in user from the session."""

    session.pop("user", None)
    return jsonify({"message": "Logged out"}), 200
