"""HTTP routes for receipt intake and review requests."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from ..forms import parse_review_form
from ..services import ReviewRequestError, request_review, store_intake_file

receipts_bp = Blueprint("receipts", __name__)


@receipts_bp.post("/api/uploads")
def upload_receipt() -> Tuple[Response, int]:
    """Drop an uploaded receipt into the intake folder."""

    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"errors": ["A receipt file is required."]}), 400
    result = store_intake_file(Path(current_app.config["UPLOAD_FOLDER"]), upload)
    return jsonify(result.to_dict()), 201


@receipts_bp.post("/api/receipts/<receipt_id>/review")
def review_receipt(receipt_id: str) -> Tuple[Response, int]:
    """Ask the approval workflow to re-review a receipt."""

    form_data, errors = parse_review_form(receipt_id, request.get_json(silent=True))
    if errors or form_data is None:
        return jsonify({"errors": errors}), 400

    webhook_url = current_app.config.get("REVIEW_WEBHOOK_URL")
    if not webhook_url:
        current_app.logger.warning("Review requested but no webhook is configured.")
        return jsonify({"error": "Review workflow is not configured."}), 503

    try:
        request_review(
            webhook_url,
            form_data.receipt_id,
            form_data.justification,
            timeout=current_app.config["REVIEW_TIMEOUT"],
        )
    except ReviewRequestError as exc:
        current_app.logger.warning("Review request failed: %s", exc)
        return jsonify({"error": str(exc)}), 502
    return jsonify({"message": "Review request sent to Admin."}), 202
