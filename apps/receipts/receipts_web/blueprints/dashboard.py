"""HTTP routes exposing the CFO and employee dashboards."""

from __future__ import annotations

from typing import Tuple

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from packages.receipts_core import (
    build_employee_summary,
    compute_bulk_dashboard,
    list_receipts,
)

from .. import get_repository
from ..forms import parse_instant, parse_ledger_args
from ..services import jsonable

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.errorhandler(SQLAlchemyError)
def database_unavailable(exc: SQLAlchemyError) -> Tuple[Response, int]:
    """Report receipt fetch failures as JSON."""

    current_app.logger.error("Receipt query failed: %s", exc)
    return (
        jsonify({"error": "Database connection failed", "message": str(exc)}),
        500,
    )


@dashboard_bp.get("/health")
def health() -> Response:
    return jsonify({"status": "ok"})


@dashboard_bp.get("/api/dashboard")
def bulk_dashboard() -> Response | Tuple[Response, int]:
    """Return the four CFO dashboard series."""

    now, errors = parse_instant(request.args.get("now"))
    if errors:
        return jsonify({"errors": errors}), 400
    repo = get_repository()
    receipts = repo.fetch_receipts()
    users = repo.fetch_users()
    dashboard = compute_bulk_dashboard(receipts, users, now=now)
    return jsonify(dashboard.to_dict())


@dashboard_bp.get("/api/employees/<subject>/dashboard")
def employee_dashboard(subject: str) -> Response | Tuple[Response, int]:
    """Return the personal dashboard for an employee id or username."""

    now, errors = parse_instant(request.args.get("now"))
    if errors:
        return jsonify({"errors": errors}), 400
    receipts = get_repository().fetch_receipts()
    summary = build_employee_summary(receipts, subject, now=now)
    return jsonify(jsonable(summary.to_dict()))


@dashboard_bp.get("/api/receipts")
def receipts_ledger() -> Response | Tuple[Response, int]:
    """Return one filtered, sorted page of the receipts table."""

    query, errors = parse_ledger_args(request.args)
    if errors or query is None:
        return jsonify({"errors": errors}), 400
    repo = get_repository()
    page = list_receipts(repo.fetch_receipts(), repo.fetch_users(), query)
    return jsonify(
        {
            "items": jsonable(page.items),
            "total": page.total,
            "page": page.page,
            "pages": page.pages,
            "merchants": page.merchants,
            "employees": page.employees,
        }
    )


@dashboard_bp.get("/api/users")
def users() -> Response:
    """Return the user directory without credentials."""

    return jsonify({"value": jsonable(get_repository().fetch_users())})
