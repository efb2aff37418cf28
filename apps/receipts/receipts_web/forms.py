"""Request parsing and validation helpers.

Each parser returns ``(result, errors)``; ``result`` is ``None`` when
validation fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Tuple

from packages.receipts_core import LedgerQuery
from packages.receipts_core.ledger import DEFAULT_PAGE_SIZE, SORT_DIRECTIONS

MAX_PAGE_SIZE = 100


@dataclass(slots=True)
class LoginFormData:
    username: str
    password: str


@dataclass(slots=True)
class ReviewFormData:
    """Validated review request."""

    receipt_id: int
    justification: str


def parse_login_form(
    payload: Optional[Mapping[str, Any]]
) -> Tuple[Optional[LoginFormData], List[str]]:
    """Validate a login submission."""

    payload = payload or {}
    username = str(payload.get("username") or "").strip()
    password = str(payload.get("password") or "")
    if not username or not password:
        return None, ["Username and password are required"]
    return LoginFormData(username=username, password=password), []


def parse_review_form(
    receipt_id: str, payload: Optional[Mapping[str, Any]]
) -> Tuple[Optional[ReviewFormData], List[str]]:
    """Validate a review request for ``receipt_id``."""

    errors: List[str] = []
    try:
        parsed_id = int(receipt_id)
    except (TypeError, ValueError):
        errors.append("Receipt ID must be an integer.")
        parsed_id = None  # type: ignore[assignment]

    justification = str((payload or {}).get("justification") or "").strip()
    if not justification:
        errors.append("A justification is required.")

    if errors:
        return None, errors
    return ReviewFormData(receipt_id=parsed_id, justification=justification), []


def _parse_positive_int(
    args: Mapping[str, str], name: str, default: int, errors: List[str]
) -> int:
    raw = args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        errors.append(f"{name} must be an integer.")
        return default
    if value < 1:
        errors.append(f"{name} must be at least 1.")
        return default
    return value


def parse_ledger_args(
    args: Mapping[str, str]
) -> Tuple[Optional[LedgerQuery], List[str]]:
    """Build a :class:`LedgerQuery` from receipt table query parameters."""

    errors: List[str] = []
    direction = (args.get("direction") or "asc").strip().lower()
    if direction not in SORT_DIRECTIONS:
        errors.append("direction must be 'asc' or 'desc'.")
    page = _parse_positive_int(args, "page", 1, errors)
    per_page = _parse_positive_int(args, "per_page", DEFAULT_PAGE_SIZE, errors)
    if per_page > MAX_PAGE_SIZE:
        errors.append(f"per_page must be at most {MAX_PAGE_SIZE}.")

    if errors:
        return None, errors

    status = (args.get("status") or "").strip() or None
    return (
        LedgerQuery(
            status=status,
            merchant=(args.get("merchant") or "").strip(),
            employee=(args.get("employee") or "").strip(),
            sort_key=(args.get("sort") or "").strip() or None,
            direction=direction,
            page=page,
            per_page=per_page,
        ),
        [],
    )


def parse_instant(raw: Optional[str]) -> Tuple[Optional[date], List[str]]:
    """Parse an optional ``YYYY-MM-DD`` evaluation date."""

    if not raw:
        return None, []
    try:
        return datetime.strptime(raw.strip(), "%Y-%m-%d").date(), []
    except ValueError:
        return None, ["now must be a date formatted as YYYY-MM-DD."]
