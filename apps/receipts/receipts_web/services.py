"""Business logic helpers for the Receipts web app."""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import requests
from werkzeug.datastructures import FileStorage

from packages.receipts_core.receipts import coerce_key

from .repositories import ReceiptsRepository

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "employee"
USER_ID_FIELDS = ("userid", "id")
PASSWORD_FIELDS = ("password", "pwd")
ROLE_FIELDS = ("role", "userrole", "user_role")
NAME_FIELDS = ("name", "fullname", "full_name")
_UNSAFE_BLOB_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class ReviewRequestError(RuntimeError):
    """Raised when the review webhook rejects or cannot receive a request."""


@dataclass(slots=True)
class SessionUser:
    """Public profile returned after a successful login."""

    id: Optional[str]
    username: str
    name: str
    role: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class IntakeResult:
    message: str
    blob_name: str
    file_name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "message": self.message,
            "blobName": self.blob_name,
            "fileName": self.file_name,
        }


def normalize_role(raw: Any) -> str:
    """Lowercase and trim a stored role, defaulting to ``employee``."""

    role = str(raw or "").strip().lower()
    return role or DEFAULT_ROLE


def _user_field(user: Mapping[str, Any], names: Tuple[str, ...]) -> Any:
    """Return the first non-blank value among ``names``, ignoring key case."""

    by_name = {str(key).lower(): value for key, value in user.items()}
    for name in names:
        value = by_name.get(name)
        if value is not None and str(value).strip():
            return value
    return None


def authenticate(
    repo: ReceiptsRepository, username: str, password: str
) -> Optional[SessionUser]:
    """Check ``password`` against the stored credential for ``username``.

    Passwords are stored as plain text by the upstream system, so this is a
    direct comparison. Column names vary between deployments and are matched
    case-insensitively. Returns ``None`` for unknown users or a mismatch.
    """

    user = repo.find_user(username)
    if user is None:
        return None
    stored = _user_field(user, PASSWORD_FIELDS)
    if stored is None or not secrets.compare_digest(
        str(stored).encode(), password.encode()
    ):
        return None
    resolved_username = str(
        _user_field(user, ("username", "user_name")) or username
    ).strip()
    return SessionUser(
        id=coerce_key(_user_field(user, USER_ID_FIELDS)),
        username=resolved_username,
        name=str(_user_field(user, NAME_FIELDS) or resolved_username).strip(),
        role=normalize_role(_user_field(user, ROLE_FIELDS)),
        email=str(_user_field(user, ("email",)) or username).strip(),
    )


def intake_blob_name(original_name: str, *, now_ms: Optional[int] = None) -> str:
    """Build the intake object name: ``<epoch-millis>-<cleaned name>``."""

    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{_UNSAFE_BLOB_CHARS.sub('', original_name)}"


def store_intake_file(uploads_dir: Path, upload: FileStorage) -> IntakeResult:
    """Persist an uploaded receipt in the intake folder.

    The extraction pipeline watches this folder; nothing else happens here.
    """

    original_name = upload.filename or "receipt"
    blob_name = intake_blob_name(original_name)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    upload.save(uploads_dir / blob_name)
    logger.info("Stored intake file %s (%s).", blob_name, original_name)
    return IntakeResult(
        message="Receipt uploaded successfully",
        blob_name=blob_name,
        file_name=original_name,
    )


def request_review(
    webhook_url: str, receipt_id: int, justification: str, *, timeout: float
) -> None:
    """Forward a review request for ``receipt_id`` to the approval workflow.

    Raises:
        ReviewRequestError: On transport errors or a non-2xx response.
    """

    payload = {"receiptId": receipt_id, "justification": justification}
    try:
        response = requests.post(webhook_url, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        raise ReviewRequestError(f"Review webhook unreachable: {exc}") from exc
    if not 200 <= response.status_code < 300:
        raise ReviewRequestError(
            f"Request failed: {response.status_code} - {response.text}"
        )
    logger.info("Review requested for receipt %s.", receipt_id)


def jsonable(value: Any) -> Any:
    """Convert database values into JSON-friendly primitives."""

    if isinstance(value, Mapping):
        return {str(key): jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value

