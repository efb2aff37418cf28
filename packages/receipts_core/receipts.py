"""Receipt normalisation helpers.

Receipt rows arrive from the extraction pipeline in an inconsistent shape:
the owner identifier can live under several column names, the status column
carries stray quote characters left behind by upstream storage, and amounts
may be strings. The helpers below resolve a raw row into a
:class:`NormalizedReceipt` once so the dashboard folds only ever see the
canonical shape.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple

OWNER_KEY_FIELDS: Tuple[str, ...] = ("UserID", "UserId", "EmployeeId")
RECEIPT_ID_FIELDS: Tuple[str, ...] = ("Id", "id")
EFFECTIVE_DATE_FIELDS: Tuple[str, ...] = (
    "ApprovalDate",
    "ApprovedDate",
    "TransactionDate",
)
NAME_HINT_FIELDS: Tuple[str, ...] = ("EmployeeName", "Username", "UserName")

UNKNOWN_VENDOR = "Unknown"

_QUOTE_CHARS = "\"'"
_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_CENTS = Decimal("0.01")


class ReceiptStatus(str, Enum):
    """Canonical approval outcomes."""

    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(slots=True, frozen=True)
class NormalizedReceipt:
    """Receipt with every semantic field resolved to a single value."""

    owner_key: Optional[str]
    vendor: str
    amount: float
    status: ReceiptStatus
    effective_date: Optional[str]
    display_name: str = ""
    name_hints: Tuple[str, ...] = ()
    receipt_id: Optional[str] = None

    @property
    def is_attributable(self) -> bool:
        return self.owner_key is not None

    @property
    def is_approved(self) -> bool:
        return self.status is ReceiptStatus.APPROVED


def strip_storage_quotes(value: str) -> str:
    """Remove one leading and one trailing quote left by upstream storage.

    ``'"Approved" '`` becomes ``'Approved'``. Whitespace is trimmed on both
    sides of the quotes.
    """

    cleaned = value.strip()
    if cleaned and cleaned[0] in _QUOTE_CHARS:
        cleaned = cleaned[1:]
    if cleaned and cleaned[-1] in _QUOTE_CHARS:
        cleaned = cleaned[:-1]
    return cleaned.strip()


def normalize_status(raw: Any) -> ReceiptStatus:
    """Map a raw status value onto :class:`ReceiptStatus`.

    Never raises: ``None``, empty values and anything unrecognised resolve to
    :attr:`ReceiptStatus.UNKNOWN`.
    """

    if raw is None:
        return ReceiptStatus.UNKNOWN
    try:
        text = raw if isinstance(raw, str) else str(raw)
    except Exception:  # arbitrary objects may have a broken __str__
        return ReceiptStatus.UNKNOWN
    cleaned = strip_storage_quotes(text).lower()
    for status in (ReceiptStatus.APPROVED, ReceiptStatus.PENDING, ReceiptStatus.REJECTED):
        if cleaned == status.value:
            return status
    return ReceiptStatus.UNKNOWN


def coerce_key(value: Any) -> Optional[str]:
    """Return the string form of an identifier, or ``None`` when blank.

    Integral floats render without a trailing ``.0`` so ``7.0`` and ``7``
    produce the same key.
    """

    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def first_key(record: Mapping[str, Any], fields: Sequence[str]) -> Optional[str]:
    """Return the first non-blank identifier found under ``fields``."""

    for field_name in fields:
        key = coerce_key(record.get(field_name))
        if key is not None:
            return key
    return None


def first_text(record: Mapping[str, Any], fields: Sequence[str]) -> str:
    """Return the first non-empty text value found under ``fields``."""

    for field_name in fields:
        value = record.get(field_name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def coerce_amount(value: Any) -> float:
    """Convert ``value`` to a float, falling back to ``0.0``."""

    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def round_cents(value: float) -> float:
    """Round ``value`` half-up to two decimal places."""

    try:
        return float(Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0.0


def parse_calendar_date(value: Any) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` portion of ``value`` when it is a real date."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    match = _ISO_DATE_PREFIX.match(value.strip())
    if match is None:
        return None
    try:
        return date.fromisoformat(match.group(1)).isoformat()
    except ValueError:
        return None


def _utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def timestamp_sort_key(value: Any) -> str:
    """Return an ISO string usable for ordering; missing values sort first.

    Offset-aware timestamps are shifted to UTC so rows stamped in different
    zones order by the actual instant. Text that is not ISO 8601 is compared
    as-is.
    """

    if isinstance(value, datetime):
        return _utc_naive(value).isoformat()
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time()).isoformat()
    if not isinstance(value, str):
        return ""
    text = value.strip()
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _utc_naive(datetime.fromisoformat(candidate)).isoformat()
    except ValueError:
        return text


def resolve_effective_date(record: Mapping[str, Any]) -> Optional[str]:
    """Pick the approval date, falling back to the transaction date."""

    for field_name in EFFECTIVE_DATE_FIELDS:
        parsed = parse_calendar_date(record.get(field_name))
        if parsed is not None:
            return parsed
    return None


def name_hints(record: Mapping[str, Any]) -> Tuple[str, ...]:
    """Collect the non-empty display-name hints embedded on a receipt."""

    hints = []
    for field_name in NAME_HINT_FIELDS:
        value = record.get(field_name)
        if value is None:
            continue
        text = strip_storage_quotes(str(value))
        if text:
            hints.append(text)
    return tuple(hints)


def resolve_receipt(raw: Mapping[str, Any]) -> NormalizedReceipt:
    """Resolve a raw receipt row into a :class:`NormalizedReceipt`.

    The display name is left blank; :func:`receipts_core.directory.join_display_names`
    fills it in.
    """

    vendor = first_text(raw, ("MerchantName",)) or UNKNOWN_VENDOR
    return NormalizedReceipt(
        owner_key=first_key(raw, OWNER_KEY_FIELDS),
        vendor=vendor,
        amount=coerce_amount(raw.get("TotalAmount")),
        status=normalize_status(raw.get("Status")),
        effective_date=resolve_effective_date(raw),
        name_hints=name_hints(raw),
        receipt_id=first_key(raw, RECEIPT_ID_FIELDS),
    )
