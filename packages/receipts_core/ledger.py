"""Filtering, sorting and pagination for the CFO receipts table."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .directory import build_directory, resolve_display_name
from .receipts import (
    EFFECTIVE_DATE_FIELDS,
    ReceiptStatus,
    coerce_amount,
    normalize_status,
    resolve_receipt,
    strip_storage_quotes,
    timestamp_sort_key,
)

DATE_SORT_KEYS = ("TransactionDate", "ApprovalDate")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_PAGE_SIZE = 10


@dataclass(slots=True)
class LedgerQuery:
    """Filters and paging requested by the receipts table."""

    status: Optional[str] = None
    merchant: str = ""
    employee: str = ""
    sort_key: Optional[str] = None
    direction: str = "asc"
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE


@dataclass(slots=True)
class LedgerPage:
    items: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 0
    merchants: List[str] = field(default_factory=list)
    employees: List[str] = field(default_factory=list)


def _display_date(row: Dict[str, Any]) -> Any:
    for field_name in EFFECTIVE_DATE_FIELDS:
        value = row.get(field_name)
        if value:
            return value
    return None


def _status_label(raw: Any) -> str:
    status = normalize_status(raw)
    if status is not ReceiptStatus.UNKNOWN:
        return status.label
    return strip_storage_quotes(str(raw)) if raw is not None else ""


def _ledger_rows(
    receipts: Iterable[Any], users: Optional[Iterable[Any]]
) -> List[Dict[str, Any]]:
    directory = build_directory(users)
    rows = []
    for raw in receipts:
        if not isinstance(raw, Mapping):
            continue
        receipt = resolve_receipt(raw)
        if not receipt.is_attributable:
            continue
        row = dict(raw)
        row["EmployeeName"] = resolve_display_name(
            receipt.owner_key, directory, receipt.name_hints
        )
        row["Status"] = _status_label(raw.get("Status"))
        row["DisplayDate"] = _display_date(raw)
        rows.append(row)
    return rows


def _sort_value(row: Dict[str, Any], key: str) -> Any:
    if key in DATE_SORT_KEYS:
        return timestamp_sort_key(row.get("DisplayDate"))
    if key == "TotalAmount":
        return coerce_amount(row.get(key))
    value = row.get(key)
    return str(value if value is not None else "").lower()


def _matches(row: Dict[str, Any], query: LedgerQuery) -> bool:
    if query.status and query.status.lower() != "all":
        if str(row["Status"]).lower() != query.status.strip().lower():
            return False
    if query.merchant:
        merchant = str(row.get("MerchantName") or "")
        if query.merchant.lower() not in merchant.lower():
            return False
    if query.employee:
        if query.employee.lower() not in row["EmployeeName"].lower():
            return False
    return True


def _filter_options(rows: List[Dict[str, Any]]) -> Tuple[List[str], List[str]]:
    merchants = {str(row["MerchantName"]) for row in rows if row.get("MerchantName")}
    employees = {row["EmployeeName"] for row in rows if row.get("EmployeeName")}
    return sorted(merchants), sorted(employees)


def list_receipts(
    receipts: Optional[Iterable[Any]],
    users: Optional[Iterable[Any]] = None,
    query: Optional[LedgerQuery] = None,
) -> LedgerPage:
    """Return one page of attributable receipts labelled with employee names.

    Filter menus (``merchants`` and ``employees``) are built from every
    attributable receipt, not just the filtered subset.
    """

    query = query or LedgerQuery()
    rows = _ledger_rows(receipts or (), users)
    merchants, employees = _filter_options(rows)

    filtered = [row for row in rows if _matches(row, query)]
    if query.sort_key:
        filtered.sort(
            key=lambda row: _sort_value(row, query.sort_key),
            reverse=query.direction == "desc",
        )

    per_page = max(query.per_page, 1)
    page = max(query.page, 1)
    start = (page - 1) * per_page
    return LedgerPage(
        items=filtered[start : start + per_page],
        total=len(filtered),
        page=page,
        pages=math.ceil(len(filtered) / per_page),
        merchants=merchants,
        employees=employees,
    )
