"""Dashboard aggregations over receipt rows.

Two entry points are exposed:

* :func:`compute_bulk_dashboard` builds the CFO view: vendor ranking, daily
  trend, approval status per employee and monthly spend per employee.
* :func:`build_employee_summary` builds the personal dashboard for a single
  employee.

Both operate on already-fetched rows and never perform I/O. The evaluation
instant is passed as ``now`` so the "current month" window can be pinned in
tests; it defaults to the current UTC time.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .directory import build_directory, join_display_names
from .receipts import (
    NormalizedReceipt,
    ReceiptStatus,
    coerce_key,
    resolve_receipt,
    round_cents,
    strip_storage_quotes,
    timestamp_sort_key,
)

logger = logging.getLogger(__name__)

VENDOR_RANKING_LIMIT = 10
DAILY_TREND_LIMIT = 30
RECENT_RECEIPTS_LIMIT = 10
SUBJECT_NAME_FIELDS = ("Username", "UserName", "EmployeeName")

Instant = Union[datetime, date]


@dataclass(slots=True)
class VendorSpend:
    vendor: str
    amount: float


@dataclass(slots=True)
class DailyTotal:
    date: str
    amount: float


@dataclass(slots=True)
class EmployeeApprovals:
    employee: str
    approved: int = 0
    pending: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.approved + self.pending + self.rejected


@dataclass(slots=True)
class EmployeeSpend:
    employee: str
    spend: float


@dataclass(slots=True)
class BulkDashboard:
    """The four CFO dashboard series."""

    vendor_spend: List[VendorSpend] = field(default_factory=list)
    daily_trend: List[DailyTotal] = field(default_factory=list)
    approval_breakdown: List[EmployeeApprovals] = field(default_factory=list)
    monthly_spend: List[EmployeeSpend] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class EmployeeSummary:
    """Scalar statistics for a single employee's dashboard."""

    monthly_total: float = 0.0
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0
    recent_receipts: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def month_key(now: Optional[Instant] = None) -> str:
    """Return ``YYYY-MM`` for ``now`` (default: the current UTC month)."""

    instant = now if now is not None else datetime.now(timezone.utc)
    return instant.strftime("%Y-%m")


def normalize_receipts(receipts: Optional[Iterable[Any]]) -> List[NormalizedReceipt]:
    """Resolve every mapping in ``receipts``; other values are skipped."""

    resolved: List[NormalizedReceipt] = []
    for row in receipts or ():
        if not isinstance(row, Mapping):
            logger.warning("Skipping receipt row of type %s.", type(row).__name__)
            continue
        resolved.append(resolve_receipt(row))
    return resolved


def _in_month(receipt: NormalizedReceipt, month: str) -> bool:
    return receipt.effective_date is not None and receipt.effective_date[:7] == month


def vendor_spend_ranking(
    receipts: Iterable[NormalizedReceipt], limit: int = VENDOR_RANKING_LIMIT
) -> List[VendorSpend]:
    """Top vendors by approved spend.

    Unattributable receipts still count here; only the approval status
    matters for vendor totals.
    """

    totals: Dict[str, float] = {}
    for receipt in receipts:
        if receipt.is_approved:
            totals[receipt.vendor] = totals.get(receipt.vendor, 0.0) + receipt.amount
    ranking = [
        VendorSpend(vendor=vendor, amount=round_cents(amount))
        for vendor, amount in totals.items()
    ]
    ranking.sort(key=lambda entry: entry.amount, reverse=True)
    return ranking[:limit]


def daily_expense_trend(
    receipts: Iterable[NormalizedReceipt], limit: int = DAILY_TREND_LIMIT
) -> List[DailyTotal]:
    """Approved spend per effective date, oldest first, last ``limit`` days."""

    totals: Dict[str, float] = {}
    for receipt in receipts:
        if receipt.is_approved and receipt.effective_date is not None:
            day = receipt.effective_date
            totals[day] = totals.get(day, 0.0) + receipt.amount
    trend = [
        DailyTotal(date=day, amount=round_cents(amount))
        for day, amount in sorted(totals.items())
    ]
    return trend[-limit:] if limit else []


def approval_breakdown(
    receipts: Iterable[NormalizedReceipt],
) -> List[EmployeeApprovals]:
    """Approved, pending and rejected counts per employee.

    Receipts whose status is unknown count as pending.
    """

    by_employee: Dict[str, EmployeeApprovals] = {}
    for receipt in receipts:
        if not receipt.is_attributable:
            continue
        entry = by_employee.get(receipt.display_name)
        if entry is None:
            entry = by_employee[receipt.display_name] = EmployeeApprovals(
                employee=receipt.display_name
            )
        if receipt.status is ReceiptStatus.APPROVED:
            entry.approved += 1
        elif receipt.status is ReceiptStatus.REJECTED:
            entry.rejected += 1
        else:
            entry.pending += 1
    return sorted(by_employee.values(), key=lambda entry: entry.total, reverse=True)


def employee_monthly_spend(
    receipts: Iterable[NormalizedReceipt], *, now: Optional[Instant] = None
) -> List[EmployeeSpend]:
    """Approved spend per employee for the month containing ``now``."""

    month = month_key(now)
    totals: Dict[str, float] = {}
    for receipt in receipts:
        if receipt.is_attributable and receipt.is_approved and _in_month(receipt, month):
            name = receipt.display_name
            totals[name] = totals.get(name, 0.0) + receipt.amount
    spend = [
        EmployeeSpend(employee=name, spend=round_cents(amount))
        for name, amount in totals.items()
    ]
    spend.sort(key=lambda entry: entry.spend, reverse=True)
    return spend


def _isolated(name: str, fold: Callable[[], list]) -> list:
    try:
        return fold()
    except Exception:
        logger.exception("Failed to compute %s; returning an empty series.", name)
        return []


def compute_bulk_dashboard(
    receipts: Optional[Iterable[Any]],
    users: Optional[Iterable[Any]] = None,
    *,
    now: Optional[Instant] = None,
) -> BulkDashboard:
    """Build the CFO dashboard from raw receipt and user rows.

    Args:
        receipts: Raw receipt rows as returned by the data layer.
        users: Raw user rows used to resolve display names. ``None`` or an
            empty collection degrades names to the hints stored on receipts.
        now: Evaluation instant for the monthly spend window.

    Returns:
        BulkDashboard: Each series is computed independently; a failure in
        one series is logged and yields an empty list for that series only.
    """

    directory = build_directory(users)
    resolved = join_display_names(normalize_receipts(receipts), directory)
    return BulkDashboard(
        vendor_spend=_isolated("vendor spend", lambda: vendor_spend_ranking(resolved)),
        daily_trend=_isolated("daily trend", lambda: daily_expense_trend(resolved)),
        approval_breakdown=_isolated(
            "approval breakdown", lambda: approval_breakdown(resolved)
        ),
        monthly_spend=_isolated(
            "monthly spend", lambda: employee_monthly_spend(resolved, now=now)
        ),
    )


def _matches_subject(
    row: Mapping[str, Any], receipt: NormalizedReceipt, subject: str
) -> bool:
    if receipt.owner_key == subject:
        return True
    for field_name in SUBJECT_NAME_FIELDS:
        value = row.get(field_name)
        if value is not None and strip_storage_quotes(str(value)) == subject:
            return True
    return False


def build_employee_summary(
    receipts: Optional[Iterable[Any]],
    subject_key: Any,
    *,
    now: Optional[Instant] = None,
) -> EmployeeSummary:
    """Summarise the receipts belonging to one employee.

    ``subject_key`` may be the employee's identifier or their username; a
    receipt matches when its owner key equals it or, failing that, when one of
    its name fields does. Receipts without an owner key never match.
    ``recent_receipts`` holds copies of the matching raw rows ordered by
    ``TransactionDate``, newest first.
    """

    subject = coerce_key(subject_key)
    summary = EmployeeSummary()
    if subject is None:
        return summary

    month = month_key(now)
    matched: List[Mapping[str, Any]] = []
    monthly_total = 0.0
    for row in receipts or ():
        if not isinstance(row, Mapping):
            continue
        receipt = resolve_receipt(row)
        if not receipt.is_attributable or not _matches_subject(row, receipt, subject):
            continue
        matched.append(row)
        if receipt.status is ReceiptStatus.APPROVED:
            summary.approved_count += 1
            if _in_month(receipt, month):
                monthly_total += receipt.amount
        elif receipt.status is ReceiptStatus.REJECTED:
            summary.rejected_count += 1
        else:
            summary.pending_count += 1

    summary.monthly_total = round_cents(monthly_total)
    recent = sorted(
        matched,
        key=lambda row: timestamp_sort_key(row.get("TransactionDate")),
        reverse=True,
    )
    summary.recent_receipts = [dict(row) for row in recent[:RECENT_RECEIPTS_LIMIT]]
    return summary


compute_employee_dashboard = build_employee_summary
