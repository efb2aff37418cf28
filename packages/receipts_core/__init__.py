"""Receipt normalisation and dashboard aggregation shared across apps."""

from .dashboards import (
    BulkDashboard,
    DailyTotal,
    EmployeeApprovals,
    EmployeeSpend,
    EmployeeSummary,
    VendorSpend,
    build_employee_summary,
    compute_bulk_dashboard,
    compute_employee_dashboard,
)
from .directory import ResolvedUser, build_directory, resolve_display_name
from .ledger import LedgerPage, LedgerQuery, list_receipts
from .receipts import (
    NormalizedReceipt,
    ReceiptStatus,
    normalize_status,
    resolve_receipt,
    strip_storage_quotes,
)

__all__ = [
    "BulkDashboard",
    "DailyTotal",
    "EmployeeApprovals",
    "EmployeeSpend",
    "EmployeeSummary",
    "LedgerPage",
    "LedgerQuery",
    "NormalizedReceipt",
    "ReceiptStatus",
    "ResolvedUser",
    "VendorSpend",
    "build_directory",
    "build_employee_summary",
    "compute_bulk_dashboard",
    "compute_employee_dashboard",
    "list_receipts",
    "normalize_status",
    "resolve_display_name",
    "resolve_receipt",
    "strip_storage_quotes",
]
