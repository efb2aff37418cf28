"""Tests for the CFO and employee dashboard aggregations."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from packages.receipts_core import (
    EmployeeApprovals,
    build_employee_summary,
    compute_bulk_dashboard,
    compute_employee_dashboard,
)
from packages.receipts_core import dashboards
from packages.receipts_core.receipts import resolve_receipt

NOW = datetime(2025, 1, 20, tzinfo=timezone.utc)


def _receipt(owner, vendor, amount, status, when, **extra):
    row = {
        "UserID": owner,
        "MerchantName": vendor,
        "TotalAmount": amount,
        "Status": status,
        "TransactionDate": when,
    }
    row.update(extra)
    return row


@pytest.fixture()
def scenario_rows():
    return [
        _receipt("1", "A", 100, '"Approved"', "2025-01-05T00:00:00Z"),
        _receipt("1", "A", 50, "approved", "2025-01-06T00:00:00Z"),
        _receipt(None, "B", 999, "approved", "2025-01-06T00:00:00Z"),
    ]


def test_scenario_vendor_spend_includes_unattributed_rows(scenario_rows):
    dashboard = compute_bulk_dashboard(scenario_rows, [], now=NOW)

    spend = {entry.vendor: entry.amount for entry in dashboard.vendor_spend}
    assert spend == {"B": 999.0, "A": 150.0}
    assert [entry.vendor for entry in dashboard.vendor_spend] == ["B", "A"]

    assert dashboard.approval_breakdown == [
        EmployeeApprovals(employee="Unknown", approved=2, pending=0, rejected=0)
    ]


def test_unattributed_rows_only_reach_vendor_and_date_views(scenario_rows):
    dashboard = compute_bulk_dashboard(scenario_rows, None, now=NOW)

    trend = {entry.date: entry.amount for entry in dashboard.daily_trend}
    assert trend == {"2025-01-05": 100.0, "2025-01-06": 1049.0}
    assert [(e.employee, e.spend) for e in dashboard.monthly_spend] == [
        ("Unknown", 150.0)
    ]
    assert sum(e.total for e in dashboard.approval_breakdown) == 2


def test_vendor_ranking_is_top_ten_non_increasing():
    rows = [
        _receipt("1", f"Vendor {index}", index * 10, "Approved", "2025-01-02")
        for index in range(15)
    ]
    rows.append(_receipt("1", "Vendor 14", 1, "Pending", "2025-01-02"))

    ranking = compute_bulk_dashboard(rows, now=NOW).vendor_spend

    assert len(ranking) == 10
    amounts = [entry.amount for entry in ranking]
    assert amounts == sorted(amounts, reverse=True)
    assert ranking[0].vendor == "Vendor 14"
    assert ranking[0].amount == 140.0


def test_vendor_ranking_ties_keep_encounter_order():
    rows = [
        _receipt("1", "Zeta", 10, "Approved", "2025-01-02"),
        _receipt("1", "Alpha", 10, "Approved", "2025-01-03"),
    ]
    ranking = compute_bulk_dashboard(rows, now=NOW).vendor_spend
    assert [entry.vendor for entry in ranking] == ["Zeta", "Alpha"]


def test_daily_trend_keeps_last_thirty_sorted_days():
    rows = [
        _receipt("1", "A", 1.005, "Approved", f"2024-12-{day:02d}T10:00:00")
        for day in range(1, 32)
    ] + [
        _receipt(None, "A", 5, "Approved", f"2025-01-{day:02d}")
        for day in range(10, 0, -1)
    ]
    rows.append(_receipt("1", "A", 5, "Rejected", "2025-02-01"))
    rows.append(_receipt("1", "A", 5, "Approved", None))

    trend = compute_bulk_dashboard(rows, now=NOW).daily_trend

    assert len(trend) == 30
    dates = [entry.date for entry in trend]
    assert dates == sorted(dates)
    assert dates[-1] == "2025-01-10"
    assert dates[0] == "2024-12-12"
    assert trend[0].amount == 1.01


def test_daily_trend_uses_approval_date_when_present():
    rows = [
        _receipt(
            "1", "A", 20, "Approved", "2025-01-02", ApprovalDate="2025-01-04T09:00:00"
        )
    ]
    trend = compute_bulk_dashboard(rows, now=NOW).daily_trend
    assert [(entry.date, entry.amount) for entry in trend] == [("2025-01-04", 20.0)]


def test_approval_breakdown_folds_unknown_into_pending():
    users = [{"Id": "1", "Name": "Erin"}, {"Id": "2", "Name": "Jordan"}]
    rows = [
        _receipt("1", "A", 1, "Approved", "2025-01-02"),
        _receipt("2", "A", 1, "Processing", "2025-01-02"),
        _receipt("2", "A", 1, "Rejected", "2025-01-02"),
        _receipt("2", "A", 1, None, "2025-01-02"),
        _receipt(None, "A", 1, "Pending", "2025-01-02"),
    ]

    breakdown = compute_bulk_dashboard(rows, users, now=NOW).approval_breakdown

    assert breakdown == [
        EmployeeApprovals(employee="Jordan", approved=0, pending=2, rejected=1),
        EmployeeApprovals(employee="Erin", approved=1, pending=0, rejected=0),
    ]


def test_monthly_spend_matches_qualifying_rows():
    users = [{"Id": "1", "Name": "Erin"}, {"Id": "2", "Name": "Jordan"}]
    rows = [
        _receipt("1", "A", 10.10, "Approved", "2025-01-02"),
        _receipt("1", "B", 20.20, "approved", "2024-12-30", ApprovalDate="2025-01-01"),
        _receipt("2", "C", 30.333, "Approved", "2025-01-15"),
        _receipt("2", "C", 40, "Approved", "2024-12-15"),
        _receipt("2", "C", 50, "Pending", "2025-01-15"),
        _receipt(None, "C", 60, "Approved", "2025-01-15"),
    ]

    spend = compute_bulk_dashboard(rows, users, now=NOW).monthly_spend

    assert [(entry.employee, entry.spend) for entry in spend] == [
        ("Jordan", 30.33),
        ("Erin", 30.3),
    ]
    qualifying = [
        receipt.amount
        for receipt in map(resolve_receipt, rows)
        if receipt.is_approved
        and receipt.is_attributable
        and (receipt.effective_date or "").startswith("2025-01")
    ]
    assert sum(entry.spend for entry in spend) == pytest.approx(
        sum(qualifying), abs=0.01
    )


def test_monthly_spend_window_follows_now():
    rows = [_receipt("1", "A", 10, "Approved", "2024-12-02")]
    assert compute_bulk_dashboard(rows, now=NOW).monthly_spend == []
    december = compute_bulk_dashboard(rows, now=date(2024, 12, 31)).monthly_spend
    assert [entry.spend for entry in december] == [10.0]


def test_directory_miss_uses_receipt_hint():
    rows = [
        _receipt("7", "A", 10, "Approved", "2025-01-02", EmployeeName="Sam Hint")
    ]
    dashboard = compute_bulk_dashboard(rows, [{"Id": "1", "Name": "Erin"}], now=NOW)
    assert dashboard.approval_breakdown[0].employee == "Sam Hint"
    assert dashboard.monthly_spend[0].employee == "Sam Hint"


def test_empty_inputs_produce_empty_series():
    dashboard = compute_bulk_dashboard([], [], now=NOW)
    assert dashboard.to_dict() == {
        "vendor_spend": [],
        "daily_trend": [],
        "approval_breakdown": [],
        "monthly_spend": [],
    }
    assert compute_bulk_dashboard(None, None, now=NOW).to_dict() == dashboard.to_dict()


def test_bulk_dashboard_is_idempotent(scenario_rows):
    first = compute_bulk_dashboard(scenario_rows, [{"Id": "1", "Name": "E"}], now=NOW)
    second = compute_bulk_dashboard(scenario_rows, [{"Id": "1", "Name": "E"}], now=NOW)
    assert first.to_dict() == second.to_dict()


def test_failing_series_degrades_alone(monkeypatch, scenario_rows, caplog):
    def explode(*args, **kwargs):
        raise ValueError("bad shape")

    monkeypatch.setattr(dashboards, "daily_expense_trend", explode)

    with caplog.at_level(logging.ERROR):
        dashboard = compute_bulk_dashboard(scenario_rows, [], now=NOW)

    assert dashboard.daily_trend == []
    assert dashboard.vendor_spend
    assert dashboard.approval_breakdown
    assert any("daily trend" in message for message in caplog.messages)


def test_non_mapping_rows_are_skipped(scenario_rows):
    dashboard = compute_bulk_dashboard(scenario_rows + ["junk", None], [], now=NOW)
    assert len(dashboard.vendor_spend) == 2


def test_employee_summary_counts_and_monthly_total():
    rows = [
        _receipt("1", "A", 10.005, "Approved", "2025-01-03T10:00:00"),
        _receipt("1", "A", 5, "'approved'", "2024-12-03T10:00:00"),
        _receipt("1", "A", 7, "Rejected", "2025-01-04T10:00:00"),
        _receipt("1", "A", 3, "Processing", "2025-01-05T10:00:00"),
        _receipt("1", "A", 4, "Pending", None),
        _receipt("2", "A", 100, "Approved", "2025-01-05T10:00:00"),
        _receipt(None, "A", 100, "Approved", "2025-01-05T10:00:00"),
    ]

    summary = build_employee_summary(rows, 1, now=NOW)

    assert summary.monthly_total == 10.01
    assert summary.approved_count == 2
    assert summary.rejected_count == 1
    assert summary.pending_count == 2
    assert [row["TransactionDate"] for row in summary.recent_receipts] == [
        "2025-01-05T10:00:00",
        "2025-01-04T10:00:00",
        "2025-01-03T10:00:00",
        "2024-12-03T10:00:00",
        None,
    ]


def test_employee_summary_matches_username_fields():
    rows = [
        _receipt("7", "A", 10, "Approved", "2025-01-03", Username="erin"),
        _receipt("8", "A", 10, "Approved", "2025-01-03", UserName="someone"),
        _receipt(None, "A", 10, "Approved", "2025-01-03", Username="erin"),
    ]
    summary = compute_employee_dashboard(rows, "erin", now=NOW)
    assert summary.approved_count == 1
    assert summary.monthly_total == 10.0


def test_employee_summary_truncates_and_does_not_mutate_input():
    rows = [
        _receipt("1", "A", 1, "Approved", f"2025-01-{day:02d}") for day in range(1, 16)
    ]
    snapshot = [dict(row) for row in rows]

    summary = build_employee_summary(rows, "1", now=NOW)

    assert len(summary.recent_receipts) == 10
    assert summary.recent_receipts[0]["TransactionDate"] == "2025-01-15"
    assert rows == snapshot
    summary.recent_receipts[0]["MerchantName"] = "changed"
    assert rows[-1]["MerchantName"] == "A"


def test_employee_summary_blank_subject_is_empty():
    rows = [_receipt("1", "A", 1, "Approved", "2025-01-01")]
    summary = build_employee_summary(rows, "  ", now=NOW)
    assert summary.to_dict() == {
        "monthly_total": 0.0,
        "pending_count": 0,
        "approved_count": 0,
        "rejected_count": 0,
        "recent_receipts": [],
    }


def test_employee_summary_recent_order_respects_offsets():
    rows = [
        _receipt("1", "A", 1, "Approved", "2025-01-06T01:00:00Z", Id="utc"),
        _receipt("1", "A", 1, "Approved", "2025-01-05T23:00:00-05:00", Id="eastern"),
    ]

    summary = build_employee_summary(rows, "1", now=NOW)

    assert [row["Id"] for row in summary.recent_receipts] == ["eastern", "utc"]
