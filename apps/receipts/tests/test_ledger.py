"""Tests for the CFO receipts table listing."""

from __future__ import annotations

from packages.receipts_core import LedgerQuery, list_receipts

USERS = [{"Id": "1", "Name": "Erin Employee"}, {"Id": "2", "Name": "Jordan Ops"}]

RECEIPTS = [
    {
        "Id": 1,
        "UserID": "1",
        "MerchantName": "Delta Airlines",
        "TotalAmount": "320.10",
        "TransactionDate": "2025-01-02",
        "ApprovalDate": "2025-01-09",
        "Status": '"Approved"',
    },
    {
        "Id": 2,
        "UserID": "2",
        "MerchantName": "Hilton",
        "TotalAmount": 95,
        "TransactionDate": "2025-01-05",
        "Status": "pending",
    },
    {
        "Id": 3,
        "UserId": "3",
        "EmployeeName": "Sam Hint",
        "MerchantName": "Uber",
        "TotalAmount": "12.5",
        "TransactionDate": "2025-01-07",
        "Status": "Processing",
    },
    {
        "Id": 4,
        "MerchantName": "Starbucks",
        "TotalAmount": 4,
        "Status": "Approved",
    },
]


def test_list_receipts_excludes_unattributed_and_labels_rows():
    page = list_receipts(RECEIPTS, USERS)

    assert page.total == 3
    assert [row["Id"] for row in page.items] == [1, 2, 3]
    first = page.items[0]
    assert first["EmployeeName"] == "Erin Employee"
    assert first["Status"] == "Approved"
    assert first["DisplayDate"] == "2025-01-09"
    assert page.items[2]["EmployeeName"] == "Sam Hint"
    assert page.items[2]["Status"] == "Processing"
    assert RECEIPTS[0]["Status"] == '"Approved"'


def test_list_receipts_filter_menus():
    page = list_receipts(RECEIPTS, USERS)
    assert page.merchants == ["Delta Airlines", "Hilton", "Uber"]
    assert page.employees == ["Erin Employee", "Jordan Ops", "Sam Hint"]


def test_list_receipts_filters():
    assert [
        row["Id"] for row in list_receipts(RECEIPTS, USERS, LedgerQuery(status="pending")).items
    ] == [2]
    assert list_receipts(RECEIPTS, USERS, LedgerQuery(status="all")).total == 3
    assert [
        row["Id"] for row in list_receipts(RECEIPTS, USERS, LedgerQuery(merchant="hil")).items
    ] == [2]
    assert [
        row["Id"] for row in list_receipts(RECEIPTS, USERS, LedgerQuery(employee="ERIN")).items
    ] == [1]


def test_list_receipts_sorting():
    by_amount = list_receipts(
        RECEIPTS, USERS, LedgerQuery(sort_key="TotalAmount", direction="desc")
    )
    assert [row["Id"] for row in by_amount.items] == [1, 2, 3]

    by_date = list_receipts(RECEIPTS, USERS, LedgerQuery(sort_key="TransactionDate"))
    assert [row["Id"] for row in by_date.items] == [2, 3, 1]

    by_merchant = list_receipts(
        RECEIPTS, USERS, LedgerQuery(sort_key="MerchantName", direction="desc")
    )
    assert [row["Id"] for row in by_merchant.items] == [3, 2, 1]


def test_list_receipts_pagination():
    page = list_receipts(RECEIPTS, USERS, LedgerQuery(page=2, per_page=2))
    assert page.pages == 2
    assert page.page == 2
    assert [row["Id"] for row in page.items] == [3]

    beyond = list_receipts(RECEIPTS, USERS, LedgerQuery(page=5, per_page=2))
    assert beyond.items == []
    assert beyond.total == 3


def test_list_receipts_handles_empty_input():
    page = list_receipts(None)
    assert page.items == []
    assert page.pages == 0
