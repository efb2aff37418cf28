"""Test fixtures for the Receipts app."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import insert

from receipts_web import AppConfig, create_app
from receipts_web.database import receipts, session_scope, users

FIXED_NOW = datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)

RECEIPT_ROWS = [
    {
        "Id": 1,
        "UserID": "1",
        "EmployeeName": '"Erin Hint"',
        "MerchantName": "Delta",
        "TotalAmount": Decimal("100.00"),
        "TransactionDate": datetime(2025, 1, 3),
        "ApprovalDate": datetime(2025, 1, 5),
        "Status": '"Approved"',
    },
    {
        "Id": 2,
        "UserID": "1",
        "MerchantName": "Delta",
        "TotalAmount": Decimal("50.00"),
        "TransactionDate": datetime(2025, 1, 6),
        "Status": "approved",
    },
    {
        "Id": 3,
        "UserID": "2",
        "EmployeeName": "Jordan Ops",
        "MerchantName": "Hilton",
        "TotalAmount": Decimal("80.25"),
        "TransactionDate": datetime(2025, 1, 8),
        "Status": "Pending",
    },
    {
        "Id": 4,
        "UserID": None,
        "MerchantName": "Uber",
        "TotalAmount": Decimal("999.00"),
        "TransactionDate": datetime(2025, 1, 7),
        "Status": "Approved",
    },
]

USER_ROWS = [
    {
        "Id": 1,
        "UserID": "1",
        "Username": "erin",
        "Name": "Erin Employee",
        "Role": " CFO ",
        "Email": "erin@example.com",
        "Password": "s3cret",
    },
]


@pytest.fixture()
def app(tmp_path: Path):
    """Return a Flask app configured for testing."""

    db_path = tmp_path / "test.db"
    uploads = tmp_path / "intake"
    config = AppConfig(
        database_url=f"sqlite:///{db_path}",
        uploads_dir=uploads,
        secret_key="testing",
        max_content_length=1024 * 1024,
        review_webhook_url="https://workflow.example.com/review",
        review_timeout=5.0,
    )
    application = create_app(config)
    application.config.update(TESTING=True)
    yield application


@pytest.fixture()
def seeded_app(app):
    """Return the app with sample receipts and users stored."""

    with session_scope(app.config["DB_ENGINE"]) as session:
        for row in RECEIPT_ROWS:
            session.execute(insert(receipts).values(**row))
        for row in USER_ROWS:
            session.execute(insert(users).values(**row))
    return app


@pytest.fixture()
def client(app):
    """Return a Flask test client."""

    return app.test_client()
