"""Database setup utilities for the Receipts web app.

The tables below describe the default layout written by the extraction
pipeline. Production databases may carry extra or differently named columns,
so :mod:`receipts_web.repositories` reflects the live table instead of relying
on these definitions; they are used to bootstrap development and test
databases.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

RECEIPTS_TABLE = "Receipts"
USERS_TABLE = "Users"

metadata = MetaData()

receipts = Table(
    RECEIPTS_TABLE,
    metadata,
    Column("Id", Integer, primary_key=True),
    Column("UserID", String(64), nullable=True),
    Column("EmployeeName", String(255), nullable=True),
    Column("MerchantName", String(255), nullable=True),
    Column("TotalAmount", Numeric(12, 2), nullable=True),
    Column("TransactionDate", DateTime, nullable=True),
    Column("ApprovalDate", DateTime, nullable=True),
    Column("Status", String(64), nullable=True),
    Column("ApprovedBy", String(255), nullable=True),
)

users = Table(
    USERS_TABLE,
    metadata,
    Column("Id", Integer, primary_key=True),
    Column("UserID", String(64), nullable=True),
    Column("Username", String(255), nullable=False, unique=True),
    Column("Name", String(255), nullable=True),
    Column("Role", String(64), nullable=True),
    Column("Email", String(255), nullable=True),
    Column("Password", String(255), nullable=True),
)


def create_db_engine(database_url: str) -> Engine:
    """Return a SQLAlchemy engine for the provided URL."""

    return create_engine(database_url, future=True)


def init_schema(engine: Engine) -> None:
    """Create database tables if they do not exist."""

    metadata.create_all(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Context manager that yields a SQLAlchemy :class:`Session`."""

    with Session(engine, future=True) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
