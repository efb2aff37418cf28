"""Read-only database access layer for the Receipts web app."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, MetaData, Table, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from packages.receipts_core import strip_storage_quotes

from .database import RECEIPTS_TABLE, USERS_TABLE, session_scope

logger = logging.getLogger(__name__)

DATE_ORDER_COLUMNS = (
    "transactiondate",
    "transaction_date",
    "date",
    "createddate",
    "created_date",
)
USERNAME_COLUMNS = ("username", "user_name")
QUOTED_TEXT_COLUMNS = ("Status", "ApprovedBy", "EmployeeName")
SECRET_COLUMNS = ("password", "pwd")


def _find_column(table: Table, candidates: tuple[str, ...]) -> Optional[Column]:
    """Return the first column whose lowercased name is in ``candidates``."""

    by_name = {column.name.lower(): column for column in table.columns}
    for name in candidates:
        if name in by_name:
            return by_name[name]
    return None


def _clean_receipt(row: Dict[str, Any]) -> Dict[str, Any]:
    for column in QUOTED_TEXT_COLUMNS:
        value = row.get(column)
        if isinstance(value, str):
            row[column] = strip_storage_quotes(value)
    return row


class ReceiptsRepository:
    """Fetches receipts and users written by the extraction pipeline.

    Tables are reflected on first use because the pipeline owns the schema and
    column sets differ between deployments.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._tables: Dict[str, Table] = {}

    def _table(self, name: str) -> Table:
        if name not in self._tables:
            self._tables[name] = Table(name, MetaData(), autoload_with=self._engine)
        return self._tables[name]

    def fetch_receipts(self) -> List[Dict[str, Any]]:
        """Return every receipt row, newest transaction first when possible.

        Raises:
            SQLAlchemyError: When the table cannot be reflected or queried.
        """

        table = self._table(RECEIPTS_TABLE)
        statement = select(table)
        date_column = _find_column(table, DATE_ORDER_COLUMNS)
        if date_column is not None:
            statement = statement.order_by(date_column.desc())
        with session_scope(self._engine) as session:
            rows = session.execute(statement).all()
        logger.debug(
            "Fetched %d receipts ordered by %s.",
            len(rows),
            date_column.name if date_column is not None else "nothing",
        )
        return [_clean_receipt(dict(row._mapping)) for row in rows]

    def fetch_users(self) -> List[Dict[str, Any]]:
        """Return user rows without secret columns.

        Best effort: database failures are logged and yield an empty list so
        dashboards keep working with receipt-embedded names.
        """

        try:
            table = self._table(USERS_TABLE)
            columns = [
                column
                for column in table.columns
                if column.name.lower() not in SECRET_COLUMNS
            ]
            with session_scope(self._engine) as session:
                rows = session.execute(select(*columns)).all()
        except SQLAlchemyError as exc:
            logger.warning("Failed to load users: %s", exc)
            return []
        return [dict(row._mapping) for row in rows]

    def find_user(self, username: str) -> Optional[Dict[str, Any]]:
        """Return the user row (including credentials) for ``username``."""

        table = self._table(USERS_TABLE)
        username_column = _find_column(table, USERNAME_COLUMNS)
        if username_column is None:
            logger.error("Users table has no username column.")
            return None
        with session_scope(self._engine) as session:
            row = session.execute(
                select(table).where(username_column == username)
            ).first()
        return dict(row._mapping) if row is not None else None
