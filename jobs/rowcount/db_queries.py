"""SQL helpers for the row count exporter."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Connection

from .config import validate_table_name


def count_rows(conn: Connection, table: str) -> int:
    """Return ``SELECT count(*)`` for ``table``.

    Raises ``sqlalchemy.exc.SQLAlchemyError`` on query failure and
    ``ValueError`` if the driver hands back something that is not a count.
    """
    validate_table_name(table)
    value = conn.execute(text(f"SELECT count(*) FROM {table}")).scalar_one()
    if value is None:
        raise ValueError(f"count(*) on {table} returned NULL")
    return int(value)
