from __future__ import annotations

import logging
import re
import shlex

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import ArgumentError


logger = logging.getLogger(__name__)

# libpq keyword/value form, e.g. "host=db port=5432 dbname=app user=monitor"
_KEYWORD_DSN_RE = re.compile(r"^\s*\w+\s*=")

_KEYWORD_TO_URL = {
    "user": "username",
    "password": "password",
    "host": "host",
    "port": "port",
    "dbname": "database",
}


def is_keyword_dsn(dsn: str) -> bool:
    return "://" not in dsn and bool(_KEYWORD_DSN_RE.match(dsn))


def _keyword_dsn_to_url(dsn: str) -> URL:
    parts = {}
    query = {}
    try:
        tokens = shlex.split(dsn)
    except ValueError as e:
        raise ArgumentError(f"Could not parse keyword DSN: {e}") from e

    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or not key:
            raise ArgumentError(f"Could not parse keyword DSN near {token!r}")
        if key in _KEYWORD_TO_URL:
            parts[_KEYWORD_TO_URL[key]] = value
        else:
            # sslmode, connect_timeout, application_name... go to the driver.
            query[key] = value

    if "port" in parts:
        try:
            parts["port"] = int(parts["port"])
        except ValueError as e:
            raise ArgumentError(f"Invalid port in DSN: {parts['port']!r}") from e

    return URL.create("postgresql+psycopg2", query=query, **parts)


def build_sqlalchemy_url(dsn: str) -> URL:
    """Turn a DSN into a SQLAlchemy URL.

    Accepts plain SQLAlchemy URLs, the ``postgres://`` alias that libpq
    (and most hosting providers) hand out, and the libpq keyword form.
    Raises ``sqlalchemy.exc.ArgumentError`` when the string cannot be parsed.
    """
    dsn = dsn.strip()
    if is_keyword_dsn(dsn):
        return _keyword_dsn_to_url(dsn)
    if dsn.startswith("postgres://"):
        dsn = "postgresql://" + dsn[len("postgres://"):]
    try:
        return make_url(dsn)
    except ValueError as e:
        # e.g. a non-numeric port
        raise ArgumentError(f"Could not parse DSN: {e}") from e


def get_engine(dsn: str) -> Engine:
    url = build_sqlalchemy_url(dsn)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info("[DB] Create engine %s", url.render_as_string(hide_password=True))

    engine = create_engine(url, pool_pre_ping=True, future=True)

    # Connection test only logs: the poll loop retries every cycle anyway.
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Connection test OK")
    except Exception:
        logger.exception("[DB] Connection test FAILED")

    return engine
