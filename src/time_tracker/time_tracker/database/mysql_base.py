from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import TransientStorageError
from .connection import DatabaseConnection

# Deadlock / lock wait timeout; safe to re-run the whole transaction.
_RETRYABLE_ERRNOS = {errorcode.ER_LOCK_DEADLOCK, errorcode.ER_LOCK_WAIT_TIMEOUT}


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def db_transaction(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Like db_cursor, but maps races and lock conflicts to TransientStorageError."""

    try:
        with db_cursor(conn_factory, dictionary=dictionary) as (conn, cur):
            yield conn, cur
    except mysql.connector.errors.IntegrityError as exc:
        raise TransientStorageError(str(exc)) from exc
    except mysql.connector.errors.DatabaseError as exc:
        if getattr(exc, "errno", None) in _RETRYABLE_ERRNOS:
            raise TransientStorageError(str(exc)) from exc
        raise


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_decimal(value: Any) -> Decimal:
    """Normalize DECIMAL/float/None columns coming back from the connector."""

    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
