"""
Atomic units against the points store.

The store handle is a Django database alias threaded through every
service call (`using=`). Each unit runs inside `transaction.atomic()` and,
on PostgreSQL, with a local statement timeout so a stuck lock or a slow
store surfaces as a DatabaseError instead of hanging the request.
"""

from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, connections, transaction

from pointman.conf import pointman_settings


@contextmanager
def atomic_unit(using: str = DEFAULT_DB_ALIAS):
    """Open a transaction on `using` with a bounded statement timeout."""
    with transaction.atomic(using=using):
        _apply_statement_timeout(using)
        yield


def _apply_statement_timeout(using: str) -> None:
    connection = connections[using]
    timeout_ms = int(pointman_settings.STATEMENT_TIMEOUT_MS)
    if connection.vendor != "postgresql" or timeout_ms <= 0:
        return
    with connection.cursor() as cursor:
        # SET LOCAL does not accept bind parameters
        cursor.execute(f"SET LOCAL statement_timeout = {timeout_ms}")


def lock_pos_customer(pos_customer_id: str, using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Serialize units touching one POS customer id until the unit ends.

    MUST be called inside atomic_unit(). Takes a transaction-scoped
    advisory lock on PostgreSQL; no-op on other vendors.
    """
    connection = connections[using]
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", [pos_customer_id])
