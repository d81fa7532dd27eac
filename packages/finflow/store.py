"""Persist transaction and rule collections as opaque key-value blobs.

Layout
------
- ``ff_tx``: JSON array of transactions (camelCase keys, ISO dates, decimal
  strings for amounts).
- ``ff_rules``: JSON array of auto rules.

Both keys are written in a single database transaction, so a saved snapshot
never mixes an old rule set with new transactions.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from .db.client import session_scope
from .db.models import FfStoreEntry
from .logging_setup import get_logger
from .models import (
    AutoRule,
    Transaction,
    dump_rules,
    dump_transactions,
    load_rules,
    load_transactions,
)

TRANSACTIONS_KEY = "ff_tx"
RULES_KEY = "ff_rules"

_logger = get_logger("finflow.store")


def _get(session: Session, key: str) -> str | None:
    row = session.get(FfStoreEntry, key)
    return row.value if row is not None else None


def _put(session: Session, key: str, value: str) -> None:
    row = session.get(FfStoreEntry, key)
    if row is None:
        session.add(FfStoreEntry(key=key, value=value))
    else:
        row.value = value


def load_snapshot(
    *, database_url: str | None = None
) -> tuple[list[Transaction], list[AutoRule]]:
    """Return ``(transactions, rules)``; empty lists when nothing was saved yet."""

    with session_scope(database_url=database_url) as session:
        tx_blob = _get(session, TRANSACTIONS_KEY)
        rules_blob = _get(session, RULES_KEY)

    transactions = load_transactions(tx_blob) if tx_blob else []
    rules = load_rules(rules_blob) if rules_blob else []
    _logger.debug("store: loaded transactions=%d rules=%d", len(transactions), len(rules))
    return transactions, rules


def save_snapshot(
    transactions: Sequence[Transaction],
    rules: Sequence[AutoRule],
    *,
    database_url: str | None = None,
) -> None:
    with session_scope(database_url=database_url) as session:
        _put(session, TRANSACTIONS_KEY, dump_transactions(transactions))
        _put(session, RULES_KEY, dump_rules(rules))
    _logger.debug("store: saved transactions=%d rules=%d", len(transactions), len(rules))


__all__ = ["RULES_KEY", "TRANSACTIONS_KEY", "load_snapshot", "save_snapshot"]
