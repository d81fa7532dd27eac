"""Data models for ``finflow``.

Two kinds of records live here:

- ``RawTriple``: the best-effort output of a format-specific extractor, before
  any identity or classification is attached.
- ``Transaction`` / ``AutoRule``: the canonical, persisted entities. They are
  pydantic models so the application's key-value blobs round-trip without loss
  (dates as ``YYYY-MM-DD``, amounts as decimal strings, camelCase keys).
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------


class Category(StrEnum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    UTILITIES = "Utilities"
    INCOME = "Income"
    EDUCATION = "Education"
    FEIRA = "Feira"
    OTHER = "Other"


DEFAULT_CATEGORY: Category = Category.OTHER


class Source(StrEnum):
    """Provenance tag. ``REVOLUT``/``MILLENNIUM``/``XLSX`` are import formats A/B/C."""

    REVOLUT = "Revolut"
    MILLENNIUM = "Millennium"
    XLSX = "XLSX"
    MANUAL = "Manual"


class TransactionType(StrEnum):
    EXPENSE = "Expense"
    INCOME = "Income"


class MatchMode(StrEnum):
    EXACT = "exact"
    PREFIX = "prefix"


# ---------------------------------------------------------------------------
# Extractor output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawTriple:
    """One accepted source row, reduced to what the normalizer needs.

    ``index`` is the row position in the source (header included for the
    delimited formats) and only feeds identifier generation. ``amount`` is
    already a magnitude; direction is carried by ``type``.
    """

    index: int
    date: dt.date
    description: str
    amount: Decimal
    type: TransactionType


# ---------------------------------------------------------------------------
# Canonical entities
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """Canonical normalized financial movement.

    Instances are immutable; the rule engine and the session produce updated
    copies via ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    # ``dt.date`` rather than ``date``: the field name would shadow the type.
    date: dt.date
    description: str
    amount: Decimal = Field(ge=0, allow_inf_nan=False)
    category: Category = DEFAULT_CATEGORY
    source: Source
    type: TransactionType
    ignored: bool | None = None


class AutoRule(BaseModel):
    """User-defined classification override.

    A rule with neither ``target_category`` nor ``force_ignore`` is valid but
    inert: it still wins the match (and so suppresses the keyword fallback).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    pattern: str
    match_mode: MatchMode
    target_category: Category | None = None
    force_ignore: bool | None = None


# ---------------------------------------------------------------------------
# Blob (de)serialization
# ---------------------------------------------------------------------------

_TRANSACTIONS_ADAPTER: TypeAdapter[list[Transaction]] = TypeAdapter(list[Transaction])
_RULES_ADAPTER: TypeAdapter[list[AutoRule]] = TypeAdapter(list[AutoRule])


def dump_transactions(transactions: Sequence[Transaction]) -> str:
    return _TRANSACTIONS_ADAPTER.dump_json(list(transactions), by_alias=True).decode("utf-8")


def load_transactions(data: str | bytes) -> list[Transaction]:
    return _TRANSACTIONS_ADAPTER.validate_json(data)


def dump_rules(rules: Sequence[AutoRule]) -> str:
    return _RULES_ADAPTER.dump_json(list(rules), by_alias=True).decode("utf-8")


def load_rules(data: str | bytes) -> list[AutoRule]:
    return _RULES_ADAPTER.validate_json(data)


__all__ = [
    "AutoRule",
    "Category",
    "DEFAULT_CATEGORY",
    "MatchMode",
    "RawTriple",
    "Source",
    "Transaction",
    "TransactionType",
    "dump_rules",
    "dump_transactions",
    "load_rules",
    "load_transactions",
]
