"""Aggregate views over a transaction collection.

Ignored transactions stay in the collection but never count towards totals,
category sums or the monthly trend. Search/filter helpers do include them so
they can still be found and un-ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .models import Category, Source, Transaction, TransactionType

_ZERO = Decimal(0)


@dataclass(frozen=True, slots=True)
class Totals:
    income: Decimal
    expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True, slots=True)
class SpendingSummary:
    category: Category
    amount: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyFlow:
    month: str  # YYYY-MM
    income: Decimal
    expense: Decimal


def _counted(transactions: Iterable[Transaction]) -> Iterable[Transaction]:
    return (t for t in transactions if not t.ignored)


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    income = _ZERO
    expense = _ZERO
    for t in _counted(transactions):
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expense += t.amount
    return Totals(income=income, expense=expense)


def category_breakdown(transactions: Iterable[Transaction]) -> list[SpendingSummary]:
    """Expense sums per category, in order of first appearance."""

    sums: dict[Category, Decimal] = {}
    for t in _counted(transactions):
        if t.type != TransactionType.EXPENSE:
            continue
        sums[t.category] = sums.get(t.category, _ZERO) + t.amount
    return [SpendingSummary(category=c, amount=a) for c, a in sums.items()]


def monthly_trend(transactions: Iterable[Transaction]) -> list[MonthlyFlow]:
    """Income/expense per calendar month, oldest month first."""

    months: dict[str, list[Decimal]] = {}
    for t in _counted(transactions):
        key = f"{t.date.year:04d}-{t.date.month:02d}"
        bucket = months.setdefault(key, [_ZERO, _ZERO])
        if t.type == TransactionType.INCOME:
            bucket[0] += t.amount
        else:
            bucket[1] += t.amount
    return [MonthlyFlow(month=m, income=v[0], expense=v[1]) for m, v in sorted(months.items())]


def filter_transactions(
    transactions: Iterable[Transaction],
    *,
    search: str = "",
    type: TransactionType | None = None,
    source: Source | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Transaction]:
    """Filter for display and sort newest first.

    ``search`` is a case-insensitive substring of the description; ``start``
    and ``end`` are inclusive. ``None`` means "any".
    """

    needle = search.lower()
    out = [
        t
        for t in transactions
        if needle in t.description.lower()
        and (type is None or t.type == type)
        and (source is None or t.source == source)
        and (start is None or t.date >= start)
        and (end is None or t.date <= end)
    ]
    # Stable sort: same-day rows keep import order.
    out.sort(key=lambda t: t.date, reverse=True)
    return out


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

_NBSP = "\u00a0"


def format_currency(value: Decimal | float | int) -> str:
    """Format as pt-PT euros, e.g. ``1234,56 €`` and ``12 345,67 €``.

    Grouping kicks in from five integer digits, as in the pt-PT locale, and
    the separators are non-breaking spaces.
    """

    d = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    integer, cents = f"{abs(d):.2f}".split(".")
    if len(integer) > 4:
        groups: list[str] = []
        while integer:
            groups.insert(0, integer[-3:])
            integer = integer[:-3]
        integer = _NBSP.join(groups)
    return f"{sign}{integer},{cents}{_NBSP}€"


__all__ = [
    "MonthlyFlow",
    "SpendingSummary",
    "Totals",
    "category_breakdown",
    "compute_totals",
    "filter_transactions",
    "format_currency",
    "monthly_trend",
]
