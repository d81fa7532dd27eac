"""Per-format field extractors: raw export rows → :class:`RawTriple`.

Supported sources
-----------------
- Format A, Revolut-style comma-delimited text (6+ columns).
- Format B, Millennium-style semicolon-delimited text (5+ columns, day-first
  dates, separate debit/credit columns with decimal commas).
- Format C, generic spreadsheet rows given as ``{header: cell}`` mappings.

Every extractor is a generator. A malformed row (too few columns, unparseable
amount or date, empty description) is skipped and logged at DEBUG; nothing is
raised per row. Failures reading or decoding the file happen before these
functions are called and are the caller's concern.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, Overflow
from enum import StrEnum
from typing import Any

from dateutil import parser as date_parser

from .logging_setup import get_logger
from .models import RawTriple, TransactionType

_logger = get_logger("finflow.extractors")

_ZERO = Decimal(0)

# ---------------------------------------------------------------------------
# Helpers (amount/date parsing)
# ---------------------------------------------------------------------------


def _to_decimal(raw: str | None) -> Decimal | None:
    """Parse a dot-decimal literal; ``None`` when empty, invalid or non-finite."""

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return _in_range(d)


def _in_range(d: Decimal) -> Decimal | None:
    """``d`` when it is finite and within the decimal context, else ``None``."""

    if not d.is_finite():
        return None
    try:
        # abs() rounds to the context and traps exponents beyond Emax.
        abs(d)
    except (Overflow, InvalidOperation):
        return None
    return d


def _to_decimal_comma(raw: str | None) -> Decimal | None:
    """Parse ``12,50``, ``1.234,56`` or ``1,234.56``; the last separator is the decimal one."""

    if raw is None:
        return None
    s = raw.strip()
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    return _to_decimal(s)


def _parse_date_text(raw: str | None) -> date | None:
    """Turn a free-form date string into a calendar date, without timezones.

    ISO ``YYYY-MM-DD`` (optionally followed by a time) is read directly from
    its components; anything else goes through ``dateutil``. Time-of-day and
    offsets are discarded rather than converted, so the calendar day printed
    in the export is the one kept.
    """

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    first = s.split()[0].split("T", 1)[0]
    try:
        return date.fromisoformat(first)
    except ValueError:
        pass
    try:
        return date_parser.parse(s).date()
    except (ValueError, OverflowError):
        return None


def _parse_dmy(raw: str) -> date | None:
    """``DD-MM-YYYY`` → date."""

    parts = raw.strip().split("-")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except (ValueError, OverflowError):
        return None


def _lines(text: str) -> list[str]:
    # ``splitlines`` also swallows the ``\r`` of CRLF exports.
    return text.splitlines()


# ---------------------------------------------------------------------------
# Format A: comma-delimited
# ---------------------------------------------------------------------------

REVOLUT_MIN_COLUMNS = 6


def extract_revolut(text: str) -> Iterator[RawTriple]:
    """Yield triples from Format A text. The first line is a header.

    Columns (0-indexed): 3 primary date, 4 description (also the fallback date
    field when column 3 is empty), 5 signed amount. A negative amount is an
    Expense; zero or positive is Income.
    """

    skipped = 0
    for i, line in enumerate(_lines(text)):
        if i == 0:
            continue
        cols = line.split(",")
        if len(cols) < REVOLUT_MIN_COLUMNS:
            skipped += 1
            continue
        amount = _to_decimal(cols[5])
        if amount is None:
            _logger.debug("revolut: skip line=%d reason=amount value=%r", i, cols[5])
            skipped += 1
            continue
        on = _parse_date_text(cols[3] or cols[4])
        if on is None:
            _logger.debug("revolut: skip line=%d reason=date", i)
            skipped += 1
            continue
        yield RawTriple(
            index=i,
            date=on,
            description=cols[4].replace('"', ""),
            amount=abs(amount),
            type=TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME,
        )
    if skipped:
        _logger.debug("revolut: skipped %d line(s)", skipped)


# ---------------------------------------------------------------------------
# Format B: semicolon-delimited, debit/credit columns
# ---------------------------------------------------------------------------

MILLENNIUM_MIN_COLUMNS = 5


def extract_millennium(text: str) -> Iterator[RawTriple]:
    """Yield triples from Format B text. The first line is a header.

    Columns (0-indexed): 0 ``DD-MM-YYYY`` date, 2 description, 3 debit,
    4 credit. An empty debit or credit cell counts as zero; the row is only
    rejected when neither parses. A positive debit makes an Expense of that
    size, otherwise the credit is an Income.
    """

    skipped = 0
    for i, line in enumerate(_lines(text)):
        if i == 0:
            continue
        cols = line.split(";")
        if len(cols) < MILLENNIUM_MIN_COLUMNS:
            skipped += 1
            continue
        date_raw = cols[0].strip()
        if not date_raw:
            skipped += 1
            continue
        debit = _ZERO if not cols[3].strip() else _to_decimal_comma(cols[3])
        credit = _ZERO if not cols[4].strip() else _to_decimal_comma(cols[4])
        if debit is None and credit is None:
            _logger.debug("millennium: skip line=%d reason=amount", i)
            skipped += 1
            continue
        debit = debit if debit is not None else _ZERO
        credit = credit if credit is not None else _ZERO
        on = _parse_dmy(date_raw)
        if on is None:
            _logger.debug("millennium: skip line=%d reason=date value=%r", i, date_raw)
            skipped += 1
            continue
        is_expense = debit > 0
        yield RawTriple(
            index=i,
            date=on,
            description=cols[2],
            amount=debit if is_expense else abs(credit),
            type=TransactionType.EXPENSE if is_expense else TransactionType.INCOME,
        )
    if skipped:
        _logger.debug("millennium: skipped %d line(s)", skipped)


# ---------------------------------------------------------------------------
# Format C: spreadsheet rows with named columns
# ---------------------------------------------------------------------------


class ColumnRole(StrEnum):
    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    UNRESOLVED = "unresolved"


# Checked in this order; a header takes the first role whose keyword it holds,
# so "Data Valor" is a date column and never competes with "Valor".
ROLE_KEYWORDS: tuple[tuple[ColumnRole, tuple[str, ...]], ...] = (
    (ColumnRole.DATE, ("data", "date")),
    (ColumnRole.DESCRIPTION, ("desc", "info")),
    (ColumnRole.AMOUNT, ("val", "amount", "quant")),
)

# Positional fallback when no header carries the role's keywords.
_FALLBACK_POSITION: dict[ColumnRole, int] = {
    ColumnRole.DATE: 0,
    ColumnRole.DESCRIPTION: 1,
    ColumnRole.AMOUNT: 2,
}


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    """Headers chosen for each role; ``None`` when the role is unresolved."""

    date: str | None
    description: str | None
    amount: str | None


def header_role(header: str) -> ColumnRole:
    h = header.lower()
    for role, keywords in ROLE_KEYWORDS:
        if any(k in h for k in keywords):
            return role
    return ColumnRole.UNRESOLVED


def resolve_columns(headers: Sequence[str]) -> ColumnLayout:
    """Pick the date/description/amount headers out of ``headers``."""

    chosen: dict[ColumnRole, str] = {}
    for h in headers:
        role = header_role(h)
        if role is not ColumnRole.UNRESOLVED and role not in chosen:
            chosen[role] = h

    def pick(role: ColumnRole) -> str | None:
        if role in chosen:
            return chosen[role]
        pos = _FALLBACK_POSITION[role]
        return headers[pos] if pos < len(headers) else None

    return ColumnLayout(
        date=pick(ColumnRole.DATE),
        description=pick(ColumnRole.DESCRIPTION),
        amount=pick(ColumnRole.AMOUNT),
    )


def _cell_amount(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | Decimal):
        return _in_range(Decimal(value))
    if isinstance(value, float):
        return _in_range(Decimal(str(value))) if math.isfinite(value) else None
    return _to_decimal_comma(str(value))


def _cell_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return _parse_date_text(value)
    return None


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def extract_spreadsheet(rows: Iterable[Mapping[str, Any]]) -> Iterator[RawTriple]:
    """Yield triples from Format C rows.

    Columns are resolved per row with :func:`resolve_columns`. Rows with a
    non-finite amount, an empty description or no usable date are dropped.
    A negative amount is an Expense.
    """

    skipped = 0
    for i, row in enumerate(rows):
        layout = resolve_columns([str(k) for k in row.keys()])
        by_header = {str(k): v for k, v in row.items()}

        amount = _cell_amount(by_header.get(layout.amount)) if layout.amount else None
        description = _cell_text(by_header.get(layout.description)) if layout.description else ""
        on = _cell_date(by_header.get(layout.date)) if layout.date else None
        if amount is None or not description or on is None:
            _logger.debug("spreadsheet: skip row=%d layout=%s", i, layout)
            skipped += 1
            continue
        yield RawTriple(
            index=i,
            date=on,
            description=description,
            amount=abs(amount),
            type=TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME,
        )
    if skipped:
        _logger.debug("spreadsheet: skipped %d row(s)", skipped)


__all__ = [
    "ColumnLayout",
    "ColumnRole",
    "ROLE_KEYWORDS",
    "extract_millennium",
    "extract_revolut",
    "extract_spreadsheet",
    "header_role",
    "resolve_columns",
]
