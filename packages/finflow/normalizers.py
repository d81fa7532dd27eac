"""Raw triples → canonical :class:`Transaction` records.

Each accepted extractor row becomes a ``Transaction`` with a generated id,
``category=Other`` and the source's provenance tag. Classification is not
applied here; see :mod:`finflow.rules`.

Usage
-----
txs = CSVNormalizer.normalize(provider="millennium", text=...)  # -> list[Transaction]
txs = normalize_rows(rows)                                      # spreadsheet rows
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from .extractors import extract_millennium, extract_revolut, extract_spreadsheet
from .models import DEFAULT_CATEGORY, RawTriple, Source, Transaction

ID_PREFIXES: dict[Source, str] = {
    Source.REVOLUT: "rev",
    Source.MILLENNIUM: "mil",
    Source.XLSX: "xls",
    Source.MANUAL: "man",
}


def new_transaction_id(source: Source, index: int | None = None) -> str:
    """Return ``<prefix>-<index>-<random hex>``, or ``<prefix>-<random hex>``.

    The random suffix keeps ids distinct across repeated imports of the same
    file; it is not meant to be unguessable.
    """

    suffix = uuid.uuid4().hex[:12]
    prefix = ID_PREFIXES[source]
    if index is None:
        return f"{prefix}-{suffix}"
    return f"{prefix}-{index}-{suffix}"


def to_transaction(triple: RawTriple, *, source: Source) -> Transaction:
    return Transaction(
        id=new_transaction_id(source, triple.index),
        date=triple.date,
        description=triple.description,
        amount=triple.amount,
        category=DEFAULT_CATEGORY,
        source=source,
        type=triple.type,
    )


def normalize_triples(triples: Iterable[RawTriple], *, source: Source) -> list[Transaction]:
    """Wrap triples in input order."""

    return [to_transaction(t, source=source) for t in triples]


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> list[Transaction]:
    """Normalize spreadsheet (Format C) rows."""

    return normalize_triples(extract_spreadsheet(rows), source=Source.XLSX)


class CSVNormalizer:
    """Normalize delimited export text into ``Transaction`` rows.

    ``provider`` accepts the source tag (``"revolut"``, ``"millennium"``) or the
    format letter (``"a"``, ``"b"``), case-insensitively.
    """

    @staticmethod
    def normalize(*, provider: str, text: str) -> list[Transaction]:
        p = provider.strip().lower()
        if p in {"revolut", "a", "format_a"}:
            return normalize_triples(extract_revolut(text), source=Source.REVOLUT)
        if p in {"millennium", "millennium_bcp", "b", "format_b"}:
            return normalize_triples(extract_millennium(text), source=Source.MILLENNIUM)
        raise ValueError(f"unknown provider: {provider!r}")


__all__ = [
    "CSVNormalizer",
    "ID_PREFIXES",
    "new_transaction_id",
    "normalize_rows",
    "normalize_triples",
    "to_transaction",
]
