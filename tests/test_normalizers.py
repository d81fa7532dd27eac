import re
from datetime import date
from decimal import Decimal

import pytest

from finflow import CSVNormalizer, normalize_rows
from finflow.models import Category, Source, TransactionType
from finflow.normalizers import new_transaction_id


def test_millennium_snapshot_to_transactions():
    text = "\n".join(
        [
            "Data Lancamento;Data Valor;Descricao;Debito;Credito",
            "05-01-2024;;Pingo Doce;12,50;",
            "06-01-2024;;Transferencia recebida;;200,00",
        ]
    )

    rows = CSVNormalizer.normalize(provider="millennium", text=text)

    assert [(t.date, t.description, t.amount, t.type) for t in rows] == [
        (date(2024, 1, 5), "Pingo Doce", Decimal("12.50"), TransactionType.EXPENSE),
        (date(2024, 1, 6), "Transferencia recebida", Decimal("200.00"), TransactionType.INCOME),
    ]
    # Classification is not applied by the normalizer.
    assert all(t.category is Category.OTHER for t in rows)
    assert all(t.source is Source.MILLENNIUM for t in rows)
    assert all(t.ignored is None for t in rows)
    assert re.fullmatch(r"mil-1-[0-9a-f]{12}", rows[0].id)
    assert re.fullmatch(r"mil-2-[0-9a-f]{12}", rows[1].id)


def test_revolut_provider_aliases():
    text = "h1,h2,h3,h4,h5,h6\n,,,2024-01-05,\"Uber Trip\",-7.80"

    for provider in ("revolut", "A", " format_a "):
        rows = CSVNormalizer.normalize(provider=provider, text=text)
        assert len(rows) == 1
        assert rows[0].source is Source.REVOLUT
        assert rows[0].id.startswith("rev-1-")
        assert rows[0].amount == Decimal("7.80")


def test_unknown_provider_raises():
    with pytest.raises(ValueError):
        CSVNormalizer.normalize(provider="amex", text="")


def test_spreadsheet_rows_are_tagged_xlsx():
    rows = normalize_rows([{"Date": "2024-05-01", "Description": "Ikea", "Amount": -99.9}])

    assert len(rows) == 1
    assert rows[0].source is Source.XLSX
    assert rows[0].id.startswith("xls-0-")
    assert rows[0].amount == Decimal("99.9")


def test_ids_are_unique_across_repeated_imports():
    text = "h\n,,,2024-01-05,Bolt,-3.00"

    first = CSVNormalizer.normalize(provider="revolut", text=text)
    second = CSVNormalizer.normalize(provider="revolut", text=text)

    assert first[0].id != second[0].id
    assert new_transaction_id(Source.MANUAL).startswith("man-")
