from datetime import date
from decimal import Decimal

from finflow.aggregate import (
    category_breakdown,
    compute_totals,
    filter_transactions,
    format_currency,
    monthly_trend,
)
from finflow.models import Category, Source, Transaction, TransactionType

NBSP = "\u00a0"


def _tx(
    tx_id: str,
    on: date,
    amount: str,
    type: TransactionType,
    category: Category = Category.OTHER,
    *,
    description: str = "",
    source: Source = Source.REVOLUT,
    ignored: bool | None = None,
) -> Transaction:
    return Transaction(
        id=tx_id,
        date=on,
        description=description or tx_id,
        amount=Decimal(amount),
        category=category,
        source=source,
        type=type,
        ignored=ignored,
    )


EXP = TransactionType.EXPENSE
INC = TransactionType.INCOME


def _collection() -> list[Transaction]:
    return [
        _tx("a", date(2024, 1, 5), "12.50", EXP, Category.FOOD, description="Pingo Doce"),
        _tx("b", date(2024, 1, 31), "1500.00", INC, Category.INCOME, description="Salary"),
        _tx("c", date(2024, 2, 2), "7.80", EXP, Category.TRANSPORT, description="Uber Trip"),
        _tx("d", date(2024, 2, 3), "30.00", EXP, Category.FOOD, description="Continente"),
        _tx(
            "e",
            date(2024, 2, 3),
            "999.00",
            EXP,
            Category.SHOPPING,
            description="Transfer to savings",
            source=Source.MILLENNIUM,
            ignored=True,
        ),
    ]


def test_totals_exclude_ignored():
    totals = compute_totals(_collection())

    assert totals.income == Decimal("1500.00")
    assert totals.expense == Decimal("50.30")
    assert totals.balance == Decimal("1449.70")


def test_totals_of_empty_collection_are_zero():
    totals = compute_totals([])

    assert totals.income == 0
    assert totals.expense == 0
    assert totals.balance == 0


def test_category_breakdown_counts_expenses_in_first_appearance_order():
    out = category_breakdown(_collection())

    assert [(s.category, s.amount) for s in out] == [
        (Category.FOOD, Decimal("42.50")),
        (Category.TRANSPORT, Decimal("7.80")),
    ]


def test_monthly_trend_is_sorted_by_month():
    rows = list(reversed(_collection()))

    out = monthly_trend(rows)

    assert [(m.month, m.income, m.expense) for m in out] == [
        ("2024-01", Decimal("1500.00"), Decimal("12.50")),
        ("2024-02", Decimal("0"), Decimal("37.80")),
    ]


def test_filter_sorts_newest_first_and_keeps_same_day_order():
    out = filter_transactions(_collection())

    assert [t.id for t in out] == ["d", "e", "c", "b", "a"]


def test_filter_by_search_type_source_and_range():
    txs = _collection()

    assert [t.id for t in filter_transactions(txs, search="UBER")] == ["c"]
    assert [t.id for t in filter_transactions(txs, type=INC)] == ["b"]
    assert [t.id for t in filter_transactions(txs, source=Source.MILLENNIUM)] == ["e"]
    assert [
        t.id for t in filter_transactions(txs, start=date(2024, 1, 31), end=date(2024, 2, 2))
    ] == ["c", "b"]


def test_format_currency_pt_pt():
    assert format_currency(Decimal("1234.56")) == f"1234,56{NBSP}€"
    assert format_currency(Decimal("12345.67")) == f"12{NBSP}345,67{NBSP}€"
    assert format_currency(Decimal("1234567.891")) == f"1{NBSP}234{NBSP}567,89{NBSP}€"
    assert format_currency(Decimal("0.005")) == f"0,01{NBSP}€"
    assert format_currency(-5) == f"-5,00{NBSP}€"
    assert format_currency(2.675) == f"2,68{NBSP}€"
