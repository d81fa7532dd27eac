import asyncio
import zipfile
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from openpyxl import Workbook

from finflow.ingest import UNRECOGNIZED_MESSAGE, detect_format, import_file, import_file_async
from finflow.ingest.readers import read_spreadsheet_rows
from finflow.models import Category, MatchMode, Source, TransactionType
from finflow.rules import make_rule

REVOLUT_TEXT = "\n".join(
    [
        "Type,Product,Started Date,Completed Date,Description,Amount,Fee,Currency,State,Balance",
        "CARD_PAYMENT,Current,2024-01-05 09:00:00,2024-01-05 09:12:01,Uber Trip,-7.80,0.00,EUR,"
        "COMPLETED,100.00",
        "TOPUP,Current,2024-01-06 10:00:00,2024-01-06 10:00:02,Salary,1500.00,0.00,EUR,"
        "COMPLETED,1600.00",
    ]
)

MILLENNIUM_TEXT = "\n".join(
    [
        "Data Lancamento;Data Valor;Descricao;Debito;Credito",
        "05-01-2024;05-01-2024;Pingo Doce;12,50;",
        "06-01-2024;06-01-2024;Netflix;9,99;",
    ]
)


def _write(tmp_path: Path, name: str, content: str | bytes) -> Path:
    p = tmp_path / name
    if isinstance(content, bytes):
        p.write_bytes(content)
    else:
        p.write_text(content, encoding="utf-8")
    return p


def _workbook(tmp_path: Path, name: str, rows: list[list[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    p = tmp_path / name
    wb.save(p)
    return p


def test_detect_format_policy():
    assert detect_format("statement.xlsx") is Source.XLSX
    assert detect_format("Revolut-2024.csv", "a;b;c") is Source.REVOLUT
    assert detect_format("MILLENNIUM_jan.csv") is Source.MILLENNIUM
    assert detect_format("export.csv", "a;b;c") is Source.MILLENNIUM
    assert detect_format("export.csv", "a,b,c") is Source.REVOLUT


def test_import_revolut_file_classifies_with_keywords(tmp_path: Path):
    path = _write(tmp_path, "revolut.csv", REVOLUT_TEXT)

    result = import_file(path, [])

    assert result.success
    assert result.message == "2 transactions imported successfully!"
    assert result.source is Source.REVOLUT
    uber, salary = result.transactions
    assert (uber.amount, uber.type, uber.category) == (
        Decimal("7.80"),
        TransactionType.EXPENSE,
        Category.TRANSPORT,
    )
    assert (salary.type, salary.category) == (TransactionType.INCOME, Category.INCOME)


def test_import_semicolon_file_is_detected_by_content_and_rules_apply(tmp_path: Path):
    path = _write(tmp_path, "extrato.csv", MILLENNIUM_TEXT)
    rules = [make_rule("netflix", MatchMode.EXACT, force_ignore=True)]

    result = import_file(path, rules)

    assert result.success
    assert result.source is Source.MILLENNIUM
    assert [t.description for t in result.transactions] == ["Pingo Doce", "Netflix"]
    assert result.transactions[0].category is Category.FOOD
    assert result.transactions[1].ignored is True
    assert result.transactions[1].category is Category.OTHER


def test_byte_order_mark_is_tolerated(tmp_path: Path):
    path = _write(tmp_path, "millennium.csv", "\ufeff" + MILLENNIUM_TEXT)

    result = import_file(path, [])

    assert result.success
    assert len(result.transactions) == 2


def test_empty_or_unrecognized_file_reports_message(tmp_path: Path):
    empty = _write(tmp_path, "empty.csv", "")
    garbage = _write(tmp_path, "notes.csv", "hello\nworld\n")

    for path in (empty, garbage):
        result = import_file(path, [])
        assert not result.success
        assert result.message == UNRECOGNIZED_MESSAGE
        assert result.transactions == ()


def test_invalid_utf8_fails_the_whole_file(tmp_path: Path):
    path = _write(tmp_path, "revolut.csv", b"h1,h2,h3,h4,h5,h6\n,,,2024-01-05,Caf\xe9,-1.00\n")

    result = import_file(path, [])

    assert not result.success
    assert result.message.startswith("Could not read file:")
    assert result.transactions == ()


def test_missing_file_fails_with_short_message(tmp_path: Path):
    result = import_file(tmp_path / "nope.csv", [])

    assert not result.success
    assert result.message.startswith("Could not read file:")


def test_corrupt_workbook_fails_the_whole_file(tmp_path: Path):
    path = _write(tmp_path, "broken.xlsx", b"this is not a zip archive")

    result = import_file(path, [])

    assert not result.success
    assert result.message.startswith("Could not read file:")


def test_row_with_overflowing_year_is_skipped_not_fatal(tmp_path: Path):
    text = "\n".join(
        [
            "Data Lancamento;Data Valor;Descricao;Debito;Credito",
            "01-01-99999999999999999999;;Bad;1,00;",
            "05-01-2024;05-01-2024;Pingo Doce;12,50;",
        ]
    )
    path = _write(tmp_path, "millennium.csv", text)

    result = import_file(path, [])

    assert result.success
    assert [t.description for t in result.transactions] == ["Pingo Doce"]


def test_workbook_with_malformed_xml_fails_the_whole_file(tmp_path: Path):
    path = tmp_path / "bad.xlsx"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("[Content_Types].xml", "<not xml")

    result = import_file(path, [])

    assert not result.success
    assert result.message.startswith("Could not read file:")


def test_import_spreadsheet(tmp_path: Path):
    path = _workbook(
        tmp_path,
        "movimentos.xlsx",
        [
            [],
            ["Data", "Descrição", "Valor", None],
            [datetime(2024, 3, 1), "Continente", -23.4, "ignored column"],
            [None, None, None, None],
            ["2024-03-02", "Reembolso", 10, None],
            [datetime(2024, 3, 3), "", -5, None],
        ],
    )

    result = import_file(path, [])

    assert result.success
    assert result.source is Source.XLSX
    assert [(t.date, t.description, t.amount, t.type, t.category) for t in result.transactions] == [
        (date(2024, 3, 1), "Continente", Decimal("23.4"), TransactionType.EXPENSE, Category.FOOD),
        (date(2024, 3, 2), "Reembolso", Decimal("10"), TransactionType.INCOME, Category.OTHER),
    ]


def test_read_spreadsheet_rows_uses_first_non_empty_row_as_header(tmp_path: Path):
    path = _workbook(tmp_path, "x.xlsx", [["Date", "Amount", None], ["2024-01-01", 5, "x"]])

    rows = read_spreadsheet_rows(path.read_bytes())

    assert rows == [{"Date": "2024-01-01", "Amount": 5}]


def test_filename_override_drives_format_detection(tmp_path: Path):
    # Without the override the "revolut" name would select the comma format.
    path = _write(tmp_path, "revolut-upload.tmp", MILLENNIUM_TEXT)

    result = asyncio.run(import_file_async(path, [], filename="millennium.csv"))

    assert result.success
    assert result.source is Source.MILLENNIUM
