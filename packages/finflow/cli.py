# ruff: noqa: B008
"""CLI for the ``finflow`` package.

Environment variables are loaded from a local ``.env`` using
``python-dotenv`` (without overriding values already set) before any command
runs. State lives in the key-value store (see :mod:`finflow.store`); each
mutating command loads the session, applies one change and saves it back.
Business logic lives in :mod:`finflow.session` and the pipeline modules.

Every failure is printed as a single ``Error: ...`` line on stderr with exit
status 1.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .aggregate import category_breakdown, filter_transactions, format_currency, monthly_trend
from .ingest import import_file
from .logging_setup import configure_logging, get_logger
from .models import Category, MatchMode, Source, Transaction, TransactionType
from .rules import make_rule
from .session import FinanceSession

console = Console()
err_console = Console(stderr=True)

_logger = get_logger("finflow.cli")

DATE_FORMATS = ["%Y-%m-%d"]

EXPORT_PATH_ARGUMENT = typer.Argument(
    ...,
    exists=False,
    dir_okay=False,
    help="Bank export to import (.csv, or .xlsx/.xlsm for spreadsheets).",
)
TX_ID_ARGUMENT = typer.Argument(..., help="Transaction id (see `finflow list`).")
RULE_ID_ARGUMENT = typer.Argument(..., help="Rule id (see `finflow rules list`).")


# ---- Small module-level helpers used by CLI commands -------------------------


def _fail(message: str) -> NoReturn:
    err_console.print(f"Error: {message}", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1)


def _database_url(ctx: typer.Context) -> str | None:
    obj = ctx.find_root().obj or {}
    return obj.get("database_url")


def _load(ctx: typer.Context) -> FinanceSession:
    try:
        return FinanceSession.load(database_url=_database_url(ctx))
    except Exception as e:
        _logger.debug("cli: load failed", exc_info=True)
        _fail(f"failed to load saved data: {e}")


def _save(ctx: typer.Context, session: FinanceSession) -> None:
    try:
        session.save(database_url=_database_url(ctx))
    except Exception as e:
        _logger.debug("cli: save failed", exc_info=True)
        _fail(f"failed to save data: {e}")


def _parse_amount(raw: str) -> Decimal:
    try:
        amount = Decimal(raw.strip().replace(",", "."))
    except InvalidOperation:
        _fail(f"invalid amount: {raw!r}")
    if not amount.is_finite() or amount < 0:
        _fail("amount must be a non-negative number")
    return amount


def _as_date(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


def _transactions_table(transactions: list[Transaction]) -> Table:
    table = Table(title=f"Transactions ({len(transactions)})")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Source")
    table.add_column("Amount", justify="right")
    table.add_column("ID", style="dim")
    for t in transactions:
        sign = "-" if t.type == TransactionType.EXPENSE else "+"
        table.add_row(
            t.date.isoformat(),
            t.description,
            t.category.value,
            t.source.value,
            f"{sign}{format_currency(t.amount)}",
            t.id,
            # Ignored rows stay visible so they can be un-ignored.
            style="dim strike" if t.ignored else None,
        )
    return table


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank exports, classify transactions with rules, and summarize spending. "
        "Loads settings from a local .env before running."
    ),
)
rules_app = typer.Typer(no_args_is_help=True, help="Manage auto-classification rules.")
app.add_typer(rules_app, name="rules")


@app.callback()
def main(
    ctx: typer.Context,
    database_url: str | None = typer.Option(
        None, help="Override FINFLOW_DATABASE_URL / DATABASE_URL (falls back to env vars)."
    ),
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to FINFLOW_LOG_LEVEL, then WARNING)."
    ),
) -> None:
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    ctx.obj = {"database_url": database_url}


@app.command("import")
def import_cmd(ctx: typer.Context, path: Annotated[Path, EXPORT_PATH_ARGUMENT]) -> None:
    """Import an export file; the format is detected from its name and content."""

    session = _load(ctx)
    result = import_file(path, session.rules)
    if not result.success:
        _fail(result.message)
    session.import_transactions(result.transactions)
    _save(ctx, session)
    console.print(f"[green]{result.message}[/green]")


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    *,
    description: str = typer.Option(..., help="What the money was for."),
    amount: str = typer.Option(..., help="Positive amount, e.g. 12.50 or 12,50."),
    category: Category = typer.Option(Category.FOOD, help="Initial category."),
    type: TransactionType = typer.Option(TransactionType.EXPENSE, "--type"),
    on: datetime | None = typer.Option(
        None, "--date", formats=DATE_FORMATS, help="Transaction date (defaults to today)."
    ),
) -> None:
    """Add a manual transaction; rules still apply."""

    value = _parse_amount(amount)
    session = _load(ctx)
    tx = session.add_manual(
        description=description,
        amount=value,
        category=category,
        type=type,
        on=_as_date(on) or date.today(),
    )
    _save(ctx, session)
    console.print(f"Added [bold]{tx.id}[/bold] ({tx.category.value}).")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    *,
    search: str = typer.Option("", help="Case-insensitive substring of the description."),
    type: TransactionType | None = typer.Option(None, "--type"),
    source: Source | None = typer.Option(None),
    start: datetime | None = typer.Option(None, formats=DATE_FORMATS, help="Inclusive."),
    end: datetime | None = typer.Option(None, formats=DATE_FORMATS, help="Inclusive."),
) -> None:
    """List transactions, newest first."""

    session = _load(ctx)
    rows = filter_transactions(
        session.transactions,
        search=search,
        type=type,
        source=source,
        start=_as_date(start),
        end=_as_date(end),
    )
    console.print(_transactions_table(rows))


@app.command("summary")
def summary_cmd(ctx: typer.Context) -> None:
    """Show totals, spending by category and the monthly cash flow."""

    session = _load(ctx)
    totals = session.totals()
    console.print(f"Income:  [green]{format_currency(totals.income)}[/green]")
    console.print(f"Expense: [red]{format_currency(totals.expense)}[/red]")
    console.print(f"Balance: [bold]{format_currency(totals.balance)}[/bold]")
    console.print(f"Rules:   {len(session.rules)}")

    by_category = Table(title="Spending by category")
    by_category.add_column("Category")
    by_category.add_column("Amount", justify="right")
    for item in category_breakdown(session.transactions):
        by_category.add_row(item.category.value, format_currency(item.amount))
    console.print(by_category)

    monthly = Table(title="Monthly cash flow")
    monthly.add_column("Month")
    monthly.add_column("Income", justify="right")
    monthly.add_column("Expense", justify="right")
    for flow in monthly_trend(session.transactions):
        monthly.add_row(flow.month, format_currency(flow.income), format_currency(flow.expense))
    console.print(monthly)


@app.command("ignore")
def ignore_cmd(ctx: typer.Context, tx_id: Annotated[str, TX_ID_ARGUMENT]) -> None:
    """Toggle whether a transaction counts towards totals."""

    session = _load(ctx)
    try:
        tx = session.toggle_ignore(tx_id)
    except KeyError:
        _fail(f"transaction not found: {tx_id}")
    _save(ctx, session)
    console.print(f"{tx.id}: {'ignored' if tx.ignored else 'counted'}")


@app.command("delete")
def delete_cmd(ctx: typer.Context, tx_id: Annotated[str, TX_ID_ARGUMENT]) -> None:
    """Delete a transaction."""

    session = _load(ctx)
    try:
        session.delete_transaction(tx_id)
    except KeyError:
        _fail(f"transaction not found: {tx_id}")
    _save(ctx, session)
    console.print(f"Deleted {tx_id}.")


@app.command("insights")
def insights_cmd(ctx: typer.Context) -> None:
    """Ask the AI advisor for tips about recent spending."""

    # Deferred import keeps the OpenAI SDK off the startup path of other commands
    from .insights import generate_insights

    session = _load(ctx)
    try:
        text = generate_insights(session.transactions)
    except (ValueError, RuntimeError) as e:
        _fail(str(e))
    except Exception as e:
        _logger.warning("cli: insights failed", exc_info=True)
        _fail(f"could not reach the AI advisor: {e}")
    console.print(text)


# ---- Rules -------------------------------------------------------------------


@rules_app.command("list")
def rules_list_cmd(ctx: typer.Context) -> None:
    """List rules in evaluation order."""

    session = _load(ctx)
    table = Table(title=f"Rules ({len(session.rules)})")
    table.add_column("#", justify="right")
    table.add_column("Pattern")
    table.add_column("Mode")
    table.add_column("Category")
    table.add_column("Ignore")
    table.add_column("ID", style="dim")
    for n, rule in enumerate(session.rules, start=1):
        table.add_row(
            str(n),
            rule.pattern,
            rule.match_mode.value,
            rule.target_category.value if rule.target_category else "",
            "" if rule.force_ignore is None else str(rule.force_ignore).lower(),
            rule.id,
        )
    console.print(table)


@rules_app.command("add")
def rules_add_cmd(
    ctx: typer.Context,
    *,
    pattern: str = typer.Option(..., help="Compared case-insensitively."),
    mode: MatchMode = typer.Option(MatchMode.PREFIX, help="exact or prefix match."),
    category: Category | None = typer.Option(None, help="Category to assign on match."),
    ignore: bool = typer.Option(False, "--ignore", help="Mark matches as ignored."),
    unignore: bool = typer.Option(False, "--unignore", help="Mark matches as counted again."),
) -> None:
    """Append a rule and re-classify every transaction."""

    if ignore and unignore:
        _fail("--ignore and --unignore are mutually exclusive")
    force_ignore = True if ignore else (False if unignore else None)

    session = _load(ctx)
    rule = session.add_rule(
        make_rule(pattern, mode, target_category=category, force_ignore=force_ignore)
    )
    _save(ctx, session)
    console.print(f"Added rule [bold]{rule.id}[/bold].")


@rules_app.command("remove")
def rules_remove_cmd(ctx: typer.Context, rule_id: Annotated[str, RULE_ID_ARGUMENT]) -> None:
    """Remove a rule and re-classify every transaction."""

    session = _load(ctx)
    try:
        session.remove_rule(rule_id)
    except KeyError:
        _fail(f"rule not found: {rule_id}")
    _save(ctx, session)
    console.print(f"Removed rule {rule_id}.")


@rules_app.command("from-tx")
def rules_from_tx_cmd(
    ctx: typer.Context,
    tx_id: Annotated[str, TX_ID_ARGUMENT],
    *,
    mode: MatchMode = typer.Option(MatchMode.EXACT, help="exact or prefix match."),
    ignore: bool = typer.Option(
        False, "--ignore", help="Create an ignore rule instead of a category rule."
    ),
) -> None:
    """Create a rule keyed on a transaction's description."""

    session = _load(ctx)
    try:
        rule = session.create_rule_from_transaction(
            tx_id, mode, "ignore" if ignore else "category"
        )
    except KeyError:
        _fail(f"transaction not found: {tx_id}")
    _save(ctx, session)
    console.print(f"Added rule [bold]{rule.id}[/bold] for {rule.pattern!r}.")


if __name__ == "__main__":  # pragma: no cover
    app()
