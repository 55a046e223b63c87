#!/usr/bin/env python3
"""
Main CLI Entry Point for Money Manager

Command-line surface over the ledger core: accounts, transactions, legacy
text import/export, JSON backups and period statistics.
"""

import functools
import logging
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from ..core.config import Config, get_config, reload_config
from ..core.currency import format_amount
from ..core.errors import LedgerError
from ..core.models import Account, AccountType, TransactionType
from ..ledger.backup import read_backup, restore_backup, write_backup
from ..ledger.datastore import LedgerFileStore
from ..ledger.seed import seed_database
from ..ledger.store import LedgerStore
from ..legacy.exporter import export_file
from ..legacy.importer import LegacyImporter
from ..legacy.parser import parse_legacy_txt
from ..stats.aggregator import CategoryBreakdown, StatsAggregator
from ..stats.ranges import TimeDimension


def handle_ledger_errors(command: Callable[..., Any]) -> Callable[..., Any]:
    """Turn ledger errors into clean CLI failures."""

    @functools.wraps(command)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return command(*args, **kwargs)
        except LedgerError as e:
            raise click.ClickException(f"{type(e).__name__}: {e}") from e

    return wrapper


def get_store(ctx: click.Context) -> LedgerStore:
    """Open the configured ledger once per invocation."""
    if "store" not in ctx.obj:
        config: Config = ctx.obj["config"]
        ctx.obj["store"] = LedgerStore.open(
            LedgerFileStore.from_config(config), default_currency=config.default_currency
        )
    return ctx.obj["store"]


def resolve_account(store: LedgerStore, ref: str | None) -> Account:
    """Find an account by id or name; default to the first account."""
    accounts = store.accounts()
    if ref is None:
        if not accounts:
            raise click.ClickException("No accounts yet. Run 'money-manager seed' or 'add-account' first.")
        return accounts[0]
    for account in accounts:
        if ref in (account.id, account.name):
            return account
    raise click.ClickException(f"Account not found: {ref}")


def parse_cli_date(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise click.BadParameter(f"expected YYYY-MM-DD or YYYY-MM-DDTHH:MM, got {value!r}") from e


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    Money Manager - Personal Bookkeeping

    Keeps account balances exact, imports legacy text exports without
    duplicates, and summarizes income and spending by period and category.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["MONEY_MANAGER_ENV"] = config_env

    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("money_manager").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = reload_config() if config_env else get_config()

    if verbose:
        click.echo(f"Environment: {ctx.obj['config'].environment.value}")
        click.echo(f"Data directory: {ctx.obj['config'].data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from money_manager import __version__

    click.echo(f"Money Manager v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj: Config = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Ledger File: {config_obj.storage.ledger_file}")
    click.echo(f"  Default Currency: {config_obj.default_currency}")
    click.echo(f"  Skip Duplicates On Import: {config_obj.importer.skip_duplicates}")
    click.echo(f"  Long Tail Ratio: {config_obj.stats.long_tail_ratio}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


@main.command()
@click.pass_context
@handle_ledger_errors
def seed(ctx: click.Context) -> None:
    """Create the default account and builtin categories."""
    store = get_store(ctx)
    if seed_database(store):
        click.echo(f"✅ Seeded {len(store.accounts())} account and {len(store.categories())} categories")
    else:
        click.echo("Ledger already has accounts; nothing to seed")


@main.command()
@click.pass_context
@handle_ledger_errors
def accounts(ctx: click.Context) -> None:
    """List accounts and balances."""
    store = get_store(ctx)
    items = store.accounts()
    if not items:
        click.echo("No accounts")
        return

    for account in items:
        click.echo(f"{account.name:<20} {account.type.value:<14} {format_amount(account.balance):>14}  {account.id}")


@main.command("add-account")
@click.argument("name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.CASH.value,
    help="Account type (default: cash)",
)
@click.option("--currency", help="Currency code (default: configured currency)")
@click.pass_context
@handle_ledger_errors
def add_account(ctx: click.Context, name: str, account_type: str, currency: str | None) -> None:
    """Create an account with a zero balance."""
    account = get_store(ctx).add_account(name, account_type, currency=currency)
    click.echo(f"✅ Created account {account.name} ({account.id})")


@main.command()
@click.option("--type", "category_type", type=click.Choice([t.value for t in TransactionType]), help="Only this type")
@click.pass_context
@handle_ledger_errors
def categories(ctx: click.Context, category_type: str | None) -> None:
    """List categories."""
    store = get_store(ctx)
    items = [c for c in store.categories() if category_type is None or c.type.value == category_type]
    for category in items:
        marker = " (builtin)" if category.is_builtin else ""
        click.echo(f"{category.type.value:<9} {category.name}{marker}")
    if ctx.obj.get("verbose"):
        click.echo(f"{len(items)} categories")


@main.command("add-transaction")
@click.option("--type", "tx_type", type=click.Choice([t.value for t in TransactionType]), required=True)
@click.option("--amount", required=True, help="Positive amount, e.g. 10.50")
@click.option("--account", "account_ref", help="Account name or id (default: first account)")
@click.option("--to-account", "to_account_ref", help="Destination account for transfers")
@click.option("--category", "category_name", help="Category name (required for income/expense)")
@click.option("--date", "date_text", help="Date (YYYY-MM-DD or YYYY-MM-DDTHH:MM), defaults to now")
@click.option("--note", help="Free-text note")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
@handle_ledger_errors
def add_transaction(
    ctx: click.Context,
    tx_type: str,
    amount: str,
    account_ref: str | None,
    to_account_ref: str | None,
    category_name: str | None,
    date_text: str | None,
    note: str | None,
    tags: tuple,
) -> None:
    """
    Record an income, expense or transfer.

    Examples:
      money-manager add-transaction --type expense --amount 10.5 --category 餐饮
      money-manager add-transaction --type transfer --amount 20 --account Cash --to-account Bank
    """
    store = get_store(ctx)
    account = resolve_account(store, account_ref)
    to_account = resolve_account(store, to_account_ref) if to_account_ref else None

    category_id = None
    if category_name:
        category = store.find_category(tx_type, category_name)
        if category is None:
            raise click.ClickException(f"Category not found: {tx_type}:{category_name}")
        category_id = category.id

    tx = store.add_transaction(
        type=tx_type,
        amount=amount,
        account_id=account.id,
        to_account_id=to_account.id if to_account else None,
        category_id=category_id,
        date=parse_cli_date(date_text),
        note=note,
        tags=tags,
    )
    balance = store.get_account(account.id).balance
    click.echo(f"✅ Recorded {tx.type.value} {format_amount(tx.amount)}; {account.name} is now {format_amount(balance)}")


@main.command()
@click.option("--account", "account_ref", help="Only this account (name or id)")
@click.pass_context
@handle_ledger_errors
def recompute(ctx: click.Context, account_ref: str | None) -> None:
    """Recompute balances from the transaction history."""
    store = get_store(ctx)
    if account_ref:
        account = resolve_account(store, account_ref)
        balances = {account.id: store.recompute_balance(account.id)}
    else:
        balances = store.recompute_balances()

    for account_id, balance in balances.items():
        click.echo(f"{store.get_account(account_id).name:<20} {format_amount(balance):>14}")


@main.command("import-txt")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--account", "account_ref", help="Target account name or id (default: first account)")
@click.option(
    "--skip-duplicates/--keep-duplicates",
    default=None,
    help="Skip records already present in the account (default from config)",
)
@click.option("--preview", is_flag=True, help="Only report what would be imported")
@click.pass_context
@handle_ledger_errors
def import_txt(
    ctx: click.Context, file: Path, account_ref: str | None, skip_duplicates: bool | None, preview: bool
) -> None:
    """
    Import a legacy TXT export into one account.

    Examples:
      money-manager import-txt bills.txt
      money-manager import-txt bills.txt --account 默认账户 --keep-duplicates
    """
    config: Config = ctx.obj["config"]
    store = get_store(ctx)
    account = resolve_account(store, account_ref)
    importer = LegacyImporter(
        store, skip_duplicates=config.importer.skip_duplicates, encoding=config.importer.encoding
    )

    if preview:
        parsed = parse_legacy_txt(file.read_text(encoding=config.importer.encoding))
        duplicates = importer.count_duplicates(parsed.records, account.id)
        click.echo(f"Parsed {parsed.parsed_count} records ({parsed.dropped_count} malformed lines)")
        click.echo(f"Duplicates already in {account.name}: {duplicates}")
        return

    result = importer.import_file(file, account.id, skip_duplicates=skip_duplicates)
    click.echo(f"✅ {result.summary_text()}")
    if result.dropped_lines and ctx.obj.get("verbose"):
        click.echo(f"Dropped lines: {', '.join(str(n) for n in result.dropped_lines)}")
    click.echo(f"{account.name} balance: {format_amount(store.get_account(account.id).balance)}")


@main.command("export-txt")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
@handle_ledger_errors
def export_txt(ctx: click.Context, file: Path) -> None:
    """Export all transactions as legacy TXT."""
    count = export_file(get_store(ctx), file)
    click.echo(f"✅ Exported {count} transactions to {file}")


@main.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
@handle_ledger_errors
def backup(ctx: click.Context, file: Path) -> None:
    """Write a JSON backup of the whole ledger."""
    store = get_store(ctx)
    write_backup(store, file)
    click.echo(
        f"✅ Backed up {len(store.accounts())} accounts, {len(store.categories())} categories "
        f"and {len(store.transactions())} transactions to {file}"
    )


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
@handle_ledger_errors
def restore(ctx: click.Context, file: Path, yes: bool) -> None:
    """Replace the whole ledger with a JSON backup."""
    payload = read_backup(file)
    if not yes:
        click.confirm(f"Replace all ledger data with {payload.record_count} records from {file}?", abort=True)

    restore_backup(get_store(ctx), payload)
    click.echo(
        f"✅ Restored {len(payload.accounts)} accounts, {len(payload.categories)} categories "
        f"and {len(payload.transactions)} transactions"
    )


def _echo_breakdown(title: str, breakdown: CategoryBreakdown, expand_other: bool) -> None:
    click.echo(f"{title} by category (total {format_amount(breakdown.total)}):")
    slices = breakdown.expanded() if expand_other else breakdown.slices
    for item in slices:
        click.echo(f"  {item.name:<16} {format_amount(item.value):>14}")
    if breakdown.other is not None and not expand_other:
        click.echo(f"  ({len(breakdown.folded)} small categories folded into {breakdown.other.name})")


@main.command()
@click.option(
    "--dimension",
    type=click.Choice([d.value for d in TimeDimension]),
    default=TimeDimension.MONTH.value,
    help="Period length (default: month)",
)
@click.option("--date", "date_text", help="Any date inside the period (default: today)")
@click.option("--expand-other", is_flag=True, help="List folded small categories individually")
@click.option("--daily", is_flag=True, help="Also print the daily series")
@click.pass_context
@handle_ledger_errors
def stats(ctx: click.Context, dimension: str, date_text: str | None, expand_other: bool, daily: bool) -> None:
    """
    Summarize income and spending for a period.

    Examples:
      money-manager stats
      money-manager stats --dimension year --date 2017-06-01 --expand-other
    """
    aggregator = StatsAggregator.from_config(get_store(ctx), ctx.obj["config"])
    summary = aggregator.summarize(dimension, parse_cli_date(date_text))

    click.echo(f"Period: {summary.range}")
    click.echo(f"  Income:  {format_amount(summary.total_income):>14}")
    click.echo(f"  Expense: {format_amount(summary.total_expense):>14}")
    click.echo(f"  Balance: {format_amount(summary.balance):>14}")
    click.echo(f"  Transactions: {summary.transaction_count}")

    _echo_breakdown("Expense", summary.expense_breakdown, expand_other)
    _echo_breakdown("Income", summary.income_breakdown, expand_other)

    if daily:
        frame = summary.daily_frame()
        active = frame[(frame["income"] != 0) | (frame["expense"] != 0)]
        click.echo(active.to_string() if not active.empty else "No daily activity")


if __name__ == "__main__":
    main()
