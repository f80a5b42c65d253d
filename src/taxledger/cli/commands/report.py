"""Reporting commands: trial balance, statements and year-end close."""

import click
from datetime import date
from taxledger.cli.error_handling import handle_domain_error, report_persistence
from taxledger.domain.errors import DomainError


def _default_year(engine) -> int:
    years = engine.available_years()
    return years[0] if years else date.today().year


@click.command("trial-balance")
@click.pass_context
def trial_balance(ctx):
    """Show the trial balance of all ledger accounts."""
    engine = ctx.obj["engine"]

    tb = engine.generate_trial_balance()
    if not tb.accounts:
        click.echo("No postings yet.")
        return

    click.echo("\nTrial Balance")
    click.echo("=" * 80)
    click.echo(f"{'Code':6s} {'Account':40s} {'Debit':>16s} {'Credit':>16s}")
    click.echo("-" * 80)
    for row in tb.accounts:
        debit = f"{row.debit:,.2f}" if row.debit else ""
        credit = f"{row.credit:,.2f}" if row.credit else ""
        click.echo(f"{row.account_code:6s} {row.account_name[:40]:40s} {debit:>16s} {credit:>16s}")
    click.echo("-" * 80)
    click.echo(f"{'':6s} {'Total':40s} {tb.total_debit:>16,.2f} {tb.total_credit:>16,.2f}")
    if tb.is_balanced:
        click.echo("\nTrial balance is balanced.")
    else:
        click.echo(f"\nWarning: trial balance is out by {tb.difference:,.2f}", err=True)


@click.command("statements")
@click.option("--year", type=int, help="Financial year (defaults to the latest year with entries)")
@click.pass_context
def statements(ctx, year: int | None):
    """Show the income statement and balance sheet for a year."""
    engine = ctx.obj["engine"]
    if year is None:
        year = _default_year(engine)

    draft = engine.generate_statements(year)

    click.echo(f"\nIncome Statement for {year}")
    click.echo("=" * 50)
    click.echo(f"{'Revenue':30s} {draft.revenue:>18,.2f}")
    click.echo(f"{'Cost of sales':30s} {draft.cost_of_sales:>18,.2f}")
    click.echo(f"{'Gross profit':30s} {draft.gross_profit:>18,.2f}")
    click.echo(f"{'Operating expenses':30s} {draft.operating_expenses:>18,.2f}")
    click.echo("-" * 50)
    click.echo(f"{'Net income':30s} {draft.net_income:>18,.2f}")

    click.echo(f"\nBalance Sheet at 31 December {year}")
    click.echo("=" * 50)
    click.echo(f"{'Assets':30s} {draft.assets:>18,.2f}")
    click.echo(f"{'Liabilities':30s} {draft.liabilities:>18,.2f}")
    click.echo(f"{'Equity':30s} {draft.equity:>18,.2f}")
    click.echo(f"{'Current earnings':30s} {draft.current_earnings:>18,.2f}")
    click.echo("-" * 50)
    if draft.is_balanced:
        click.echo("Assets = Liabilities + Equity")
    else:
        click.echo("Warning: balance sheet does not balance", err=True)


@click.command("close-year")
@click.argument("year", type=int)
@click.pass_context
def close_year(ctx, year: int):
    """Close a year's revenue and expenses into retained earnings."""
    engine = ctx.obj["engine"]

    try:
        entry = engine.close_year(year)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Closed {year} with entry {entry.id}")
    for line in entry.lines:
        amount = line.debit or line.credit
        side = "Dr" if line.debit else "Cr"
        click.echo(f"  {side} {line.account_code} {line.account_name:34s} {amount:>15,.2f}")
    report_persistence(engine)


def register_commands(cli):
    """Register reporting commands with main CLI."""
    cli.add_command(trial_balance)
    cli.add_command(statements)
    cli.add_command(close_year)
