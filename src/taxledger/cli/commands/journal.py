"""Journal commands: listing, manual entries and depreciation."""

import click
from taxledger.cli.date_filters import parse_cli_date, resolve_cli_date_range
from taxledger.cli.error_handling import handle_domain_error, report_persistence
from taxledger.domain.entities import EntrySource, JournalEntry
from taxledger.domain.errors import DomainError
from taxledger.utils.amount_parser import parse_amount


def _echo_entry(entry: JournalEntry) -> None:
    reference = f" [{entry.reference}]" if entry.reference else ""
    click.echo(f"\n{entry.date} {entry.id} ({entry.source.value}){reference}")
    click.echo(f"  {entry.narration}")
    for line in entry.lines:
        if line.debit:
            click.echo(f"    Dr {line.account_code} {line.account_name:34s} {line.debit:>15,.2f}")
        else:
            click.echo(f"       Cr {line.account_code} {line.account_name:31s} {line.credit:>15,.2f}")


def _parse_line_option(ctx, value: str, side: str) -> tuple[str, object, object]:
    """Parse CODE=AMOUNT into a (code, debit, credit) line."""
    code, sep, amount_str = value.partition("=")
    if not sep or not code.strip():
        click.echo(f"Error: Invalid --{side} '{value}'. Use CODE=AMOUNT", err=True)
        ctx.exit(1)
    try:
        amount = parse_amount(amount_str)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)
    if side == "debit":
        return (code.strip(), amount, 0)
    return (code.strip(), 0, amount)


@click.command("journal")
@click.option("--from", "start_date", help="Only entries on or after this date")
@click.option("--to", "end_date", help="Only entries on or before this date")
@click.option("--period", help="Only entries in a period (YYYY-MM or YYYY)")
@click.option(
    "--source",
    type=click.Choice([s.value for s in EntrySource]),
    help="Only entries from this source",
)
@click.option("--account", "account_code", help="Only entries touching this account code")
@click.pass_context
def list_journal(
    ctx,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    source: str | None,
    account_code: str | None,
):
    """List journal entries in posting order."""
    engine = ctx.obj["engine"]
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )

    entries = engine.journal_entries()
    if start:
        entries = [e for e in entries if e.date >= start]
    if end:
        entries = [e for e in entries if e.date <= end]
    if source:
        entries = [e for e in entries if e.source.value == source]
    if account_code:
        entries = [e for e in entries if any(l.account_code == account_code for l in e.lines)]

    if not entries:
        click.echo("No journal entries found.")
        return

    for entry in entries:
        _echo_entry(entry)
    click.echo(f"\n{len(entries)} entries")


@click.command("post-entry")
@click.option("--date", "date_str", default="today", show_default=True, help="Entry date")
@click.option("--narration", required=True, help="Entry narration")
@click.option("--debit", "debits", multiple=True, help="Debit line as CODE=AMOUNT (repeatable)")
@click.option("--credit", "credits", multiple=True, help="Credit line as CODE=AMOUNT (repeatable)")
@click.option("--reference", help="External reference")
@click.pass_context
def post_entry(
    ctx,
    date_str: str,
    narration: str,
    debits: tuple[str, ...],
    credits: tuple[str, ...],
    reference: str | None,
):
    """Post a manual adjusting entry.

    Debits and credits must balance.

    Examples:
        taxledger post-entry --narration "Accrue marketing costs" --debit 6000=250000 --credit 2100=250000
    """
    engine = ctx.obj["engine"]
    entry_date = parse_cli_date(ctx, date_str, "date format")
    lines = [_parse_line_option(ctx, value, "debit") for value in debits]
    lines += [_parse_line_option(ctx, value, "credit") for value in credits]

    try:
        entry = engine.post_manual_entry(entry_date, narration, lines, reference)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Posted journal entry:")
    _echo_entry(entry)
    report_persistence(engine)


@click.command("depreciate")
@click.argument("asset_code", metavar="ASSET_CODE")
@click.argument("amount", metavar="AMOUNT")
@click.option("--date", "date_str", default="today", show_default=True, help="Entry date")
@click.option("--narration", help="Entry narration")
@click.pass_context
def depreciate(ctx, asset_code: str, amount: str, date_str: str, narration: str | None):
    """Charge depreciation against a fixed asset.

    Examples:
        taxledger depreciate 1530 120000 --date 2024-12-31
    """
    engine = ctx.obj["engine"]
    entry_date = parse_cli_date(ctx, date_str, "date format")
    try:
        charge = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        entry = engine.record_depreciation(entry_date, asset_code, charge, narration)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Posted depreciation:")
    _echo_entry(entry)
    report_persistence(engine)


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(list_journal)
    cli.add_command(post_entry)
    cli.add_command(depreciate)
