"""Add transaction command."""

import time

import click
from taxledger.cli.error_handling import handle_domain_error, report_persistence
from taxledger.domain.csv_import import build_transaction
from taxledger.domain.entities import RawTransactionType
from taxledger.domain.errors import DomainError
from taxledger.utils.amount_parser import parse_amount
from taxledger.utils.date_parser import parse_date


@click.command("add")
@click.option(
    "--date",
    "date_str",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'yesterday')",
)
@click.option(
    "--amount", required=True, help="Transaction amount (e.g., 150000, ₦150,000 or -25k)"
)
@click.option("--description", required=True, help="Transaction description")
@click.option("--category", help="Category (e.g., 'sales', 'rent', 'salaries')")
@click.option(
    "--type",
    "raw_type",
    type=click.Choice([t.value for t in RawTransactionType]),
    help="Transaction type (inferred from the sign of the amount if not provided)",
)
@click.option("--non-resident", is_flag=True, help="Counterparty is not a Nigerian resident")
@click.option("--acquisition-cost", help="Original cost of an asset being disposed of")
@click.option(
    "--id", "unique_id", help="Unique transaction ID (auto-generated if not provided)"
)
@click.pass_context
def add_transaction(
    ctx,
    date_str: str,
    amount: str,
    description: str,
    category: str | None,
    raw_type: str | None,
    non_resident: bool,
    acquisition_cost: str | None,
    unique_id: str | None,
):
    """Add a transaction manually.

    The transaction is classified, posted to the ledger and taxed.

    Examples:
        taxledger add --amount 100000 --description "Invoice 12" --category sales --type income
        taxledger add --date 2024-03-01 --amount -500000 --description "Office rent" --category rent
    """
    engine = ctx.obj["engine"]

    # Parse date
    try:
        txn_date = parse_date(date_str)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    # Parse amounts
    try:
        txn_amount = parse_amount(amount)
        cost = parse_amount(acquisition_cost) if acquisition_cost else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    if unique_id is None:
        unique_id = f"manual_{int(time.time() * 1000000)}"

    try:
        transaction = build_transaction(
            transaction_id=unique_id,
            txn_date=txn_date,
            description=description,
            amount=txn_amount,
            category=category,
            raw_type=raw_type,
            is_resident=not non_resident,
            acquisition_cost=cost,
        )
        processed = engine.process_transaction(transaction)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    classification = processed.classification
    tax_result = processed.tax_result
    click.echo(f"Recorded transaction {transaction.id}")
    click.echo(f"  Date: {transaction.date}")
    click.echo(f"  Amount: ₦{transaction.amount:,.2f}")
    click.echo(f"  Description: {transaction.description}")
    click.echo(
        f"  Classified as: {classification.transaction_type.value} "
        f"({classification.confidence.value} confidence, rule '{classification.rule_name}')"
    )
    click.echo("  Journal:")
    for line in processed.journal_entry.lines:
        side = f"Dr {line.debit:,.2f}" if line.debit else f"    Cr {line.credit:,.2f}"
        click.echo(f"    {line.account_code} {line.account_name:32s} {side}")
    for item in tax_result.taxes_applied:
        click.echo(f"  {item.tax_type.value}: ₦{item.tax_amount:,.2f} ({item.note})")
    for warning in tax_result.warnings:
        click.echo(f"  Warning: {warning}", err=True)
    report_persistence(engine)


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
