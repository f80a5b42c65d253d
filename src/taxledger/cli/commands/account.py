"""Chart of accounts commands."""

import click
from taxledger.cli.error_handling import handle_domain_error, report_persistence
from taxledger.domain.entities import AccountClass, NormalBalance
from taxledger.domain.errors import DomainError


@click.group("account")
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@click.option(
    "--class",
    "account_class",
    type=click.Choice([c.value for c in AccountClass]),
    help="Only show accounts of this class",
)
@click.option("--custom", is_flag=True, help="Only show custom accounts")
@click.pass_context
def list_accounts(ctx, account_class: str | None, custom: bool):
    """List accounts in the chart."""
    engine = ctx.obj["engine"]

    accounts = engine.list_accounts()
    if account_class:
        accounts = [acc for acc in accounts if acc.account_class.value == account_class]
    if custom:
        accounts = [acc for acc in accounts if acc.is_custom]
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        marker = " *" if acc.is_custom else ""
        click.echo(
            f"{acc.code:6s} | {acc.name:36s} | {acc.account_class.value:9s} | "
            f"{acc.sub_class:11s} | {acc.normal_balance.value[:2].upper()}{marker}"
        )
    if any(acc.is_custom for acc in accounts):
        click.echo("\n* custom account")


@account_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.option(
    "--class",
    "account_class",
    required=True,
    type=click.Choice([c.value for c in AccountClass]),
    help="Account class",
)
@click.option("--sub-class", required=True, help="Sub-class, e.g. current or operating")
@click.option("--description", default="", help="Account description")
@click.option(
    "--normal-balance",
    type=click.Choice([n.value for n in NormalBalance]),
    help="Override the class's normal balance (for contra accounts)",
)
@click.pass_context
def create_account(
    ctx,
    code: str,
    name: str,
    account_class: str,
    sub_class: str,
    description: str,
    normal_balance: str | None,
):
    """Add a custom account to the chart.

    Valid sub-classes per class:

    \b
        asset: current, fixed
        liability: current, non-current
        equity: capital, reserve, contra
        revenue: operating, other, contra
        expense: cos, operating, admin, finance, tax

    Examples:
        taxledger account create 1030 "Zenith Bank" --class asset --sub-class current
        taxledger account create 4110 "Sales Discounts" --class revenue --sub-class contra --normal-balance debit
    """
    engine = ctx.obj["engine"]

    try:
        account = engine.add_custom_account(
            code=code,
            name=name,
            account_class=account_class,
            sub_class=sub_class,
            description=description,
            normal_balance=normal_balance,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created account {account.code} '{account.name}'")
    click.echo(f"  Class: {account.account_class.value} ({account.sub_class})")
    click.echo(f"  Normal balance: {account.normal_balance.value}")
    report_persistence(engine)


@account_group.command("show")
@click.argument("code", metavar="CODE")
@click.pass_context
def show_account(ctx, code: str):
    """Show an account's ledger postings and balance."""
    engine = ctx.obj["engine"]

    try:
        ledger = engine.get_ledger_account(code)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\n{ledger.account_code} - {ledger.account_name}")
    click.echo(f"Class: {ledger.account_class.value} | Normal balance: {ledger.normal_balance.value}")
    click.echo("-" * 92)
    if not ledger.entries:
        click.echo("No postings.")
    for posting in ledger.entries:
        narration = posting.narration[:36]
        click.echo(
            f"{posting.date} | {narration:36s} | Dr {posting.debit:>13,.2f} | "
            f"Cr {posting.credit:>13,.2f} | {posting.balance:>14,.2f}"
        )
    click.echo("-" * 92)
    click.echo(f"Closing balance: {ledger.closing_balance:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group)
