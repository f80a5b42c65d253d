"""Tax commands."""

import click
from datetime import date
from taxledger.cli.date_filters import parse_cli_date
from taxledger.cli.error_handling import handle_domain_error, report_persistence
from taxledger.domain import tax_rates
from taxledger.domain.entities import CompanyLevies, ScheduleStatus, TaxLineItem
from taxledger.domain.errors import DomainError
from taxledger.domain.tax import (
    calculate_cgt,
    calculate_company_levies,
    calculate_stamp_duty,
    calculate_wht,
)
from taxledger.utils.amount_parser import parse_amount


def _parse_amount_or_exit(ctx, value: str, label: str = "amount"):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def _echo_line_item(item: TaxLineItem, base_label: str, base) -> None:
    click.echo(f"  {base_label}: ₦{base:,.2f}")
    click.echo(f"  Rate: {item.rate * 100:.2f}%")
    click.echo(f"  {item.tax_type.value}: ₦{item.tax_amount:,.2f}")
    click.echo(f"  {item.note}")
    if item.warning:
        click.echo(f"  Warning: {item.warning}", err=True)


def _echo_levies(levies: CompanyLevies) -> None:
    for levy in levies.levies:
        if levy.is_applicable:
            click.echo(f"  {levy.name:26s} {levy.levy_payable:>18,.2f}")
        else:
            click.echo(f"  {levy.name:26s} {'not applicable':>18s}")
    click.echo(f"{'Total levies':28s} {levies.total_levies:>18,.2f}")


@click.group("tax")
def tax_group():
    """Tax summaries, schedules and calculators."""
    pass


@tax_group.command("summary")
@click.pass_context
def tax_summary(ctx):
    """Show running tax totals across all transactions."""
    engine = ctx.obj["engine"]
    summary = engine.get_tax_summary()

    click.echo("\nTax Summary")
    click.echo("=" * 44)
    click.echo(f"{'Output VAT':24s} {summary.total_vat:>18,.2f}")
    click.echo(f"{'Input VAT credit':24s} {summary.input_vat_credit:>18,.2f}")
    click.echo(f"{'Net VAT payable':24s} {summary.net_vat_payable:>18,.2f}")
    click.echo(f"{'Withholding tax':24s} {summary.total_wht:>18,.2f}")
    click.echo(f"{'Capital gains tax':24s} {summary.total_cgt:>18,.2f}")
    click.echo(f"{'Stamp duty':24s} {summary.total_stamp_duty:>18,.2f}")
    click.echo("-" * 44)
    click.echo(f"{'Total':24s} {summary.grand_total:>18,.2f}")
    if summary.net_vat_payable < 0:
        click.echo("\nInput VAT exceeds output VAT; the excess can be carried forward.")


@tax_group.command("schedule")
@click.option("--as-of", help="Date used to decide which periods are due (default: today)")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ScheduleStatus]),
    help="Only show entries with this status",
)
@click.pass_context
def tax_schedule(ctx, as_of: str | None, status: str | None):
    """Show the remittance schedule by tax and period."""
    engine = ctx.obj["engine"]
    as_of_date = parse_cli_date(ctx, as_of, "as-of date")

    entries = engine.generate_schedule(as_of_date)
    if status:
        entries = [e for e in entries if e.status.value == status]
    if not entries:
        click.echo("No tax liabilities scheduled.")
        return

    click.echo("\nTax Schedule")
    click.echo("-" * 76)
    for entry in entries:
        click.echo(
            f"{entry.id:22s} | due {entry.due_date} | {entry.tax_amount:>15,.2f} | "
            f"{entry.status.value}"
        )


@tax_group.command("remit")
@click.argument("schedule_id", metavar="SCHEDULE_ID")
@click.pass_context
def remit(ctx, schedule_id: str):
    """Mark a schedule entry (e.g. VAT-2024-03) as remitted."""
    engine = ctx.obj["engine"]

    try:
        entry = engine.mark_remitted(schedule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Marked {entry.id} as remitted (₦{entry.tax_amount:,.2f})")
    report_persistence(engine)


@tax_group.command("recompute")
@click.pass_context
def recompute(ctx):
    """Recompute every transaction's taxes under the current settings."""
    engine = ctx.obj["engine"]
    summary = engine.recompute_taxes(engine.profile)
    click.echo(f"Recomputed taxes for {len(engine.get_state().transactions)} transactions")
    click.echo(f"  Total: ₦{summary.grand_total:,.2f}")
    report_persistence(engine)


@tax_group.command("income-tax")
@click.option("--year", type=int, help="Financial year (defaults to the latest year with entries)")
@click.pass_context
def income_tax(ctx, year: int | None):
    """Assess company or personal income tax for a year."""
    engine = ctx.obj["engine"]
    if year is None:
        years = engine.available_years()
        year = years[0] if years else date.today().year

    assessment = engine.assess_income_tax(year)

    click.echo(f"\n{assessment.tax_type.value} assessment for {year} ({assessment.taxpayer_type.value})")
    click.echo("=" * 60)
    click.echo(f"{'Turnover':28s} {assessment.turnover:>18,.2f}")
    click.echo(f"{'Taxable income':28s} {assessment.taxable_income:>18,.2f}")
    for band in assessment.bands:
        upper = f"{band.upper:,.0f}" if band.upper is not None else "and above"
        click.echo(
            f"  {band.lower:>12,.0f} - {upper:>12s} @ {band.rate * 100:5.2f}%: "
            f"{band.tax:>14,.2f}"
        )
    click.echo(f"{'Tax due':28s} {assessment.tax_due:>18,.2f}")
    if assessment.tertiary_education_tax:
        click.echo(f"{'Tertiary education tax':28s} {assessment.tertiary_education_tax:>18,.2f}")
    click.echo("-" * 60)
    click.echo(f"{'Total due':28s} {assessment.total_due:>18,.2f}")
    for note in assessment.notes:
        click.echo(f"  {note}")
    if assessment.levies is not None:
        click.echo("\nCompany levies (remitted separately)")
        _echo_levies(assessment.levies)


@tax_group.command("wht")
@click.argument("amount")
@click.option(
    "--payment-type",
    required=True,
    type=click.Choice(sorted(tax_rates.WHT_RATES)),
    help="Kind of payment",
)
@click.option("--non-resident", is_flag=True, help="Payee is not a Nigerian resident")
@click.pass_context
def wht(ctx, amount: str, payment_type: str, non_resident: bool):
    """Calculate withholding tax on a payment."""
    gross = _parse_amount_or_exit(ctx, amount)
    item = calculate_wht(payment_type, gross, is_resident=not non_resident)
    click.echo("\nWithholding tax")
    _echo_line_item(item, "Gross payment", gross)
    click.echo(f"  Net payment: ₦{gross - item.tax_amount:,.2f}")


@tax_group.command("cgt")
@click.argument("proceeds")
@click.option("--cost", help="Acquisition cost of the asset")
@click.option("--selling-expenses", default="0", help="Costs of making the disposal")
@click.option("--improvements", default="0", help="Capital improvement costs")
@click.pass_context
def cgt(ctx, proceeds: str, cost: str | None, selling_expenses: str, improvements: str):
    """Calculate capital gains tax on a disposal."""
    disposal = _parse_amount_or_exit(ctx, proceeds, "proceeds")
    acquisition = _parse_amount_or_exit(ctx, cost, "cost") if cost else None
    expenses = _parse_amount_or_exit(ctx, selling_expenses, "selling expenses")
    improvement_costs = _parse_amount_or_exit(ctx, improvements, "improvements")

    item = calculate_cgt(disposal, acquisition, expenses, improvement_costs)
    click.echo("\nCapital gains tax")
    _echo_line_item(item, "Disposal proceeds", disposal)


@tax_group.command("stamp-duty")
@click.argument("value")
@click.option(
    "--document-type",
    required=True,
    type=click.Choice(sorted(tax_rates.STAMP_DUTY_RATES)),
    help="Kind of instrument",
)
@click.pass_context
def stamp_duty(ctx, value: str, document_type: str):
    """Calculate stamp duty on an instrument."""
    amount = _parse_amount_or_exit(ctx, value, "value")
    item = calculate_stamp_duty(document_type, amount)
    click.echo("\nStamp duty")
    _echo_line_item(item, "Instrument value", amount)


@tax_group.command("levies")
@click.argument("profit")
@click.option("--turnover", default="0", help="Annual turnover")
@click.option("--monthly-payroll", default="0", help="Total monthly payroll")
@click.option("--employees", type=click.IntRange(min=0), default=0, help="Number of employees")
@click.option(
    "--industry",
    type=click.Choice(sorted(tax_rates.NASENI_INDUSTRIES) + ["other"]),
    help="Industry the company operates in",
)
@click.pass_context
def levies(ctx, profit: str, turnover: str, monthly_payroll: str, employees: int, industry: str | None):
    """Calculate the Police, NASENI, NSITF and ITF levies for a company."""
    net_profit = _parse_amount_or_exit(ctx, profit, "profit")
    annual_turnover = _parse_amount_or_exit(ctx, turnover, "turnover")
    payroll = _parse_amount_or_exit(ctx, monthly_payroll, "monthly payroll")

    result = calculate_company_levies(
        net_profit, net_profit, industry, payroll, employees, annual_turnover
    )
    click.echo("\nCompany levies")
    _echo_levies(result)
    for levy in result.levies:
        if levy.note:
            click.echo(f"  {levy.name}: {levy.note}")


def register_commands(cli):
    """Register tax commands with main CLI."""
    cli.add_command(tax_group)
