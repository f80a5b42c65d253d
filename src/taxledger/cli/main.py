"""Main CLI entry point."""

import logging

import click
from taxledger.database.factories import create_sqlite_store
from taxledger.domain.engine import AccountingEngine
from taxledger.domain.entities import TaxProfile, TaxpayerType
from taxledger.domain.tax_rates import NASENI_INDUSTRIES

# Import and register all commands at module level
from taxledger.cli.commands import (
    account,
    add,
    import_cmd,
    journal,
    report,
    tax,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TAXLEDGER_DB_PATH environment variable)",
    envvar="TAXLEDGER_DB_PATH",
)
@click.option(
    "--taxpayer-type",
    type=click.Choice([t.value for t in TaxpayerType]),
    default=TaxpayerType.COMPANY.value,
    show_default=True,
    envvar="TAXLEDGER_TAXPAYER_TYPE",
    help="Assess income tax as a company (CIT) or an individual (PIT)",
)
@click.option(
    "--vat-registered/--not-vat-registered",
    default=False,
    envvar="TAXLEDGER_VAT_REGISTERED",
    help="Claim input VAT credits and split VAT out of postings",
)
@click.option(
    "--prices-include-vat/--prices-exclude-vat",
    default=False,
    envvar="TAXLEDGER_PRICES_INCLUDE_VAT",
    help="Treat transaction amounts as VAT-inclusive",
)
@click.option(
    "--industry",
    type=click.Choice(sorted(NASENI_INDUSTRIES) + ["other"]),
    envvar="TAXLEDGER_INDUSTRY",
    help="Industry the company operates in (decides the NASENI levy)",
)
@click.option(
    "--employees",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    envvar="TAXLEDGER_EMPLOYEES",
    help="Number of employees (decides the ITF levy)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(
    ctx,
    db_path: str | None,
    taxpayer_type: str,
    vat_registered: bool,
    prices_include_vat: bool,
    industry: str | None,
    employees: int,
    verbose: bool,
):
    """Taxledger - bookkeeping and tax for Nigerian small businesses.

    Record transactions, post them to a double-entry ledger, produce trial
    balances and statements, and compute VAT, WHT, CGT, stamp duty and
    income tax.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Open the books only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        store = create_sqlite_store(database_path=db_path)
        store.connect()
        store.initialize_schema()
        profile = TaxProfile(
            taxpayer_type=TaxpayerType(taxpayer_type),
            is_vat_registered=vat_registered,
            prices_include_vat=prices_include_vat,
            industry=industry,
            employee_count=employees,
        )
        engine = AccountingEngine(store=store, profile=profile)
        engine.load()
        if engine.last_persistence_error:
            click.echo(f"Error: {engine.last_persistence_error}", err=True)
            ctx.exit(1)
        ctx.obj["store"] = store
        ctx.obj["engine"] = engine
        ctx.call_on_close(store.disconnect)


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
import_cmd.register_commands(cli)
journal.register_commands(cli)
report.register_commands(cli)
tax.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
