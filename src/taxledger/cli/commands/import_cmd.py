"""CSV import command."""

import click
from taxledger.cli.error_handling import report_persistence
from taxledger.domain.csv_import import CSVImportService


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def import_csv(ctx, csv_file: str):
    """Import transactions from a CSV file.

    The file needs id, date, description and amount columns; category,
    type, resident and acquisition_cost are optional. Rows whose id was
    already imported are skipped.
    """
    engine = ctx.obj["engine"]
    service = CSVImportService(engine)

    try:
        result = service.import_csv(csv_file)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.imported} transactions")
    click.echo(f"  Skipped: {result.skipped} duplicates")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)
    report_persistence(engine)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
