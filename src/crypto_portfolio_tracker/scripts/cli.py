import asyncio
import logging
from pathlib import Path

import typer

from crypto_portfolio_tracker.commons.constants import DEFAULT_EXPORT_OUTPUT_PATH, DEFAULT_HISTORICAL_VIEW_LIMIT
from crypto_portfolio_tracker.commons.exceptions import ExportError, HistoricalDataUnreadableError
from crypto_portfolio_tracker.config.dependencies import get_application_container
from crypto_portfolio_tracker.infrastructure.services.csv_to_xlsx_conversion_service import CsvToXlsxConversionService
from crypto_portfolio_tracker.infrastructure.services.historical_data_service import HistoricalDataService
from crypto_portfolio_tracker.infrastructure.services.vo import HistoricalDataViewOptions, HistoricalParseResult
from crypto_portfolio_tracker.interfaces.console.historical_data_formatter import HistoricalDataFormatter
from crypto_portfolio_tracker.main import run_portfolio_tracker

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------------
# --- Typer CLI Application ---
# ------------------------------------------------------------------------------------

app = typer.Typer(no_args_is_help=True)


def _get_historical_data_service() -> HistoricalDataService:
    return get_application_container().infrastructure_container().services_container().historical_data_service()


def _get_historical_data_formatter() -> HistoricalDataFormatter:
    return get_application_container().interfaces_container().historical_data_formatter()


def _echo_lines(lines: list[str]) -> None:
    for line in lines:
        typer.echo(line)


def _echo_parse_warnings(parse_result: HistoricalParseResult) -> None:
    if parse_result.warnings:
        typer.secho(f"⚠️ {len(parse_result.warnings)} malformed line(s) skipped", fg=typer.colors.YELLOW)


@app.command()
def run():
    """
    Starts tracking the portfolio. Send SIGUSR1 to refresh right away, SIGINT / SIGTERM to stop.
    """
    asyncio.run(run_portfolio_tracker())


@app.command()
def view_history(
    file: Path = typer.Option(..., "--file", "-f", help="Values CSV file to read."),
    asset: str = typer.Option(None, help="Only show entries of this asset."),
    source: str = typer.Option(None, help="Only show entries of this source."),
    limit: int = typer.Option(DEFAULT_HISTORICAL_VIEW_LIMIT, help="Maximum number of entries, <= 0 means no limit."),
    reverse: bool = typer.Option(False, "--reverse", help="Newest entries first."),
):
    """
    Shows the per-asset values recorded on a CSV export.
    """
    historical_data_service = _get_historical_data_service()
    try:
        parse_result = historical_data_service.read_values(file)
    except HistoricalDataUnreadableError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e
    entries = historical_data_service.query_values(
        parse_result.entries, HistoricalDataViewOptions(asset=asset, source=source, limit=limit, reverse=reverse)
    )
    _echo_parse_warnings(parse_result)
    if not entries:
        typer.secho("No entries match the given filters.", fg=typer.colors.YELLOW)
        return
    _echo_lines(_get_historical_data_formatter().format_values(entries))


@app.command()
def view_totals(
    file: Path = typer.Option(..., "--file", "-f", help="Totals CSV file to read."),
    limit: int = typer.Option(DEFAULT_HISTORICAL_VIEW_LIMIT, help="Maximum number of entries, <= 0 means no limit."),
    reverse: bool = typer.Option(False, "--reverse", help="Newest entries first."),
):
    """
    Shows the portfolio totals recorded on a CSV export.
    """
    historical_data_service = _get_historical_data_service()
    try:
        parse_result = historical_data_service.read_totals(file)
    except HistoricalDataUnreadableError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e
    entries = historical_data_service.query_totals(parse_result.entries, limit=limit, reverse=reverse)
    _echo_parse_warnings(parse_result)
    if not entries:
        typer.secho("No entries found.", fg=typer.colors.YELLOW)
        return
    _echo_lines(_get_historical_data_formatter().format_totals(entries))


@app.command()
def list_assets(file: Path = typer.Option(..., "--file", "-f", help="Values CSV file to read.")):
    """
    Lists every distinct asset and source pair recorded on a CSV export.
    """
    historical_data_service = _get_historical_data_service()
    try:
        parse_result = historical_data_service.read_values(file)
    except HistoricalDataUnreadableError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e
    _echo_parse_warnings(parse_result)
    _echo_lines(
        _get_historical_data_formatter().format_assets(historical_data_service.list_unique_assets(parse_result.entries))
    )


@app.command()
def convert_csv(
    values_file: Path = typer.Option(..., "--values-file", help="Values CSV file to convert."),
    output_path: Path = typer.Option(Path(DEFAULT_EXPORT_OUTPUT_PATH), help="Folder for the spreadsheet files."),
):
    """
    Converts a values CSV export into spreadsheet files, one snapshot at a time, with charts.
    """
    csv_to_xlsx_conversion_service: CsvToXlsxConversionService = (
        get_application_container().infrastructure_container().services_container().csv_to_xlsx_conversion_service()
    )
    try:
        typer.secho(f"📥 Converting '{values_file}'...", fg=typer.colors.BLUE)
        result = asyncio.run(csv_to_xlsx_conversion_service.convert(values_file, output_path))
    except (HistoricalDataUnreadableError, ExportError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e
    if result.skipped_line_count:
        typer.secho(f"⚠️ {result.skipped_line_count} malformed line(s) skipped", fg=typer.colors.YELLOW)
    typer.secho(f"✅ {result.snapshot_count} snapshot(s) converted.", fg=typer.colors.GREEN)
    typer.echo(f"💾 Values saved to '{result.values_target_path}'")
    typer.echo(f"💾 Totals saved to '{result.totals_target_path}'")


if __name__ == "__main__":
    app()
