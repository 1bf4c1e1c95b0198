import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import pydash

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.services.export.xlsx_export_writer_service import XlsxExportWriterService
from crypto_portfolio_tracker.infrastructure.services.historical_data_service import HistoricalDataService
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance, HistoricalDataEntry, PortfolioSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CsvToXlsxConversionResult:
    values_target_path: Path
    totals_target_path: Path
    snapshot_count: int
    skipped_line_count: int


class CsvToXlsxConversionService:
    """
    Replays the snapshots recorded on a values CSV file into spreadsheet targets.

    Fiat rate and reference unit price of every snapshot are derived back from its recorded values,
    totals are computed again from the replayed balances.
    """

    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        historical_data_service: HistoricalDataService,
        value_calculation_service: ValueCalculationService,
        xlsx_export_writer_service: XlsxExportWriterService,
    ) -> None:
        self._configuration_properties = configuration_properties
        self._historical_data_service = historical_data_service
        self._value_calculation_service = value_calculation_service
        self._xlsx_export_writer_service = xlsx_export_writer_service

    async def convert(self, values_file: Path | str, output_path: Path | str) -> CsvToXlsxConversionResult:
        values_file, output_path = Path(values_file), Path(output_path)
        parse_result = self._historical_data_service.read_values(values_file)
        snapshots = self._build_snapshots(parse_result.entries)
        extension = self._xlsx_export_writer_service.export_format.value
        values_target_path = output_path / f"{values_file.stem}.{extension}"
        totals_target_path = output_path / f"{self._configuration_properties.export_totals_filename}.{extension}"
        if snapshots:
            output_path.mkdir(parents=True, exist_ok=True)
            await self._xlsx_export_writer_service.append_values(values_target_path, snapshots)
            await self._xlsx_export_writer_service.append_totals(totals_target_path, snapshots)
            logger.info(f"{len(snapshots)} snapshot(s) from {values_file} converted into {values_target_path}")
        else:
            logger.warning(f"There are no snapshots to convert on {values_file}")
        return CsvToXlsxConversionResult(
            values_target_path=values_target_path,
            totals_target_path=totals_target_path,
            snapshot_count=len(snapshots),
            skipped_line_count=len(parse_result.warnings),
        )

    def _build_snapshots(self, entries: list[HistoricalDataEntry]) -> list[PortfolioSnapshot]:
        entries_by_timestamp = pydash.group_by(
            [entry for entry in entries if entry.balance >= 0 and entry.price >= 0], lambda entry: entry.timestamp
        )
        ret = []
        for timestamp in sorted(entries_by_timestamp):
            snapshot_entries = entries_by_timestamp[timestamp]
            total_value = sum((entry.value for entry in snapshot_entries), Decimal(0))
            total_fiat_value = sum((entry.fiat_value for entry in snapshot_entries), Decimal(0))
            total_reference_unit_value = sum((entry.reference_unit_value for entry in snapshot_entries), Decimal(0))
            fiat_rate = total_fiat_value / total_value if total_value > 0 else Decimal(0)
            reference_unit_price = (
                total_value / total_reference_unit_value if total_reference_unit_value > 0 else Decimal(0)
            )
            balances = [
                CoinBalance(
                    asset=entry.asset,
                    balance=entry.balance,
                    price=entry.price,
                    source=entry.source,
                    timestamp=entry.timestamp,
                )
                for entry in snapshot_entries
            ]
            ret.append(
                self._value_calculation_service.build_snapshot(
                    balances, fiat_rate=fiat_rate, reference_unit_price=reference_unit_price
                )
            )
        return ret
