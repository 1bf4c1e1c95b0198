import logging
from pathlib import Path
from typing import override

import pandas as pd

from crypto_portfolio_tracker.commons.constants import (
    QUANTITY_DECIMAL_PLACES,
    REFERENCE_UNIT_DECIMAL_PLACES,
    TOTALS_COLUMNS,
    VALUE_DECIMAL_PLACES,
    VALUES_COLUMNS,
)
from crypto_portfolio_tracker.commons.utils import format_csv_timestamp, format_decimal
from crypto_portfolio_tracker.infrastructure.services.enums import ExportFormatEnum
from crypto_portfolio_tracker.infrastructure.services.export.abstract_export_writer_service import (
    AbstractExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import PortfolioSnapshot

logger = logging.getLogger(__name__)


class CsvExportWriterService(AbstractExportWriterService):
    """
    Plain appends, the existing content is never read back
    """

    @property
    @override
    def export_format(self) -> ExportFormatEnum:
        return ExportFormatEnum.CSV

    @override
    def _append_values(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        rows = [
            [
                format_csv_timestamp(valuation.coin_balance.timestamp),
                valuation.coin_balance.asset,
                format_decimal(valuation.coin_balance.balance, ndigits=QUANTITY_DECIMAL_PLACES),
                format_decimal(valuation.coin_balance.price, ndigits=QUANTITY_DECIMAL_PLACES),
                format_decimal(valuation.coin_balance.value, ndigits=VALUE_DECIMAL_PLACES),
                format_decimal(valuation.fiat_value, ndigits=VALUE_DECIMAL_PLACES),
                format_decimal(valuation.reference_unit_value, ndigits=REFERENCE_UNIT_DECIMAL_PLACES),
                valuation.coin_balance.source,
            ]
            for snapshot in snapshots
            for valuation in snapshot.valuations
        ]
        self._append_rows(target_path, VALUES_COLUMNS, rows)

    @override
    def _append_totals(self, target_path: Path, snapshots: list[PortfolioSnapshot]) -> None:
        rows = [
            [
                format_csv_timestamp(snapshot.total.timestamp),
                format_decimal(snapshot.total.total_value, ndigits=VALUE_DECIMAL_PLACES),
                format_decimal(snapshot.total.total_fiat_value, ndigits=VALUE_DECIMAL_PLACES),
                format_decimal(snapshot.total.total_reference_unit_value, ndigits=REFERENCE_UNIT_DECIMAL_PLACES),
            ]
            for snapshot in snapshots
        ]
        self._append_rows(target_path, TOTALS_COLUMNS, rows)

    def _append_rows(self, target_path: Path, columns: list[str], rows: list[list[str]]) -> None:
        write_header = not target_path.exists() or target_path.stat().st_size == 0
        pd.DataFrame(rows, columns=columns, dtype="string").to_csv(
            target_path, mode="a", header=write_header, index=False, lineterminator="\n", encoding="utf-8"
        )
        logger.info(f"Appended {len(rows)} row(s) to {target_path}")
