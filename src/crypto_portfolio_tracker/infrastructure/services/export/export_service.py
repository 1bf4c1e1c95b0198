import logging
from decimal import Decimal
from pathlib import Path

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.services.export.abstract_export_writer_service import (
    AbstractExportWriterService,
)
from crypto_portfolio_tracker.infrastructure.services.value_calculation_service import ValueCalculationService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance, PortfolioSnapshot

logger = logging.getLogger(__name__)


class ExportService:
    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        value_calculation_service: ValueCalculationService,
        export_writer_service: AbstractExportWriterService,
    ) -> None:
        self._configuration_properties = configuration_properties
        self._value_calculation_service = value_calculation_service
        self._export_writer_service = export_writer_service

    @property
    def enabled(self) -> bool:
        return self._configuration_properties.export_enabled

    def get_values_target_path(self) -> Path:
        return self._build_target_path(self._configuration_properties.export_values_filename)

    def get_totals_target_path(self) -> Path:
        return self._build_target_path(self._configuration_properties.export_totals_filename)

    async def export_snapshot(
        self, balances: list[CoinBalance], fiat_rate: Decimal, reference_unit_price: Decimal
    ) -> PortfolioSnapshot | None:
        """Appends the valued balances to the values target and their aggregate to the totals target.

        Values are written first. When the totals target fails afterwards, the values
        target is not rolled back.

        Args:
            balances (list[CoinBalance]): balances of one cycle
            fiat_rate (Decimal): base currency to fiat rate
            reference_unit_price (Decimal): price of the reference unit in base currency

        Raises:
            ExportError: when any of both targets cannot be written

        Returns:
            PortfolioSnapshot | None: exported snapshot, None when export is disabled
        """
        if not self.enabled:
            logger.debug("Export is disabled, snapshot will not be exported")
            return None
        snapshot = self._value_calculation_service.build_snapshot(
            balances, fiat_rate=fiat_rate, reference_unit_price=reference_unit_price
        )
        values_target_path = self.get_values_target_path()
        totals_target_path = self.get_totals_target_path()
        values_target_path.parent.mkdir(parents=True, exist_ok=True)
        await self._export_writer_service.append_values(values_target_path, [snapshot])
        await self._export_writer_service.append_totals(totals_target_path, [snapshot])
        logger.info(
            f"Snapshot of {len(snapshot.valuations)} balances exported to {values_target_path} and {totals_target_path}"
        )
        return snapshot

    def _build_target_path(self, filename: str) -> Path:
        extension = self._export_writer_service.export_format.value
        return Path(self._configuration_properties.export_output_path) / f"{filename}.{extension}"
