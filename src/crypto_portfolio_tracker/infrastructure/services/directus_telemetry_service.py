import logging
from typing import override

from crypto_portfolio_tracker.infrastructure.adapters.dtos.directus_item_dto import (
    DirectusCoinValueDto,
    DirectusTotalBalanceDto,
)
from crypto_portfolio_tracker.infrastructure.adapters.remote.directus_remote_service import DirectusRemoteService
from crypto_portfolio_tracker.infrastructure.services.base.abstract_telemetry_service import AbstractTelemetryService
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalanceValuation, PortfolioTotal

logger = logging.getLogger(__name__)


class DirectusTelemetryService(AbstractTelemetryService):
    def __init__(self, directus_remote_service: DirectusRemoteService) -> None:
        self._directus_remote_service = directus_remote_service

    @override
    async def publish(self, valuation: CoinBalanceValuation) -> None:
        coin_balance = valuation.coin_balance
        try:
            await self._directus_remote_service.create_coin_value(
                DirectusCoinValueDto(
                    token=coin_balance.asset,
                    balance=float(coin_balance.balance),
                    price=float(coin_balance.price),
                    value=float(coin_balance.value),
                    source=coin_balance.source,
                    btc_value=float(valuation.reference_unit_value),
                )
            )
        except Exception as e:
            logger.error(f"Error sending {coin_balance.asset} coin value to Directus API: {str(e)}")
            raise

    @override
    async def publish_total(self, total: PortfolioTotal) -> None:
        try:
            await self._directus_remote_service.create_total_balance(
                DirectusTotalBalanceDto(value=total.total_value, btc_value=total.total_reference_unit_value)
            )
        except Exception as e:
            logger.error(f"Error sending total balance to Directus API: {str(e)}")
            raise
