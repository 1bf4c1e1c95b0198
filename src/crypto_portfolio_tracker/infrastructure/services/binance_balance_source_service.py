import logging
from decimal import Decimal
from typing import override

import ccxt.async_support as ccxt

from crypto_portfolio_tracker.commons.constants import BINANCE_SOURCE_NAME
from crypto_portfolio_tracker.commons.utils import utcnow
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.remote.ccxt_remote_service import CcxtRemoteService
from crypto_portfolio_tracker.infrastructure.services.base.abstract_balance_source_service import (
    AbstractBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance

logger = logging.getLogger(__name__)


class BinanceBalanceSourceService(AbstractBalanceSourceService):
    def __init__(
        self, configuration_properties: ConfigurationProperties, ccxt_remote_service: CcxtRemoteService
    ) -> None:
        self._configuration_properties = configuration_properties
        self._ccxt_remote_service = ccxt_remote_service

    @property
    @override
    def name(self) -> str:
        return BINANCE_SOURCE_NAME

    @override
    async def fetch_balances(self) -> list[CoinBalance]:
        async with self._ccxt_remote_service.get_exchange() as exchange:
            ret = await self._fetch_balances(exchange)
        total_value = sum((balance.value for balance in ret), Decimal(0))
        logger.info(f"{self.name} balances calculated: Total value: {total_value:.2f}, Coin count: {len(ret)}")
        return ret

    async def _fetch_balances(self, exchange: ccxt.Exchange) -> list[CoinBalance]:
        excluded_symbols = set(self._configuration_properties.binance_excluded_symbols_comma_separated)
        total_balances = {
            asset: amount
            for asset, amount in (await self._ccxt_remote_service.fetch_total_balances(exchange=exchange)).items()
            if asset not in excluded_symbols
        }
        prices = await self._ccxt_remote_service.fetch_last_prices(
            list(total_balances.keys()), self._configuration_properties.base_currency, exchange=exchange
        )
        timestamp = utcnow()
        ret = []
        for asset in sorted(total_balances):
            if asset not in prices:
                logger.warning(f"[{self.name}] Unable to price {asset}, it will be valued at 0")
            ret.append(
                CoinBalance(
                    asset=asset,
                    balance=total_balances[asset],
                    price=prices.get(asset, Decimal(0)),
                    source=self.name,
                    timestamp=timestamp,
                )
            )
        return ret
