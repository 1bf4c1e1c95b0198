import logging
from decimal import Decimal
from typing import override

from crypto_portfolio_tracker.commons.constants import MANUAL_SOURCE_NAME
from crypto_portfolio_tracker.commons.utils import utcnow
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.remote.ccxt_remote_service import CcxtRemoteService
from crypto_portfolio_tracker.infrastructure.services.base.abstract_balance_source_service import (
    AbstractBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance

logger = logging.getLogger(__name__)


class ManualBalanceSourceService(AbstractBalanceSourceService):
    """
    Holdings kept outside the exchange (cold wallets and the like), priced with exchange tickers
    """

    def __init__(
        self, configuration_properties: ConfigurationProperties, ccxt_remote_service: CcxtRemoteService
    ) -> None:
        self._configuration_properties = configuration_properties
        self._ccxt_remote_service = ccxt_remote_service

    @property
    @override
    def name(self) -> str:
        return MANUAL_SOURCE_NAME

    @override
    async def fetch_balances(self) -> list[CoinBalance]:
        manual_balances = [
            manual_balance
            for manual_balance in self._configuration_properties.manual_balances
            if manual_balance.available > 0
        ]
        if not manual_balances:
            return []
        prices = await self._ccxt_remote_service.fetch_last_prices(
            [manual_balance.asset for manual_balance in manual_balances],
            self._configuration_properties.base_currency,
        )
        timestamp = utcnow()
        ret = []
        for manual_balance in manual_balances:
            asset = manual_balance.asset.upper()
            if asset not in prices:
                logger.warning(f"[{self.name}] Unable to price {asset}, it will be valued at 0")
            ret.append(
                CoinBalance(
                    asset=asset,
                    balance=manual_balance.available,
                    price=prices.get(asset, Decimal(0)),
                    source=self.name,
                    timestamp=timestamp,
                )
            )
        return ret
