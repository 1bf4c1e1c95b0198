import logging
import random
from decimal import Decimal
from typing import override

from crypto_portfolio_tracker.commons.constants import DEMO_COINS, DEMO_SOURCE_NAME
from crypto_portfolio_tracker.commons.utils import utcnow
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.remote.ccxt_remote_service import CcxtRemoteService
from crypto_portfolio_tracker.infrastructure.services.base.abstract_balance_source_service import (
    AbstractBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance

logger = logging.getLogger(__name__)


class DemoBalanceSourceService(AbstractBalanceSourceService):
    """
    Synthetic holdings for demo mode. Quantities are generated once per instance,
    prices are the real public ones.
    """

    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        ccxt_remote_service: CcxtRemoteService,
        rng: random.Random | None = None,
    ) -> None:
        self._configuration_properties = configuration_properties
        self._ccxt_remote_service = ccxt_remote_service
        rng = rng or random.Random()
        self._demo_balances = {
            coin: Decimal(str(round(rng.random() * (2 if coin == "BTC" else 100), 4))) for coin in DEMO_COINS
        }

    @property
    @override
    def name(self) -> str:
        return DEMO_SOURCE_NAME

    @override
    async def fetch_balances(self) -> list[CoinBalance]:
        prices = await self._ccxt_remote_service.fetch_last_prices(
            list(self._demo_balances.keys()), self._configuration_properties.base_currency
        )
        timestamp = utcnow()
        ret = [
            CoinBalance(
                asset=coin, balance=balance, price=prices.get(coin, Decimal(0)), source=self.name, timestamp=timestamp
            )
            for coin, balance in self._demo_balances.items()
            if balance > 0
        ]
        logger.info(f"[{self.name}] Generated {len(ret)} demo balances")
        return ret
