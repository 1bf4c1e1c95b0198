import logging
from datetime import datetime
from decimal import Decimal
from typing import override

from crypto_portfolio_tracker.commons.constants import COINGECKO_SOURCE_NAME
from crypto_portfolio_tracker.commons.utils import as_utc, utcnow
from crypto_portfolio_tracker.config.configuration_properties import CoinGeckoAssetConfig, ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.remote.coingecko_remote_service import CoinGeckoRemoteService
from crypto_portfolio_tracker.infrastructure.services.base.abstract_balance_source_service import (
    AbstractBalanceSourceService,
)
from crypto_portfolio_tracker.infrastructure.services.vo import CoinBalance

logger = logging.getLogger(__name__)


class CoinGeckoBalanceSourceService(AbstractBalanceSourceService):
    """
    Assets that accrue a fixed amount of tokens per day (staking rewards and the like),
    priced in USD through CoinGecko.
    """

    def __init__(
        self, configuration_properties: ConfigurationProperties, coingecko_remote_service: CoinGeckoRemoteService
    ) -> None:
        self._configuration_properties = configuration_properties
        self._coingecko_remote_service = coingecko_remote_service

    @property
    @override
    def name(self) -> str:
        return COINGECKO_SOURCE_NAME

    @override
    async def fetch_balances(self) -> list[CoinBalance]:
        assets = self._configuration_properties.coingecko_assets
        if not assets:
            return []
        simple_prices = await self._coingecko_remote_service.get_simple_prices(
            [asset.coingecko_id for asset in assets]
        )
        timestamp = utcnow()
        ret = []
        for asset in assets:
            price = simple_prices.get_price(asset.coingecko_id)
            if price is None:
                logger.warning(f"[{self.name}] Failed to get price for {asset.asset_name} ({asset.coingecko_id})")
                continue
            ret.append(
                CoinBalance(
                    asset=asset.asset_name,
                    balance=self.calculate_total(asset, now=timestamp),
                    price=price,
                    source=self.name,
                    timestamp=timestamp,
                )
            )
        return ret

    @staticmethod
    def calculate_total(asset: CoinGeckoAssetConfig, *, now: datetime) -> Decimal:
        whole_days = max((as_utc(now) - as_utc(asset.total_date)).days, 0)
        return asset.initial_total + whole_days * asset.tokens_per_day
