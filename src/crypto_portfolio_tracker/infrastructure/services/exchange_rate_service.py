import logging
from datetime import UTC, datetime
from decimal import Decimal

import cachebox

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.remote.exchange_rate_remote_service import (
    ExchangeRateRemoteService,
)

logger = logging.getLogger(__name__)


class ExchangeRateService:
    def __init__(
        self,
        configuration_properties: ConfigurationProperties,
        exchange_rate_remote_service: ExchangeRateRemoteService,
    ) -> None:
        self._configuration_properties = configuration_properties
        self._exchange_rate_remote_service = exchange_rate_remote_service
        self._fiat_currency = self._configuration_properties.exchange_rate_currency.upper()
        self._cache = cachebox.TTLCache(1, self._configuration_properties.exchange_rate_cache_ttl_seconds)
        self._last_known_rate: Decimal | None = None

    @property
    def fiat_currency(self) -> str:
        return self._fiat_currency

    async def current_rate(self) -> Decimal:
        """
        USD to fiat currency rate. Never raises, a failed refresh falls back
        to the last known rate, or 0 when there is none yet.
        """
        cached_rate = self._cache.get(self._fiat_currency)
        if cached_rate is not None:
            logger.debug(f"Returning cached USD/{self._fiat_currency} exchange rate {cached_rate}")
            return cached_rate
        try:
            response = await self._exchange_rate_remote_service.get_latest_rates()
        except Exception as e:
            logger.error(f"Error fetching USD/{self._fiat_currency} exchange rate: {str(e)}", exc_info=True)
            return self._fallback_rate()
        rate = response.rates.get(self._fiat_currency)
        if rate is None:
            logger.warning(f"Failed to get {self._fiat_currency} exchange rate")
            return self._fallback_rate()
        self._cache[self._fiat_currency] = rate
        self._last_known_rate = rate
        last_updated = (
            datetime.fromtimestamp(response.time_last_updated, tz=UTC).isoformat()
            if response.time_last_updated
            else "unknown"
        )
        logger.info(f"Updated USD/{self._fiat_currency} exchange rate to {rate} (last updated at {last_updated})")
        return rate

    def _fallback_rate(self) -> Decimal:
        return self._last_known_rate if self._last_known_rate is not None else Decimal(0)
