import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.dtos.exchange_rate_response_dto import ExchangeRateResponseDto
from crypto_portfolio_tracker.infrastructure.adapters.remote.exchange_rate_remote_service import (
    ExchangeRateRemoteService,
)
from crypto_portfolio_tracker.infrastructure.services.exchange_rate_service import ExchangeRateService


def _create_exchange_rate_service(exchange_rate_remote_service: ExchangeRateRemoteService) -> ExchangeRateService:
    return ExchangeRateService(ConfigurationProperties(exchange_rate_currency="nok"), exchange_rate_remote_service)


def _create_response(rates: dict[str, str]) -> ExchangeRateResponseDto:
    return ExchangeRateResponseDto.model_validate(
        {"result": "success", "base_code": "USD", "time_last_update_unix": 1714557600, "rates": rates}
    )


@pytest.mark.asyncio
async def should_fetch_rate_once_and_serve_it_from_cache() -> None:
    exchange_rate_remote_service = MagicMock(spec=ExchangeRateRemoteService)
    exchange_rate_remote_service.get_latest_rates = AsyncMock(
        return_value=_create_response({"NOK": "10.85", "EUR": "0.93"})
    )
    exchange_rate_service = _create_exchange_rate_service(exchange_rate_remote_service)

    first_rate = await exchange_rate_service.current_rate()
    second_rate = await exchange_rate_service.current_rate()

    assert exchange_rate_service.fiat_currency == "NOK"
    assert first_rate == second_rate == Decimal("10.85")
    exchange_rate_remote_service.get_latest_rates.assert_awaited_once()


@pytest.mark.asyncio
async def should_return_zero_when_rate_was_never_fetched_and_remote_fails() -> None:
    exchange_rate_remote_service = MagicMock(spec=ExchangeRateRemoteService)
    exchange_rate_remote_service.get_latest_rates = AsyncMock(side_effect=ValueError("HTTP 503"))
    exchange_rate_service = _create_exchange_rate_service(exchange_rate_remote_service)

    assert await exchange_rate_service.current_rate() == Decimal(0)


@pytest.mark.asyncio
async def should_fall_back_to_last_known_rate_when_refresh_fails_or_currency_is_missing() -> None:
    exchange_rate_remote_service = MagicMock(spec=ExchangeRateRemoteService)
    exchange_rate_remote_service.get_latest_rates = AsyncMock(
        side_effect=[_create_response({"NOK": "10.85"}), ValueError("HTTP 503"), _create_response({"EUR": "0.93"})]
    )
    exchange_rate_service = _create_exchange_rate_service(exchange_rate_remote_service)

    assert await exchange_rate_service.current_rate() == Decimal("10.85")
    exchange_rate_service._cache.clear()
    assert await exchange_rate_service.current_rate() == Decimal("10.85")
    assert await exchange_rate_service.current_rate() == Decimal("10.85")
    assert exchange_rate_remote_service.get_latest_rates.await_count == 3


@pytest.mark.asyncio
async def should_refresh_rate_once_configured_cache_ttl_expires() -> None:
    exchange_rate_remote_service = MagicMock(spec=ExchangeRateRemoteService)
    exchange_rate_remote_service.get_latest_rates = AsyncMock(
        side_effect=[_create_response({"NOK": "10.85"}), _create_response({"NOK": "10.90"})]
    )
    exchange_rate_service = ExchangeRateService(
        ConfigurationProperties(exchange_rate_currency="NOK", exchange_rate_cache_ttl_seconds=1),
        exchange_rate_remote_service,
    )

    assert await exchange_rate_service.current_rate() == Decimal("10.85")
    assert await exchange_rate_service.current_rate() == Decimal("10.85")
    await asyncio.sleep(1.2)
    assert await exchange_rate_service.current_rate() == Decimal("10.90")
    assert exchange_rate_remote_service.get_latest_rates.await_count == 2
