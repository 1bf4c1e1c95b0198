from dependency_injector import containers, providers

from crypto_portfolio_tracker.infrastructure.adapters.remote.ccxt_remote_service import CcxtRemoteService
from crypto_portfolio_tracker.infrastructure.adapters.remote.coingecko_remote_service import CoinGeckoRemoteService
from crypto_portfolio_tracker.infrastructure.adapters.remote.directus_remote_service import DirectusRemoteService
from crypto_portfolio_tracker.infrastructure.adapters.remote.exchange_rate_remote_service import (
    ExchangeRateRemoteService,
)


class AdaptersContainer(containers.DeclarativeContainer):
    configuration_properties = providers.Dependency()

    ccxt_remote_service = providers.Singleton(CcxtRemoteService, configuration_properties=configuration_properties)
    coingecko_remote_service = providers.Singleton(
        CoinGeckoRemoteService, configuration_properties=configuration_properties
    )
    exchange_rate_remote_service = providers.Singleton(
        ExchangeRateRemoteService, configuration_properties=configuration_properties
    )
    # Only resolved when telemetry is enabled, it refuses to be built without host and API key
    directus_remote_service = providers.Singleton(
        DirectusRemoteService, configuration_properties=configuration_properties
    )
