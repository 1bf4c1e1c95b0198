from httpx import AsyncClient, Timeout

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.dtos.coingecko_simple_price_dto import CoinGeckoSimplePriceDto
from crypto_portfolio_tracker.infrastructure.adapters.remote.base import AbstractHttpRemoteAsyncService


class CoinGeckoRemoteService(AbstractHttpRemoteAsyncService):
    _remote_api_name = "CoinGecko"

    def __init__(self, configuration_properties: ConfigurationProperties) -> None:
        self._configuration_properties = configuration_properties
        self._base_url = str(self._configuration_properties.coingecko_api_base_url).rstrip("/")

    async def get_simple_prices(
        self, coingecko_ids: list[str], vs_currency: str = "usd", *, client: AsyncClient | None = None
    ) -> CoinGeckoSimplePriceDto:
        response = await self._perform_http_request(
            url="/simple/price",
            params={"ids": ",".join(coingecko_ids), "vs_currencies": vs_currency},
            client=client,
        )
        ret = CoinGeckoSimplePriceDto.model_validate_json(response.content)
        return ret

    async def get_http_client(self) -> AsyncClient:
        return AsyncClient(base_url=self._base_url, timeout=Timeout(10, connect=5, read=30))
