from httpx import AsyncClient, Timeout

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.dtos.exchange_rate_response_dto import ExchangeRateResponseDto
from crypto_portfolio_tracker.infrastructure.adapters.remote.base import AbstractHttpRemoteAsyncService


class ExchangeRateRemoteService(AbstractHttpRemoteAsyncService):
    _remote_api_name = "Exchange rate"

    def __init__(self, configuration_properties: ConfigurationProperties) -> None:
        self._configuration_properties = configuration_properties
        self._api_url = str(self._configuration_properties.exchange_rate_api_url)

    async def get_latest_rates(self, *, client: AsyncClient | None = None) -> ExchangeRateResponseDto:
        response = await self._perform_http_request(url=self._api_url, client=client)
        ret = ExchangeRateResponseDto.model_validate_json(response.content)
        return ret

    async def get_http_client(self) -> AsyncClient:
        return AsyncClient(timeout=Timeout(10, connect=5, read=30))
