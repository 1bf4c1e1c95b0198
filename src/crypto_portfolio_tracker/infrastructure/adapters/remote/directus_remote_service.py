import logging

from httpx import AsyncClient, Timeout
from pydantic import BaseModel

from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties
from crypto_portfolio_tracker.infrastructure.adapters.dtos.directus_item_dto import (
    DirectusCoinValueDto,
    DirectusTotalBalanceDto,
)
from crypto_portfolio_tracker.infrastructure.adapters.remote.base import AbstractHttpRemoteAsyncService

logger = logging.getLogger(__name__)


class DirectusRemoteService(AbstractHttpRemoteAsyncService):
    _remote_api_name = "Directus"

    def __init__(self, configuration_properties: ConfigurationProperties) -> None:
        self._configuration_properties = configuration_properties
        self._base_url = str(self._configuration_properties.directus_host or "").rstrip("/")
        self._api_key = self._configuration_properties.directus_api_key
        if not self._base_url or not self._api_key:
            raise ValueError("Directus API configuration is missing or incomplete.")

    async def create_coin_value(self, coin_value: DirectusCoinValueDto, *, client: AsyncClient | None = None) -> None:
        await self._create_item(self._configuration_properties.directus_coin_values_endpoint, coin_value, client=client)

    async def create_total_balance(
        self, total_balance: DirectusTotalBalanceDto, *, client: AsyncClient | None = None
    ) -> None:
        await self._create_item(
            self._configuration_properties.directus_total_balance_endpoint, total_balance, client=client
        )

    async def _create_item(self, endpoint: str, item: BaseModel, *, client: AsyncClient | None = None) -> None:
        response = await self._perform_http_request(
            method="POST", url=f"/items/{endpoint}", body=item.model_dump(mode="json"), client=client
        )
        if self._configuration_properties.directus_logging_enabled:
            logger.debug(f"Directus API response: {response.text}")

    async def get_http_client(self) -> AsyncClient:
        return AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=Timeout(10, connect=5, read=30),
        )
