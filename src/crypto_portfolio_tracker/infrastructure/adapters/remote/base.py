from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

from httpx import URL, AsyncClient, HTTPStatusError, Response


class AbstractHttpRemoteAsyncService(ABC):
    # Human readable name of the remote API, used on error messages
    _remote_api_name: str = "Remote"

    async def _perform_http_request(
        self,
        *,
        method: str = "GET",
        url: URL | str = "/",
        params: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
        body: Any | None = None,
        client: AsyncClient | None = None,
        **kwargs,
    ) -> Response:
        """
        Performs a HTTP request to the given URL, passing through the request and response interceptors.
        A short-lived client is created when no client is given.
        """
        params, headers = await self._apply_request_interceptor(
            method=method, url=url, params=params or {}, headers=headers or {}, body=body
        )
        if client:
            response = await client.request(method=method, url=url, params=params, headers=headers, json=body, **kwargs)
        else:
            async with await self.get_http_client() as client:
                response = await client.request(
                    method=method, url=url, params=params, headers=headers, json=body, **kwargs
                )
        response = await self._apply_response_interceptor(
            method=method, url=url, params=params, headers=headers, body=body, response=response
        )
        return response

    async def _apply_request_interceptor(
        self,
        *,
        method: str = "GET",
        url: URL | str = "/",
        params: dict[str, Any],
        headers: dict[str, Any],
        body: Any | None = None,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        return params, headers

    async def _apply_response_interceptor(
        self,
        *,
        method: str = "GET",
        url: URL | str = "/",
        params: dict[str, Any],
        headers: dict[str, Any],
        body: Any | None = None,
        response: Response,
    ) -> Response:
        """
        Raises ValueError, chaining the original HTTPStatusError, on any non-2xx response
        """
        try:
            response.raise_for_status()
        except HTTPStatusError as e:
            raise ValueError(
                f"{self._remote_api_name} API error: HTTP {method} {self._build_full_url(str(url), params)} "
                + f"- Status code: {response.status_code} - {response.text}",
                response,
            ) from e
        return response

    @abstractmethod
    async def get_http_client(self) -> AsyncClient:
        """
        Creates a new HTTP asyncio client for calling the remote RESTful service

        Returns:
            AsyncClient: httpx.AsyncClient new instance
        """

    def _build_full_url(self, path: str, query_params: dict[str, Any] | None) -> str:
        full_url = path
        if query_params:
            query_string = urlencode(query_params, doseq=True)
            full_url += "?" + query_string
        return full_url
