"""Shared HTTP client with error classification."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from trading_assistant.llm.error_mapper import map_http_error

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ApiClient:
    """
    Thin async JSON client over httpx.

    Every failure is raised as a classified ServiceError: NetworkFailure,
    ApiFailure or ServiceFailure. No retries happen here.

    Args:
        base_url: Service host.
        timeout: Request timeout in seconds.
        api_token: Optional bearer token sent with every request.
        transport: Optional httpx transport override.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        api_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        server_message: Optional[str] = None,
        network_message: Optional[str] = None,
    ) -> None:
        self.api_token = api_token
        self._messages: Dict[str, str] = {}
        if server_message:
            self._messages["server_message"] = server_message
        if network_message:
            self._messages["network_message"] = network_message
        headers: Dict[str, str] = {}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def timeout(self) -> float | None:
        return self._client.timeout.read

    async def post(
        self,
        url: str,
        json: Any = None,
        *,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """POST a request and return the decoded JSON body."""

        return await self._send(
            "POST",
            url,
            json=json,
            data=data,
            files=files,
            headers=headers,
            timeout=timeout,
        )

    async def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """GET a resource and return the decoded JSON body."""

        return await self._send("GET", url, params=params, timeout=timeout)

    def set_auth_token(self, token: Optional[str]) -> None:
        self.api_token = token
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    def update_config(
        self, base_url: Optional[str] = None, timeout: Optional[float] = None
    ) -> None:
        if base_url:
            self._client.base_url = httpx.URL(base_url)
        if timeout:
            self._client.timeout = httpx.Timeout(timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> Any:
        request_kwargs = {key: value for key, value in kwargs.items() if value is not None}
        if timeout is not None:
            request_kwargs["timeout"] = timeout
        logger.debug("Sending request", extra={"method": method, "url": url})
        try:
            response = await self._client.request(
                method, url, headers=headers, **request_kwargs
            )
            response.raise_for_status()
            payload = _decode(response)
        except Exception as exc:
            mapping = map_http_error(exc, **self._messages)
            logger.warning(
                "Request failed",
                extra={
                    "method": method,
                    "url": url,
                    "status_code": mapping.status_code,
                    "kind": mapping.kind.value,
                },
            )
            raise mapping.to_exception() from exc
        logger.debug(
            "Request succeeded",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )
        return payload


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    if "json" in response.headers.get("content-type", ""):
        return response.json()
    return response.text
