from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from pydantic import ValidationError

from trading_assistant.domain.exceptions import (
    ApiFailure,
    NetworkFailure,
    ServiceError,
    ServiceFailure,
)
from trading_assistant.llm.api_client import ApiClient
from trading_assistant.llm.chat_completion import (
    ChatCompletion,
    ChatCompletionRequest,
    HealthStatus,
)
from trading_assistant.llm.stable_transport import StableTransport

logger = logging.getLogger(__name__)

LLM_ENDPOINT = "/functions/v1/llm-request"
SUCCESS_CODE = 200
UNREACHABLE_MESSAGE = (
    "Unable to reach the LLM service, check the network connection and service status"
)
HEALTH_CHECK_MESSAGES = [{"role": "user", "content": "Hello, are you working?"}]


class LLMService:
    """Chat-completion client for the LLM function endpoint.

    Failures surface as NetworkFailure, ApiFailure or ServiceFailure.
    """

    def __init__(
        self,
        client: ApiClient,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 4000,
        max_attempts: int = 1,
    ) -> None:
        """Initialize the LLM service.

        Args:
            client: HTTP client bound to the LLM host.
            model: Default model identifier.
            temperature: Default sampling temperature.
            max_tokens: Default completion token cap.
            max_attempts: Transport attempts on network failure.
        """

        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.is_connected = False
        self._transport = StableTransport(client.post, max_attempts=max_attempts)

    async def get_chat_completion(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletion:
        """Send the conversation and return the completion.

        Args:
            messages: Role/content turns in order.
            model: Optional model override.
            temperature: Optional temperature override.
            max_tokens: Optional token cap override.

        Returns:
            The completion content with usage and model metadata.
        """

        request = ChatCompletionRequest(
            messages=[
                {"role": message["role"], "content": message["content"]}
                for message in messages
            ],
            model=model or self.model,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        logger.info(
            "LLM request start",
            extra={
                "model": request.model,
                "temperature": request.temperature,
                "message_count": len(request.messages),
            },
        )
        try:
            payload = await self._transport.complete(
                {"url": LLM_ENDPOINT, "json": request.model_dump()}
            )
            completion = self._parse_envelope(payload)
        except NetworkFailure as exc:
            self.is_connected = False
            raise NetworkFailure(UNREACHABLE_MESSAGE, details=exc.details) from exc
        except ServiceError:
            self.is_connected = False
            raise

        self.is_connected = True
        logger.info(
            "LLM request complete",
            extra={"model": completion.model or request.model, "usage": completion.usage},
        )
        return completion

    async def health_check(self) -> HealthStatus:
        """Check the endpoint with a tiny request. Never raises."""

        try:
            await self.get_chat_completion(
                HEALTH_CHECK_MESSAGES, model=self.model, temperature=0, max_tokens=50
            )
        except ServiceError as exc:
            return HealthStatus(status="unhealthy", connected=False, error=str(exc))
        return HealthStatus(status="healthy", connected=True)

    def get_status(self) -> Dict[str, Any]:
        return {
            "is_connected": self.is_connected,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def update_config(
        self,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        api_token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Update the live service configuration.

        Args:
            model: New default model.
            temperature: New default temperature.
            max_tokens: New default token cap.
            api_token: New bearer token for the HTTP client.
            base_url: New host for the HTTP client.
        """

        if model:
            self.model = model
        if temperature is not None:
            self.temperature = temperature
        if max_tokens:
            self.max_tokens = max_tokens
        if api_token:
            self.client.set_auth_token(api_token)
        if base_url:
            self.client.update_config(base_url=base_url)

    @staticmethod
    def _parse_envelope(payload: Any) -> ChatCompletion:
        """Unwrap the `{code, message, data}` response envelope."""

        if not isinstance(payload, dict):
            raise ServiceFailure("LLM service returned an unexpected payload")
        if payload.get("code") != SUCCESS_CODE:
            message = payload.get("message") or "LLM API returned an error"
            code = payload.get("code")
            raise ApiFailure(
                str(message),
                status_code=code if isinstance(code, int) else None,
                details={"data": payload},
            )
        try:
            return ChatCompletion.model_validate(payload.get("data") or {})
        except ValidationError as exc:
            raise ServiceFailure(
                "LLM service returned an unexpected payload",
                details={"errors": exc.errors(include_url=False)},
            ) from exc

    async def aclose(self) -> None:
        await self.client.aclose()

