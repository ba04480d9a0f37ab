from __future__ import annotations

import json

import httpx
import pytest

from trading_assistant.domain.exceptions import ApiFailure, NetworkFailure, ServiceFailure
from trading_assistant.llm.api_client import ApiClient
from trading_assistant.llm.llm_service import LLM_ENDPOINT, LLMService

HISTORY = [
    {"role": "system", "content": "sys"},
    {"role": "user", "content": "hello"},
]


def _service(handler, **kwargs) -> LLMService:
    client = ApiClient(
        "http://llm.test",
        api_token="secret",
        transport=httpx.MockTransport(handler),
    )
    return LLMService(client, **kwargs)


@pytest.mark.asyncio
async def test_llm_service_success_returns_completion() -> None:
    """Ensure the envelope data becomes the completion."""

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "code": 200,
                "message": "ok",
                "data": {"content": "Hi", "usage": {"total_tokens": 3}, "model": "gpt-4o"},
            },
        )

    service = _service(handler, temperature=0.2)
    completion = await service.get_chat_completion(HISTORY)

    assert completion.content == "Hi"
    assert completion.usage == {"total_tokens": 3}
    assert seen["path"] == LLM_ENDPOINT
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {
        "messages": HISTORY,
        "model": "gpt-4o",
        "temperature": 0.2,
        "max_tokens": 4000,
        "stream": False,
    }
    assert service.is_connected is True
    await service.aclose()


@pytest.mark.asyncio
async def test_llm_service_envelope_error_is_api_failure() -> None:
    """Ensure a non-200 envelope code surfaces as ApiFailure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 400, "message": "quota exceeded"})

    service = _service(handler)

    with pytest.raises(ApiFailure, match="quota exceeded"):
        await service.get_chat_completion(HISTORY)
    assert service.is_connected is False


@pytest.mark.asyncio
async def test_llm_service_http_error_is_api_failure() -> None:
    """Ensure HTTP error statuses keep the server message."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"message": "maintenance"})

    service = _service(handler)

    with pytest.raises(ApiFailure) as exc_info:
        await service.get_chat_completion(HISTORY)
    assert exc_info.value.status_code == 503
    assert str(exc_info.value) == "maintenance"


@pytest.mark.asyncio
async def test_llm_service_network_error() -> None:
    """Ensure unreachable hosts surface as NetworkFailure."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    service = _service(handler)

    with pytest.raises(NetworkFailure, match="Unable to reach the LLM service"):
        await service.get_chat_completion(HISTORY)


@pytest.mark.asyncio
async def test_llm_service_missing_content_is_service_failure() -> None:
    """Ensure malformed envelope data is a ServiceFailure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 200, "data": {"usage": {}}})

    service = _service(handler)

    with pytest.raises(ServiceFailure):
        await service.get_chat_completion(HISTORY)


@pytest.mark.asyncio
async def test_llm_service_health_check_never_raises() -> None:
    """Ensure health checks report instead of raising."""

    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        if len(bodies) == 1:
            return httpx.Response(200, json={"code": 200, "data": {"content": "yes"}})
        return httpx.Response(500)

    service = _service(handler)

    healthy = await service.health_check()
    unhealthy = await service.health_check()

    assert healthy.connected is True
    assert healthy.status == "healthy"
    assert bodies[0]["max_tokens"] == 50
    assert unhealthy.connected is False
    assert unhealthy.status == "unhealthy"
    assert unhealthy.error


@pytest.mark.asyncio
async def test_llm_service_update_config() -> None:
    """Ensure live updates apply to later requests."""

    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"code": 200, "data": {"content": "ok"}})

    service = _service(handler)
    service.update_config(
        model="gpt-4o-mini",
        max_tokens=100,
        api_token="rotated",
        base_url="http://other.test",
    )
    await service.get_chat_completion(HISTORY)

    assert seen["url"] == "http://other.test" + LLM_ENDPOINT
    assert seen["auth"] == "Bearer rotated"
    assert seen["body"]["model"] == "gpt-4o-mini"
    assert seen["body"]["max_tokens"] == 100
    assert service.get_status()["model"] == "gpt-4o-mini"
