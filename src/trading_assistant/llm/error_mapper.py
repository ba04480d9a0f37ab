from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from trading_assistant.domain.exceptions import (
    ApiFailure,
    NetworkFailure,
    ServiceError,
    ServiceFailure,
)

DEFAULT_SERVER_MESSAGE = "Server error"
DEFAULT_NETWORK_MESSAGE = "Network connection failed, check your network settings"


class FailureKind(str, Enum):
    """Classification of a failed HTTP call."""

    NETWORK = "network_error"
    RESPONSE = "response_error"
    UNKNOWN = "unknown_error"


@dataclass(frozen=True)
class HttpErrorMapping:
    """Normalized classification of an HTTP failure."""

    kind: FailureKind
    message: str
    status_code: Optional[int]
    details: Dict[str, Any]

    def to_exception(self) -> ServiceError:
        error_type = {
            FailureKind.NETWORK: NetworkFailure,
            FailureKind.RESPONSE: ApiFailure,
            FailureKind.UNKNOWN: ServiceFailure,
        }[self.kind]
        return error_type(
            self.message, status_code=self.status_code, details=self.details
        )


def map_http_error(
    error: Exception,
    *,
    server_message: str = DEFAULT_SERVER_MESSAGE,
    network_message: str = DEFAULT_NETWORK_MESSAGE,
) -> HttpErrorMapping:
    """Map an exception raised by an HTTP call into a classification.

    Args:
        error: Exception raised while sending the request.
        server_message: Fallback text when the error payload has no message.
        network_message: Text used for connection failures and timeouts.

    Returns:
        HttpErrorMapping describing the failure.
    """

    if isinstance(error, httpx.HTTPStatusError):
        payload = _extract_error_payload(error)
        message = payload.get("message")
        return HttpErrorMapping(
            kind=FailureKind.RESPONSE,
            message=message if isinstance(message, str) and message else server_message,
            status_code=error.response.status_code,
            details={"data": payload} if payload else {},
        )
    if isinstance(error, httpx.RequestError):
        return HttpErrorMapping(
            kind=FailureKind.NETWORK,
            message=network_message,
            status_code=None,
            details={"error": str(error) or error.__class__.__name__},
        )
    return HttpErrorMapping(
        kind=FailureKind.UNKNOWN,
        message=str(error) or "Unknown error",
        status_code=None,
        details={"error_type": error.__class__.__name__},
    )


def _extract_error_payload(error: httpx.HTTPStatusError) -> Dict[str, Any]:
    """Extract the JSON error payload from an HTTP status error."""

    try:
        payload = error.response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
