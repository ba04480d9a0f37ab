from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from trading_assistant.domain.exceptions import NetworkFailure

DEFAULT_MAX_ATTEMPTS = 1


def default_retry_exceptions() -> tuple[type[Exception], ...]:
    """Return the default retryable exception set."""

    return (NetworkFailure,)


def default_wait_strategy():
    """Return the default tenacity wait strategy."""

    return wait_exponential_jitter(initial=1.0, max=8.0)


class StableTransport:
    """Retry-capable async transport wrapper for service calls."""

    def __init__(
        self,
        call: Callable[..., Awaitable[Any]],
        retry_exceptions: Optional[Tuple[type[Exception], ...]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        wait_strategy: Optional[Any] = None,
    ) -> None:
        """Initialize the transport wrapper.

        Args:
            call: Coroutine function used to execute a request.
            retry_exceptions: Exception types eligible for retry.
            max_attempts: Maximum attempts including the initial call.
            wait_strategy: Tenacity wait strategy for backoff.
        """

        self._call = call
        self._retry_exceptions = (
            default_retry_exceptions() if retry_exceptions is None else retry_exceptions
        )
        self._max_attempts = max(1, max_attempts)
        self._wait_strategy = wait_strategy or default_wait_strategy()

    async def complete(self, call_args: Dict[str, Any]) -> Any:
        """Execute the call with retry handling.

        The last exception is re-raised unchanged once attempts run out.

        Args:
            call_args: Keyword arguments for the wrapped call.

        Returns:
            The value returned by the wrapped call.
        """

        if self._max_attempts == 1 or not self._retry_exceptions:
            return await self._call(**call_args)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            retry=retry_if_exception_type(self._retry_exceptions),
            wait=self._wait_strategy,
            reraise=True,
        )
        return await retrying(self._call, **call_args)
