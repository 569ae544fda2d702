"""Request executor with retry, backoff and rate-limit handling."""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import httpx

from ..config import ChatSettings
from ..exceptions import ResponseUnavailableError
from ..logging_config import get_logger

logger = get_logger(__name__)


Sleep = Callable[[float], Awaitable[None]]

# max_retries value meaning "keep trying until the request goes through"
UNBOUNDED = None

# Failures after which the same request is worth sending again
TRANSIENT_ERRORS = (
    httpx.NetworkError,
    httpx.ConnectTimeout,
    httpx.RemoteProtocolError,
)

_WAIT_HINT = re.compile(r"\d+")


@dataclass(frozen=True)
class RetryPolicy:
    """Pauses between attempts, in seconds."""

    base_pause: float = 5.0
    max_pause: float = 60.0
    rate_limit_pause: float = 5.0

    @classmethod
    def from_settings(cls, settings: ChatSettings) -> "RetryPolicy":
        return cls(
            base_pause=settings.retry_pause,
            max_pause=settings.max_retry_pause,
            rate_limit_pause=settings.rate_limit_pause,
        )

    def pause_after(self, attempt: int) -> float:
        """Pause before the attempt following attempt number `attempt` (1-based)."""
        return min((attempt + 1) * self.base_pause, self.max_pause)


class IRequestExecutor(Protocol):
    """Sends requests until they succeed, the room is gone, or retries run out."""

    async def execute(
        self,
        request: httpx.Request,
        max_retries: int | None = UNBOUNDED,
        expected_status: int | None = None,
    ) -> httpx.Response | None:
        """Send the request. Return None on 404 or when retries are exhausted."""
        ...

    async def execute_json(self, request: httpx.Request) -> Any:
        """Send the request and decode its JSON body, retrying on malformed JSON."""
        ...


class RequestExecutor:
    """Retrying request executor over an httpx.AsyncClient."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._client = client
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        request: httpx.Request,
        max_retries: int | None = UNBOUNDED,
        expected_status: int | None = None,
    ) -> httpx.Response | None:
        """
        Send a request, pausing and resending it when it fails.

        Args:
            request: The request to send. It is resent as-is on every attempt.
            max_retries: How many times to resend after the first attempt,
                         or UNBOUNDED to keep going forever.
            expected_status: Resend unless the response has this status.

        Returns:
            The response, or None if the resource answered 404 or the
            retries ran out.
        """
        attempts = 0
        pause = 0.0
        while max_retries is UNBOUNDED or attempts <= max_retries:
            attempts += 1
            if pause > 0:
                logger.info("Sleeping for %.1f s before resending the request...", pause)
                await self._sleep(pause)

            pause = self._policy.pause_after(attempts)

            try:
                response = await self._client.send(request)
            except TRANSIENT_ERRORS as e:
                logger.error(
                    "%s raised by request %s.",
                    type(e).__name__,
                    request.url,
                    exc_info=True,
                )
                continue

            status = response.status_code
            if status == 409:
                # "You can perform this action again in 2 seconds"
                pause = self._parse_rate_limit(response)
                continue

            if status == 404:
                # room does not exist or cannot be posted to
                logger.error(
                    "404 response received from request URI %s.",
                    request.url,
                    extra={"context": {"url": str(request.url), "status": status}},
                )
                return None

            if expected_status is not None and status != expected_status:
                logger.error(
                    "Expected status code %s, but was %s.",
                    expected_status,
                    status,
                    extra={"context": {"url": str(request.url), "status": status}},
                )
                continue

            return response

        logger.error("Giving up on %s after %d attempts.", request.url, attempts)
        return None

    async def execute_json(self, request: httpx.Request) -> Any:
        """Send a request whose response is expected to be JSON."""
        while True:
            response = await self.execute(request)
            if response is None:
                raise ResponseUnavailableError(f"No usable response from {request.url}.")

            try:
                return response.json()
            except ValueError:
                logger.error(
                    "Could not parse the response as a JSON object. "
                    "Retrying the request in %.1f s.",
                    self._policy.base_pause,
                    exc_info=True,
                )
                await self._sleep(self._policy.base_pause)

    def _parse_rate_limit(self, response: httpx.Response) -> float:
        """Seconds the service asks us to wait, or the default pause if it doesn't say."""
        body = response.text
        logger.debug("409 response received: %s", body)

        match = _WAIT_HINT.search(body)
        if not match:
            return self._policy.rate_limit_pause
        return float(match.group(0))
