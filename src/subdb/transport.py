"""
HTTP transport capability for the SubDB client.

The client only depends on the `Transport` protocol. `HttpxTransport` is the
default implementation: it owns the base URL, User-Agent, timeouts and
retries, so the protocol layer never has to.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Protocol, cast, runtime_checkable

import httpx
from loguru import logger

from subdb.utils.logging import ensure_level

if TYPE_CHECKING:
    from subdb.settings.models import SubDBSettings

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True)
class FilePart:
    """A single multipart file attachment."""

    field: str
    filename: str
    content: bytes
    content_type: str


@dataclass
class TransportRequest:
    method: str = "GET"
    query_params: dict[str, str] = field(default_factory=dict)
    body_params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    file_part: FilePart | None = None


@dataclass(frozen=True)
class TransportResponse:
    """
    Transport-agnostic HTTP response.

    Attributes:
        status_code: HTTP status code, 0 when no response was received.
        content_text: Decoded response body.
        headers: Response headers.
        error: Description of the network failure when status_code is 0.
    """

    status_code: int
    content_text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""

        wanted = name.lower()

        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value

        return None


@runtime_checkable
class Transport(Protocol):
    def execute(self, request: TransportRequest) -> TransportResponse: ...


@runtime_checkable
class AsyncTransport(Transport, Protocol):
    async def execute_async(self, request: TransportRequest) -> TransportResponse: ...


class HttpxTransport:
    """
    Default transport built on httpx.

    Clients are created lazily on first use and closed with `close()` /
    `aclose()` or the (async) context manager protocol.

    Attributes:
        base_url (str): Service base URL all requests are resolved against.
        headers (dict): Default headers, including the User-Agent.
        retries (int): Retries for 429/5xx responses and network failures,
            applied to idempotent methods only.
        backoff_factor (float): Backoff factor for retries.
        max_retry_delay (float): Upper bound for a server-sent Retry-After,
            taken from the request timeout.
    """

    def __init__(
        self,
        settings: "SubDBSettings",
        http_transport: httpx.BaseTransport | None = None,
        async_http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HttpxTransport.

        Args:
            settings (SubDBSettings): Client settings.
            http_transport (httpx.BaseTransport): Optional transport for the sync client.
            async_http_transport (httpx.AsyncBaseTransport): Optional transport for the async client.
        """

        self.base_url = settings.base_url
        self.headers: dict[str, str] = {"User-Agent": settings.user_agent}
        self.retries = int(settings.retries)
        self.backoff_factor = float(settings.backoff_factor)
        self.max_retry_delay = float(settings.timeout)
        self.enable_network_tracing = settings.enable_network_tracing

        self._timeout = httpx.Timeout(settings.timeout)
        self._http_transport = http_transport
        self._async_http_transport = async_http_transport
        self._client: httpx.Client | None = None
        self._async_client: httpx.AsyncClient | None = None

        if self.enable_network_tracing:
            ensure_level("NETWORK", no=5, color="<fg #e56c49>", icon="🌐")

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            event_hooks: dict[str, list] = {"request": [], "response": []}

            if self.enable_network_tracing:
                event_hooks["request"].append(self._log_request)
                event_hooks["response"].append(self._log_response)

            self._client = httpx.Client(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._http_transport,
                event_hooks=event_hooks,
            )

        return self._client

    @property
    def async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            event_hooks: dict[str, list] = {"request": [], "response": []}

            if self.enable_network_tracing:
                event_hooks["request"].append(self._alog_request)
                event_hooks["response"].append(self._alog_response)

            self._async_client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._async_http_transport,
                event_hooks=event_hooks,
            )

        return self._async_client

    # --- public API ---
    def execute(self, request: TransportRequest) -> TransportResponse:
        """
        Send a request, retrying on 429/5xx and network failures.

        Only idempotent methods are retried. A POST may already have been
        stored by the server when it fails, so it gets exactly one attempt.

        Returns:
            TransportResponse: The final response, or status 0 with `error`
            set when every attempt failed at the network level.
        """

        retries = self._retries_for(request)
        attempt = 0

        while True:
            attempt += 1

            try:
                hx_response = self.client.send(self._build(self.client, request))
            except httpx.RequestError as e:
                if attempt <= retries:
                    delay = self._backoff(attempt)
                    logger.debug(
                        f"SubDB request failed ({e}), retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue

                return self._failed(request, attempt, e)

            if self._should_retry(hx_response) and attempt <= retries:
                delay = self._compute_retry_delay(hx_response, attempt)
                logger.debug(
                    f"SubDB answered {hx_response.status_code}, retrying in {delay:.2f}s"
                )
                time.sleep(delay)
                continue

            return self._to_transport_response(hx_response)

    async def execute_async(self, request: TransportRequest) -> TransportResponse:
        """Async counterpart of `execute` with identical retry semantics."""

        retries = self._retries_for(request)
        attempt = 0

        while True:
            attempt += 1

            try:
                hx_response = await self.async_client.send(
                    self._build(self.async_client, request)
                )
            except httpx.RequestError as e:
                if attempt <= retries:
                    delay = self._backoff(attempt)
                    logger.debug(
                        f"SubDB request failed ({e}), retrying in {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    continue

                return self._failed(request, attempt, e)

            if self._should_retry(hx_response) and attempt <= retries:
                delay = self._compute_retry_delay(hx_response, attempt)
                logger.debug(
                    f"SubDB answered {hx_response.status_code}, retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                continue

            return self._to_transport_response(hx_response)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None

        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    # --- helpers ---
    def _build(
        self, client: httpx.Client | httpx.AsyncClient, request: TransportRequest
    ) -> httpx.Request:
        files = None

        if request.file_part is not None:
            part = request.file_part
            files = {part.field: (part.filename, part.content, part.content_type)}

        return client.build_request(
            request.method.upper(),
            "",
            params=request.query_params or None,
            data=request.body_params or None,
            files=files,
            headers=request.headers or None,
        )

    def _failed(
        self, request: TransportRequest, attempt: int, error: httpx.RequestError
    ) -> TransportResponse:
        action = request.query_params.get("action", "?")
        logger.error(
            f"SubDB {action} request failed after {attempt} attempt(s): {error}"
        )

        return TransportResponse(status_code=0, error=str(error) or type(error).__name__)

    def _retries_for(self, request: TransportRequest) -> int:
        if request.method.upper() in IDEMPOTENT_METHODS:
            return self.retries

        return 0

    @staticmethod
    def _should_retry(response: httpx.Response) -> bool:
        return response.status_code == 429 or 500 <= response.status_code < 600

    @staticmethod
    def _to_transport_response(response: httpx.Response) -> TransportResponse:
        return TransportResponse(
            status_code=response.status_code,
            content_text=response.text,
            headers=dict(response.headers),
        )

    def _compute_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        # Honor Retry-After if present, capped at max_retry_delay
        retry_after = response.headers.get("Retry-After")

        if retry_after:
            try:
                delay = float(int(retry_after))
            except ValueError:
                try:
                    dt = cast(datetime, parsedate_to_datetime(retry_after))
                    delay = float(round(dt.timestamp() - time.time()))
                except (TypeError, ValueError):
                    return self._backoff(attempt)

            return min(max(0.0, delay), self.max_retry_delay)

        return self._backoff(attempt)

    def _backoff(self, attempt: int) -> float:
        """
        Exponential backoff with equal jitter to reduce thundering herds.

        See: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
        """

        base = self.backoff_factor * (2 ** (max(0, attempt - 1)))

        return base * (0.5 + 0.5 * random.random())

    def _log_request(self, request: httpx.Request) -> None:
        logger.log("NETWORK", f"{request.method} {request.url} - Waiting for response")

    def _log_response(self, response: httpx.Response) -> None:
        logger.log(
            "NETWORK",
            f"{response.request.method} {response.request.url} - Status {response.status_code}",
        )

    async def _alog_request(self, request: httpx.Request) -> None:
        self._log_request(request)

    async def _alog_response(self, response: httpx.Response) -> None:
        self._log_response(response)
