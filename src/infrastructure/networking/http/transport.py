"""
REST Transport

The transport is the only component that performs network I/O. Adapters
depend on the RestTransport protocol; AiohttpRestTransport is the production
implementation (pooled aiohttp session, msgspec JSON decoding).

The transport never retries. Network failures surface as TransportError
subclasses; HTTP error statuses with a JSON body are returned as decoded JSON
so the adapter can read the exchange's own error envelope.
"""

import asyncio
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import aiohttp
import msgspec

from infrastructure.exceptions.exchange import (
    ExchangeConnectionError, ExchangeTimeoutError, TransportError
)
from infrastructure.logging import HFTLoggerInterface, LoggingTimer, get_logger
from .structs import HTTPMethod, RestConfig


@runtime_checkable
class RestTransport(Protocol):
    """Narrow transport interface consumed by exchange adapters."""

    async def get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        ...

    async def post(self, url: str, data: bytes, headers: Optional[Mapping[str, str]] = None) -> Any:
        ...

    async def close(self) -> None:
        ...


class AiohttpRestTransport:
    """
    aiohttp-backed transport.

    The session is created lazily on first request so the transport can be
    constructed outside a running event loop.
    """

    def __init__(
        self,
        config: Optional[RestConfig] = None,
        exchange: Optional[str] = None,
        logger: Optional[HFTLoggerInterface] = None
    ):
        self.config = config or RestConfig()
        self.exchange = exchange
        self.logger = logger or get_logger(f"{(exchange or 'rest').lower()}.transport")

        self._session: Optional[aiohttp.ClientSession] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=self.config.timeout,
                connect=self.config.connect_timeout,
            )
            headers = {
                'User-Agent': self.config.user_agent,
                'Accept': 'application/json',
            }
            if self.config.headers:
                headers.update(self.config.headers)

            self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent)
        return self._session

    async def get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request(HTTPMethod.GET, url, params=params)

    async def post(self, url: str, data: bytes, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request(HTTPMethod.POST, url, data=data, headers=headers)

    async def request(
        self,
        method: HTTPMethod,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        session = await self._ensure_session()
        request_kwargs: Dict[str, Any] = {}
        if params:
            request_kwargs['params'] = {k: str(v) for k, v in params.items()}
        if data is not None:
            request_kwargs['data'] = data
        if headers:
            request_kwargs['headers'] = dict(headers)

        async with self._semaphore:
            try:
                with LoggingTimer(self.logger, "http_request", method=method.value, url=url):
                    async with session.request(method.value, url, **request_kwargs) as response:
                        text = await response.text()
                        return self._parse_response(response.status, text)
            except asyncio.TimeoutError as e:
                raise ExchangeTimeoutError(
                    f"{method.value} {url} timed out after {self.config.timeout}s", self.exchange
                ) from e
            except aiohttp.ClientConnectionError as e:
                raise ExchangeConnectionError(f"{method.value} {url} failed: {e}", self.exchange) from e
            except aiohttp.ClientError as e:
                raise TransportError(f"{method.value} {url} failed: {e}", self.exchange) from e

    def _parse_response(self, status: int, text: str) -> Any:
        if not text:
            if status >= 400:
                raise TransportError(f"HTTP {status} with empty body", self.exchange, status_code=status)
            return None

        try:
            return msgspec.json.decode(text)
        except msgspec.DecodeError:
            raise TransportError(
                f"HTTP {status}: non-JSON response: {text[:100]}", self.exchange, status_code=status
            )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
