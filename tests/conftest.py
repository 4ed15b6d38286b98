"""
Pytest configuration and shared fixtures for exchange adapter tests.

Provides a recording fake transport, test configurations and isolated
market data caches so no test touches the network or the process-wide
caches.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Configure test environment
os.environ['ENVIRONMENT'] = 'test'

from config.structs import ExchangeConfig, ExchangeCredentials
from exchanges.services.market_data import MarketDataCache
from exchanges.structs.common import Symbol
from exchanges.structs.types import AssetName, ExchangeName
from infrastructure.logging import ConsoleBackendConfig, LoggingConfig, configure_logging
from infrastructure.networking.http import NonceSequencer


class FakeTransport:
    """
    RestTransport double that records every call.

    GET responses are routed by substring of "url?query"; POST responses are
    served in FIFO order. A response that is an Exception instance is raised.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[Tuple[str, str, Any]] = []
        self.closed = False
        self._get_routes: List[Tuple[str, Any]] = []
        self._post_queue: List[Any] = []

    def on_get(self, match: str, response: Any) -> 'FakeTransport':
        self._get_routes.append((match, response))
        return self

    def queue_post(self, response: Any) -> 'FakeTransport':
        self._post_queue.append(response)
        return self

    @property
    def get_calls(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [(url, payload) for method, url, payload in self.calls if method == 'GET']

    @property
    def post_calls(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [(url, payload) for method, url, payload in self.calls if method == 'POST']

    async def get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        params = dict(params or {})
        self.calls.append(('GET', url, params))
        if self.delay:
            await asyncio.sleep(self.delay)

        target = f"{url}?{urlencode(params)}" if params else url
        for match, response in self._get_routes:
            if match in target:
                return self._resolve(response)
        raise AssertionError(f"unexpected GET {target}")

    async def post(self, url: str, data: bytes, headers: Optional[Mapping[str, str]] = None) -> Any:
        self.calls.append(('POST', url, {'data': data, 'headers': dict(headers or {})}))
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self._post_queue:
            raise AssertionError(f"unexpected POST {url} {data!r}")
        return self._resolve(self._post_queue.pop(0))

    async def close(self) -> None:
        self.closed = True

    @staticmethod
    def _resolve(response: Any) -> Any:
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up test-appropriate logging configuration."""
    configure_logging(LoggingConfig(
        environment="test",
        console=ConsoleBackendConfig(enabled=True, min_level="WARNING", color=False),
    ))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def ticker_cache():
    return MarketDataCache("test_ticker")


@pytest.fixture
def orderbook_cache():
    return MarketDataCache("test_orderbook")


@pytest.fixture
def nonce_sequencer():
    return NonceSequencer(seed=1_700_000_000)


@pytest.fixture
def credentials():
    return ExchangeCredentials(api_key="test-api-key", secret_key="test-secret")


@pytest.fixture
def eth_btc():
    return Symbol(base=AssetName("ETH"), quote=AssetName("BTC"))


@pytest.fixture
def ltc_btc():
    return Symbol(base=AssetName("LTC"), quote=AssetName("BTC"))


@pytest.fixture
def liqui_config(credentials):
    return ExchangeConfig(
        name=ExchangeName("LIQUI"),
        credentials=credentials,
        enabled_pairs=["ETH_BTC", "LTC_BTC"],
        available_pairs=["ETH_BTC", "LTC_BTC", "ETH_USDT"],
    )


@pytest.fixture
def poloniex_config(credentials):
    return ExchangeConfig(
        name=ExchangeName("POLONIEX"),
        credentials=credentials,
        enabled_pairs=["BTC_ETH", "BTC_LTC"],
    )
