"""Tests for the market data poller and its command-line entry point."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import msgspec.structs
import pytest

from exchanges.integrations.liqui import LiquiExchange
from exchanges.integrations.poloniex import PoloniexExchange
from exchanges.structs.common import BatchUpdateResult
from exchanges.structs.enums import ExchangeOperation
from infrastructure.exceptions import ExchangeConnectionError
from market_poller import MarketDataPoller
from market_poller.run import MarketPollerCLI

TICKER = {"high": 0.052, "low": 0.048, "avg": 0.05, "vol": 10.0, "vol_cur": 200.0,
          "last": 0.05, "buy": 0.051, "sell": 0.049, "updated": 1520000000}
DEPTH = {"asks": [[0.051, 1.0]], "bids": [[0.049, 2.0]]}


@pytest.fixture
def liqui(liqui_config, fake_transport, ticker_cache, orderbook_cache):
    config = msgspec.structs.replace(liqui_config, rest_polling_delay=0.01)
    return LiquiExchange(config, transport=fake_transport, tickers=ticker_cache, orderbooks=orderbook_cache)


@pytest.mark.asyncio
async def test_poll_once_updates_caches(liqui, fake_transport, ticker_cache, orderbook_cache, eth_btc, ltc_btc):
    fake_transport.on_get("/ticker/eth_btc-ltc_btc", {"eth_btc": TICKER, "ltc_btc": TICKER})
    fake_transport.on_get("/depth/eth_btc-ltc_btc", {"eth_btc": DEPTH, "ltc_btc": DEPTH})
    poller = MarketDataPoller([liqui])

    results = await poller.poll_once(liqui)

    assert set(results) == {'tickers', 'orderbooks'}
    assert results['tickers'].ok
    assert ticker_cache.get("LIQUI", eth_btc) is not None
    assert orderbook_cache.get("LIQUI", ltc_btc).best_bid.price == 0.049
    assert poller.get_statistics() == {'LIQUI': {'cycles': 1, 'errors': 0}}


@pytest.mark.asyncio
async def test_poll_once_respects_flags(liqui, fake_transport):
    fake_transport.on_get("/ticker/", {"eth_btc": TICKER, "ltc_btc": TICKER})
    poller = MarketDataPoller([liqui], poll_orderbooks=False)

    results = await poller.poll_once(liqui)

    assert set(results) == {'tickers'}
    assert len(fake_transport.get_calls) == 1


@pytest.mark.asyncio
async def test_request_failure_is_counted_not_raised(liqui, fake_transport, ticker_cache):
    fake_transport.on_get("/ticker/", ExchangeConnectionError("connection reset", "LIQUI"))
    fake_transport.on_get("/depth/", {"eth_btc": DEPTH})
    poller = MarketDataPoller([liqui])

    results = await poller.poll_once(liqui)

    assert 'tickers' not in results
    # ltc_btc missing from the depth payload counts as one failed pair
    assert set(results['orderbooks'].failed) == set(liqui.enabled_symbols[1:])
    assert poller.get_statistics()['LIQUI']['errors'] == 2
    assert len(ticker_cache) == 0


@pytest.mark.asyncio
async def test_poll_all_once_skips_unsupported_kinds(liqui, poloniex_config, fake_transport,
                                                     ticker_cache, orderbook_cache):
    poloniex = PoloniexExchange(poloniex_config, transport=fake_transport,
                                tickers=ticker_cache, orderbooks=orderbook_cache)
    fake_transport.on_get("/ticker/", {"eth_btc": TICKER, "ltc_btc": TICKER})
    fake_transport.on_get("command=returnTicker", {})
    poller = MarketDataPoller([liqui, poloniex], poll_orderbooks=False)

    results = await poller.poll_all_once()

    assert results['LIQUI']['tickers'].ok
    assert not results['POLONIEX']['tickers'].ok
    assert len(ticker_cache) == 2


@pytest.mark.asyncio
async def test_start_polls_until_stopped(liqui, fake_transport):
    fake_transport.on_get("/ticker/", {"eth_btc": TICKER, "ltc_btc": TICKER})
    fake_transport.on_get("/depth/", {"eth_btc": DEPTH, "ltc_btc": DEPTH})
    poller = MarketDataPoller([liqui])

    task = asyncio.create_task(poller.start())
    for _ in range(100):
        await asyncio.sleep(0.01)
        if poller.get_statistics()['LIQUI']['cycles'] >= 2:
            break

    assert poller.is_running
    await poller.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert not poller.is_running
    assert poller.get_statistics()['LIQUI']['cycles'] >= 2


@pytest.mark.asyncio
async def test_poll_once_only_calls_supported_updates():
    adapter = MagicMock()
    adapter.name = "MOCK"
    adapter.supports.side_effect = lambda operation: operation == ExchangeOperation.TICKER
    adapter.update_tickers = AsyncMock(return_value=BatchUpdateResult())
    adapter.update_orderbooks = AsyncMock()
    poller = MarketDataPoller([adapter])

    results = await poller.poll_once(adapter)

    assert set(results) == {'tickers'}
    adapter.update_tickers.assert_awaited_once()
    adapter.update_orderbooks.assert_not_awaited()


class TestCLI:

    def test_parse_args(self):
        args = MarketPollerCLI().parse_args(["--exchanges", "liqui,poloniex", "--once", "--log-level", "DEBUG"])

        assert args.exchanges == "liqui,poloniex"
        assert args.once
        assert not args.status
        assert args.log_level == "DEBUG"
        assert args.config is None

    @pytest.mark.asyncio
    async def test_missing_config_exit_code(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert await MarketPollerCLI().main(["--config", str(tmp_path / "missing.yaml")]) == 2

    @pytest.mark.asyncio
    async def test_status(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "environment: test\n"
            "exchanges:\n"
            "  liqui:\n"
            "    enabled_pairs: [ETH_BTC, LTC_BTC]\n"
        )

        assert await MarketPollerCLI().main(["--config", str(config_file), "--status"]) == 0

        output = capsys.readouterr().out
        assert "liqui:" in output
        assert "ETH_BTC, LTC_BTC" in output
