"""Tests for snapshot and account structures."""

import msgspec
import pytest

from exchanges.structs.common import AccountBalance, OrderBook, Order, Symbol, Ticker
from exchanges.structs.enums import OrderStatus, Side
from exchanges.structs.types import AssetName, ExchangeName, OrderId


@pytest.fixture
def symbol():
    return Symbol(base=AssetName("ETH"), quote=AssetName("BTC"))


class TestOrderBook:

    def test_from_levels_sorts_and_merges(self, symbol):
        book = OrderBook.from_levels(
            symbol,
            bids=[(0.049, 1.0), (0.051, 2.0), (0.050, 1.5), (0.051, 0.5)],
            asks=[(0.055, 1.0), (0.052, 3.0), (0.053, 0.0), (0.052, 1.0)],
            timestamp=1.0,
        )

        assert [level.price for level in book.bids] == [0.051, 0.050, 0.049]
        assert book.bids[0].size == 2.5
        assert [level.price for level in book.asks] == [0.052, 0.055]
        assert book.asks[0].size == 4.0
        assert book.best_bid.price == 0.051
        assert book.best_ask.price == 0.052

    def test_empty_book(self, symbol):
        book = OrderBook.from_levels(symbol, bids=[], asks=[], timestamp=0.0)
        assert book.best_bid is None
        assert book.best_ask is None

    def test_snapshot_is_frozen(self, symbol):
        ticker = Ticker(symbol=symbol, bid_price=1.0, ask_price=2.0, last_price=1.5)
        with pytest.raises(AttributeError):
            ticker.last_price = 3.0

    def test_symbol_is_hashable_key(self, symbol):
        assert {symbol: 1}[Symbol(base=AssetName("ETH"), quote=AssetName("BTC"))] == 1
        assert str(symbol) == "ETH_BTC"

    def test_orderbook_encodes(self, symbol):
        book = OrderBook.from_levels(symbol, bids=[(1.0, 2.0)], asks=[], timestamp=3.0)
        decoded = msgspec.json.decode(msgspec.json.encode(book))
        assert decoded["bids"] == [{"price": 1.0, "size": 2.0}]


class TestAccountBalance:

    def test_absent_currency_is_zero(self):
        balance = AccountBalance(exchange=ExchangeName("LIQUI"), balances={AssetName("BTC"): 0.5})
        assert balance.available("btc") == 0.5
        assert balance.available("ETH") == 0.0


class TestOrder:

    def test_remaining(self, symbol):
        order = Order(order_id=OrderId("1"), symbol=symbol, side=Side.BUY, amount=2.0, price=0.05,
                      status=OrderStatus.PARTIALLY_FILLED, amount_filled=0.5)
        assert order.remaining == 1.5
