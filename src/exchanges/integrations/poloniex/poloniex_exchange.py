"""
Poloniex Exchange Implementation

Poloniex API Specifications:
- Public: GET https://poloniex.com/public?command=<operation>&...; ticker and
  orderbook calls return every pair keyed like "BTC_ETH" (quote first)
- Private: POST https://poloniex.com/tradingApi, form body
  command=<name>&nonce=<n>&..., headers Key / Sign (hex HMAC-SHA512)
- Errors: {"error": "..."} on both APIs
"""

import time
from typing import Any, Dict, Sequence

from exchanges.integrations.poloniex.structs.exchange import PoloniexOrderBookResponse, PoloniexTickerResponse
from exchanges.interfaces.base_exchange import BaseExchangeAdapter
from exchanges.services.symbol_mapper import PairFormatMapper
from exchanges.structs.common import (
    AccountBalance, ExchangePairFormat, FeeSchedule, OrderBook, PairFormat, Symbol, SymbolInfo, Ticker
)
from exchanges.structs.enums import ExchangeEnum, ExchangeOperation
from exchanges.structs.types import AssetName
from infrastructure.exceptions.exchange import ExchangeAPIError, InvalidPairFormatError, ResponseParsingError

POLONIEX_PUBLIC_URL = "https://poloniex.com/public"
POLONIEX_PRIVATE_URL = "https://poloniex.com/tradingApi"

POLONIEX_TICKER = "returnTicker"
POLONIEX_ORDERBOOK = "returnOrderBook"
POLONIEX_BALANCES = "returnBalances"

_POLONIEX_PAIR_FORMAT = PairFormat(delimiter="_", uppercase=True, quote_first=True, separator=",")


class PoloniexExchange(BaseExchangeAdapter):
    """Poloniex adapter: market data, exchange info and balances."""

    name = ExchangeEnum.POLONIEX.value
    capabilities = frozenset({
        ExchangeOperation.TICKER,
        ExchangeOperation.ORDERBOOK,
        ExchangeOperation.EXCHANGE_INFO,
        ExchangeOperation.ACCOUNT_INFO,
    })

    default_base_url = POLONIEX_PUBLIC_URL
    default_private_url = POLONIEX_PRIVATE_URL
    default_pair_format = ExchangePairFormat(request=_POLONIEX_PAIR_FORMAT, config=_POLONIEX_PAIR_FORMAT)
    default_fees = FeeSchedule(maker_rate=0.0015, taker_rate=0.0025)
    quote_assets = ("BTC", "ETH", "USDT", "XMR")
    method_field = 'command'
    fetches_all_pairs = True

    orderbook_depth: int = 1000

    async def _fetch_all(self, command: str, **params) -> Dict[str, Any]:
        raw = await self._public_get(self.base_url, {'command': command, **params})
        if not isinstance(raw, dict):
            raise ResponseParsingError(f"unexpected {command} response: {str(raw)[:100]}", self.name)
        return raw

    def _select(self, raw: Dict[str, Any], symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        # Response holds every listed pair; only the requested ones are parsed
        by_symbol = {}
        for symbol in symbols:
            pair = self.symbol_mapper.to_pair(symbol)
            if pair in raw:
                by_symbol[symbol] = raw[pair]
        return by_symbol

    # Market data hooks

    async def _fetch_tickers(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        return self._select(await self._fetch_all(POLONIEX_TICKER), symbols)

    def _parse_ticker(self, symbol: Symbol, raw: Any) -> Ticker:
        ticker = self._convert(raw, PoloniexTickerResponse, "ticker")
        return Ticker(
            symbol=symbol,
            bid_price=ticker.highestBid,
            ask_price=ticker.lowestAsk,
            last_price=ticker.last,
            high_price=ticker.high24hr,
            low_price=ticker.low24hr,
            volume=ticker.baseVolume,
            timestamp=time.time(),
        )

    async def _fetch_orderbooks(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        raw = await self._fetch_all(POLONIEX_ORDERBOOK, currencyPair='all', depth=self.orderbook_depth)
        return self._select(raw, symbols)

    def _parse_orderbook(self, symbol: Symbol, raw: Any) -> OrderBook:
        book = self._convert(raw, PoloniexOrderBookResponse, "orderbook")
        return OrderBook.from_levels(
            symbol,
            bids=[(level[0], level[1]) for level in book.bids],
            asks=[(level[0], level[1]) for level in book.asks],
            timestamp=time.time(),
        )

    async def _get_exchange_info(self) -> Dict[Symbol, SymbolInfo]:
        raw = await self._fetch_all(POLONIEX_TICKER)
        mapper = PairFormatMapper(self.pair_format, quote_assets=self.quote_assets, exchange=self.name)

        symbols_info = {}
        for pair, pair_data in raw.items():
            try:
                symbol = mapper.to_symbol(pair)
            except InvalidPairFormatError as e:
                self.logger.debug("Skipping unparsable pair", pair=pair, error=str(e))
                continue
            try:
                ticker = self._convert(pair_data, PoloniexTickerResponse, "ticker")
            except ResponseParsingError as e:
                self.logger.warning("Skipping malformed ticker entry", pair=pair, error=str(e))
                continue
            symbols_info[symbol] = SymbolInfo(
                symbol=symbol,
                hidden=bool(ticker.isFrozen),
                fee=self.fees.taker_rate * 100,
            )
        return symbols_info

    # Private hooks

    async def _get_account_info(self) -> AccountBalance:
        data = await self._signed_post(POLONIEX_BALANCES)
        balances = self._convert(data, Dict[str, float], "balances")
        return AccountBalance(
            exchange=self.name,
            balances={AssetName(currency.upper()): amount for currency, amount in balances.items()},
        )

    def _unwrap_private_response(self, raw: Any) -> Any:
        # No success flag: a payload with "error" is the failure envelope
        if isinstance(raw, dict) and 'error' in raw:
            raise ExchangeAPIError(str(raw['error']), self.name)
        if raw is None:
            raise ResponseParsingError("empty private response", self.name)
        return raw
