"""
Liqui Exchange Implementation

Full public and private REST API.

Liqui API Specifications:
- Public: GET https://api.Liqui.io/api/3/<operation>/<pairs>, pairs like
  "eth_btc-ltc_btc" (lowercase, '_' delimiter, '-' separator)
- Private: POST https://api.Liqui.io/tapi, form body method=<name>&nonce=<n>&...,
  headers Key / Sign (hex HMAC-SHA512 of the body)
- Private envelope: {"success": 1, "return": {...}} or {"success": 0, "error": "..."}
- Public errors: {"success": 0, "error": "..."}
"""

import time
from typing import Any, Dict, List, Optional, Sequence

from exchanges.integrations.liqui.structs.exchange import (
    LiquiAccountInfoResponse, LiquiCancelOrderResponse, LiquiDepthResponse, LiquiInfoResponse,
    LiquiOrderResponse, LiquiTickerResponse, LiquiTradeHistoryResponse, LiquiTradeResponse,
    LiquiTradeResultResponse, LiquiWithdrawResponse
)
from exchanges.integrations.liqui.utils import from_side, rest_to_order, to_side
from exchanges.interfaces.base_exchange import BaseExchangeAdapter
from exchanges.services.symbol_mapper import PairFormatMapper
from exchanges.structs.common import (
    AccountBalance, ExchangePairFormat, FeeSchedule, Order, OrderBook, PairFormat, Symbol, SymbolInfo,
    Ticker, Trade, TradeHistoryEntry, TradeHistoryFilter, WithdrawalResult
)
from exchanges.structs.enums import ExchangeEnum, ExchangeOperation, OrderStatus, Side
from exchanges.structs.types import AssetName, OrderId
from infrastructure.exceptions.exchange import InvalidPairFormatError, ResponseParsingError

LIQUI_PUBLIC_URL = "https://api.Liqui.io/api"
LIQUI_PRIVATE_URL = "https://api.Liqui.io/tapi"
LIQUI_PUBLIC_VERSION = "3"

LIQUI_INFO = "info"
LIQUI_TICKER = "ticker"
LIQUI_DEPTH = "depth"
LIQUI_TRADES = "trades"
LIQUI_ACCOUNT_INFO = "getInfo"
LIQUI_TRADE = "Trade"
LIQUI_ACTIVE_ORDERS = "ActiveOrders"
LIQUI_ORDER_INFO = "OrderInfo"
LIQUI_CANCEL_ORDER = "CancelOrder"
LIQUI_TRADE_HISTORY = "TradeHistory"
LIQUI_WITHDRAW_COIN = "WithdrawCoin"

# Flat withdrawal fees per currency; config fees override
LIQUI_WITHDRAWAL_FEES = {
    "BTC": 0.001,
    "ETH": 0.005,
    "LTC": 0.01,
    "USDT": 5.0,
}


class LiquiExchange(BaseExchangeAdapter):
    """Liqui adapter: every generic operation is supported."""

    name = ExchangeEnum.LIQUI.value
    capabilities = frozenset(ExchangeOperation)

    default_base_url = LIQUI_PUBLIC_URL
    default_private_url = LIQUI_PRIVATE_URL
    default_api_version = LIQUI_PUBLIC_VERSION
    default_pair_format = ExchangePairFormat(
        request=PairFormat(delimiter="_", uppercase=False, separator="-"),
        config=PairFormat(delimiter="_", uppercase=True, separator="-"),
    )
    default_fees = FeeSchedule(maker_rate=0.001, taker_rate=0.0025, withdrawal_fees=LIQUI_WITHDRAWAL_FEES)
    quote_assets = ("BTC", "ETH", "USDT")
    method_field = 'method'

    # Depth levels per pair; None leaves the exchange default (150)
    orderbook_limit: Optional[int] = None

    _response_mapper: Optional[PairFormatMapper] = None

    @property
    def response_mapper(self) -> PairFormatMapper:
        """Mapper for pairs echoed by the exchange, which may lie outside the configured pairs."""
        if self._response_mapper is None:
            self._response_mapper = PairFormatMapper(self.pair_format, quote_assets=self.quote_assets,
                                                     exchange=self.name)
        return self._response_mapper

    def _public_url(self, operation: str, pairs: str = "") -> str:
        url = f"{self.base_url}/{self.api_version}/{operation}"
        return f"{url}/{pairs}" if pairs else f"{url}/"

    async def _fetch_by_pair(self, operation: str, symbols: Sequence[Symbol],
                             params: Optional[Dict[str, Any]] = None) -> Dict[Symbol, Any]:
        raw = await self._public_get(self._public_url(operation, self.symbol_mapper.join_pairs(symbols)), params)
        if not isinstance(raw, dict):
            raise ResponseParsingError(f"unexpected {operation} response: {str(raw)[:100]}", self.name)

        by_symbol = {}
        for symbol in symbols:
            pair = self.symbol_mapper.to_pair(symbol)
            if pair in raw:
                by_symbol[symbol] = raw[pair]
        return by_symbol

    # Market data hooks

    async def _fetch_tickers(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        return await self._fetch_by_pair(LIQUI_TICKER, symbols)

    def _parse_ticker(self, symbol: Symbol, raw: Any) -> Ticker:
        ticker = self._convert(raw, LiquiTickerResponse, "ticker")
        # Liqui "buy" is the price you buy at (best ask), "sell" the best bid
        return Ticker(
            symbol=symbol,
            bid_price=ticker.sell,
            ask_price=ticker.buy,
            last_price=ticker.last,
            high_price=ticker.high,
            low_price=ticker.low,
            volume=ticker.vol,
            timestamp=float(ticker.updated) if ticker.updated else time.time(),
        )

    async def _fetch_orderbooks(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        params = {'limit': self.orderbook_limit} if self.orderbook_limit else None
        return await self._fetch_by_pair(LIQUI_DEPTH, symbols, params)

    def _parse_orderbook(self, symbol: Symbol, raw: Any) -> OrderBook:
        depth = self._convert(raw, LiquiDepthResponse, "depth")
        return OrderBook.from_levels(
            symbol,
            bids=[(level[0], level[1]) for level in depth.bids],
            asks=[(level[0], level[1]) for level in depth.asks],
            timestamp=time.time(),
        )

    async def _get_trades(self, symbol: Symbol, limit: Optional[int]) -> List[Trade]:
        params = {'limit': limit} if limit else None
        raw = await self._fetch_by_pair(LIQUI_TRADES, [symbol], params)
        if symbol not in raw:
            raise ResponseParsingError(f"{symbol} missing from trades response", self.name)

        trades = self._convert(raw[symbol], List[LiquiTradeResponse], "trades")
        return [
            Trade(
                symbol=symbol,
                price=trade.price,
                amount=trade.amount,
                side=to_side(trade.type),
                trade_id=trade.tid,
                timestamp=trade.timestamp,
            )
            for trade in trades
        ]

    async def _get_exchange_info(self) -> Dict[Symbol, SymbolInfo]:
        raw = await self._public_get(self._public_url(LIQUI_INFO))
        info = self._convert(raw, LiquiInfoResponse, "info")

        symbols_info = {}
        for pair, pair_info in info.pairs.items():
            try:
                symbol = self.response_mapper.to_symbol(pair)
            except InvalidPairFormatError as e:
                self.logger.debug("Skipping unparsable pair", pair=pair, error=str(e))
                continue
            symbols_info[symbol] = SymbolInfo(
                symbol=symbol,
                decimal_places=pair_info.decimal_places,
                min_price=pair_info.min_price,
                max_price=pair_info.max_price,
                min_amount=pair_info.min_amount,
                hidden=bool(pair_info.hidden),
                fee=pair_info.fee,
            )
        return symbols_info

    # Private hooks

    async def _get_account_info(self) -> AccountBalance:
        data = await self._signed_post(LIQUI_ACCOUNT_INFO)
        account = self._convert(data, LiquiAccountInfoResponse, "account info")
        return AccountBalance(
            exchange=self.name,
            balances={AssetName(currency.upper()): amount for currency, amount in account.funds.items()},
            can_trade=bool(account.rights.trade),
            can_withdraw=bool(account.rights.withdraw),
            open_orders=account.open_orders,
        )

    async def _submit_order(self, symbol: Symbol, side: Side, amount: float, price: float) -> Order:
        params = {
            'pair': self.symbol_mapper.to_pair(symbol),
            'type': from_side(side),
            'amount': amount,
            'rate': price,
        }
        data = await self._signed_post(LIQUI_TRADE, params)
        result = self._convert(data, LiquiTradeResultResponse, "trade")

        # order_id 0: matched completely on submission
        if result.order_id == 0:
            status, filled = OrderStatus.FILLED, amount
        elif 0 < result.remains < amount:
            status, filled = OrderStatus.PARTIALLY_FILLED, amount - result.remains
        else:
            status, filled = OrderStatus.OPEN, 0.0

        order = Order(
            order_id=OrderId(str(result.order_id)),
            symbol=symbol,
            side=side,
            amount=amount,
            price=price,
            status=status,
            amount_filled=filled,
            timestamp=int(time.time()),
        )
        self.logger.info("Order submitted", exchange=self.name, order_id=order.order_id,
                         symbol=str(symbol), side=side.name, status=status.name)
        return order

    async def _get_open_orders(self, symbol: Optional[Symbol]) -> List[Order]:
        params = {'pair': self.symbol_mapper.to_pair(symbol)} if symbol else None
        data = await self._signed_post(LIQUI_ACTIVE_ORDERS, params) or {}
        return [self._to_order(order_id, raw) for order_id, raw in data.items()]

    async def _get_order_status(self, order_id: OrderId) -> Order:
        data = await self._signed_post(LIQUI_ORDER_INFO, {'order_id': order_id}) or {}
        raw = data.get(str(order_id))
        if raw is None:
            raise ResponseParsingError(f"order {order_id} missing from OrderInfo response", self.name)
        return self._to_order(str(order_id), raw)

    async def _cancel_order(self, order_id: OrderId) -> bool:
        data = await self._signed_post(LIQUI_CANCEL_ORDER, {'order_id': order_id})
        result = self._convert(data, LiquiCancelOrderResponse, "cancel order")
        self.logger.info("Order canceled", exchange=self.name, order_id=result.order_id or order_id)
        return True

    async def _get_trade_history(self, filters: TradeHistoryFilter) -> List[TradeHistoryEntry]:
        params: Dict[str, Any] = {}
        if filters.from_id is not None:
            params['from_id'] = filters.from_id
        if filters.end_id is not None:
            params['end_id'] = filters.end_id
        if filters.count is not None:
            params['count'] = filters.count
        if filters.order is not None:
            params['order'] = filters.order.value
        if filters.since is not None:
            params['since'] = filters.since
        if filters.end is not None:
            params['end'] = filters.end
        if filters.symbol is not None:
            params['pair'] = self.symbol_mapper.to_pair(filters.symbol)

        data = await self._signed_post(LIQUI_TRADE_HISTORY, params) or {}
        entries = []
        for trade_id, raw in data.items():
            trade = self._convert(raw, LiquiTradeHistoryResponse, "trade history")
            entries.append(TradeHistoryEntry(
                trade_id=str(trade_id),
                order_id=OrderId(str(trade.order_id)),
                symbol=self.response_mapper.to_symbol(trade.pair),
                side=to_side(trade.type),
                amount=trade.amount,
                price=trade.rate,
                is_your_order=bool(trade.is_your_order),
                timestamp=trade.timestamp,
            ))
        return entries

    async def _withdraw(self, currency: str, amount: float, address: str) -> WithdrawalResult:
        params = {'coinName': currency, 'amount': amount, 'address': address}
        data = await self._signed_post(LIQUI_WITHDRAW_COIN, params)
        result = self._convert(data, LiquiWithdrawResponse, "withdrawal")
        self.logger.info("Withdrawal submitted", exchange=self.name, currency=currency,
                         amount=result.amountSent, transaction_id=result.tId)
        return WithdrawalResult(
            transaction_id=str(result.tId),
            amount_sent=result.amountSent,
            funds={AssetName(name.upper()): value for name, value in result.funds.items()},
        )

    def _to_order(self, order_id: str, raw: Any) -> Order:
        liqui_order = self._convert(raw, LiquiOrderResponse, "order")
        return rest_to_order(order_id, self.response_mapper.to_symbol(liqui_order.pair), liqui_order)
