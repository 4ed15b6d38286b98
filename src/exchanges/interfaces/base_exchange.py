"""
Base exchange adapter.

Every venue implements the same generic contract: market data (ticker,
orderbook, trades, exchange info) served through the shared market data
caches, and private trading calls signed with the session nonce.

## Capabilities

A venue declares the operations it implements in `capabilities`. Every
generic method checks its operation first and raises
UnsupportedOperationError before doing any work, so an unsupported call is
never mistaken for an exchange-side failure.

## Market data flow

    get_ticker(symbol)
        -> ticker_cache.get_or_refresh(...)     # hit: no I/O
        -> update_ticker(symbol)                # miss: one fetch per key
        -> update_tickers([...])                # batch fetch + per-pair parse
        -> ticker_cache.put_many(...)           # install valid pairs at once

Private calls never read or write the caches.

## Implementation pattern

Template methods: subclasses provide the fetch/parse hooks
(_fetch_tickers, _parse_ticker, _fetch_orderbooks, _parse_orderbook, ...)
and the private operation hooks (_get_account_info, _submit_order, ...).
Hooks of undeclared operations are never reached.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import msgspec

from config.structs import ExchangeConfig
from exchanges.services.market_data import MarketDataCache, orderbook_cache, ticker_cache
from exchanges.services.symbol_mapper import PairFormatMapper
from exchanges.structs.common import (
    AccountBalance, BatchUpdateResult, ExchangePairFormat, FeeBuilder, FeeSchedule, Order, OrderBook,
    Symbol, SymbolInfo, Ticker, Trade, TradeHistoryEntry, TradeHistoryFilter, WithdrawalResult
)
from exchanges.structs.enums import AssetType, ExchangeOperation, FeeType, Side
from exchanges.structs.types import ExchangeName, OrderId
from infrastructure.exceptions.exchange import (
    ExchangeAPIError, ExchangeError, InvalidPairFormatError, ResponseParsingError, UnsupportedOperationError
)
from infrastructure.logging import HFTLoggerInterface, LoggingTimer, get_exchange_logger
from infrastructure.networking.http import (
    AiohttpRestTransport, NonceSequencer, RequestSigner, RestConfig, RestTransport
)

S = TypeVar('S')

# Per-pair failures inside a batch; anything else aborts the whole batch
_PAIR_ERRORS = (
    ResponseParsingError, InvalidPairFormatError, msgspec.ValidationError,
    ValueError, TypeError, KeyError, IndexError
)


class BaseExchangeAdapter(ABC):
    """
    Generic exchange contract with cache-backed market data.

    Args:
        config: Exchange configuration; empty URLs, pair format and fees fall
            back to the venue defaults
        transport: REST transport (aiohttp transport built from config.network
            when omitted)
        tickers: Ticker cache (process-wide instance when omitted)
        orderbooks: Orderbook cache (process-wide instance when omitted)
        nonce_sequencer: Session nonce source (seeded from config.nonce_seed
            or the wall clock when omitted)
        logger: Optional injected logger
    """

    name: ExchangeName
    capabilities: FrozenSet[ExchangeOperation] = frozenset()

    default_base_url: str = ""
    default_private_url: str = ""
    default_api_version: str = ""
    default_pair_format: ExchangePairFormat = ExchangePairFormat()
    default_fees: FeeSchedule = FeeSchedule()
    quote_assets: Tuple[str, ...] = ()
    method_field: str = 'method'

    # True when the public endpoints return every pair at once
    fetches_all_pairs: bool = False

    def __init__(
        self,
        config: ExchangeConfig,
        transport: Optional[RestTransport] = None,
        tickers: Optional[MarketDataCache[Ticker]] = None,
        orderbooks: Optional[MarketDataCache[OrderBook]] = None,
        nonce_sequencer: Optional[NonceSequencer] = None,
        logger: Optional[HFTLoggerInterface] = None
    ):
        self.config = config
        self.logger = logger or get_exchange_logger(self.name.lower(), 'adapter')

        self.base_url = (config.base_url or self.default_base_url).rstrip('/')
        self.private_url = config.private_url or self.default_private_url
        self.api_version = config.api_version or self.default_api_version
        self.pair_format = config.pair_format or self.default_pair_format
        self.fees = config.fees or self.default_fees

        self.symbol_mapper = PairFormatMapper.from_config_pairs(
            self.pair_format,
            [*config.available_pairs, *config.enabled_pairs],
            quote_assets=self.quote_assets,
            exchange=self.name
        )
        self.enabled_symbols: List[Symbol] = [
            self.symbol_mapper.from_config_pair(pair) for pair in config.enabled_pairs
        ]

        if transport is None:
            transport = AiohttpRestTransport(
                RestConfig(
                    timeout=config.network.request_timeout,
                    connect_timeout=config.network.connect_timeout,
                    max_concurrent=config.network.max_concurrent,
                ),
                exchange=self.name,
                logger=get_exchange_logger(self.name.lower(), 'transport')
            )
        self.transport = transport

        # Explicit None checks: an empty cache has len() == 0
        self.tickers = tickers if tickers is not None else ticker_cache
        self.orderbooks = orderbooks if orderbooks is not None else orderbook_cache

        self.nonce = nonce_sequencer or NonceSequencer(seed=config.nonce_seed)
        self.signer = RequestSigner(self.nonce, method_field=self.method_field, exchange=self.name)

        self.logger.debug("Exchange adapter initialized",
                          exchange=self.name,
                          enabled_pairs=len(self.enabled_symbols),
                          private_api=config.has_credentials())

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    # Capabilities

    def supports(self, operation: ExchangeOperation) -> bool:
        return operation in self.capabilities

    def _ensure_supported(self, operation: ExchangeOperation) -> None:
        if operation not in self.capabilities:
            raise UnsupportedOperationError(operation, self.name)

    def is_enabled(self, symbol: Symbol) -> bool:
        return symbol in self.enabled_symbols

    # Market data: tickers

    async def get_ticker(self, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> Ticker:
        """Cached ticker, fetched once on a miss."""
        self._ensure_supported(ExchangeOperation.TICKER)
        return await self.tickers.get_or_refresh(
            self.name, symbol, asset_type, lambda: self.update_ticker(symbol, asset_type)
        )

    async def update_ticker(self, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> Ticker:
        """Fetch the ticker for symbol, install it in the cache and return it."""
        self._ensure_supported(ExchangeOperation.TICKER)
        result = await self.update_tickers(self._batch_for(symbol), asset_type)
        return self._single_result(symbol, result)

    async def update_tickers(
        self,
        symbols: Optional[Sequence[Symbol]] = None,
        asset_type: AssetType = AssetType.SPOT
    ) -> BatchUpdateResult:
        """
        Refresh several tickers with one request.

        Each pair is parsed independently: valid pairs are installed together,
        invalid ones are reported in the result's `failed`. Transport and API
        errors of the request itself propagate.
        """
        self._ensure_supported(ExchangeOperation.TICKER)
        symbols = list(symbols) if symbols is not None else list(self.enabled_symbols)
        if not symbols:
            return BatchUpdateResult()

        with LoggingTimer(self.logger, "update_tickers", exchange=self.name, pairs=len(symbols)):
            raw = await self._fetch_tickers(symbols)
        result = self._parse_batch(symbols, raw, self._parse_ticker)
        self.tickers.put_many(self.name, asset_type, result.updated)
        self._log_batch("tickers", result)
        return result

    # Market data: orderbooks

    async def get_orderbook(self, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> OrderBook:
        """Cached orderbook, fetched once on a miss."""
        self._ensure_supported(ExchangeOperation.ORDERBOOK)
        return await self.orderbooks.get_or_refresh(
            self.name, symbol, asset_type, lambda: self.update_orderbook(symbol, asset_type)
        )

    async def update_orderbook(self, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> OrderBook:
        self._ensure_supported(ExchangeOperation.ORDERBOOK)
        result = await self.update_orderbooks(self._batch_for(symbol), asset_type)
        return self._single_result(symbol, result)

    async def update_orderbooks(
        self,
        symbols: Optional[Sequence[Symbol]] = None,
        asset_type: AssetType = AssetType.SPOT
    ) -> BatchUpdateResult:
        """Refresh several orderbooks with one request; same isolation rules as update_tickers."""
        self._ensure_supported(ExchangeOperation.ORDERBOOK)
        symbols = list(symbols) if symbols is not None else list(self.enabled_symbols)
        if not symbols:
            return BatchUpdateResult()

        with LoggingTimer(self.logger, "update_orderbooks", exchange=self.name, pairs=len(symbols)):
            raw = await self._fetch_orderbooks(symbols)
        result = self._parse_batch(symbols, raw, self._parse_orderbook)
        self.orderbooks.put_many(self.name, asset_type, result.updated)
        self._log_batch("orderbooks", result)
        return result

    # Market data: uncached

    async def get_trades(self, symbol: Symbol, limit: Optional[int] = None) -> List[Trade]:
        self._ensure_supported(ExchangeOperation.TRADES)
        return await self._get_trades(symbol, limit)

    async def get_exchange_info(self) -> Dict[Symbol, SymbolInfo]:
        self._ensure_supported(ExchangeOperation.EXCHANGE_INFO)
        return await self._get_exchange_info()

    async def get_available_pairs(self, non_hidden: bool = True) -> List[Symbol]:
        """Pairs listed by the exchange, optionally without hidden ones."""
        info = await self.get_exchange_info()
        return [symbol for symbol, symbol_info in info.items() if not (non_hidden and symbol_info.hidden)]

    # Private API

    async def get_account_info(self) -> AccountBalance:
        self._ensure_supported(ExchangeOperation.ACCOUNT_INFO)
        return await self._get_account_info()

    async def submit_order(self, symbol: Symbol, side: Side, amount: float, price: float) -> Order:
        self._ensure_supported(ExchangeOperation.SUBMIT_ORDER)
        if amount <= 0 or price <= 0:
            raise ValueError(f"amount and price must be positive (amount={amount}, price={price})")
        return await self._submit_order(symbol, side, amount, price)

    async def get_open_orders(self, symbol: Optional[Symbol] = None) -> List[Order]:
        self._ensure_supported(ExchangeOperation.OPEN_ORDERS)
        return await self._get_open_orders(symbol)

    async def get_order_status(self, order_id: OrderId) -> Order:
        self._ensure_supported(ExchangeOperation.ORDER_STATUS)
        return await self._get_order_status(order_id)

    async def cancel_order(self, order_id: OrderId) -> bool:
        self._ensure_supported(ExchangeOperation.CANCEL_ORDER)
        return await self._cancel_order(order_id)

    async def get_trade_history(self, filters: Optional[TradeHistoryFilter] = None) -> List[TradeHistoryEntry]:
        self._ensure_supported(ExchangeOperation.TRADE_HISTORY)
        return await self._get_trade_history(filters or TradeHistoryFilter())

    async def withdraw(self, currency: str, amount: float, address: str) -> WithdrawalResult:
        self._ensure_supported(ExchangeOperation.WITHDRAW)
        if amount <= 0:
            raise ValueError(f"withdrawal amount must be positive, got {amount}")
        if not address:
            raise ValueError("withdrawal address is required")
        return await self._withdraw(currency.upper(), amount, address)

    # Fees

    def estimate_fee(self, fee_builder: FeeBuilder) -> float:
        """
        Estimate the fee of a trade or a withdrawal. Pure, never negative.

        Trade fee is rate * purchase_price * amount with the maker or taker
        rate; withdrawal fee is the flat per-currency amount (0 when unknown).
        """
        fee = 0.0
        if fee_builder.fee_type == FeeType.CRYPTO_TRADE:
            rate = self.fees.maker_rate if fee_builder.is_maker else self.fees.taker_rate
            fee = rate * fee_builder.purchase_price * fee_builder.amount
        elif fee_builder.fee_type == FeeType.CRYPTO_WITHDRAWAL:
            fee = self.fees.withdrawal_fees.get(fee_builder.currency.upper(), 0.0)
        return max(fee, 0.0)

    # Request helpers

    async def _public_get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        raw = await self.transport.get(url, params)
        self._check_public_response(raw)
        return raw

    async def _signed_post(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Sign and send a private request, returning the unwrapped payload."""
        # Raises MissingCredentialsError before any I/O
        signed = self.signer.sign(method, params, self.config.credentials)
        self.logger.debug("Signed request", method=method, nonce=signed.nonce)

        raw = await self.transport.post(self.private_url, signed.body, signed.headers)
        try:
            return self._unwrap_private_response(raw)
        except ExchangeAPIError as e:
            self.logger.warning("Private request rejected", method=method, error=e.message)
            raise

    def _check_public_response(self, raw: Any) -> None:
        """Raise ExchangeAPIError when a public payload is an error envelope."""
        if isinstance(raw, dict) and 'error' in raw:
            raise ExchangeAPIError(str(raw['error']), self.name)

    def _unwrap_private_response(self, raw: Any) -> Any:
        """Default envelope: {"success": 1, "return": ...} or {"success": 0, "error": "..."}."""
        if not isinstance(raw, dict) or 'success' not in raw:
            raise ResponseParsingError(f"unexpected private response: {str(raw)[:100]}", self.name)
        if not raw['success']:
            raise ExchangeAPIError(str(raw.get('error', 'unknown error')), self.name)
        return raw.get('return')

    def _convert(self, raw: Any, struct_type: Type[S], what: str) -> S:
        try:
            return msgspec.convert(raw, struct_type, strict=False)
        except msgspec.ValidationError as e:
            raise ResponseParsingError(f"invalid {what} payload: {e}", self.name) from e

    # Batch internals

    def _batch_for(self, symbol: Symbol) -> List[Symbol]:
        # Venues that always return every pair refresh all enabled pairs for free
        if not self.fetches_all_pairs:
            return [symbol]
        return [symbol] + [enabled for enabled in self.enabled_symbols if enabled != symbol]

    def _parse_batch(self, symbols: Iterable[Symbol], raw: Mapping[Symbol, Any], parse) -> BatchUpdateResult:
        result = BatchUpdateResult()
        for symbol in symbols:
            if symbol not in raw:
                result.failed[symbol] = ResponseParsingError(f"{symbol} missing from response", self.name)
                continue
            try:
                result.updated[symbol] = parse(symbol, raw[symbol])
            except _PAIR_ERRORS as e:
                result.failed[symbol] = e if isinstance(e, ExchangeError) else ResponseParsingError(
                    f"invalid data for {symbol}: {e}", self.name
                )
        return result

    def _single_result(self, symbol: Symbol, result: BatchUpdateResult):
        if symbol in result.failed:
            raise result.failed[symbol]
        return result.updated[symbol]

    def _log_batch(self, kind: str, result: BatchUpdateResult) -> None:
        self.logger.debug(f"Updated {kind}", exchange=self.name,
                          updated=len(result.updated), failed=len(result.failed))
        for symbol, error in result.failed.items():
            self.logger.warning(f"Failed to update {kind[:-1]}", exchange=self.name,
                                symbol=str(symbol), error=str(error))

    # Market data hooks

    @abstractmethod
    async def _fetch_tickers(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        """Fetch raw ticker payloads keyed by canonical symbol."""
        pass

    @abstractmethod
    def _parse_ticker(self, symbol: Symbol, raw: Any) -> Ticker:
        pass

    @abstractmethod
    async def _fetch_orderbooks(self, symbols: Sequence[Symbol]) -> Dict[Symbol, Any]:
        pass

    @abstractmethod
    def _parse_orderbook(self, symbol: Symbol, raw: Any) -> OrderBook:
        pass

    # Optional hooks, reached only for declared capabilities

    async def _get_trades(self, symbol: Symbol, limit: Optional[int]) -> List[Trade]:
        raise UnsupportedOperationError(ExchangeOperation.TRADES, self.name)

    async def _get_exchange_info(self) -> Dict[Symbol, SymbolInfo]:
        raise UnsupportedOperationError(ExchangeOperation.EXCHANGE_INFO, self.name)

    async def _get_account_info(self) -> AccountBalance:
        raise UnsupportedOperationError(ExchangeOperation.ACCOUNT_INFO, self.name)

    async def _submit_order(self, symbol: Symbol, side: Side, amount: float, price: float) -> Order:
        raise UnsupportedOperationError(ExchangeOperation.SUBMIT_ORDER, self.name)

    async def _get_open_orders(self, symbol: Optional[Symbol]) -> List[Order]:
        raise UnsupportedOperationError(ExchangeOperation.OPEN_ORDERS, self.name)

    async def _get_order_status(self, order_id: OrderId) -> Order:
        raise UnsupportedOperationError(ExchangeOperation.ORDER_STATUS, self.name)

    async def _cancel_order(self, order_id: OrderId) -> bool:
        raise UnsupportedOperationError(ExchangeOperation.CANCEL_ORDER, self.name)

    async def _get_trade_history(self, filters: TradeHistoryFilter) -> List[TradeHistoryEntry]:
        raise UnsupportedOperationError(ExchangeOperation.TRADE_HISTORY, self.name)

    async def _withdraw(self, currency: str, amount: float, address: str) -> WithdrawalResult:
        raise UnsupportedOperationError(ExchangeOperation.WITHDRAW, self.name)
