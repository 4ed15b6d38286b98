"""
Market Data Cache

Process-wide store of the latest market data snapshot per
(exchange, pair, asset type).

- get() never blocks and never fetches
- put() overwrites unconditionally; put_many() installs a whole batch in one
  synchronous step, so no other task observes a partially applied batch
- get_or_refresh() serves the cached snapshot or runs the refresh function
  once per key no matter how many tasks miss concurrently

There is no TTL. Staleness is handled by whoever calls put() (the poller or
an explicit update_* call on an adapter).

The default instances are shared by every adapter in the process, including
adapters driven from other threads with their own event loops. A refresh runs
on the loop of the task that started it; tasks on other loops join it through
a thread-safe future instead of starting a second fetch.
"""

import asyncio
import concurrent.futures
import threading
from functools import partial
from typing import Awaitable, Callable, Dict, Generic, List, Mapping, NamedTuple, Optional, TypeVar

from exchanges.structs.common import OrderBook, Symbol, Ticker
from exchanges.structs.enums import AssetType
from infrastructure.logging import HFTLoggerInterface, get_logger

T = TypeVar('T')


class CacheKey(NamedTuple):
    exchange: str
    symbol: Symbol
    asset_type: AssetType = AssetType.SPOT


class _Flight(NamedTuple):
    """One running refresh: the task on its owning loop and a future other loops can wait on."""
    loop: asyncio.AbstractEventLoop
    task: 'asyncio.Future'
    shared: concurrent.futures.Future


class MarketDataCache(Generic[T]):
    """Latest snapshot per key with single-flight refresh on miss."""

    def __init__(self, name: str, logger: Optional[HFTLoggerInterface] = None):
        self.name = name
        self.logger = logger or get_logger(f"market_data.{name}_cache")

        self._entries: Dict[CacheKey, T] = {}
        self._inflight: Dict[CacheKey, _Flight] = {}
        self._inflight_lock = threading.Lock()

    @staticmethod
    def _key(exchange: str, symbol: Symbol, asset_type: AssetType) -> CacheKey:
        return CacheKey(exchange.upper(), symbol, asset_type)

    def get(self, exchange: str, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> Optional[T]:
        return self._entries.get(self._key(exchange, symbol, asset_type))

    def put(self, exchange: str, symbol: Symbol, asset_type: AssetType, snapshot: T) -> None:
        self._entries[self._key(exchange, symbol, asset_type)] = snapshot

    def put_many(self, exchange: str, asset_type: AssetType, snapshots: Mapping[Symbol, T]) -> None:
        """Install all snapshots at once."""
        # Keys are built before the first write so a bad key leaves the cache untouched
        staged = {self._key(exchange, symbol, asset_type): snapshot for symbol, snapshot in snapshots.items()}
        self._entries.update(staged)

    async def get_or_refresh(
        self,
        exchange: str,
        symbol: Symbol,
        asset_type: AssetType,
        refresh_fn: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Return the cached snapshot, fetching it with refresh_fn on a miss.

        Concurrent misses on the same key share one refresh: every waiter
        gets the same snapshot or the same exception, whichever event loop
        it runs on. Cancelling a waiter does not cancel the shared refresh.
        """
        key = self._key(exchange, symbol, asset_type)
        loop = asyncio.get_running_loop()
        while True:
            cached = self._entries.get(key)
            if cached is not None:
                return cached

            with self._inflight_lock:
                flight = self._inflight.get(key)
                if flight is None:
                    self.logger.debug("Cache miss, refreshing",
                                      cache=self.name, exchange=key.exchange, symbol=str(symbol))
                    flight = _Flight(loop, loop.create_task(self._refresh(key, refresh_fn)),
                                     concurrent.futures.Future())
                    self._inflight[key] = flight
                    flight.task.add_done_callback(partial(self._refresh_done, key, flight))
                else:
                    self.logger.debug("Joining in-flight refresh",
                                      cache=self.name, exchange=key.exchange, symbol=str(symbol))

            if flight.loop is loop:
                return await asyncio.shield(flight.task)

            joined = asyncio.wrap_future(flight.shared)
            try:
                return await asyncio.shield(joined)
            except asyncio.CancelledError:
                # The owning loop went away mid-refresh; start over unless this task was cancelled
                if not joined.cancelled():
                    raise

    async def _refresh(self, key: CacheKey, refresh_fn: Callable[[], Awaitable[T]]) -> T:
        snapshot = await refresh_fn()
        if snapshot is not None:
            self._entries[key] = snapshot
        return snapshot

    def _refresh_done(self, key: CacheKey, flight: _Flight, task: 'asyncio.Future[T]') -> None:
        with self._inflight_lock:
            if self._inflight.get(key) is flight:
                del self._inflight[key]

        if flight.shared.cancelled():
            return
        if task.cancelled():
            flight.shared.cancel()
            return
        # Retrieving the exception here also marks it handled on the task
        error = task.exception()
        if error is not None:
            self.logger.warning("Refresh failed",
                                cache=self.name, exchange=key.exchange, symbol=str(key.symbol),
                                error=str(error))
            flight.shared.set_exception(error)
        else:
            flight.shared.set_result(task.result())

    def invalidate(self, exchange: str, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> bool:
        return self._entries.pop(self._key(exchange, symbol, asset_type), None) is not None

    def clear(self, exchange: Optional[str] = None) -> None:
        if exchange is None:
            self._entries.clear()
            return
        exchange = exchange.upper()
        for key in [key for key in self._entries if key.exchange == exchange]:
            del self._entries[key]

    def keys(self) -> List[CacheKey]:
        return list(self._entries)

    def is_refreshing(self, exchange: str, symbol: Symbol, asset_type: AssetType = AssetType.SPOT) -> bool:
        return self._key(exchange, symbol, asset_type) in self._inflight

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide instances shared by all adapters unless one is injected
ticker_cache: MarketDataCache[Ticker] = MarketDataCache("ticker")
orderbook_cache: MarketDataCache[OrderBook] = MarketDataCache("orderbook")
