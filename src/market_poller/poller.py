import asyncio
from typing import Dict, Iterable, List, Optional

from exchanges.interfaces.base_exchange import BaseExchangeAdapter
from exchanges.structs.common import BatchUpdateResult
from exchanges.structs.enums import ExchangeOperation
from infrastructure.exceptions.exchange import ExchangeError
from infrastructure.logging import HFTLoggerInterface, get_logger


class MarketDataPoller:
    """
    Scheduler that keeps the market data caches warm.

    Each adapter is polled in its own task every `config.rest_polling_delay`
    seconds. A failed request is logged and retried on the next cycle only;
    exchange errors never stop the loop.
    """

    def __init__(
        self,
        adapters: Iterable[BaseExchangeAdapter],
        poll_tickers: bool = True,
        poll_orderbooks: bool = True,
        logger: Optional[HFTLoggerInterface] = None
    ):
        self.adapters: List[BaseExchangeAdapter] = list(adapters)
        self.poll_tickers = poll_tickers
        self.poll_orderbooks = poll_orderbooks
        self.logger = logger or get_logger('market_poller')

        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._cycle_count: Dict[str, int] = {adapter.name: 0 for adapter in self.adapters}
        self._error_count: Dict[str, int] = {adapter.name: 0 for adapter in self.adapters}

    async def poll_once(self, adapter: BaseExchangeAdapter) -> Dict[str, BatchUpdateResult]:
        """Run one ticker and orderbook batch update for adapter."""
        results: Dict[str, BatchUpdateResult] = {}

        if self.poll_tickers and adapter.supports(ExchangeOperation.TICKER):
            result = await self._update(adapter, 'tickers', adapter.update_tickers)
            if result is not None:
                results['tickers'] = result

        if self.poll_orderbooks and adapter.supports(ExchangeOperation.ORDERBOOK):
            result = await self._update(adapter, 'orderbooks', adapter.update_orderbooks)
            if result is not None:
                results['orderbooks'] = result

        self._cycle_count[adapter.name] = self._cycle_count.get(adapter.name, 0) + 1
        return results

    async def poll_all_once(self) -> Dict[str, Dict[str, BatchUpdateResult]]:
        results = await asyncio.gather(*(self.poll_once(adapter) for adapter in self.adapters))
        return {adapter.name: result for adapter, result in zip(self.adapters, results)}

    async def _update(self, adapter: BaseExchangeAdapter, kind: str, update_fn) -> Optional[BatchUpdateResult]:
        try:
            result = await update_fn()
        except ExchangeError as e:
            self._error_count[adapter.name] = self._error_count.get(adapter.name, 0) + 1
            self.logger.error(f"Failed to poll {kind}", exchange=adapter.name, error=str(e))
            return None

        if result.failed:
            self._error_count[adapter.name] = self._error_count.get(adapter.name, 0) + len(result.failed)
        self.logger.debug(f"Polled {kind}", exchange=adapter.name,
                          updated=len(result.updated), failed=len(result.failed))
        return result

    async def start(self) -> None:
        """Poll every adapter until stop() is called."""
        if self._running:
            self.logger.warning("Market data poller is already running")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self.logger.info("Starting market data poller", exchanges=len(self.adapters))

        try:
            await asyncio.gather(*(self._run_adapter(adapter) for adapter in self.adapters))
        finally:
            self._running = False

    async def _run_adapter(self, adapter: BaseExchangeAdapter) -> None:
        delay = adapter.config.rest_polling_delay
        self.logger.info("Polling exchange", exchange=adapter.name, delay=delay,
                         pairs=len(adapter.enabled_symbols))

        while not self._stop_event.is_set():
            await self.poll_once(adapter)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def stop(self) -> None:
        self.logger.info("Stopping market data poller")
        if self._stop_event is not None:
            self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    def get_statistics(self) -> Dict[str, Dict[str, int]]:
        return {
            name: {'cycles': self._cycle_count.get(name, 0), 'errors': self._error_count.get(name, 0)}
            for name in self._cycle_count
        }
