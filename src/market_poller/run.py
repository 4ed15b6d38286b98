#!/usr/bin/env python3
"""
Market Poller Entry Point

Command-line interface for polling ticker and orderbook data of the
configured exchanges into the market data caches.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from config.config_manager import ConfigManager
from exchanges.exchange_factory import create_exchange
from exchanges.interfaces.base_exchange import BaseExchangeAdapter
from infrastructure.exceptions.exchange import ExchangeError
from infrastructure.exceptions.system import ConfigurationError
from infrastructure.logging import configure_logging, flush_logging, get_logger
from market_poller.poller import MarketDataPoller


class MarketPollerCLI:
    """Command-line interface for the market data poller."""

    def __init__(self):
        self.poller: Optional[MarketDataPoller] = None
        self.adapters: List[BaseExchangeAdapter] = []
        self.logger = get_logger('market_poller.cli')
        self._shutdown_event: Optional[asyncio.Event] = None

    def setup_logging(self, config: ConfigManager, log_level: Optional[str] = None) -> None:
        configure_logging(config.get_logging_config())
        if log_level:
            logging.getLogger('cex').setLevel(getattr(logging, log_level.upper()))

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            if self._shutdown_event is not None:
                self._shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def create_adapters(self, config: ConfigManager, exchanges: Optional[List[str]]) -> List[BaseExchangeAdapter]:
        names = exchanges or config.get_poller_config().exchanges
        adapters = []
        for name in names:
            exchange_config = config.get_exchange_config(name)
            if not exchange_config.enabled:
                self.logger.warning("Skipping disabled exchange", exchange=name)
                continue
            adapters.append(create_exchange(name, exchange_config))
        return adapters

    async def run_once(self) -> None:
        results = await self.poller.poll_all_once()
        for exchange, kinds in results.items():
            for kind, result in kinds.items():
                print(f"{exchange} {kind}: {len(result.updated)} updated, {len(result.failed)} failed")
                for symbol, error in result.failed.items():
                    print(f"  {symbol}: {error}")

        for adapter in self.adapters:
            for symbol in adapter.enabled_symbols:
                ticker = adapter.tickers.get(adapter.name, symbol)
                if ticker is not None:
                    print(f"{adapter.name} {symbol}: bid={ticker.bid_price} ask={ticker.ask_price} "
                          f"last={ticker.last_price}")

    async def run_forever(self) -> None:
        self._shutdown_event = asyncio.Event()
        self.setup_signal_handlers()

        poll_task = asyncio.create_task(self.poller.start())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        await asyncio.wait({poll_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        await self.poller.stop()
        shutdown_task.cancel()
        await poll_task

    def show_status(self, config: ConfigManager) -> None:
        print("Market Poller Configuration:")
        print(f"  Environment: {config.environment}")
        poller_config = config.get_poller_config()
        print(f"  Poll tickers: {poller_config.poll_tickers}")
        print(f"  Poll orderbooks: {poller_config.poll_orderbooks}")
        for name, exchange_config in config.get_exchange_configs().items():
            print(f"\n  {name}:")
            print(f"    Enabled: {exchange_config.enabled}")
            print(f"    Polling delay: {exchange_config.rest_polling_delay}s")
            print(f"    Credentials: {exchange_config.credentials.get_preview()}")
            print(f"    Pairs: {', '.join(exchange_config.enabled_pairs) or '-'}")

    def parse_args(self, argv: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse command line arguments."""
        parser = argparse.ArgumentParser(
            description="Poll exchange tickers and orderbooks into the market data cache",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Poll every enabled exchange until interrupted
  python -m market_poller.run

  # One cycle for Liqui only
  python -m market_poller.run --exchanges liqui --once

  # Show configuration and exit
  python -m market_poller.run --config config.yaml --status
            """
        )

        parser.add_argument(
            "--config",
            type=str,
            default=None,
            help="Path to config.yaml (default: search working directory and project root)"
        )

        parser.add_argument(
            "--exchanges",
            type=str,
            help="Comma-separated list of exchanges to poll (e.g., liqui,poloniex)"
        )

        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single polling cycle, print the results and exit"
        )

        parser.add_argument(
            "--status",
            action="store_true",
            help="Show configuration status and exit"
        )

        parser.add_argument(
            "--log-level",
            type=str,
            default=None,
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Override the configured logging level"
        )

        return parser.parse_args(argv)

    async def main(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point. Returns the process exit code."""
        try:
            return await self._run(argv)
        finally:
            await flush_logging()

    async def _run(self, argv: Optional[List[str]]) -> int:
        args = self.parse_args(argv)

        try:
            config = ConfigManager.load(args.config)
        except ConfigurationError as e:
            print(f"Error loading configuration: {e}", file=sys.stderr)
            return 2

        self.setup_logging(config, args.log_level)

        if args.status:
            self.show_status(config)
            return 0

        exchanges = [name.strip().lower() for name in args.exchanges.split(",")] if args.exchanges else None
        try:
            self.adapters = self.create_adapters(config, exchanges)
        except (ConfigurationError, ValueError) as e:
            self.logger.error("Failed to create exchange adapters", error=str(e))
            return 2

        if not self.adapters:
            self.logger.error("No enabled exchanges to poll")
            return 1

        poller_config = config.get_poller_config()
        self.poller = MarketDataPoller(
            self.adapters,
            poll_tickers=poller_config.poll_tickers,
            poll_orderbooks=poller_config.poll_orderbooks,
        )

        try:
            if args.once:
                await self.run_once()
            else:
                await self.run_forever()
        except ExchangeError as e:
            self.logger.error("Fatal exchange error", error=str(e))
            return 1
        finally:
            for adapter in self.adapters:
                await adapter.close()

        return 0


def main():
    """Entry point for command line execution."""
    cli = MarketPollerCLI()
    sys.exit(asyncio.run(cli.main()))


if __name__ == "__main__":
    main()
