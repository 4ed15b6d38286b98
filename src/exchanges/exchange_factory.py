"""
Exchange Factory

Maps configured exchange names to adapter implementations.

Usage:
    from exchanges.exchange_factory import create_exchange

    liqui = create_exchange('liqui')                      # config from config.yaml
    poloniex = create_exchange(ExchangeEnum.POLONIEX, config, transport=fake)
"""

from typing import Dict, Optional, Type, Union

from config.config_manager import ConfigManager
from config.structs import ExchangeConfig
from exchanges.integrations.liqui import LiquiExchange
from exchanges.integrations.poloniex import PoloniexExchange
from exchanges.interfaces.base_exchange import BaseExchangeAdapter
from exchanges.services.market_data import MarketDataCache
from exchanges.structs.common import OrderBook, Ticker
from exchanges.structs.enums import ExchangeEnum
from infrastructure.logging import HFTLoggerInterface
from infrastructure.networking.http import NonceSequencer, RestTransport

EXCHANGE_ADAPTER_MAP: Dict[ExchangeEnum, Type[BaseExchangeAdapter]] = {
    ExchangeEnum.LIQUI: LiquiExchange,
    ExchangeEnum.POLONIEX: PoloniexExchange,
}


def get_exchange_enum(exchange: Union[str, ExchangeEnum]) -> ExchangeEnum:
    """
    Resolve an exchange name (case-insensitive) to its enum member.

    Raises:
        ValueError: If no adapter exists for the exchange
    """
    if isinstance(exchange, ExchangeEnum):
        return exchange
    try:
        return ExchangeEnum(str(exchange).upper())
    except ValueError:
        supported = ', '.join(member.value for member in EXCHANGE_ADAPTER_MAP)
        raise ValueError(f"No adapter found for exchange '{exchange}' (supported: {supported})") from None


def get_adapter_class(exchange: Union[str, ExchangeEnum]) -> Type[BaseExchangeAdapter]:
    exchange_enum = get_exchange_enum(exchange)
    adapter_class = EXCHANGE_ADAPTER_MAP.get(exchange_enum)
    if adapter_class is None:
        raise ValueError(f"No adapter found for exchange {exchange_enum.value}")
    return adapter_class


def create_exchange(
    exchange: Union[str, ExchangeEnum],
    config: Optional[ExchangeConfig] = None,
    transport: Optional[RestTransport] = None,
    tickers: Optional[MarketDataCache[Ticker]] = None,
    orderbooks: Optional[MarketDataCache[OrderBook]] = None,
    nonce_sequencer: Optional[NonceSequencer] = None,
    logger: Optional[HFTLoggerInterface] = None
) -> BaseExchangeAdapter:
    """
    Create a configured adapter.

    Args:
        exchange: Exchange name or enum
        config: Exchange configuration; loaded from config.yaml when omitted
        transport: Optional transport override (tests inject fakes here)
        tickers: Optional ticker cache (process-wide cache when omitted)
        orderbooks: Optional orderbook cache (process-wide cache when omitted)
        nonce_sequencer: Optional nonce session
        logger: Optional injected logger

    Raises:
        ValueError: If no adapter exists for the exchange
        ConfigurationError: If config is omitted and the exchange is not configured
    """
    adapter_class = get_adapter_class(exchange)
    if config is None:
        config = ConfigManager.load().get_exchange_config(adapter_class.name)

    return adapter_class(
        config,
        transport=transport,
        tickers=tickers,
        orderbooks=orderbooks,
        nonce_sequencer=nonce_sequencer,
        logger=logger,
    )
