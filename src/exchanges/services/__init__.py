from .symbol_mapper import SymbolMapperInterface, PairFormatMapper
from .market_data import CacheKey, MarketDataCache, ticker_cache, orderbook_cache

__all__ = [
    'SymbolMapperInterface',
    'PairFormatMapper',
    'CacheKey',
    'MarketDataCache',
    'ticker_cache',
    'orderbook_cache',
]
