from .cache import CacheKey, MarketDataCache, ticker_cache, orderbook_cache

__all__ = ['CacheKey', 'MarketDataCache', 'ticker_cache', 'orderbook_cache']
