"""
Market Data Poller

Periodically refreshes the ticker and orderbook caches of every enabled
exchange through the adapters' batch update calls.
"""

from .poller import MarketDataPoller

__all__ = ['MarketDataPoller']
