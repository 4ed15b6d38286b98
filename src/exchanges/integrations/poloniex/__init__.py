"""
Poloniex Exchange Implementation

Batch market data (every pair per request) and account balances. Trading,
order management and withdrawals are not supported.
"""

from .poloniex_exchange import PoloniexExchange

__all__ = ['PoloniexExchange']
