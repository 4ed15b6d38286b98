"""
CEX (Centralized Exchange) Module

Unified interface for centralized cryptocurrency exchange adapters.

Key Features:
- Generic adapter contract with declared capabilities per exchange
- Process-wide ticker and orderbook caches with single-flight refresh
- Signed private requests (session nonce + HMAC-SHA512)
- Exchange factory for creating configured adapters

Exchange Support:
- Liqui: full public and private REST API
- Poloniex: market data and balances

Adapters are created through exchanges.exchange_factory.create_exchange;
this package module stays import-light because config depends on
exchanges.structs.
"""

from exchanges.structs.enums import ExchangeEnum

__all__ = ['ExchangeEnum']
