from .base_exchange import BaseExchangeAdapter

__all__ = ['BaseExchangeAdapter']
