"""
Liqui Exchange Implementation

Public market data (ticker, depth, trades, info) and the signed trading API
(getInfo, Trade, ActiveOrders, OrderInfo, CancelOrder, TradeHistory,
WithdrawCoin).
"""

from .liqui_exchange import LiquiExchange

__all__ = ['LiquiExchange']
