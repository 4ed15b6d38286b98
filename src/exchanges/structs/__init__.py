from .common import (
    Symbol, PairFormat, ExchangePairFormat, OrderBookEntry, OrderBook, Ticker, Trade, Order,
    AccountBalance, TradeHistoryEntry, TradeHistoryFilter, SymbolInfo, WithdrawalResult,
    FeeBuilder, FeeSchedule, BatchUpdateResult
)
from .enums import ExchangeEnum, AssetType, OrderStatus, Side, FeeType, SortOrder, ExchangeOperation
from .types import ExchangeName, AssetName, OrderId

__all__ = [
    "Symbol",
    "PairFormat",
    "ExchangePairFormat",
    "OrderBookEntry",
    "OrderBook",
    "Ticker",
    "Trade",
    "Order",
    "AccountBalance",
    "TradeHistoryEntry",
    "TradeHistoryFilter",
    "SymbolInfo",
    "WithdrawalResult",
    "FeeBuilder",
    "FeeSchedule",
    "BatchUpdateResult",
    "ExchangeEnum",
    "AssetType",
    "OrderStatus",
    "Side",
    "FeeType",
    "SortOrder",
    "ExchangeOperation",
    "ExchangeName",
    "AssetName",
    "OrderId",
]
