from enum import Enum, IntEnum

from .types import ExchangeName


class ExchangeEnum(Enum):
    """
    Enumeration of supported centralized exchanges.

    Values match the exchange names used as config keys and cache keys.
    """
    LIQUI = ExchangeName("LIQUI")
    POLONIEX = ExchangeName("POLONIEX")


class AssetType(Enum):
    """Market category a pair belongs to; part of the market data cache key."""
    SPOT = "spot"


class OrderStatus(IntEnum):
    """Order execution status."""
    UNKNOWN = -1
    OPEN = 1
    FILLED = 2
    PARTIALLY_FILLED = 3
    CANCELED = 4


class Side(IntEnum):
    """Order side."""
    BUY = 1
    SELL = 2


class FeeType(IntEnum):
    """Fee categories understood by fee estimation."""
    CRYPTO_TRADE = 1
    CRYPTO_WITHDRAWAL = 2


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"


class ExchangeOperation(Enum):
    """
    Generic operations an exchange adapter may support.

    Adapters declare the subset they implement; calling anything outside that
    set raises UnsupportedOperationError before any request is built.
    """
    TICKER = "ticker"
    ORDERBOOK = "orderbook"
    TRADES = "trades"
    EXCHANGE_INFO = "exchange_info"
    ACCOUNT_INFO = "account_info"
    SUBMIT_ORDER = "submit_order"
    OPEN_ORDERS = "open_orders"
    ORDER_STATUS = "order_status"
    CANCEL_ORDER = "cancel_order"
    TRADE_HISTORY = "trade_history"
    WITHDRAW = "withdraw"
