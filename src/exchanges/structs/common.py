"""
Common data structures shared by exchange adapters, the market data cache
and the signing layer.

All wire-facing structures use msgspec.Struct. Market data snapshots are
frozen: a cache update replaces a snapshot, it never mutates one in place.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from msgspec import Struct

from .enums import FeeType, OrderStatus, Side, SortOrder
from .types import AssetName, ExchangeName, OrderId


class Symbol(Struct, frozen=True):
    """Canonical currency pair: uppercase base and quote assets."""
    base: AssetName
    quote: AssetName

    def __str__(self) -> str:
        return f"{self.base}_{self.quote}"


class PairFormat(Struct, frozen=True):
    """
    Rendering rule for a currency pair on one exchange.

    Attributes:
        delimiter: String placed between the two assets ("" for "BTCUSDT")
        uppercase: Whether the wire string is uppercase
        quote_first: True when the exchange writes the quote asset first
            (Poloniex "BTC_ETH" means ETH priced in BTC)
        separator: String used to join several pairs in one request path
    """
    delimiter: str = "_"
    uppercase: bool = True
    quote_first: bool = False
    separator: str = "-"


class ExchangePairFormat(Struct, frozen=True):
    """Request (wire) format and config/display format of an exchange."""
    request: PairFormat = PairFormat()
    config: PairFormat = PairFormat()


class OrderBookEntry(Struct, frozen=True):
    """Single price level."""
    price: float
    size: float


class OrderBook(Struct, frozen=True):
    """
    Orderbook snapshot.

    Bids are strictly descending by price, asks strictly ascending, with no
    duplicate price levels. Use from_levels() to build one from raw levels.
    """
    symbol: Symbol
    bids: Tuple[OrderBookEntry, ...]
    asks: Tuple[OrderBookEntry, ...]
    timestamp: float

    @classmethod
    def from_levels(
        cls,
        symbol: Symbol,
        bids: Iterable[Tuple[float, float]],
        asks: Iterable[Tuple[float, float]],
        timestamp: float
    ) -> 'OrderBook':
        """Sort and merge raw (price, size) levels into a valid snapshot."""
        return cls(
            symbol=symbol,
            bids=_merge_levels(bids, descending=True),
            asks=_merge_levels(asks, descending=False),
            timestamp=timestamp
        )

    @property
    def best_bid(self) -> Optional[OrderBookEntry]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[OrderBookEntry]:
        return self.asks[0] if self.asks else None


def _merge_levels(levels: Iterable[Tuple[float, float]], descending: bool) -> Tuple[OrderBookEntry, ...]:
    # Same price twice in one payload is summed; empty levels are dropped
    merged: Dict[float, float] = {}
    for price, size in levels:
        price = float(price)
        size = float(size)
        if size <= 0 or price <= 0:
            continue
        merged[price] = merged.get(price, 0.0) + size

    return tuple(
        OrderBookEntry(price=price, size=merged[price])
        for price in sorted(merged, reverse=descending)
    )


class Ticker(Struct, frozen=True):
    """Ticker snapshot for one pair."""
    symbol: Symbol
    bid_price: float
    ask_price: float
    last_price: float
    high_price: float = 0.0
    low_price: float = 0.0
    volume: float = 0.0
    timestamp: float = 0.0


class Trade(Struct, frozen=True):
    """Public trade."""
    symbol: Symbol
    price: float
    amount: float
    side: Side
    trade_id: int = 0
    timestamp: int = 0


class Order(Struct):
    """Order representation."""
    order_id: OrderId
    symbol: Symbol
    side: Side
    amount: float
    price: float
    status: OrderStatus = OrderStatus.OPEN
    amount_filled: float = 0.0
    timestamp: Optional[int] = None

    @property
    def remaining(self) -> float:
        return max(self.amount - self.amount_filled, 0.0)


class AccountBalance(Struct):
    """
    Account funds per currency.

    Currencies absent from balances are implicitly zero.
    """
    exchange: ExchangeName
    balances: Dict[AssetName, float] = {}
    can_trade: bool = True
    can_withdraw: bool = False
    open_orders: int = 0

    def available(self, asset: str) -> float:
        return self.balances.get(AssetName(asset.upper()), 0.0)


class TradeHistoryEntry(Struct, frozen=True):
    """Own fill as reported by the private trade history."""
    trade_id: str
    order_id: OrderId
    symbol: Symbol
    side: Side
    amount: float
    price: float
    is_your_order: bool = False
    timestamp: int = 0


class TradeHistoryFilter(Struct, frozen=True):
    """Optional filters for the private trade history call."""
    from_id: Optional[int] = None
    end_id: Optional[int] = None
    count: Optional[int] = None
    order: Optional[SortOrder] = None
    since: Optional[int] = None
    end: Optional[int] = None
    symbol: Optional[Symbol] = None


class SymbolInfo(Struct, frozen=True):
    """Trading rules for one pair."""
    symbol: Symbol
    decimal_places: int = 8
    min_price: float = 0.0
    max_price: float = 0.0
    min_amount: float = 0.0
    hidden: bool = False
    fee: float = 0.0


class WithdrawalResult(Struct, frozen=True):
    transaction_id: str
    amount_sent: float
    funds: Dict[AssetName, float] = {}


class FeeBuilder(Struct, frozen=True):
    """Inputs of fee estimation."""
    fee_type: FeeType
    currency: str = ""
    purchase_price: float = 0.0
    amount: float = 0.0
    is_maker: bool = False


class FeeSchedule(Struct, frozen=True):
    """Per-exchange fee constants."""
    maker_rate: float = 0.0
    taker_rate: float = 0.0
    withdrawal_fees: Dict[str, float] = {}


@dataclass
class BatchUpdateResult:
    """Outcome of a batch market data refresh, isolated per pair."""
    updated: Dict[Symbol, Struct] = field(default_factory=dict)
    failed: Dict[Symbol, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
