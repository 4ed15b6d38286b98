"""
Liqui Direct Utility Functions

Plain transformations between Liqui payloads and unified structs.
"""

from typing import Optional

from exchanges.integrations.liqui.structs.exchange import LiquiOrderResponse
from exchanges.structs.common import Order, Symbol
from exchanges.structs.enums import OrderStatus, Side
from exchanges.structs.types import OrderId

_LIQUI_SIDE_MAP = {
    'buy': Side.BUY,
    'sell': Side.SELL,
    'bid': Side.BUY,
    'ask': Side.SELL,
}

_SIDE_TO_LIQUI = {
    Side.BUY: 'buy',
    Side.SELL: 'sell',
}

# 0 active, 1 executed, 2 canceled, 3 canceled after partial execution
_LIQUI_ORDER_STATUS_MAP = {
    0: OrderStatus.OPEN,
    1: OrderStatus.FILLED,
    2: OrderStatus.CANCELED,
    3: OrderStatus.CANCELED,
}


def to_side(liqui_type: str) -> Side:
    try:
        return _LIQUI_SIDE_MAP[liqui_type.lower()]
    except KeyError:
        raise ValueError(f"unknown Liqui order type '{liqui_type}'") from None


def from_side(side: Side) -> str:
    return _SIDE_TO_LIQUI[side]


def to_order_status(status: int, amount: float, start_amount: Optional[float]) -> OrderStatus:
    unified = _LIQUI_ORDER_STATUS_MAP.get(status, OrderStatus.UNKNOWN)
    if unified == OrderStatus.OPEN and start_amount is not None and amount < start_amount:
        return OrderStatus.PARTIALLY_FILLED
    return unified


def rest_to_order(order_id: str, symbol: Symbol, liqui_order: LiquiOrderResponse) -> Order:
    """Convert an ActiveOrders/OrderInfo entry. Liqui reports the remaining amount."""
    start_amount = liqui_order.start_amount
    total = start_amount if start_amount is not None else liqui_order.amount
    return Order(
        order_id=OrderId(str(order_id)),
        symbol=symbol,
        side=to_side(liqui_order.type),
        amount=total,
        price=liqui_order.rate,
        status=to_order_status(liqui_order.status, liqui_order.amount, start_amount),
        amount_filled=max(total - liqui_order.amount, 0.0),
        timestamp=liqui_order.timestamp_created or None,
    )
