from typing import Dict, List, Optional

import msgspec


class LiquiTickerResponse(msgspec.Struct):
    """Liqui ticker entry (one per pair in the response object)."""
    high: float = 0.0
    low: float = 0.0
    avg: float = 0.0
    vol: float = 0.0
    vol_cur: float = 0.0
    last: float = 0.0
    buy: float = 0.0
    sell: float = 0.0
    updated: int = 0


class LiquiDepthResponse(msgspec.Struct):
    """Liqui depth entry: [price, amount] levels."""
    asks: List[List[float]] = []
    bids: List[List[float]] = []


class LiquiTradeResponse(msgspec.Struct):
    """Liqui public trade."""
    type: str  # "ask" or "bid"
    price: float
    amount: float
    tid: int
    timestamp: int


class LiquiPairInfoResponse(msgspec.Struct):
    decimal_places: int = 8
    min_price: float = 0.0
    max_price: float = 0.0
    min_amount: float = 0.0
    hidden: int = 0
    fee: float = 0.0


class LiquiInfoResponse(msgspec.Struct):
    """Liqui public info: trading rules for every pair."""
    server_time: int = 0
    pairs: Dict[str, LiquiPairInfoResponse] = {}


class LiquiRightsResponse(msgspec.Struct):
    info: int = 0
    trade: int = 0
    withdraw: int = 0


class LiquiAccountInfoResponse(msgspec.Struct):
    """getInfo result."""
    funds: Dict[str, float] = {}
    rights: LiquiRightsResponse = msgspec.field(default_factory=LiquiRightsResponse)
    transaction_count: int = 0
    open_orders: int = 0
    server_time: int = 0


class LiquiTradeResultResponse(msgspec.Struct):
    """Trade result. order_id is 0 when the order was filled immediately."""
    received: float = 0.0
    remains: float = 0.0
    order_id: int = 0
    funds: Dict[str, float] = {}


class LiquiOrderResponse(msgspec.Struct):
    """ActiveOrders / OrderInfo entry; start_amount is only set by OrderInfo."""
    pair: str
    type: str
    amount: float
    rate: float
    timestamp_created: int = 0
    status: int = 0
    start_amount: Optional[float] = None


class LiquiCancelOrderResponse(msgspec.Struct):
    order_id: int = 0
    funds: Dict[str, float] = {}


class LiquiTradeHistoryResponse(msgspec.Struct):
    pair: str
    type: str
    amount: float
    rate: float
    order_id: int = 0
    is_your_order: int = 0
    timestamp: int = 0


class LiquiWithdrawResponse(msgspec.Struct):
    tId: int = 0
    amountSent: float = 0.0
    funds: Dict[str, float] = {}
