from typing import List

import msgspec


class PoloniexTickerResponse(msgspec.Struct):
    """returnTicker entry. Numbers arrive as strings; decode with strict=False."""
    last: float = 0.0
    lowestAsk: float = 0.0
    highestBid: float = 0.0
    percentChange: float = 0.0
    baseVolume: float = 0.0
    quoteVolume: float = 0.0
    isFrozen: int = 0
    high24hr: float = 0.0
    low24hr: float = 0.0


class PoloniexOrderBookResponse(msgspec.Struct):
    """returnOrderBook entry: [price (string), amount] levels."""
    asks: List[List[float]] = []
    bids: List[List[float]] = []
    isFrozen: int = 0
    seq: int = 0
