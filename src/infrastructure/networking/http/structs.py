from enum import Enum
from typing import Dict, Optional

import msgspec


class HTTPMethod(Enum):
    """HTTP methods used by the exchange adapters."""
    GET = "GET"
    POST = "POST"


class RestConfig(msgspec.Struct, frozen=True):
    """Configuration of the REST transport."""
    timeout: float = 10.0
    connect_timeout: float = 5.0
    max_concurrent: int = 10
    user_agent: str = "CexExchangeAdapters/1.0"
    headers: Optional[Dict[str, str]] = None
