from typing import Optional


class ExchangeError(Exception):
    """Base exception for all exchange adapter errors."""
    def __init__(self, message: str, exchange: Optional[str] = None) -> None:
        self.message = message
        self.exchange = exchange
        super().__init__(f"{exchange}: {message}" if exchange else message)


# Transport errors are produced by the HTTP transport and never retried here
class TransportError(ExchangeError):
    """Network, timeout or HTTP-level failure."""
    def __init__(self, message: str, exchange: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message, exchange)
        self.status_code = status_code


class ExchangeConnectionError(TransportError):
    """Connection could not be established or was dropped."""
    pass


class ExchangeTimeoutError(TransportError):
    """Request exceeded the configured timeout."""
    pass


class ExchangeAPIError(ExchangeError):
    """The exchange envelope reported a logical failure; message is the exchange's own."""
    pass


class MissingCredentialsError(ExchangeError):
    """Private call attempted without API key/secret configured."""
    def __init__(self, exchange: Optional[str] = None) -> None:
        super().__init__("authenticated request attempted without API credentials set", exchange)


class InvalidPairFormatError(ExchangeError, ValueError):
    """Wire string cannot be resolved into two known currency codes."""
    def __init__(self, pair: str, reason: str, exchange: Optional[str] = None) -> None:
        self.pair = pair
        super().__init__(f"invalid pair '{pair}': {reason}", exchange)


class UnsupportedOperationError(ExchangeError):
    """The venue does not implement this generic operation."""
    def __init__(self, operation, exchange: Optional[str] = None) -> None:
        self.operation = operation
        name = getattr(operation, 'value', operation)
        super().__init__(f"operation '{name}' is not supported", exchange)


class ResponseParsingError(ExchangeError):
    """Payload does not match the layout the adapter expects."""
    pass
