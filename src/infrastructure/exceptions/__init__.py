from .exchange import (
    ExchangeError,
    TransportError,
    ExchangeConnectionError,
    ExchangeTimeoutError,
    ExchangeAPIError,
    MissingCredentialsError,
    InvalidPairFormatError,
    UnsupportedOperationError,
    ResponseParsingError,
)
from .system import ConfigurationError

__all__ = [
    'ExchangeError',
    'TransportError',
    'ExchangeConnectionError',
    'ExchangeTimeoutError',
    'ExchangeAPIError',
    'MissingCredentialsError',
    'InvalidPairFormatError',
    'UnsupportedOperationError',
    'ResponseParsingError',
    'ConfigurationError',
]
