"""
Logging System

Usage:
    from infrastructure.logging import get_logger

    logger = get_logger('my.component')
    logger.info("Component initialized")

    logger = get_exchange_logger('liqui', 'rest.private')
    logger.debug("Signed request", method="getInfo", nonce=1700000000)

    logger.metric("latency", 1.23, operation="get_ticker")
"""

from .interfaces import LogLevel, HFTLoggerInterface
from .hft_logger import HFTLogger, LoggingTimer
from .backends import FileBackend
from .factory import LoggerFactory, get_logger, get_exchange_logger, configure_logging, flush_logging
from .structs import LoggingConfig, ConsoleBackendConfig, FileBackendConfig, BackendConfig

__all__ = [
    'LogLevel',
    'HFTLoggerInterface',
    'HFTLogger',
    'LoggingTimer',
    'LoggerFactory',
    'get_logger',
    'get_exchange_logger',
    'configure_logging',
    'flush_logging',
    'FileBackend',
    'LoggingConfig',
    'ConsoleBackendConfig',
    'FileBackendConfig',
    'BackendConfig',
]
