"""
Logging Factory

Creates and configures logger instances from LoggingConfig. Components call
get_logger()/get_exchange_logger() and keep the result as self.logger.
"""

import logging
import os
from typing import Dict, List, Optional

from .backends import FileBackend
from .hft_logger import HFTLogger
from .structs import LoggingConfig

_ROOT_LOGGER_NAME = "cex"

_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}
_RESET = '\033[0m'


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = _COLORS.get(record.levelno)
        return f"{color}{text}{_RESET}" if color else text


class LoggerFactory:
    """Logging factory - trust config, fail fast."""

    _cached_loggers: Dict[str, HFTLogger] = {}
    _default_config: Optional[LoggingConfig] = None
    _handlers: List[logging.Handler] = []

    @classmethod
    def create_logger(cls, name: str) -> HFTLogger:
        if name in cls._cached_loggers:
            return cls._cached_loggers[name]

        config = cls._get_default_config()
        include_context = config.console.include_context if config.console else True
        logger = HFTLogger(f"{_ROOT_LOGGER_NAME}.{name}", include_context=include_context)
        cls._cached_loggers[name] = logger
        return logger

    @classmethod
    def configure(cls, config: LoggingConfig) -> None:
        """Install handlers for config on the package root logger."""
        config.validate()
        root = logging.getLogger(_ROOT_LOGGER_NAME)
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []

        fmt = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
        levels = []

        if config.console and config.console.enabled:
            handler = logging.StreamHandler()
            formatter_cls = _ColorFormatter if config.console.color else logging.Formatter
            handler.setFormatter(formatter_cls(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
            handler.setLevel(config.console.min_level.upper())
            cls._handlers.append(handler)
            levels.append(handler.level)

        if config.file and config.file.enabled:
            handler = FileBackend.from_config(config.file)
            handler.setFormatter(logging.Formatter(fmt))
            cls._handlers.append(handler)
            levels.append(handler.level)

        for handler in cls._handlers:
            root.addHandler(handler)
        root.setLevel(min(levels) if levels else logging.WARNING)

        # Dev/test keep propagation so pytest's caplog sees records
        root.propagate = config.environment in ('dev', 'development', 'local', 'test')

        cls._default_config = config
        for logger in cls._cached_loggers.values():
            logger.include_context = config.console.include_context if config.console else True

    @classmethod
    async def flush(cls) -> None:
        """Wait until buffered file output is written."""
        for handler in cls._handlers:
            if isinstance(handler, FileBackend):
                await handler.drain()

    @classmethod
    def _get_default_config(cls) -> LoggingConfig:
        if cls._default_config is None:
            environment = os.getenv('ENVIRONMENT', 'dev')
            if environment == 'prod':
                cls.configure(LoggingConfig.default_production())
            else:
                cls.configure(LoggingConfig.default_development())
        return cls._default_config


def get_logger(name: str) -> HFTLogger:
    """Get logger instance."""
    return LoggerFactory.create_logger(name)


def get_exchange_logger(exchange: str, component: Optional[str] = None) -> HFTLogger:
    """Get exchange logger with optional component."""
    exchange = exchange.lower()
    name = f"{exchange}.{component}" if component else exchange
    return get_logger(name)


def configure_logging(config: LoggingConfig) -> None:
    LoggerFactory.configure(config)


async def flush_logging() -> None:
    await LoggerFactory.flush()
