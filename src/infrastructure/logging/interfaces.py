"""
Core Logging Interfaces

Structured logging contract used by every component as self.logger.
Context is passed as keyword arguments and rendered by the logger, never
pre-formatted by the caller.
"""

from abc import ABC, abstractmethod
from enum import IntEnum


class LogLevel(IntEnum):
    """Log levels with numeric values matching the logging module."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class HFTLoggerInterface(ABC):
    """Logger contract: level methods with structured context plus metrics."""

    @abstractmethod
    def debug(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def info(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def warning(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def error(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def critical(self, msg: str, **context) -> None:
        pass

    @abstractmethod
    def metric(self, name: str, value: float, **tags) -> None:
        """Record a numeric measurement (latency, counts)."""
        pass

    @abstractmethod
    def set_context(self, **context) -> None:
        """Attach context to every subsequent message of this logger."""
        pass

    @abstractmethod
    def isEnabledFor(self, level: int) -> bool:
        pass
