"""
HFT Logger Implementation

Structured logger on top of the logging module. Components log a short
message plus keyword context; the logger renders the context and routes the
record through the handlers installed by LoggerFactory.
"""

import logging
import time
from typing import Any, Dict

from .interfaces import HFTLoggerInterface, LogLevel


class HFTLogger(HFTLoggerInterface):
    """
    Structured logger bound to one component name.

    Persistent context set via set_context() is merged into every message;
    per-call context wins on key collisions.
    """

    def __init__(self, name: str, include_context: bool = True):
        self.name = name
        self.include_context = include_context
        self.context: Dict[str, Any] = {}
        self._py_logger = logging.getLogger(name)

    @property
    def propagate(self) -> bool:
        return self._py_logger.propagate

    @propagate.setter
    def propagate(self, value: bool) -> None:
        self._py_logger.propagate = value

    def _render(self, msg: str, context: Dict[str, Any]) -> str:
        if not self.include_context:
            return msg
        merged = {**self.context, **context} if self.context else context
        if not merged:
            return msg
        rendered = " ".join(f"{key}={value}" for key, value in merged.items())
        return f"{msg} | {rendered}"

    def _log(self, level: LogLevel, msg: str, **context) -> None:
        if not self._py_logger.isEnabledFor(level):
            return
        exc_info = context.pop('exc_info', None)
        self._py_logger.log(int(level), self._render(msg, context), exc_info=exc_info)

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, **context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, **context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, **context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, **context)

    def critical(self, msg: str, **context) -> None:
        self._log(LogLevel.CRITICAL, msg, **context)

    def metric(self, name: str, value: float, **tags) -> None:
        self._log(LogLevel.DEBUG, f"metric {name}={value}", **tags)

    def set_context(self, **context) -> None:
        self.context.update(context)

    def isEnabledFor(self, level: int) -> bool:
        return self._py_logger.isEnabledFor(level)


class LoggingTimer:
    """Context manager that reports the elapsed time of a block as a latency metric."""

    def __init__(self, logger: HFTLoggerInterface, operation: str, **tags):
        self.logger = logger
        self.operation = operation
        self.tags = tags
        self._start = 0.0
        self._end = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._end = time.perf_counter()
        tags = dict(self.tags)
        if exc_type is not None:
            tags['error'] = exc_type.__name__
        self.logger.metric(f"{self.operation}_latency_ms", round(self.elapsed_ms, 3), **tags)
        return False

    @property
    def elapsed_ms(self) -> float:
        end = self._end or time.perf_counter()
        return (end - self._start) * 1000
