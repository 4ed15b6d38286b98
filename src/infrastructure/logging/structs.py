"""
Logging Configuration Structures

Structured configuration for the logging system using msgspec.Struct.
"""

from typing import Any, Dict, Optional

from msgspec import Struct

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class BackendConfig(Struct, frozen=True):
    """
    Base configuration for all logging backends.

    Attributes:
        enabled: Whether this backend is active
        min_level: Minimum log level to process (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    enabled: bool = True
    min_level: str = "INFO"

    def validate(self) -> None:
        if self.min_level.upper() not in _VALID_LEVELS:
            raise ValueError(f"Invalid log level: {self.min_level}")


class ConsoleBackendConfig(BackendConfig):
    """
    Console backend configuration.

    Attributes:
        color: Enable colored level names
        include_context: Render structured context after the message
    """
    color: bool = True
    include_context: bool = True


class FileBackendConfig(BackendConfig):
    """
    File backend configuration.

    Attributes:
        path: Log file path
        max_size_mb: Maximum file size in MB before rotation
        backup_count: Number of backup files to keep
        buffer_size: Lines buffered before a write is started
        flush_interval: Seconds after which pending lines are written regardless of buffer_size
    """
    path: str = "logs/exchanges.log"
    max_size_mb: int = 100
    backup_count: int = 5
    buffer_size: int = 1024
    flush_interval: float = 1.0

    def validate(self) -> None:
        super().validate()
        if self.max_size_mb <= 0:
            raise ValueError("max_size_mb must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count cannot be negative")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        if self.flush_interval < 0:
            raise ValueError("flush_interval cannot be negative")


class LoggingConfig(Struct, frozen=True):
    """Complete logging configuration."""
    environment: str = "dev"
    console: Optional[ConsoleBackendConfig] = None
    file: Optional[FileBackendConfig] = None

    def validate(self) -> None:
        for backend in (self.console, self.file):
            if backend is not None:
                backend.validate()

    @classmethod
    def default_development(cls) -> 'LoggingConfig':
        return cls(
            environment="dev",
            console=ConsoleBackendConfig(enabled=True, min_level="DEBUG", color=True),
        )

    @classmethod
    def default_production(cls) -> 'LoggingConfig':
        return cls(
            environment="prod",
            console=ConsoleBackendConfig(enabled=True, min_level="WARNING", color=False),
            file=FileBackendConfig(enabled=True, min_level="INFO"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], environment: str = "dev") -> 'LoggingConfig':
        """Build from the 'logging' section of config.yaml."""
        backends = data.get('backends', {})
        console = None
        file = None

        console_data = backends.get('console')
        if console_data and console_data.get('enabled', False):
            console = ConsoleBackendConfig(
                enabled=True,
                min_level=str(console_data.get('min_level', 'DEBUG')).upper(),
                color=bool(console_data.get('color', True)),
                include_context=bool(console_data.get('include_context', True)),
            )

        file_data = backends.get('file')
        if file_data and file_data.get('enabled', False):
            file = FileBackendConfig(
                enabled=True,
                min_level=str(file_data.get('min_level', 'INFO')).upper(),
                path=str(file_data.get('path', 'logs/exchanges.log')),
                max_size_mb=int(file_data.get('max_size_mb', 100)),
                backup_count=int(file_data.get('backup_count', 5)),
                buffer_size=int(file_data.get('buffer_size', 1024)),
                flush_interval=float(file_data.get('flush_interval', 1.0)),
            )

        config = cls(environment=environment, console=console, file=file)
        config.validate()
        return config
