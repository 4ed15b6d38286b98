"""Tests for the buffered aiofiles log file backend and its factory wiring."""

import asyncio
import logging

import pytest

from infrastructure.logging import (
    ConsoleBackendConfig, FileBackend, FileBackendConfig, LoggerFactory, LoggingConfig,
    configure_logging, flush_logging, get_logger
)


def make_record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.makeLogRecord({
        'name': 'cex.test', 'msg': message, 'levelno': level, 'levelname': logging.getLevelName(level),
    })


def read_lines(path) -> list:
    return path.read_text(encoding='utf-8').splitlines()


class TestFileBackend:

    @pytest.mark.asyncio
    async def test_lines_are_buffered_until_buffer_size(self, tmp_path):
        log_file = tmp_path / "logs" / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=3, flush_interval=3600)

        backend.handle(make_record("first"))
        backend.handle(make_record("second"))
        await asyncio.sleep(0)

        assert backend.pending == 2
        assert not log_file.exists()

        backend.handle(make_record("third"))
        await backend.drain()

        assert backend.pending == 0
        assert read_lines(log_file) == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_drain_writes_partial_buffer(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=100, flush_interval=3600)

        backend.handle(make_record("only"))
        await backend.drain()

        assert read_lines(log_file) == ["only"]

    @pytest.mark.asyncio
    async def test_elapsed_interval_triggers_write(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=100, flush_interval=0)

        backend.handle(make_record("immediate"))
        await backend.drain()

        assert read_lines(log_file) == ["immediate"]

    @pytest.mark.asyncio
    async def test_level_filter(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=1, level=logging.WARNING)
        logger = logging.getLogger("file_backend.level_filter")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        logger.addHandler(backend)
        try:
            logger.info("ignored")
            logger.error("kept")
            await backend.drain()
        finally:
            logger.removeHandler(backend)

        assert read_lines(log_file) == ["kept"]

    @pytest.mark.asyncio
    async def test_rotation_moves_full_file_to_backup(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        log_file.write_text("x" * 64 + "\n", encoding='utf-8')
        (tmp_path / "exchanges.log.1").write_text("older\n", encoding='utf-8')
        backend = FileBackend(str(log_file), max_bytes=32, backup_count=2, buffer_size=1)

        backend.handle(make_record("fresh"))
        await backend.drain()

        assert read_lines(log_file) == ["fresh"]
        assert read_lines(tmp_path / "exchanges.log.1") == ["x" * 64]
        assert read_lines(tmp_path / "exchanges.log.2") == ["older"]

    @pytest.mark.asyncio
    async def test_rotation_without_backups_truncates(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        log_file.write_text("x" * 64 + "\n", encoding='utf-8')
        backend = FileBackend(str(log_file), max_bytes=32, backup_count=0, buffer_size=1)

        backend.handle(make_record("fresh"))
        await backend.drain()

        assert read_lines(log_file) == ["fresh"]
        assert not (tmp_path / "exchanges.log.1").exists()

    def test_write_completes_outside_event_loop(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=1)

        backend.handle(make_record("sync caller"))

        assert read_lines(log_file) == ["sync caller"]

    def test_close_writes_pending_lines(self, tmp_path):
        log_file = tmp_path / "exchanges.log"
        backend = FileBackend(str(log_file), max_bytes=1024 * 1024, buffer_size=100, flush_interval=3600)

        backend.handle(make_record("pending"))
        assert not log_file.exists()
        backend.close()

        assert read_lines(log_file) == ["pending"]

    def test_from_config(self, tmp_path):
        config = FileBackendConfig(path=str(tmp_path / "a.log"), min_level="ERROR", max_size_mb=2,
                                   backup_count=3, buffer_size=10, flush_interval=0.5)

        backend = FileBackend.from_config(config)

        assert backend.max_bytes == 2 * 1024 * 1024
        assert backend.backup_count == 3
        assert backend.buffer_size == 10
        assert backend.flush_interval == 0.5
        assert backend.level == logging.ERROR


class TestFileLoggingConfiguration:

    @pytest.fixture
    def restore_logging(self):
        yield
        configure_logging(LoggingConfig(
            environment="test",
            console=ConsoleBackendConfig(enabled=True, min_level="WARNING", color=False),
        ))

    @pytest.mark.asyncio
    async def test_configured_file_backend_receives_logger_output(self, tmp_path, restore_logging):
        log_file = tmp_path / "cex.log"
        configure_logging(LoggingConfig(
            environment="test",
            file=FileBackendConfig(enabled=True, min_level="INFO", path=str(log_file), buffer_size=50),
        ))

        logger = get_logger("file_backend_test")
        logger.set_context(exchange="LIQUI")
        logger.warning("Ticker refresh failed", symbol="ETH_BTC")
        await flush_logging()

        lines = read_lines(log_file)
        assert len(lines) == 1
        assert "WARNING [cex.file_backend_test]" in lines[0]
        assert "Ticker refresh failed" in lines[0]
        assert "| exchange=LIQUI symbol=ETH_BTC" in lines[0]

    def test_file_section_parsed(self, tmp_path):
        config = LoggingConfig.from_dict({'backends': {'file': {
            'enabled': True, 'path': str(tmp_path / "x.log"), 'buffer_size': 8, 'flush_interval': 0.25,
        }}}, environment="test")

        assert config.file.buffer_size == 8
        assert config.file.flush_interval == 0.25
        assert config.console is None

    def test_invalid_buffer_size_rejected(self):
        with pytest.raises(ValueError):
            FileBackendConfig(buffer_size=0).validate()

    @pytest.mark.asyncio
    async def test_flush_without_file_backend_is_noop(self, restore_logging):
        configure_logging(LoggingConfig(environment="test"))
        await LoggerFactory.flush()
