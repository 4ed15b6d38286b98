"""
File Backend for Persistent Logging

Buffered file sink with async I/O and size-based rotation, plugged into the
stdlib logging tree as a Handler.

emit() only formats the record and appends it to an in-memory buffer. Once
buffer_size lines are pending or flush_interval seconds have passed since the
last flush, the buffer is written with aiofiles:

- inside a running event loop the write is scheduled as a task, so logging
  never blocks the loop
- outside any loop (startup, worker threads) the write runs to completion on
  a short-lived loop before emit() returns

Call ``await backend.drain()`` (or LoggerFactory.flush()) before shutdown to
drain what is still buffered.
"""

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os

from ..structs import FileBackendConfig


class FileBackend(logging.Handler):
    """
    Buffered aiofiles log file writer.

    When the file reaches max_bytes it is rotated before the next write:
    path -> path.1 -> path.2 ... up to backup_count files. A backup_count of
    zero truncates instead of keeping backups.
    """

    def __init__(
        self,
        path: str,
        max_bytes: int,
        backup_count: int = 5,
        buffer_size: int = 1024,
        flush_interval: float = 1.0,
        level: int = logging.NOTSET
    ):
        super().__init__(level)
        self.file_path = Path(path)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.buffer_size = buffer_size
        self.flush_interval = flush_interval

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        self._write_buffer: List[str] = []
        self._last_flush = time.time()
        self._flush_task: Optional[asyncio.Future] = None

    @classmethod
    def from_config(cls, config: FileBackendConfig) -> 'FileBackend':
        return cls(
            config.path,
            max_bytes=config.max_size_mb * 1024 * 1024,
            backup_count=config.backup_count,
            buffer_size=config.buffer_size,
            flush_interval=config.flush_interval,
            level=logging.getLevelName(config.min_level.upper()),
        )

    @property
    def pending(self) -> int:
        """Lines formatted but not yet written."""
        return len(self._write_buffer)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._write_buffer.append(self.format(record))
        except Exception:
            self.handleError(record)
            return

        if len(self._write_buffer) >= self.buffer_size or time.time() - self._last_flush >= self.flush_interval:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._write_pending())
            return

        # One writer task per loop; it picks up lines appended while it runs
        task = self._flush_task
        if task is None or task.done() or task.get_loop() is not loop:
            self._flush_task = loop.create_task(self._write_pending())

    async def drain(self) -> None:
        """Write every buffered line and wait until it is on disk."""
        self.flush()
        task = self._flush_task
        if task is not None and not task.done() and task.get_loop() is asyncio.get_running_loop():
            await task

    async def _write_pending(self) -> None:
        while self._write_buffer:
            lines, self._write_buffer = self._write_buffer, []
            try:
                await self._check_rotation()
                async with aiofiles.open(self.file_path, 'a', encoding='utf-8') as f:
                    await f.write(''.join(line + '\n' for line in lines))
            except OSError as e:
                print(f"FileBackend flush error: {e}", file=sys.stderr)
                return
            finally:
                self._last_flush = time.time()

    def flush(self) -> None:
        """Start writing buffered lines; await drain() to wait for them."""
        if self._write_buffer:
            self._schedule_flush()

    def close(self) -> None:
        self.flush()
        super().close()

    async def _check_rotation(self) -> None:
        if not await aiofiles.os.path.exists(self.file_path):
            return
        if await aiofiles.os.path.getsize(self.file_path) >= self.max_bytes:
            await self._rotate_file()

    async def _rotate_file(self) -> None:
        if self.backup_count <= 0:
            await aiofiles.os.remove(self.file_path)
            return

        for i in range(self.backup_count - 1, 0, -1):
            old_file, new_file = self._backup_path(i), self._backup_path(i + 1)
            if await aiofiles.os.path.exists(old_file):
                if await aiofiles.os.path.exists(new_file):
                    await aiofiles.os.remove(new_file)
                await aiofiles.os.rename(old_file, new_file)

        backup_file = self._backup_path(1)
        if await aiofiles.os.path.exists(backup_file):
            await aiofiles.os.remove(backup_file)
        await aiofiles.os.rename(self.file_path, backup_file)

    def _backup_path(self, index: int) -> Path:
        return self.file_path.with_name(f"{self.file_path.name}.{index}")
