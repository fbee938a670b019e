"""
Repository connection pool.

Each pooled :class:`SqliteMessageRepository` owns one SQLite connection. The
web application borrows one per request so concurrent requests never share a
connection.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from queue import Empty, Queue
from threading import Lock
from types import TracebackType

from inquiry_inbox.core.config import StorageSettings

from .sqlite import SqliteMessageRepository

LOGGER = logging.getLogger(__name__)


class PoolClosedError(RuntimeError):
    """Raised when borrowing from a pool that has been closed."""


class ConnectionPool:
    """Thread-safe pool of message repositories."""

    def __init__(self, settings: StorageSettings, pool_size: int | None = None):
        """
        Initialize the pool and open every connection up front.

        Args:
            settings: Storage settings containing database path
            pool_size: Number of pooled repositories; defaults to the settings
        """
        self.settings = settings
        self.pool_size = pool_size or settings.pool_size
        self._pool: Queue[SqliteMessageRepository] = Queue(maxsize=self.pool_size)
        self._lock = Lock()
        self._closed = False

        for _ in range(self.pool_size):
            self._pool.put(SqliteMessageRepository(settings))

        LOGGER.info("Initialized connection pool with %d connections", self.pool_size)

    def _is_healthy(self, repository: SqliteMessageRepository) -> bool:
        try:
            repository.count()
            return True
        except (sqlite3.Error, RuntimeError):
            LOGGER.warning("Pooled connection failed health check; replacing it")
            return False

    @contextmanager
    def acquire(self, timeout: float = 10.0) -> Iterator[SqliteMessageRepository]:
        """
        Borrow a repository for the duration of the ``with`` block.

        Raises:
            PoolClosedError: If the pool is closed
            TimeoutError: If no repository frees up within ``timeout`` seconds
        """
        if self._closed:
            raise PoolClosedError("Connection pool is closed")

        try:
            repository = self._pool.get(timeout=timeout)
        except Empty as exc:
            raise TimeoutError(
                f"Could not acquire connection within {timeout} seconds"
            ) from exc

        if not self._is_healthy(repository):
            repository.close()
            repository = SqliteMessageRepository(self.settings)

        try:
            yield repository
        finally:
            if self._closed:
                repository.close()
            else:
                self._pool.put(repository)

    def close(self) -> None:
        """Close all idle connections in the pool."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

            closed_count = 0
            while True:
                try:
                    repository = self._pool.get_nowait()
                except Empty:
                    break
                repository.close()
                closed_count += 1

            LOGGER.info("Closed connection pool (%d connections closed)", closed_count)

    def __enter__(self) -> ConnectionPool:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager scope and close pool."""
        self.close()

    @property
    def size(self) -> int:
        """Number of idle repositories currently in the pool."""
        return self._pool.qsize()

    @property
    def is_closed(self) -> bool:
        """Check if pool is closed."""
        return self._closed


__all__ = ["ConnectionPool", "PoolClosedError"]
