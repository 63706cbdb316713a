"""Shared plumbing for the hierarchical services: collaborators + operation logging."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from depository.engine.errors import DepositoryError
from depository.engine.logging import AsyncLogQueue, LogEntry
from depository.storage.binary_store import BinaryStore
from depository.storage.paths import PathResolver
from depository.storage.validators import ExistenceValidator

logger = logging.getLogger("depository.services")


class BaseService(ABC):
    """Holds the storage collaborators every service is built from."""

    def __init__(
        self,
        resolver: PathResolver,
        store: BinaryStore,
        validator: ExistenceValidator,
        log_queue: Optional[AsyncLogQueue] = None,
    ):
        self._resolver = resolver
        self._store = store
        self._validator = validator
        self._log_queue = log_queue

    def _push(self, entry: LogEntry) -> None:
        if self._log_queue is not None:
            self._log_queue.push(entry)

    @contextmanager
    def _track(self, operation: str, **ids: Any) -> Iterator[Dict[str, Any]]:
        """
        Time an operation and hand the outcome to ``_log_operation``.

        The yielded dict collects result details (size_bytes, result_count).
        Errors are logged and re-raised unchanged.
        """
        info: Dict[str, Any] = {}
        start = time.monotonic()
        try:
            yield info
        except DepositoryError as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(f"{operation} failed: {e.error_type}: {e.message}")
            if self._log_queue is not None:
                self._log_operation(operation, ids, info, duration_ms, error=e)
            raise
        duration_ms = (time.monotonic() - start) * 1000
        logger.debug(f"{operation} {ids} completed in {duration_ms:.1f}ms")
        if self._log_queue is not None:
            self._log_operation(operation, ids, info, duration_ms, error=None)

    @abstractmethod
    def _log_operation(
        self,
        operation: str,
        ids: Dict[str, Any],
        info: Dict[str, Any],
        duration_ms: float,
        error: Optional[DepositoryError],
    ) -> None:
        """Turn one finished operation into an operation-log entry."""
