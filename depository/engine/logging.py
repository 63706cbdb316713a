"""
Depository Logging — JSONL operation log fed through a background queue.

Implements:
- LogEntry: one record bound to an (object_type, category) stream
- FileLogger: appends records to {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl
- AsyncLogQueue: services push records without blocking; a daemon thread writes them
- Entry builders for document operations, hierarchy queries and system events
- configure_logging(): stdlib console logging for the CLI

A record lands in the file for the day it was created on, so a batch
flushed just after midnight still goes to the previous day's file.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("depository.engine.logging")

# object_type -> categories a record of that type may be filed under
OBJECT_TYPE_CATEGORIES = {
    "projects": ["execution"],
    "branches": ["execution"],
    "documents": ["execution", "errors"],
    "system": ["execution"],
}


def _today() -> date:
    return date.today()


@dataclass
class LogEntry:
    object_type: str
    category: str
    data: Dict[str, Any]
    day: date = field(default_factory=_today)

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Appends LogEntry records to daily JSONL files, one directory per stream.

    Concurrent writers to the same file are serialized by a per-file lock;
    different files are written independently. Nothing is created on disk
    until the first write into a stream.
    """

    def __init__(self, log_dir: str = ".depository/logs"):
        self._log_dir = Path(log_dir)
        self._locks: Dict[Path, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def stream_dir(self, object_type: str, category: str) -> Path:
        return self._log_dir / object_type / category

    def file_for(self, object_type: str, category: str, day: date) -> Path:
        return self.stream_dir(object_type, category) / f"{day.isoformat()}.jsonl"

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Append entries, opening each target file once per batch."""
        by_file: Dict[Path, List[str]] = defaultdict(list)
        for entry in entries:
            by_file[self.file_for(entry.object_type, entry.category, entry.day)].append(entry.to_json())

        for path, lines in by_file.items():
            with self._lock_for(path):
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "a", encoding="utf-8") as f:
                    f.write("\n".join(lines) + "\n")

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._locks_guard:
            return self._locks[path]

    def query(
        self,
        object_type: str,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read back records of one stream, oldest first.

        ``start_date`` defaults to a week before ``end_date`` (itself today).
        Only records whose fields equal every ``filters`` item are returned,
        at most ``limit`` of them. Lines that are not valid JSON are skipped.
        """
        end_date = end_date or _today()
        start_date = start_date or end_date - timedelta(days=7)

        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            return []
        if not self.stream_dir(object_type, category).is_dir():
            return []

        results: List[Dict[str, Any]] = []
        for record in self._records(object_type, category, start_date, end_date):
            if filters and any(record.get(k) != v for k, v in filters.items()):
                continue
            results.append(record)
            if len(results) >= limit:
                break
        return results

    def _records(
        self, object_type: str, category: str, start_date: date, end_date: date
    ) -> Iterator[Dict[str, Any]]:
        day = start_date
        while day <= end_date:
            path = self.file_for(object_type, category, day)
            day += timedelta(days=1)
            if not path.is_file():
                continue
            try:
                with open(path, "r", encoding="utf-8") as f:
                    lines = f.readlines()
            except OSError as exc:
                logger.warning("Could not read log file %s: %s", path, exc)
                continue
            for line in lines:
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError:
                    continue


class AsyncLogQueue:
    """
    Decouples services from log file I/O.

    push() never blocks; when ``max_queue_size`` records are pending the new
    record is dropped and counted. The flush thread writes whenever
    ``flush_batch_size`` records are waiting or ``flush_interval_ms`` has
    passed since the first record of the current batch.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._file_logger = file_logger
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._pending: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dropped = 0

    @property
    def file_logger(self) -> FileLogger:
        return self._file_logger

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending_count(self) -> int:
        return self._pending.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="depository-log-flush", daemon=True)
        self._thread.start()
        logger.debug("Operation log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread, then write whatever is still queued."""
        self._stopping.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self.flush()
        logger.debug("Operation log queue stopped (dropped=%d)", self._dropped)

    def push(self, entry: LogEntry) -> bool:
        """Queue ``entry``; returns False if it was dropped because the queue is full."""
        try:
            self._pending.put_nowait(entry)
        except Full:
            self._dropped += 1
            return False
        return True

    def flush(self) -> None:
        """Synchronously write everything queued so far."""
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._pending.get_nowait())
            except Empty:
                break
        self._write(batch)

    def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                batch = [self._pending.get(timeout=self._interval)]
            except Empty:
                continue
            deadline = time.monotonic() + self._interval
            while len(batch) < self._batch_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                try:
                    batch.append(self._pending.get(timeout=remaining))
                except Empty:
                    break
            self._write(batch)

    def _write(self, batch: List[LogEntry]) -> None:
        if not batch:
            return
        try:
            self._file_logger.write_batch(batch)
        except OSError as e:
            logger.error("Operation log write failed (%d entries lost): %s", len(batch), e)


# ---------------------------------------------------------------------------
# Entry builders
# ---------------------------------------------------------------------------

def _record(event: str, *, level: str, **fields: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    record.update((k, v) for k, v in fields.items() if v is not None)
    return record


def log_document_operation(
    operation: str,
    project_id: str,
    branch_name: str,
    uri: Optional[str],
    duration_ms: float,
    success: bool,
    size_bytes: Optional[int] = None,
    error: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Document get/create/update/delete/list; failures go to the ``errors`` stream."""
    data = _record(
        f"document_{operation}",
        level="INFO" if success else "WARNING",
        operation=operation,
        project_id=project_id,
        branch_name=branch_name,
        uri=uri,
        duration_ms=round(duration_ms, 3),
        success=success,
        size_bytes=size_bytes,
        error=error,
    )
    return LogEntry("documents", "errors" if error else "execution", data)


def log_hierarchy_query(
    object_type: str,
    operation: str,
    project_id: Optional[str] = None,
    branch_name: Optional[str] = None,
    success: bool = True,
    result_count: Optional[int] = None,
    error_type: Optional[str] = None,
) -> LogEntry:
    data = _record(
        f"{object_type}_{operation}",
        level="INFO" if success else "WARNING",
        operation=operation,
        project_id=project_id,
        branch_name=branch_name,
        success=success,
        result_count=result_count,
        error_type=error_type,
    )
    return LogEntry(object_type, "execution", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    return LogEntry("system", "execution", _record(event, level=level, details=details or None))


# ---------------------------------------------------------------------------
# Construction & console logging
# ---------------------------------------------------------------------------

def create_log_queue(
    log_dir: str = ".depository/logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Unstarted queue writing under ``log_dir``."""
    return AsyncLogQueue(
        FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )


def configure_logging(level: str = "INFO") -> None:
    """Console logging for the ``depository`` logger tree; safe to call repeatedly."""
    root = logging.getLogger("depository")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
