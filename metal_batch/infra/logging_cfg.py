"""
Structured logging setup for the batch orchestrator.

- Rich console handler for operators watching a batch
- JSON file handler behind a queue so batch tasks never block on disk IO
- ``log_event`` helper producing one JSON line per event
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import sys
import threading
import time
from datetime import datetime
from typing import Any, Dict, Optional

from rich.logging import RichHandler

LOGGER_NAME = "metal_batch"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Messages produced by ``log_event`` are already JSON objects; their
    fields are lifted to the top level next to ``ts``/``level``/``name`` so
    a batch log can be filtered by ``event`` directly. Plain messages go
    under ``msg``. Record metadata wins on key collisions.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = record.created or time.time()
        payload: Dict[str, Any] = {
            "ts": ts,
            "ts_iso": datetime.fromtimestamp(ts).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
        }
        message = record.getMessage()
        event = _event_fields(message)
        if event is None:
            payload["msg"] = message
        else:
            for key, value in event.items():
                payload.setdefault(key, value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def _event_fields(message: str) -> Optional[Dict[str, Any]]:
    if not message.startswith("{"):
        return None
    try:
        value = json.loads(message)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class AsyncQueueHandler(logging.Handler):
    """
    Non-blocking handler that queues log records for a writer thread.

    Records are dropped (and counted) when the queue is full.
    """

    def __init__(self, target_handler: logging.Handler, max_queue_size: int = 10000):
        super().__init__()
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._target = target_handler
        self._shutdown = False
        self._dropped = 0
        self._thread = threading.Thread(target=self._worker, daemon=True, name="metal-log-writer")
        self._thread.start()
        atexit.register(self.close)

    @property
    def dropped(self) -> int:
        return self._dropped

    def emit(self, record: logging.LogRecord) -> None:
        if self._shutdown:
            return
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            self._dropped += 1

    def _worker(self) -> None:
        while not self._shutdown or not self._queue.empty():
            try:
                record = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self._target.emit(record)
            finally:
                self._queue.task_done()

    def flush(self, timeout: float = 2.0) -> None:
        """Wait until queued records reach the target, up to ``timeout`` seconds."""
        deadline = time.time() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks and time.time() < deadline and self._thread.is_alive():
                self._queue.all_tasks_done.wait(0.05)
        self._target.flush()

    def close(self) -> None:
        if self._shutdown:
            return
        self._shutdown = True
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self._dropped > 0:
            sys.stderr.write(f"[logging] Dropped {self._dropped} log records due to queue overflow\n")
        self._target.close()
        super().close()


def build_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    file_path: Optional[str] = "metal_batch.log",
    async_file: bool = True,
) -> logging.Logger:
    """
    Build the process logger.

    Args:
        name: Logger name
        level: Minimum log level
        file_path: Path to JSON log file (None or "" disables file logging)
        async_file: Write the file through a queue handler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Idempotent handler setup
    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    console = RichHandler(
        rich_tracebacks=False,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
    )
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(JsonFormatter())
        file_handler.setLevel(level)
        if async_file:
            async_handler = AsyncQueueHandler(file_handler)
            async_handler.setLevel(level)
            logger.addHandler(async_handler)
        else:
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **data,
) -> None:
    """
    Log a structured event.

    Usage:
        log_event(log, "job_polled", level=DEBUG, job_id="abc", attempt=3)
    """
    payload = {"event": event, **data}
    logger.log(level, json.dumps(payload, default=str))
