"""Directory watcher that reports created and written files."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from sortkeeper.types import Op

logger = logging.getLogger(__name__)

_CAPACITY = 10


@dataclass(frozen=True)
class FileModification:
    """A file event detected by the watcher."""

    path: str
    info: os.stat_result
    timestamp: datetime
    op: Op


class WatcherError(Exception):
    """A directory could not be watched or the watcher was misused."""


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: "Watcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._watcher._handle(event)


class Watcher:
    """Watches directories (not recursively) for new and modified files."""

    def __init__(self) -> None:
        self._directories: list[str] = []
        self._observer = Observer()
        self._handler = _Handler(self)
        self._lock = threading.Lock()
        self._ready = threading.Condition(self._lock)
        self._buffer: deque[FileModification] = deque()
        self._running = False
        self._closed = False

    def add_directory(self, directory: str) -> None:
        """Start watching directory; raises WatcherError if it is not an accessible directory."""
        try:
            info = os.stat(directory)
        except OSError as exc:
            raise WatcherError(f"error accessing directory: {exc}") from exc
        if not os.path.isdir(directory) or info is None:
            raise WatcherError(f"{directory} is not a directory")
        with self._lock:
            already = directory in self._directories
        if not already:
            try:
                self._observer.schedule(self._handler, directory, recursive=False)
            except OSError as exc:
                raise WatcherError(f"failed to add directory {directory} to watcher: {exc}") from exc
            with self._lock:
                if directory not in self._directories:
                    self._directories.append(directory)
        logger.info("Watching directory: %s", directory)

    def start(self) -> None:
        """Begin delivering events; raises WatcherError if running or already stopped."""
        with self._lock:
            if self._running:
                raise WatcherError("watcher already running")
            if self._closed:
                raise WatcherError("watcher has been stopped")
            self._running = True
        self._observer.start()
        logger.info("Watcher started.")

    def stop(self) -> None:
        """Stop watching; buffered events stay readable, then next_event returns None."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._closed = True
            self._ready.notify_all()
        self._observer.stop()
        self._observer.join()
        logger.info("Watcher stopped.")

    def next_event(self, timeout: float | None = None) -> FileModification | None:
        """Wait for the next event; None once stopped and drained, TimeoutError on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._ready:
            while not self._buffer:
                if self._closed:
                    return None
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise TimeoutError("no file event within the timeout")
                self._ready.wait(remaining)
            return self._buffer.popleft()

    def is_running(self) -> bool:
        """Whether the watcher is active."""
        with self._lock:
            return self._running

    def directories(self) -> list[str]:
        """Copy of the watched directories, in the order they were added."""
        with self._lock:
            return list(self._directories)

    def __enter__(self) -> "Watcher":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def _handle(self, event: FileSystemEvent) -> None:
        if event.event_type == "created":
            path, op = os.fsdecode(event.src_path), Op.CREATE
        elif event.event_type == "modified":
            path, op = os.fsdecode(event.src_path), Op.WRITE
        elif event.event_type == "moved" and getattr(event, "dest_path", ""):
            path, op = os.fsdecode(event.dest_path), Op.CREATE
        else:
            return
        try:
            info = os.stat(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Error stating file %s: %s", path, exc)
            return
        if os.path.isdir(path):
            return
        modification = FileModification(path=path, info=info, timestamp=datetime.now(), op=op)
        with self._ready:
            if self._closed:
                return
            if len(self._buffer) >= _CAPACITY:
                logger.warning("Event channel is full, dropped event for %s", path)
                return
            self._buffer.append(modification)
            self._ready.notify()