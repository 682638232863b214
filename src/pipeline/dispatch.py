"""
Execution contexts for the frame pipeline.

- DispatchQueue: a dedicated serial worker thread ("sample queue"). Frame
  handling, the observation store and detection/tracking calls live here.
- MainQueue: work posted for the thread that owns the preview (the engine's
  frame loop). The overlay view and the mode label live here.

Both take callables via submit(); state is handed over by re-dispatching,
never shared under a lock.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable


class DispatchQueue:
    """Serial executor that runs submitted work one item at a time, in order."""

    def __init__(self, label: str):
        self.label = label
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=label)
        self._pending = 0
        self._pending_lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Items submitted but not finished yet."""
        with self._pending_lock:
            return self._pending

    @property
    def is_idle(self) -> bool:
        return self.pending == 0

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        with self._pending_lock:
            self._pending += 1
        try:
            return self._executor.submit(self._run, fn, *args)
        except RuntimeError:
            # Shut down; the item never ran
            with self._pending_lock:
                self._pending -= 1
            raise

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            logging.error(f"[{self.label}] task {getattr(fn, '__name__', fn)} failed: {e}")
            return None
        finally:
            with self._pending_lock:
                self._pending -= 1

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class MainQueue:
    """Work queue drained by the thread that owns the preview."""

    def __init__(self, label: str = "main"):
        self.label = label
        self._queue: "queue.Queue[tuple]" = queue.Queue()

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    def drain(self) -> int:
        """Run everything posted so far on the calling thread; returns the number of items run."""
        count = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return count
            try:
                fn(*args)
            except Exception as e:
                logging.error(f"[{self.label}] task {getattr(fn, '__name__', fn)} failed: {e}")
            count += 1

    def __len__(self) -> int:
        return self._queue.qsize()
