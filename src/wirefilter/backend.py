"""Threaded tick driver.

┌──────────────────────────────────────────────────────────────────────┐
│  ThreadTickBackend                                                    │
│                                                                       │
│   start(on_tick, ticks_per_second)                                    │
│      │                                                                │
│      ▼                                                                │
│   Daemon thread (loop)                                                │
│      while not stop_event.wait(1 / ticks_per_second):                 │
│          drain submitted work      ◄──── submit(fn, *args)            │
│          tick += 1                        from any thread             │
│          on_tick(tick)                                                │
│                                                                       │
│   stop()                                                              │
│      stop_event.set(); thread.join(timeout=5.0)                       │
└──────────────────────────────────────────────────────────────────────┘

Lifecycle events raised on other threads go through ``submit`` so that
they run on the tick thread between two ticks, never during a pass.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from wirefilter.core.logging import get_logger

logger = get_logger(__name__)

TickCallback = Callable[[int], Any]


class ThreadTickBackend:
    """Calls a tick callback at a fixed rate from a daemon thread.

    Example:
        >>> backend = ThreadTickBackend()
        >>> backend.start(scheduler.on_tick, ticks_per_second=60)
        >>> backend.submit(orchestrator.materialize, 42)
        >>> # ... later ...
        >>> backend.stop()
    """

    name = "thread"

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._pending: queue.SimpleQueue[tuple[Callable[..., Any], tuple[Any, ...]]] = queue.SimpleQueue()
        self._tick = 0
        self._last_tick: datetime | None = None
        self._ticks_per_second = 60.0
        self._started = False

    def start(self, on_tick: TickCallback, ticks_per_second: float = 60.0) -> None:
        """Start the tick loop in a daemon thread."""
        if self._started:
            logger.warning("backend.already_started")
            return

        self._ticks_per_second = ticks_per_second
        interval = 1.0 / ticks_per_second
        self._stop_event.clear()

        def _loop() -> None:
            logger.info("backend.started", ticks_per_second=ticks_per_second)
            while not self._stop_event.wait(interval):
                self._drain()
                self._tick += 1
                self._last_tick = datetime.now(UTC)
                try:
                    on_tick(self._tick)
                except Exception:
                    logger.exception("backend.tick_failed", tick=self._tick)
            self._drain()
            logger.info("backend.stopped", tick_count=self._tick)

        self._thread = threading.Thread(target=_loop, daemon=True, name="wirefilter-ticks")
        self._thread.start()
        self._started = True

    def stop(self) -> None:
        """Stop the loop, waiting up to 5 seconds for the current tick."""
        if not self._started:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("backend.stop_timeout")

        self._started = False

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` to run on the tick thread before the next tick."""
        self._pending.put((fn, args))

    def _drain(self) -> None:
        while True:
            try:
                fn, args = self._pending.get_nowait()
            except queue.Empty:
                return
            try:
                fn(*args)
            except Exception:
                logger.exception("backend.submitted_call_failed", call=getattr(fn, "__name__", repr(fn)))

    def health(self) -> dict[str, Any]:
        return {
            "healthy": self.is_running,
            "backend": self.name,
            "tick_count": self._tick,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "ticks_per_second": self._ticks_per_second,
        }

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick
