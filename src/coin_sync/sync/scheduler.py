from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from coin_sync.log import get_logger

logger = get_logger("scheduler")


class SyncScheduler:
    """
    Fire ``run`` immediately and then every ``interval_seconds``.

    Tick k is due at ``start + k * interval`` on the monotonic clock, so the
    period does not drift with cycle duration. Each tick runs on its own
    daemon thread; overlap is left to the callee (``SyncEngine`` skips).
    """

    def __init__(self, run: Callable[[], Any], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._run = run
        self.interval_seconds = interval_seconds
        self._thread: Optional[threading.Thread] = None
        self._last_worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._loop, args=(self._stop_event,), name="sync-scheduler", daemon=True)
        self._thread.start()
        logger.info("Sync scheduler started (interval=%ss)", self.interval_seconds)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop ticking and wait up to ``timeout`` for the timer and the last cycle."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        self._thread = None
        if self._last_worker:
            self._last_worker.join(timeout=timeout)

    def _loop(self, stop_event: threading.Event) -> None:
        started = time.monotonic()
        tick = 0
        while not stop_event.is_set():
            self._dispatch(tick)
            tick += 1
            due = started + tick * self.interval_seconds
            stop_event.wait(max(0.0, due - time.monotonic()))

    def _dispatch(self, tick: int) -> None:
        self.ticks += 1
        worker = threading.Thread(target=self._fire, name=f"sync-cycle-{tick}", daemon=True)
        self._last_worker = worker
        worker.start()

    def _fire(self) -> None:
        try:
            self._run()
        except Exception:  # pragma: no cover - SyncEngine.run_cycle does not raise
            logger.exception("Scheduled sync raised")
