from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from tools import MathTools, format_time

logger = logging.getLogger(__name__)

DEFAULT_PRESETS = (30, 60, 90, 120, 180)


class ThreadingTicker:
    """Invoke a callback every ``interval`` seconds using ``threading.Timer``."""

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._timer is not None

    def start(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._generation += 1
            self._schedule(callback, self._generation)

    def _schedule(self, callback: Callable[[], None], generation: int) -> None:
        timer = threading.Timer(self.interval, self._run, args=(callback, generation))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _run(self, callback: Callable[[], None], generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
        callback()
        with self._lock:
            if generation == self._generation and self._timer is not None:
                self._schedule(callback, generation)

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ManualTicker:
    """Ticker driven by the host, one :meth:`advance` step per elapsed second."""

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def advance(self, seconds: int = 1) -> None:
        for _ in range(seconds):
            if self._callback is None:
                return
            self._callback()


class RestTimer:
    """Countdown used for rest periods between sets.

    Durations are clamped to ``[min_seconds, max_seconds]``. ``on_complete``
    fires once each time the countdown runs down to zero, never on pause or
    reset.
    """

    def __init__(
        self,
        duration_seconds: int = 90,
        on_complete: Callable[[], None] | None = None,
        scheduler=None,
        min_seconds: int = 5,
        max_seconds: int = 300,
        step_seconds: int = 5,
        presets: Iterable[int] = DEFAULT_PRESETS,
    ) -> None:
        if min_seconds <= 0:
            raise ValueError("min_seconds must be positive")
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self.step_seconds = step_seconds
        self.presets = tuple(presets)
        self.on_complete = on_complete
        self.scheduler = scheduler if scheduler is not None else ThreadingTicker()
        self._lock = threading.Lock()
        self._duration = self._clamp(duration_seconds)
        self._remaining = self._duration
        self._running = False
        self._run_id = 0

    def _clamp(self, seconds: int) -> int:
        return int(MathTools.clamp(int(seconds), self.min_seconds, self.max_seconds))

    @property
    def duration_seconds(self) -> int:
        return self._duration

    @property
    def seconds_remaining(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def formatted_time(self) -> str:
        return format_time(self._remaining)

    @property
    def progress(self) -> float:
        """Remaining time as a percentage of the duration."""
        return self._remaining / self._duration * 100

    def start(self) -> None:
        with self._lock:
            if self._running or self._remaining == 0:
                return
            self._running = True
            self._run_id += 1
            run_id = self._run_id
            self.scheduler.start(lambda: self._tick(run_id))

    def pause(self) -> None:
        with self._lock:
            self._stop()

    def reset(self) -> None:
        with self._lock:
            self._stop()
            self._remaining = self._duration

    def set_duration(self, seconds: int) -> int:
        with self._lock:
            self._stop()
            self._duration = self._clamp(seconds)
            self._remaining = self._duration
            return self._duration

    def adjust_duration(self, delta: int) -> int:
        return self.set_duration(self._duration + delta)

    def tick(self) -> None:
        """Count down one elapsed second of the current run."""
        self._tick(None)

    def _tick(self, run_id: Optional[int]) -> None:
        finished = False
        with self._lock:
            if not self._running:
                return
            if run_id is not None and run_id != self._run_id:
                # scheduled by a run that was paused or reset since
                return
            if self._remaining <= 1:
                self._remaining = 0
                self._stop()
                finished = True
            else:
                self._remaining -= 1
        if finished:
            logger.debug("Rest timer finished after %ds", self._duration)
            if self.on_complete is not None:
                self.on_complete()

    def close(self) -> None:
        """Stop ticking so no callback fires after teardown."""
        self.pause()

    def _stop(self) -> None:
        self._running = False
        self.scheduler.cancel()
