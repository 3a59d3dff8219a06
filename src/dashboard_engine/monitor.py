"""Named timers that report how long dashboard work takes."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Awaitable, Callable, Dict, Iterator, List, Tuple, Type, TypeVar

from .config import load_engine_config
from .models import MeasureResult, Timer

logger = logging.getLogger(__name__)

R = TypeVar("R")


class PerformanceMonitor:
    """
    Named wall-clock timers for diagnostics.

    Durations are reported in milliseconds. The monitor only observes: it
    never changes what the timed code returns or raises.
    """

    def __init__(
        self,
        slow_operation_ms: float = 1000.0,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.slow_operation_ms = slow_operation_ms
        self._clock = clock
        self._timers: Dict[str, Timer] = {}
        self._lock = threading.Lock()

    def start(self, label: str) -> None:
        with self._lock:
            self._timers[label] = Timer(label=label, started_at=self._clock())

    def end(self, label: str) -> float:
        with self._lock:
            timer = self._timers.pop(label, None)
        if timer is None:
            return 0.0
        duration = (self._clock() - timer.started_at) * 1000
        self._report(label, duration)
        return duration

    def active_timers(self) -> List[str]:
        with self._lock:
            return list(self._timers.keys())

    async def measure(
        self,
        label: str,
        fn: Callable[[], Awaitable[R]],
        expected: Tuple[Type[BaseException], ...] = (),
    ) -> MeasureResult[R]:
        """
        Time ``await fn()`` under ``label``.

        Failures still end the timer and propagate. Exceptions listed in
        ``expected`` (client errors the caller turns into responses) are
        logged at debug level; anything else is logged as a warning.
        """

        self.start(label)
        try:
            result = await fn()
        except Exception as exc:
            duration = self.end(label)
            if isinstance(exc, expected):
                logger.debug("%s stopped after %.2fms: %s", label, duration, exc)
            else:
                logger.warning("%s failed after %.2fms", label, duration)
            raise
        return MeasureResult(result=result, duration=self.end(label))

    @contextmanager
    def track(self, label: str) -> Iterator[None]:
        self.start(label)
        try:
            yield
        finally:
            self.end(label)

    def _report(self, label: str, duration: float) -> None:
        if duration > self.slow_operation_ms:
            logger.warning("Slow operation: %s (%.2fms)", label, duration)
        else:
            logger.debug("%s: %.2fms", label, duration)


performance_monitor = PerformanceMonitor(slow_operation_ms=load_engine_config().monitor.slow_operation_ms)
