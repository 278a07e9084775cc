# services/assessment-service/src/apps/core/timers.py
"""
Attempt Timer

In-process countdown for an open timed attempt. The expiry sweep task is
the backstop for sessions that never reach zero here.
"""

import logging
import math
import threading
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

logger = logging.getLogger(__name__)


class AttemptTimer:
    """
    Ticks once per interval and calls on_expire exactly once when the
    deadline is reached.
    """

    def __init__(
        self,
        deadline: datetime,
        on_expire: Callable[[], None],
        interval: float = 1.0,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.deadline = deadline
        self.on_expire = on_expire
        self.interval = interval
        self.clock = clock
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._fired = False
        self._thread: Optional[threading.Thread] = None

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def remaining_seconds(self) -> int:
        """Whole seconds left, rounded up so the display never reads 0 early."""
        return max(0, math.ceil((self.deadline - self.clock()).total_seconds()))

    def tick(self) -> int:
        """Recompute the remaining time, firing once the deadline has passed."""
        remaining = (self.deadline - self.clock()).total_seconds()
        if remaining <= 0:
            self._fire()
            return 0
        return math.ceil(remaining)

    def start(self) -> 'AttemptTimer':
        self._thread = threading.Thread(target=self._run, name='attempt-timer', daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stopped.set()

    def join(self, timeout: float = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.is_set():
            if self.tick() <= 0:
                return
            self._stopped.wait(self.interval)

    def _fire(self) -> None:
        with self._lock:
            if self._fired or self._stopped.is_set():
                return
            self._fired = True

        try:
            self.on_expire()
        except Exception:
            logger.exception("Timed auto-submit failed")
