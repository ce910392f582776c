"""Delivery status state machine and the delayed-task scheduler driving it."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from itertools import count
from typing import Protocol

from app.messaging.types import DeliveryStatus

logger = logging.getLogger(__name__)

_STATUS_ORDER: tuple[DeliveryStatus, ...] = (
    DeliveryStatus.SENT,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.READ,
)

INITIAL_STATUS = DeliveryStatus.SENT
TERMINAL_STATUS = DeliveryStatus.READ


def status_rank(status: DeliveryStatus | str) -> int:
    """Position of ``status`` in the lifecycle."""

    return _STATUS_ORDER.index(DeliveryStatus(status))


def next_status(status: DeliveryStatus | str) -> DeliveryStatus | None:
    """Return the single legal successor, or ``None`` at the terminal state."""

    rank = status_rank(status)
    if rank + 1 >= len(_STATUS_ORDER):
        return None
    return _STATUS_ORDER[rank + 1]


def can_transition(current: DeliveryStatus | str, target: DeliveryStatus | str) -> bool:
    """Only single forward steps are legal; nothing regresses or skips."""

    return next_status(current) == DeliveryStatus(target)


class DeliveryScheduler(Protocol):
    """Delayed-callback queue keyed by message id."""

    def schedule(self, key: Hashable, delay_seconds: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` once after ``delay_seconds``."""

    def cancel(self, key: Hashable) -> bool:
        """Drop pending callbacks for ``key``; return whether any were pending."""

    def shutdown(self) -> None:
        """Cancel everything and refuse new work."""


class ThreadingDeliveryScheduler:
    """``threading.Timer`` backed scheduler with a lock-guarded registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens = count(1)
        self._pending: dict[Hashable, dict[int, threading.Timer]] = {}
        self._closed = False

    def schedule(self, key: Hashable, delay_seconds: float, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._closed:
                logger.warning("delivery.schedule_after_shutdown key=%s", key)
                return
            token = next(self._tokens)
            timer = threading.Timer(max(delay_seconds, 0.0), self._fire, args=(key, token, callback))
            timer.daemon = True
            self._pending.setdefault(key, {})[token] = timer
        timer.start()

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            timers = self._pending.pop(key, {})
        for timer in timers.values():
            timer.cancel()
        return bool(timers)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            pending = list(self._pending.values())
            self._pending.clear()
        cancelled = 0
        for timers in pending:
            for timer in timers.values():
                timer.cancel()
                cancelled += 1
        logger.info("delivery.scheduler_shutdown cancelled=%d", cancelled)

    def _fire(self, key: Hashable, token: int, callback: Callable[[], None]) -> None:
        with self._lock:
            timers = self._pending.get(key)
            if timers is None or timers.pop(token, None) is None:
                return
            if not timers:
                del self._pending[key]
        try:
            callback()
        except Exception:
            logger.exception("delivery.callback_failed key=%s", key)
