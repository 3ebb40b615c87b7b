"""
In-process cooldown gate for content creation.

A user who creates a post (or comment) holds a mark for that action kind
until the kind's cooldown elapses; while the mark is held every further
attempt is rejected. Marks are released by a timer, so a user is let back in
even if nobody touches the gate in between.

State lives in this process only: a restart clears every cooldown and
separate instances of the API do not see each other's marks.
"""
import functools
import heapq
import itertools
import logging
import threading
import time
from enum import Enum
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from social_api.exceptions import RateLimited

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    POST = "post"
    COMMENT = "comment"


class _TimerHandle:
    __slots__ = ("callback", "cancelled")

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TimerThreadScheduler:
    """Runs callbacks in due order from a single daemon thread.

    The thread starts on first use and sleeps until the earliest pending
    callback is due. Any object with ``call_later(delay, callback)``
    returning a handle that has ``cancel()`` can stand in for it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: List[Tuple[float, int, _TimerHandle]] = []
        self._sequence = itertools.count()
        self._condition = threading.Condition()
        self._thread: Optional[threading.Thread] = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TimerHandle:
        handle = _TimerHandle(callback)
        with self._condition:
            heapq.heappush(self._queue, (self._clock() + delay, next(self._sequence), handle))
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name="rate-gate-timer", daemon=True)
                self._thread.start()
            self._condition.notify()
        return handle

    def pending(self) -> int:
        with self._condition:
            return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def _next_due(self) -> _TimerHandle:
        with self._condition:
            while True:
                while self._queue and self._queue[0][2].cancelled:
                    heapq.heappop(self._queue)
                if not self._queue:
                    self._condition.wait()
                    continue

                due = self._queue[0][0]
                remaining = due - self._clock()
                if remaining <= 0:
                    return heapq.heappop(self._queue)[2]
                self._condition.wait(remaining)

    def _run(self) -> None:
        while True:
            handle = self._next_due()
            if handle.cancelled:
                continue
            try:
                handle.callback()
            except Exception:
                logger.exception("Rate gate timer callback failed")


class _Mark:
    __slots__ = ("deadline", "handle")

    def __init__(self, deadline: float):
        self.deadline = deadline
        self.handle = None


class RateGate:
    def __init__(
        self,
        cooldowns: Dict[ActionKind, float],
        clock: Callable[[], float] = time.monotonic,
        scheduler=None,
    ):
        self._cooldowns = dict(cooldowns)
        self._clock = clock
        self._scheduler = scheduler or TimerThreadScheduler()
        self._marks: Dict[Tuple[Hashable, ActionKind], _Mark] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "RateGate":
        return cls(
            {
                ActionKind.POST: settings.POST_COOLDOWN_SECONDS,
                ActionKind.COMMENT: settings.COMMENT_COOLDOWN_SECONDS,
            },
            **kwargs,
        )

    def cooldown(self, kind: ActionKind) -> float:
        try:
            return self._cooldowns[kind]
        except KeyError:
            raise ValueError(f"No cooldown configured for {kind!r}")

    def try_acquire(self, user_id: Hashable, kind: ActionKind) -> bool:
        """Mark ``user_id`` as active for ``kind`` unless it already is.

        Returns False, leaving the existing mark untouched, when the user is
        still cooling down.
        """
        cooldown = self.cooldown(kind)
        key = (user_id, kind)

        with self._lock:
            now = self._clock()
            current = self._marks.get(key)
            if current is not None:
                if current.deadline > now:
                    return False
                # Expired but its timer has not fired yet
                self._cancel(current)

            mark = _Mark(now + cooldown)
            self._marks[key] = mark
            mark.handle = self._scheduler.call_later(
                cooldown, functools.partial(self._release, key, mark)
            )

        logger.debug(f"Rate gate acquired: user={user_id}, kind={kind.value}, cooldown={cooldown}s")
        return True

    def require(self, user_id: Hashable, kind: ActionKind) -> None:
        if not self.try_acquire(user_id, kind):
            logger.info(f"Rate gate rejected user={user_id}, kind={kind.value}")
            raise RateLimited(f"Cannot {kind.value} again. Please wait for some time")

    def is_active(self, user_id: Hashable, kind: ActionKind) -> bool:
        with self._lock:
            mark = self._marks.get((user_id, kind))
            return mark is not None and mark.deadline > self._clock()

    def reset(self) -> None:
        """Drop every mark and cancel pending timers."""
        with self._lock:
            for mark in self._marks.values():
                self._cancel(mark)
            self._marks.clear()

    def _release(self, key: Tuple[Hashable, ActionKind], mark: _Mark) -> None:
        with self._lock:
            # A newer mark for the same key belongs to a later acquisition
            if self._marks.get(key) is mark:
                del self._marks[key]

    @staticmethod
    def _cancel(mark: _Mark) -> None:
        handle: Optional[object] = mark.handle
        if handle is not None:
            handle.cancel()
