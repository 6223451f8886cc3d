import threading
import time

from sheetsync.errors import SyncCancelled


class Deadline:
    """Caller-supplied time budget and cancellation signal for one run.

    ``check()`` is called before every network call; ``timeout()`` bounds the
    per-request timeout handed to HTTP clients so an in-flight call cannot
    outlive the run.
    """

    def __init__(self, seconds=None, cancel_event=None, clock=time.monotonic):
        self._clock = clock
        self._expires_at = clock() + seconds if seconds is not None else None
        self.cancel_event = cancel_event or threading.Event()

    def remaining(self):
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self):
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cancel(self):
        self.cancel_event.set()

    def check(self, stage):
        if self.cancel_event.is_set():
            raise SyncCancelled(f"Sync cancelled before {stage}")
        if self.expired:
            raise SyncCancelled(f"Deadline exceeded before {stage}")

    def timeout(self, cap):
        remaining = self.remaining()
        if remaining is None:
            return cap
        return min(cap, remaining)


def check(deadline, stage):
    if deadline is not None:
        deadline.check(stage)


def timeout(deadline, cap):
    return deadline.timeout(cap) if deadline is not None else cap
