from abc import ABC, abstractmethod
import heapq
import itertools
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple


class TimerHandle:
    """A pending single-shot or periodic callback.

    A handle is dead once it has been cancelled or, for single-shot handles,
    once it has fired. Dead handles never run their callback again.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int, periodic: bool, purpose: Optional[str] = None):
        self.callback = callback
        self.interval_ms = interval_ms
        self.periodic = periodic
        self.purpose = purpose
        self.cancelled = False
        self.finished = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def __repr__(self):
        kind = 'every' if self.periodic else 'after'
        return f"<TimerHandle {kind} {self.interval_ms}ms purpose={self.purpose} active={self.active}>"


class TimerService(ABC):
    """Delayed and periodic callbacks with at most one live handle per purpose.

    - Arming a handle for a purpose first cancels the live handle of that purpose
    - A cancelled handle never fires, even if it was already due
    - Callbacks run while holding ``lock``; callers that mutate the same state
      take the lock too, so there is a single mutator at any time

    Subclasses decide how time passes (``_schedule``) and how fire-and-continue
    jobs run (``spawn``).
    """

    def __init__(self, logger=None):
        self.lock = threading.RLock()
        self.logger = logger or logging.getLogger(__name__)
        self._by_purpose: Dict[str, TimerHandle] = {}

    def after(self, duration_ms: int, callback: Callable[[], None], purpose: Optional[str] = None) -> TimerHandle:
        return self._arm(TimerHandle(callback, int(duration_ms), False, purpose))

    def every(self, interval_ms: int, callback: Callable[[], None], purpose: Optional[str] = None) -> TimerHandle:
        return self._arm(TimerHandle(callback, int(interval_ms), True, purpose))

    def every_second(self, callback: Callable[[], None], purpose: Optional[str] = None) -> TimerHandle:
        return self.every(1000, callback, purpose)

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is None:
            return
        with self.lock:
            if handle.active:
                self.logger.debug(f"[timer-cancel] purpose={handle.purpose}")
            handle.cancelled = True
            self._release(handle)

    def cancel_purpose(self, purpose: str) -> None:
        with self.lock:
            self.cancel(self._by_purpose.get(purpose))

    def cancel_all(self, keep: Iterable[str] = ()) -> None:
        keep = set(keep)
        with self.lock:
            for purpose, handle in list(self._by_purpose.items()):
                if purpose not in keep:
                    self.cancel(handle)

    def active_purposes(self) -> Set[str]:
        with self.lock:
            return {p for p, h in self._by_purpose.items() if h.active}

    @abstractmethod
    def spawn(self, fn: Callable, *args) -> None:
        """Run a fire-and-continue job."""

    def _arm(self, handle: TimerHandle) -> TimerHandle:
        with self.lock:
            if handle.purpose is not None:
                self.cancel(self._by_purpose.get(handle.purpose))
                self._by_purpose[handle.purpose] = handle
            self._schedule(handle)
        self.logger.debug(
            f"[timer-set] purpose={handle.purpose} interval={handle.interval_ms}ms periodic={handle.periodic}"
        )
        return handle

    def _release(self, handle: TimerHandle) -> None:
        if handle.purpose is not None and self._by_purpose.get(handle.purpose) is handle:
            del self._by_purpose[handle.purpose]

    def _fire(self, handle: TimerHandle) -> bool:
        """Run the callback unless the handle is dead. Caller holds ``lock``."""
        if not handle.active:
            return False
        if not handle.periodic:
            handle.finished = True
            self._release(handle)
        handle.callback()
        return True

    @abstractmethod
    def _schedule(self, handle: TimerHandle) -> None:
        """Arrange for ``_fire`` to be called once the handle is due."""


class SocketIOTimerService(TimerService):
    """Runs each handle as a Socket.IO background task.

    ``socketio.sleep`` yields cooperatively under eventlet/gevent and falls back
    to ``time.sleep`` in threading mode; the shared lock keeps callbacks from
    interleaving in either case.
    """

    def __init__(self, socketio, logger=None):
        super().__init__(logger)
        self.socketio = socketio

    def spawn(self, fn: Callable, *args) -> None:
        self.socketio.start_background_task(fn, *args)

    def _schedule(self, handle: TimerHandle) -> None:
        self.socketio.start_background_task(self._worker, handle)

    def _worker(self, handle: TimerHandle) -> None:
        while handle.active:
            self.socketio.sleep(handle.interval_ms / 1000.0)
            with self.lock:
                if not self._fire(handle) or not handle.periodic:
                    return


class ManualTimerService(TimerService):
    """Virtual clock that only moves when ``advance`` is called.

    Spawned jobs are queued and run by ``run_pending`` (``advance`` drains them
    too), which keeps the whole game deterministic in tests.
    """

    def __init__(self, logger=None):
        super().__init__(logger)
        self.now_ms = 0
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._jobs: List[Tuple[Callable, tuple]] = []

    def spawn(self, fn: Callable, *args) -> None:
        self._jobs.append((fn, args))

    @property
    def pending_jobs(self) -> int:
        return len(self._jobs)

    def run_pending(self) -> None:
        while self._jobs:
            fn, args = self._jobs.pop(0)
            fn(*args)

    def advance(self, ms: int) -> None:
        target = self.now_ms + int(ms)
        self.run_pending()
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self.now_ms = due
            with self.lock:
                if handle.periodic:
                    heapq.heappush(self._queue, (due + handle.interval_ms, next(self._seq), handle))
                self._fire(handle)
            self.run_pending()
        self.now_ms = target

    def _schedule(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (self.now_ms + handle.interval_ms, next(self._seq), handle))
