import asyncio
import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(
        self,
        scheduler: "Scheduler",
        when: float,
        callback: Callable[[], None],
        interval: Optional[float] = None,
    ):
        self.scheduler = scheduler
        self.when = when
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not self.cancelled and (self.interval is not None or not self.fired)

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self.scheduler._discard(self)


class Scheduler:
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError("Scheduler.call_later() not implemented")

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError("Scheduler.call_every() not implemented")

    def _discard(self, handle: TimerHandle) -> None:
        raise NotImplementedError("Scheduler._discard() not implemented")


class ManualScheduler(Scheduler):
    """
    Clock that only moves when told to.

    eg.
        scheduler.call_later(0.15, search)
        scheduler.advance(0.1)   # nothing
        scheduler.advance(0.05)  # search()
    """

    def __init__(self):
        self.now = 0.0
        self._timers: List[TimerHandle] = []

    @property
    def active_timers(self) -> List[TimerHandle]:
        return [i for i in self._timers if i.active]

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self, self.now + delay, callback)
        self._timers.append(handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Var interval must be positive.")
        handle = TimerHandle(self, self.now + interval, callback, interval)
        self._timers.append(handle)
        return handle

    def _discard(self, handle: TimerHandle) -> None:
        if handle in self._timers:
            self._timers.remove(handle)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [i for i in self._timers if i.active and i.when <= target]
            if not due:
                break
            handle = min(due, key=lambda x: x.when)
            self.now = handle.when
            if handle.interval is None:
                handle.fired = True
                self._timers.remove(handle)
            else:
                handle.when += handle.interval
            handle.callback()
        self.now = target


class EventLoop(Scheduler):
    """
    Single-threaded loop on top of asyncio.

    Other threads hand work over with post(); timers and posted
    callbacks all run on the thread calling run_forever().
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.new_event_loop()
        self._native: Dict[int, asyncio.TimerHandle] = {}
        self._ran = 0

    def post(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon_threadsafe(self._run, callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self, self.loop.time() + delay, callback)
        self._arm(handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError("Var interval must be positive.")
        handle = TimerHandle(self, self.loop.time() + interval, callback, interval)
        self._arm(handle)
        return handle

    def _arm(self, handle: TimerHandle) -> None:
        self._native[id(handle)] = self.loop.call_at(handle.when, self._fire, handle)

    def _fire(self, handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        if handle.interval is None:
            handle.fired = True
            self._native.pop(id(handle), None)
        else:
            handle.when += handle.interval
            self._arm(handle)
        self._run(handle.callback)

    def _discard(self, handle: TimerHandle) -> None:
        native = self._native.pop(id(handle), None)
        if native is not None:
            native.cancel()

    def _run(self, callback: Callable[[], None]) -> None:
        self._ran += 1
        try:
            callback()
        except Exception:
            logger.exception("Unhandled error in event loop callback")

    def run_pending(self) -> int:
        """Run callbacks that are already due without waiting, returns how many ran"""
        before = self._ran
        self.loop.call_soon(self.loop.stop)
        self.loop.run_forever()
        return self._ran - before

    def run_forever(self) -> None:
        self.loop.run_forever()

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)

    def close(self) -> None:
        for native in self._native.values():
            native.cancel()
        self._native.clear()
        self.loop.close()
