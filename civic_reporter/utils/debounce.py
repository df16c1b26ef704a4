"""
Debounce helper for input-driven lookups.

The scheduler is anything exposing `call_later(delay, callback, *args)` that
returns a handle with `cancel()`. An asyncio event loop satisfies this, and
tests pass a manual clock.
"""

from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any:
        ...


class Debouncer:
    """Runs only the last callback scheduled within `delay` seconds."""

    def __init__(self, delay: float, scheduler: Scheduler):
        self.delay = delay
        self.scheduler = scheduler
        self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        self.cancel()
        self._handle = self.scheduler.call_later(self.delay, self._fire, callback, args)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[..., Any], args: tuple) -> None:
        self._handle = None
        callback(*args)


class ManualScheduler:
    """
    Deterministic scheduler driven by `advance(seconds)`.

    Used by tests and by request-scoped searches that never wait.
    """

    class _Handle:
        def __init__(self, when: float, callback: Callable[..., Any], args: tuple):
            self.when = when
            self.callback = callback
            self.args = args
            self.cancelled = False

        def cancel(self) -> None:
            self.cancelled = True

    def __init__(self):
        self.now = 0.0
        self._handles = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> "_Handle":
        handle = self._Handle(self.now + delay, callback, args)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(
            (h for h in self._handles if not h.cancelled and h.when <= self.now),
            key=lambda h: h.when,
        )
        self._handles = [h for h in self._handles if not h.cancelled and h.when > self.now]
        for handle in due:
            handle.callback(*handle.args)

    def pending_count(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

