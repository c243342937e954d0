"""Cancellable subscription token shared by auth, profile and location feeds."""

from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Handler = Callable[[T], Awaitable[None]]


class Subscription:
    """Handle returned by every ``watch``/``subscribe`` call.

    ``cancel()`` releases the underlying registration exactly once; later
    calls are no-ops.
    """

    def __init__(self, on_cancel: Callable[[], None] | None = None) -> None:
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class HandlerRegistry(Generic[T]):
    """Ordered set of async handlers; each registration returns a Subscription."""

    def __init__(self) -> None:
        self._handlers: dict[int, Handler[T]] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._handlers)

    def add(self, handler: Handler[T]) -> Subscription:
        handler_id = self._next_id
        self._next_id += 1
        self._handlers[handler_id] = handler
        return Subscription(lambda: self._handlers.pop(handler_id, None))

    def handlers(self) -> list[Handler[T]]:
        """Copy of the registered handlers, in registration order."""
        return list(self._handlers.values())

    async def emit(self, value: T) -> None:
        """Await every handler in registration order."""
        for handler in self.handlers():
            await handler(value)
