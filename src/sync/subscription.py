"""
Cancellable snapshot subscription.

A Subscription is the handle a channel returns from `open()`. It owns the
store listener registration and is the only way to stop it. Closing is
synchronous and idempotent: once `unsubscribe()` returns, no further
snapshot reaches application state through this subscription, even if the
store had already queued one.

Subscriptions can also be consumed as an async stream of full snapshots:

    async with channel.open(path) as subscription:
        async for tasks in subscription:
            ...

Only one consumer should iterate a given subscription.
"""

import asyncio
from typing import AsyncIterator, Callable, Generic, Optional, TypeVar

from src.services.storage.interface import ListenerRegistration


T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """Handle for one active listener on one store path."""

    def __init__(
        self,
        name: str,
        path: str,
        on_close: Optional[Callable[["Subscription[T]"], None]] = None,
    ):
        self.name = name
        self.path = path
        self.emissions = 0
        self._on_close = on_close
        self._registration: Optional[ListenerRegistration] = None
        self._closed = False
        self._latest: Optional[T] = None
        self._has_latest = False
        self._queue: Optional[asyncio.Queue] = None

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self.name} {self.path} {state}>"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def latest(self) -> Optional[T]:
        return self._latest

    def attach(self, registration: ListenerRegistration) -> None:
        """Take ownership of the store listener."""
        if self._closed:
            registration.remove()
            return
        self._registration = registration

    def deliver(self, value: T) -> bool:
        """Record a snapshot. Returns False if the subscription is closed."""
        if self._closed:
            return False
        self.emissions += 1
        self._latest = value
        self._has_latest = True
        if self._queue is not None:
            self._queue.put_nowait(value)
        return True

    def unsubscribe(self) -> None:
        """Stop the listener. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        registration, self._registration = self._registration, None
        if registration is not None:
            registration.remove()
        if self._queue is not None:
            self._queue.put_nowait(_CLOSED)
        if self._on_close is not None:
            self._on_close(self)

    # ------------------------------------------------------------------
    # Stream interface
    # ------------------------------------------------------------------

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        if self._queue is None:
            self._queue = asyncio.Queue()
            if self._has_latest:
                self._queue.put_nowait(self._latest)
            if self._closed:
                self._queue.put_nowait(_CLOSED)
        while True:
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()
