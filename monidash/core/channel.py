"""Single-consumer channels and a multiplexed wait over them.

A ``Channel`` hands values from one or more producer threads to a single
consumer.  ``send`` blocks until the value has been received, or, for a
channel created with ``capacity > 0``, until at most ``capacity`` values are
waiting.  ``select`` waits on several channels at once and returns exactly
one ready value, picking at random when more than one channel is ready.
"""

from __future__ import annotations

import collections
import random
import threading
import time
from typing import Any, Generic, TypeVar

from monidash.errors import ChannelClosed

T = TypeVar("T")


class Channel(Generic[T]):
    """A blocking hand-off queue with an optional buffer.

    Parameters
    ----------
    capacity:
        Number of values that may wait unreceived before ``send`` blocks.
        ``0`` (the default) makes every ``send`` a rendezvous.
    name:
        Label used in ``repr`` only.
    """

    def __init__(self, capacity: int = 0, *, name: str = "") -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self._capacity = capacity
        self._name = name
        self._cond = threading.Condition()
        self._items: collections.deque[T] = collections.deque()
        self._sent = 0
        self._received = 0
        self._closed = False
        self._wakers: set[threading.Event] = set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def send(self, value: T) -> None:
        """Deliver *value*, blocking until the channel has room for it.

        Raises
        ------
        ChannelClosed
            If the channel is closed before or while waiting.
        """
        with self._cond:
            if self._closed:
                raise ChannelClosed(f"send on closed channel {self._name!r}")
            self._items.append(value)
            self._sent += 1
            ticket = self._sent
            self._wake()
            while ticket - self._received > self._capacity:
                if self._closed:
                    raise ChannelClosed(f"channel {self._name!r} closed during send")
                self._cond.wait()

    def close(self) -> None:
        """Close the channel, waking every blocked sender and receiver.

        Values already queued can still be received.
        """
        with self._cond:
            self._closed = True
            self._cond.notify_all()
            self._wake()

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def try_receive(self) -> tuple[T | None, bool]:
        """Take a value without blocking.

        Returns ``(value, True)`` when a value was waiting and
        ``(None, False)`` otherwise.  Use ``closed`` to tell an empty
        channel from a finished one.
        """
        with self._cond:
            if not self._items:
                return None, False
            value = self._items.popleft()
            self._received += 1
            self._cond.notify_all()
            return value, True

    def receive(self, timeout: float | None = None) -> tuple[T | None, bool]:
        """Block until a value arrives.

        Returns ``(value, True)``, or ``(None, False)`` once the channel is
        closed and drained, or when *timeout* expires.
        """
        with self._cond:
            if not self._cond.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            ):
                return None, False
        return self.try_receive()

    # ------------------------------------------------------------------
    # select() support
    # ------------------------------------------------------------------

    def _add_waker(self, waker: threading.Event) -> None:
        with self._cond:
            self._wakers.add(waker)

    def _remove_waker(self, waker: threading.Event) -> None:
        with self._cond:
            self._wakers.discard(waker)

    def _wake(self) -> None:
        for waker in self._wakers:
            waker.set()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Channel(name={self._name!r}, capacity={self._capacity}, {state})"


def select(
    *channels: Channel[Any], timeout: float | None = None
) -> tuple[Channel[Any] | None, Any, bool]:
    """Wait until one of *channels* has a value or is closed.

    Returns
    -------
    tuple
        ``(channel, value, True)`` for a received value,
        ``(channel, None, False)`` for a closed and drained channel, or
        ``(None, None, False)`` if *timeout* expires first.
    """
    if not channels:
        raise ValueError("select() needs at least one channel")

    deadline = None if timeout is None else time.monotonic() + timeout
    waker = threading.Event()
    for channel in channels:
        channel._add_waker(waker)
    try:
        while True:
            waker.clear()
            order = list(channels)
            random.shuffle(order)
            for channel in order:
                value, ok = channel.try_receive()
                if ok:
                    return channel, value, True
            for channel in order:
                if channel.closed and len(channel) == 0:
                    return channel, None, False
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return None, None, False
            waker.wait(remaining)
    finally:
        for channel in channels:
            channel._remove_waker(waker)
