"""Tracker — one place to collect cleanup obligations and run them once.

A Tracker accepts anything that needs tearing down: callbacks, asyncio
tasks, signal connections, objects with a dispose()/close()/stop() method.
Each object is stored with the action that disposes it. cleanup() runs
every action and empties the tracker; destroy() does the same and then
retires the tracker for good.

Objects may be added under a key. A key holds one object at a time:
adding under an occupied key disposes the previous occupant first.

    tracker = Tracker()
    tracker.add(lambda: print("bye"))
    tracker.add(loop.create_task(poll()))                # cancelled
    tracker.connect(store.changed, on_change, "sync")    # disconnected
    tracker.add(open(path), "close", "log")

    tracker.remove("log")     # closes the file now
    tracker.cleanup()         # everything else

Disposal order is arbitrary. An exception raised by a disposal action
propagates out of cleanup()/remove(); entries not yet reached stay
tracked. Not safe for concurrent use from several threads or tasks without
external synchronization.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Callable, TypeVar

from disposex import _anchor
from disposex.disposal import dispose_object
from disposex.methods import DISCONNECT, Action, resolve

logger = logging.getLogger("disposex.tracker")

T = TypeVar("T")

LINK_KEY = "__linked"


def link_key(instance) -> tuple[str, int]:
    """Key of an allow_multiple link to instance. Identity-based, so hosts
    need not be hashable and equal hosts do not share a link."""
    return (LINK_KEY, id(instance))


class TrackerDestroyedError(RuntimeError):
    """A tracker was used after destroy()."""


class TrackerState(enum.Enum):
    IDLE = "idle"
    DISPOSING = "disposing"
    DESTROYED = "destroyed"


class Tracker:
    """Container of disposal obligations."""

    __slots__ = ("_obligations", "_state", "__weakref__")

    def __init__(self) -> None:
        # id(obj) -> (obj, action)
        self._obligations: dict[int, tuple[Any, Action]] = {}
        self._state = TrackerState.IDLE

    # --- Inspection ---

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_disposing(self) -> bool:
        return self._state is TrackerState.DISPOSING

    def get(self, key: Any) -> Any | None:
        """Object currently stored under key, or None."""
        index = _anchor.index_for(self)
        if index is None:
            return None
        return index.get(key)

    def __len__(self) -> int:
        return len(self._obligations)

    def __contains__(self, obj: object) -> bool:
        entry = self._obligations.get(id(obj))
        return entry is not None and entry[0] is obj

    def __repr__(self) -> str:
        index = _anchor.index_for(self)
        keys = len(index) if index else 0
        return f"Tracker({self._state.value}, {len(self._obligations)} objects, {keys} keys)"

    # --- Adding ---

    def add(self, obj: T, method: Action | None = None, key: Any = None) -> T:
        """Track obj and return it unchanged.

        method is True (call or cancel obj), a method name, or None to pick
        the default for obj's type. With a key, whatever already occupies
        that key is removed and disposed first.

        Usage:
            part = tracker.add(Part(), "dispose", "part")
        """
        self._check_alive()
        return self._add(obj, method, key)

    def _add(self, obj: T, method: Action | None, key: Any) -> T:
        # Every public entry point calls this directly, so the caller of
        # add/construct/connect/link_to_instance is always 3 frames up.
        action = resolve(obj, method, stacklevel=3)

        if key is not None and self.get(key) is not obj:
            self._remove_key(key, clean=True)
            _anchor.bind(self, key, obj)

        self._obligations[id(obj)] = (obj, action)
        return obj

    def construct(
        self,
        factory: Callable[..., T],
        method: Action | None = None,
        key: Any = None,
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Shorthand for ``add(factory(*args, **kwargs), method, key)``."""
        self._check_alive()
        return self._add(factory(*args, **kwargs), method, key)

    def connect(self, signal, callback: Callable[..., Any], key: Any = None):
        """Connect callback to signal and track the connection.

        Returns the Connection; cleanup() disconnects it.
        """
        self._check_alive()
        return self._add(signal.connect(callback), DISCONNECT, key)

    def link_to_instance(self, instance, allow_multiple: bool = False):
        """Run cleanup() when instance fires its ``destroying`` signal.

        The tracker stays usable afterwards. Only one link is kept unless
        allow_multiple is set, in which case each instance (by identity)
        gets its own, retrievable with ``get(link_key(instance))``.
        """
        self._check_alive()
        key = link_key(instance) if allow_multiple else LINK_KEY
        return self._add(
            instance.destroying.connect(self._on_linked_destroying), DISCONNECT, key
        )

    def _on_linked_destroying(self, *args: Any) -> None:
        if self._state is not TrackerState.DESTROYED:
            self.cleanup()

    # --- Removing ---

    def remove(self, *keys: Any) -> Tracker:
        """Dispose and forget the objects stored under keys.

        Unknown keys are ignored, so calling this twice is harmless.
        """
        self._check_alive()
        for key in keys:
            self._remove_key(key, clean=True)
        return self

    def remove_no_clean(self, *keys: Any) -> Tracker:
        """Forget the objects stored under keys without disposing them."""
        self._check_alive()
        for key in keys:
            self._remove_key(key, clean=False)
        return self

    def _remove_key(self, key: Any, *, clean: bool) -> None:
        obj = _anchor.unbind_key(self, key)
        if obj is None:
            return
        # Other keys on the same object go with its obligation.
        _anchor.unbind_object(self, obj)
        entry = self._obligations.pop(id(obj), None)
        if entry is not None and clean:
            dispose_object(obj, entry[1])

    # --- Cleanup ---

    def cleanup(self, delay: float | None = None) -> None:
        """Dispose every tracked object, including ones added while draining.

        With a delay, blocks the calling thread for that many seconds first.
        Inside a coroutine use ``await acleanup(delay)`` instead.
        """
        self._check_alive()
        if delay is not None:
            time.sleep(delay)
            self._check_alive()
        self._drain()

    async def acleanup(self, delay: float | None = None) -> None:
        """cleanup() with a cooperative delay."""
        self._check_alive()
        if delay is not None:
            await asyncio.sleep(delay)
            self._check_alive()
        self._drain()

    def _drain(self) -> None:
        previous = self._state
        self._state = TrackerState.DISPOSING
        count = 0
        try:
            # Pop entry and keys before disposing: an action may add or
            # remove entries, or raise.
            while self._obligations:
                _, (obj, action) = self._obligations.popitem()
                _anchor.unbind_object(self, obj)
                dispose_object(obj, action)
                count += 1
            _anchor.discard(self)
        finally:
            if self._state is TrackerState.DISPOSING:
                self._state = previous
        logger.debug("Drained %d objects from %r", count, self)

    def destroy(self) -> None:
        """cleanup(), then retire the tracker. Any later mutation raises."""
        self._check_alive()
        self._drain()
        self._obligations.clear()
        _anchor.discard(self)
        self._state = TrackerState.DESTROYED

    # Lets a tracker be tracked by another tracker with the default method.
    dispose = destroy

    def __enter__(self) -> Tracker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._state is not TrackerState.DESTROYED:
            self.destroy()

    def _check_alive(self) -> None:
        if self._state is TrackerState.DESTROYED:
            raise TrackerDestroyedError("Tracker has been destroyed")
