"""Signals — minimal in-process event sources with disconnectable handles.

    changed = Signal()
    conn = changed.connect(lambda v: print(v))
    changed.fire(1)      # prints 1
    conn.disconnect()
    changed.fire(2)      # nothing

Destroyable gives any class a ``destroying`` signal, which is what
Tracker.link_to_instance listens to.
"""

from __future__ import annotations

from typing import Any, Callable

from disposex.methods import DISCONNECT, register_default


class Connection:
    """Handle for one signal subscription. disconnect() is idempotent."""

    __slots__ = ("_signal", "_callback")

    def __init__(self, signal: Signal, callback: Callable[..., Any]) -> None:
        self._signal: Signal | None = signal
        self._callback = callback

    @property
    def connected(self) -> bool:
        return self._signal is not None

    @property
    def callback(self) -> Callable[..., Any]:
        return self._callback

    def disconnect(self) -> None:
        signal = self._signal
        if signal is None:
            return
        self._signal = None
        try:
            signal._connections.remove(self)
        except ValueError:
            pass  # already dropped by disconnect_all

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        name = getattr(self._callback, "__name__", repr(self._callback))
        return f"Connection({name}, {state})"


register_default(Connection, DISCONNECT)


class Signal:
    """Push-based event source. Callbacks run in connection order."""

    __slots__ = ("_connections",)

    def __init__(self) -> None:
        self._connections: list[Connection] = []

    def connect(self, callback: Callable[..., Any]) -> Connection:
        """Register a callback. Returns the Connection that removes it."""
        connection = Connection(self, callback)
        self._connections.append(connection)
        return connection

    def fire(self, *args: Any) -> None:
        """Call every connected callback with args.

        Iterates a snapshot, so callbacks may disconnect themselves or others.
        A callback disconnected earlier in the same fire is skipped.
        """
        for connection in list(self._connections):
            if connection.connected:
                connection.callback(*args)

    def disconnect_all(self) -> None:
        for connection in self._connections:
            connection._signal = None
        self._connections.clear()

    def __len__(self) -> int:
        return len(self._connections)

    def __repr__(self) -> str:
        return f"Signal({len(self._connections)} connections)"


class Destroyable:
    """Mixin: an object that announces its own destruction once.

    Usage:
        class Panel(Destroyable):
            ...

        panel = Panel()
        tracker.link_to_instance(panel)
        panel.destroy()   # tracker.cleanup() runs
    """

    def __init__(self) -> None:
        self.destroying = Signal()
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self.destroying.fire()
        self.destroying.disconnect_all()
