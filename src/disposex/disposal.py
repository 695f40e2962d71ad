"""Single-object disposal — run one stored action exactly once.

    dispose_object(fn, True)              # fn()
    dispose_object(task, True)            # task.cancel(), deferred if needed
    dispose_object(conn, "disconnect")    # conn.disconnect()
    dispose_object(obj, "close")          # obj.close() if it exists

Errors raised by the action itself are not caught here.

Cancelling an asyncio task from inside that same task, or from a thread
other than the one running its loop, is handed to a deferrer instead of
being done in place. By default the task's own loop schedules it; call
set_deferrer() to route deferred work elsewhere.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from disposex.methods import INVOKE, Action, is_task

logger = logging.getLogger("disposex.disposal")

# ─── Deferral ────────────────────────────────────────────────────────────────
_deferrer: Callable[[Callable[[], None]], None] | None = None


def set_deferrer(deferrer: Callable[[Callable[[], None]], None] | None) -> None:
    """Set the global hook used for deferred cancellations.

    The hook receives a zero-argument callable and must run it later, on the
    thread that owns the task. Pass None to restore the default (the task's
    own event loop).

    Usage:
        disposex.set_deferrer(app.call_from_thread)
    """
    global _deferrer
    _deferrer = deferrer


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def cancel_task(task) -> None:
    """Cancel a suspendable task, deferring when it cannot be done in place."""
    if not isinstance(task, asyncio.Future):
        task.cancel()
        return

    loop = task.get_loop()
    running = _running_loop()
    if running is loop:
        if asyncio.current_task(loop) is not task:
            task.cancel()
            return
        schedule = loop.call_soon
    elif not loop.is_running():
        # Idle loop: nothing else can be touching the task.
        task.cancel()
        return
    else:
        schedule = loop.call_soon_threadsafe

    logger.debug("Deferring cancellation of %r", task)
    if _deferrer is not None:
        _deferrer(task.cancel)
    else:
        schedule(task.cancel)


def dispose_object(obj: object, action: Action) -> None:
    """Perform obj's disposal action. A missing method is skipped silently."""
    if action is INVOKE:
        if is_task(obj):
            cancel_task(obj)
        elif callable(obj):
            obj()
        return

    method = getattr(obj, action, None)
    if method is not None:
        method()
