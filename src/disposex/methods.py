"""Disposal-method resolution — decide how a tracked object gets cleaned up.

A disposal action is either ``True`` (invoke: call it, or cancel it if it
is a task) or a method name. Resolution happens once, at add time:

    resolve(lambda: None)              # True
    resolve(task)                      # True
    resolve(connection)                # "disconnect"
    resolve(widget)                    # "dispose"
    resolve(timer, "stop")             # "stop"

Validation is advisory. An object that cannot be checked up front is still
tracked; the warning's log record carries the call site that registered it.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import types
from typing import Union

logger = logging.getLogger("disposex.methods")

INVOKE = True
DISPOSE = "dispose"
DISCONNECT = "disconnect"

Action = Union[bool, str]

# Suspendable tasks: Invoke means cancel.
TASK_TYPES: tuple[type, ...] = (asyncio.Future, concurrent.futures.Future)

# Plain procedures: Invoke means call. Callable instances are not listed;
# they usually carry a disposal method of their own.
PROCEDURE_TYPES: tuple[type, ...] = (
    types.FunctionType,
    types.MethodType,
    types.BuiltinFunctionType,
    types.BuiltinMethodType,
    functools.partial,
)

# ─── Type defaults ───────────────────────────────────────────────────────────
_type_defaults: dict[type, Action] = {
    asyncio.Future: INVOKE,
    concurrent.futures.Future: INVOKE,
}


def register_default(cls: type, method: Action) -> None:
    """Set the disposal action used for instances of cls (and subclasses).

    Usage:
        register_default(Timer, "stop")
        tracker.add(node.set_interval(1, tick))   # stopped on cleanup
    """
    if method is not INVOKE and not isinstance(method, str):
        raise TypeError(f"method must be True or a method name, got {method!r}")
    _type_defaults[cls] = method


def unregister_default(cls: type) -> None:
    _type_defaults.pop(cls, None)


def default_method(obj: object) -> Action:
    """Action used when the caller passes no method for obj."""
    for cls in type(obj).__mro__:
        method = _type_defaults.get(cls)
        if method is not None:
            return method
    if callable(obj):
        return INVOKE
    return DISPOSE


def is_task(obj: object) -> bool:
    return isinstance(obj, TASK_TYPES)


def is_procedure(obj: object) -> bool:
    return isinstance(obj, PROCEDURE_TYPES)


# ─── Resolution ──────────────────────────────────────────────────────────────
def resolve(obj: object, method: Action | None = None, *, stacklevel: int = 1) -> Action:
    """Return the action to store for obj.

    Warnings are attributed stacklevel frames above resolve's caller
    (1 = the caller itself), as with logging and warnings.
    """
    if method is None or method is False:
        action = default_method(obj)
    elif method is True or isinstance(method, str):
        action = method
    else:
        raise TypeError(f"method must be True or a method name, got {method!r}")
    _validate(obj, action, stacklevel)
    return action


def _validate(obj: object, action: Action, stacklevel: int) -> None:
    # Log records point at whoever registered obj, not at this module.
    stacklevel += 2
    if is_procedure(obj) or is_task(obj):
        if action is not INVOKE:
            kind = "task" if is_task(obj) else "function"
            logger.warning(
                "Object is a %s and as such expected True for the method name "
                "and instead got %r",
                kind, action, stacklevel=stacklevel,
            )
    elif action is INVOKE:
        if not callable(obj):
            logger.warning(
                "Object %r is not callable, are you sure you want to add it "
                "with method True?",
                obj, stacklevel=stacklevel,
            )
    elif getattr(obj, action, None) is None:
        logger.warning(
            "Object %r doesn't have method %r, are you sure you want to add it?",
            obj, action, stacklevel=stacklevel,
        )
