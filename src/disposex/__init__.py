"""disposex: one uniform place to collect and run cleanup obligations."""

from importlib.metadata import version as _version

__version__ = _version("disposex")

from disposex.methods import (
    DISCONNECT,
    DISPOSE,
    INVOKE,
    default_method,
    register_default,
    unregister_default,
)
from disposex.disposal import set_deferrer
from disposex.signal import Connection, Destroyable, Signal
from disposex.tracker import Tracker, TrackerDestroyedError, TrackerState, link_key
# textual NOT auto-imported — opt-in only

__all__ = [
    "Tracker",
    "TrackerState",
    "TrackerDestroyedError",
    "link_key",
    "Signal",
    "Connection",
    "Destroyable",
    "INVOKE",
    "DISPOSE",
    "DISCONNECT",
    "default_method",
    "register_default",
    "unregister_default",
    "set_deferrer",
]
