"""Textual integration for disposex. Opt-in — requires textual.

Importing this module teaches trackers how to dispose Textual's own
handles: timers are stopped, workers are cancelled.

    from disposex import textual as dtx

    class Clock(Widget):
        def on_mount(self):
            self.tracker = Tracker()
            dtx.track_interval(self.tracker, self, 1.0, self.tick, "tick")
            dtx.track_worker(self.tracker, self, self.fetch(), "fetch")

        def on_unmount(self):
            self.tracker.destroy()
"""

from __future__ import annotations

from textual.timer import Timer
from textual.worker import Worker

from disposex.methods import register_default

STOP = "stop"
CANCEL = "cancel"

register_default(Timer, STOP)
register_default(Worker, CANCEL)


def track_interval(tracker, node, interval, callback, key=None, **kwargs) -> Timer:
    """node.set_interval(...) whose timer is stopped by the tracker."""
    return tracker.add(node.set_interval(interval, callback, **kwargs), STOP, key)


def track_timer(tracker, node, delay, callback, key=None, **kwargs) -> Timer:
    """node.set_timer(...) whose timer is stopped by the tracker."""
    return tracker.add(node.set_timer(delay, callback, **kwargs), STOP, key)


def track_worker(tracker, node, work, key=None, **kwargs) -> Worker:
    """node.run_worker(...) whose worker is cancelled by the tracker."""
    return tracker.add(node.run_worker(work, **kwargs), CANCEL, key)
