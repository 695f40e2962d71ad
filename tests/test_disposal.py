"""Tests for the single-object disposal primitive."""

import asyncio
import concurrent.futures
import threading

import pytest

from disposex import set_deferrer
from disposex.disposal import cancel_task, dispose_object


class _Handle:
    def __init__(self):
        self.calls = []

    def dispose(self):
        self.calls.append("dispose")

    def disconnect(self):
        self.calls.append("disconnect")

    def close(self):
        self.calls.append("close")


class TestInvoke:
    def test_calls_function(self):
        calls = []
        dispose_object(lambda: calls.append(1), True)
        assert calls == [1]

    def test_non_callable_is_skipped(self):
        dispose_object(object(), True)  # no error

    def test_cancels_concurrent_future(self):
        fut = concurrent.futures.Future()
        dispose_object(fut, True)
        assert fut.cancelled()


class TestMethodName:
    @pytest.mark.parametrize("name", ["dispose", "disconnect", "close"])
    def test_calls_named_method(self, name):
        h = _Handle()
        dispose_object(h, name)
        assert h.calls == [name]

    def test_missing_method_is_skipped(self):
        dispose_object(object(), "close")  # no error

    def test_errors_propagate(self):
        class Broken:
            def dispose(self):
                raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            dispose_object(Broken(), "dispose")


class TestTaskCancellation:
    def test_cancels_other_task_immediately(self):
        async def main():
            task = asyncio.create_task(asyncio.sleep(10))
            await asyncio.sleep(0)
            dispose_object(task, True)
            with pytest.raises(asyncio.CancelledError):
                await task
            return task.cancelled()

        assert asyncio.run(main()) is True

    def test_self_cancellation_is_deferred(self):
        reached = []

        async def worker():
            dispose_object(asyncio.current_task(), True)
            # Still running: cancellation lands at the next suspension point.
            reached.append("after-dispose")
            await asyncio.sleep(10)
            reached.append("never")

        async def main():
            task = asyncio.create_task(worker())
            with pytest.raises(asyncio.CancelledError):
                await task
            return task.cancelled()

        assert asyncio.run(main()) is True
        assert reached == ["after-dispose"]

    def test_idle_loop_cancels_in_place(self):
        loop = asyncio.new_event_loop()
        try:
            fut = loop.create_future()
            cancel_task(fut)
            assert fut.cancelled()
        finally:
            loop.close()

    def test_cross_thread_cancellation_is_marshalled(self):
        loop = asyncio.new_event_loop()
        started = threading.Event()
        holder = {}

        async def main():
            holder["fut"] = loop.create_future()
            started.set()
            try:
                await holder["fut"]
            except asyncio.CancelledError:
                return "cancelled"

        thread = threading.Thread(target=lambda: holder.update(result=loop.run_until_complete(main())))
        thread.start()
        assert started.wait(timeout=2)
        cancel_task(holder["fut"])
        thread.join(timeout=2)
        loop.close()
        assert holder["result"] == "cancelled"

    def test_custom_deferrer(self):
        deferred = []
        set_deferrer(deferred.append)
        try:
            async def worker():
                dispose_object(asyncio.current_task(), True)
                return "finished"

            async def main():
                task = asyncio.create_task(worker())
                return await task

            assert asyncio.run(main()) == "finished"
        finally:
            set_deferrer(None)
        assert len(deferred) == 1
