"""Tests for Signal, Connection and Destroyable."""

from disposex import Destroyable, Signal


class TestSignal:
    def test_fire_reaches_callbacks(self):
        sig = Signal()
        received = []
        sig.connect(lambda v: received.append(v))
        sig.fire(1)
        sig.fire(2)
        assert received == [1, 2]

    def test_disconnect(self):
        sig = Signal()
        received = []
        conn = sig.connect(lambda v: received.append(v))
        sig.fire(1)
        conn.disconnect()
        sig.fire(2)
        assert received == [1]
        assert not conn.connected
        assert len(sig) == 0

    def test_disconnect_idempotent(self):
        conn = Signal().connect(lambda: None)
        conn.disconnect()
        conn.disconnect()  # should not raise

    def test_callback_may_disconnect_itself(self):
        sig = Signal()
        received = []

        def once(v):
            received.append(v)
            conn.disconnect()

        conn = sig.connect(once)
        sig.fire("a")
        sig.fire("b")
        assert received == ["a"]

    def test_disconnected_mid_fire_is_skipped(self):
        sig = Signal()
        received = []
        sig.connect(lambda: second.disconnect())
        second = sig.connect(lambda: received.append("second"))
        sig.fire()
        assert received == []

    def test_disconnect_all(self):
        sig = Signal()
        a = sig.connect(lambda: None)
        b = sig.connect(lambda: None)
        sig.disconnect_all()
        assert not a.connected and not b.connected
        assert len(sig) == 0


class TestDestroyable:
    def test_destroy_fires_once(self):
        obj = Destroyable()
        fired = []
        obj.destroying.connect(lambda: fired.append(True))
        obj.destroy()
        obj.destroy()
        assert fired == [True]
        assert obj.destroyed
