"""Tests for per-key locking used to serialize scans."""

import threading
import time

from dispatch.shipment.locks import KeyedLock


class TestKeyedLock:
    def test_lock_released_after_use(self):
        locks = KeyedLock()
        with locks.hold("TRK-882-X91"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_same_key_is_serialized(self):
        locks = KeyedLock()
        active = []
        overlaps = []

        def worker():
            with locks.hold("TRK-882-X91"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold("TRK-BBB-222"):
                entered.set()

        with locks.hold("TRK-AAA-111"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=1.0)
            t.join()

    def test_lock_released_on_error(self):
        locks = KeyedLock()
        try:
            with locks.hold("TRK-882-X91"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(locks) == 0
