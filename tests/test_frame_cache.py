import threading

import numpy as np
import pytest

from fusion_core.core_types import PointCloudFrame
from fusion_core.services.frame_cache import FrameCache


def _frame(t):
    return PointCloudFrame(t, np.zeros((1, 1, 3)))


def test_lookup_returns_latest_frame_at_or_before_time():
    """lookup_before picks the greatest frame_time <= t, inclusive."""
    cache = FrameCache(10)
    for t in (1.0, 2.0, 3.0):
        cache.insert(_frame(t))

    assert cache.lookup_before(2.5).frame_time == 2.0
    assert cache.lookup_before(3.0).frame_time == 3.0
    assert cache.lookup_before(100.0).frame_time == 3.0


def test_lookup_before_oldest_or_empty_returns_none():
    cache = FrameCache(10)
    assert cache.lookup_before(5.0) is None

    cache.insert(_frame(4.0))
    assert cache.lookup_before(3.9) is None


def test_lookup_handles_out_of_order_arrivals():
    """Arrival order does not matter for the timestamp search."""
    cache = FrameCache(10)
    for t in (5.0, 1.0, 3.0):
        cache.insert(_frame(t))

    assert cache.lookup_before(4.0).frame_time == 3.0
    assert cache.lookup_before(2.0).frame_time == 1.0


def test_lookup_is_repeatable():
    cache = FrameCache(10)
    frames = [_frame(t) for t in (1.0, 2.0)]
    for f in frames:
        cache.insert(f)

    assert cache.lookup_before(1.5) is cache.lookup_before(1.5) is frames[0]


def test_capacity_evicts_oldest_arrivals():
    """After capacity + k inserts the first k frames are unreachable."""
    cache = FrameCache(3)
    for t in range(5):
        cache.insert(_frame(float(t)))

    assert len(cache) == 3
    assert cache.lookup_before(0.5) is None
    assert cache.lookup_before(1.5) is None
    assert cache.lookup_before(2.0).frame_time == 2.0


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        FrameCache(0)


def test_concurrent_insert_and_lookup():
    """Lookups running beside inserts only ever see fully inserted frames."""
    cache = FrameCache(50)
    errors = []
    done = threading.Event()

    def writer():
        for i in range(2000):
            cache.insert(_frame(float(i)))
        done.set()

    def reader():
        try:
            while not done.is_set():
                f = cache.lookup_before(1e9)
                if f is not None:
                    assert isinstance(f, PointCloudFrame)
                assert len(cache) <= 50
        except AssertionError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(cache) == 50
    assert cache.lookup_before(1e9).frame_time == 1999.0
