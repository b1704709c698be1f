"""Tests for in-flight tracking and shutdown draining."""

import threading
import time

import pytest

from hec_exporter.core import PermanentError
from hec_exporter.lifecycle import InFlightTracker, LifecycleState


def test_state_transitions():
    tracker = InFlightTracker()
    assert tracker.state == LifecycleState.IDLE

    with tracker.track():
        assert tracker.state == LifecycleState.ACTIVE
        assert tracker.in_flight() == 1

    assert tracker.state == LifecycleState.IDLE
    assert tracker.stop()
    assert tracker.state == LifecycleState.STOPPED


def test_stop_blocks_until_drained():
    tracker = InFlightTracker()
    release = threading.Event()
    entered = threading.Event()

    def push():
        with tracker.track():
            entered.set()
            release.wait(5)

    workers = [threading.Thread(target=push) for _ in range(3)]
    for w in workers:
        w.start()
    assert entered.wait(5)

    done = threading.Event()
    stopper = threading.Thread(target=lambda: (tracker.stop(), done.set()))
    stopper.start()

    time.sleep(0.1)
    assert not done.is_set()
    assert tracker.state == LifecycleState.DRAINING

    release.set()
    assert done.wait(5)
    for w in workers:
        w.join(5)
    stopper.join(5)
    assert tracker.state == LifecycleState.STOPPED


def test_track_refused_after_stop():
    tracker = InFlightTracker()
    tracker.stop()

    with pytest.raises(PermanentError):
        with tracker.track():
            pass

    assert tracker.in_flight() == 0


def test_in_flight_released_on_exception():
    tracker = InFlightTracker()

    with pytest.raises(ValueError):
        with tracker.track():
            raise ValueError("push failed")

    assert tracker.in_flight() == 0
    assert tracker.wait_idle(0)


def test_wait_idle_timeout():
    tracker = InFlightTracker()
    tracker.enter()
    try:
        assert tracker.wait_idle(0.05) is False
    finally:
        tracker.leave()
    assert tracker.wait_idle(0.05) is True
