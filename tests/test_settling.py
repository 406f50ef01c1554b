import pytest

from stackeval.core.settling import SettlingDetector

from conftest import FakeClock


def make_detector(clock=None):
    return SettlingDetector(check_steady_interval=0.1, consecutive_steady_threshold=5,
                            linear_vel_threshold=0.03, clock=clock or FakeClock(), verbose=False)


def feed(detector, times, speed=0.0):
    return [detector.update(t, {"cube_0": speed, "cube_1": 0.0}) for t in times]


def test_steady_after_consecutive_quiet_samples():
    detector = make_detector()
    events = feed(detector, [0.2, 0.4, 0.6, 0.8, 1.0])
    assert events[:4] == [None] * 4
    assert events[4] is not None
    assert events[4].sim_time == pytest.approx(1.0)


def test_samples_closer_than_interval_are_skipped():
    detector = make_detector()
    assert detector.update(0.05, {"cube_0": 0.0}) is None
    assert detector.steady_count == 0


def test_moving_object_resets_streak():
    detector = make_detector()
    feed(detector, [0.2, 0.4, 0.6, 0.8])
    assert detector.steady_count == 4
    feed(detector, [1.0], speed=0.05)
    assert detector.steady_count == 0


def test_speed_at_threshold_is_moving():
    detector = make_detector()
    feed(detector, [0.2], speed=0.03)
    assert detector.steady_count == 0


def test_angular_speed_is_ignored():
    detector = make_detector()
    events = [detector.update(t, {"cube_0": 0.0}, {"cube_0": 5.0}) for t in [0.2, 0.4, 0.6, 0.8, 1.0]]
    assert events[-1] is not None


def test_edge_triggered():
    detector = make_detector()
    events = feed(detector, [0.2 * i for i in range(1, 11)])
    fired = [e for e in events if e is not None]
    assert len(fired) == 2
    assert detector.steady_count == 0


def test_time_to_steady_once_per_rethrow():
    clock = FakeClock(10.0)
    detector = make_detector(clock)
    detector.mark_rethrown()

    clock.now = 12.5
    first = feed(detector, [0.2, 0.4, 0.6, 0.8, 1.0])[-1]
    second = feed(detector, [1.2, 1.4, 1.6, 1.8, 2.0])[-1]
    assert first.time_to_steady == pytest.approx(2.5)
    assert second.time_to_steady is None

    detector.mark_rethrown()
    clock.now = 13.0
    third = feed(detector, [2.2, 2.4, 2.6, 2.8, 3.0])[-1]
    assert third.time_to_steady == pytest.approx(0.5)
