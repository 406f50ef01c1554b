from stackeval.core.stagnation import StagnationTracker


def test_untouched_pile_fires_on_third_round():
    tracker = StagnationTracker(total_objects=9)
    assert tracker.update(9) is False
    assert tracker.update(9) is False
    assert tracker.update(9) is True
    assert tracker.stagnated


def test_progress_resets_streak():
    tracker = StagnationTracker(total_objects=9)
    tracker.update(9)
    tracker.update(9)
    assert tracker.update(8) is False
    assert tracker.unchanged_count == 0
    tracker.update(8)
    tracker.update(8)
    assert tracker.update(8) is True


def test_zero_count_never_stagnates():
    tracker = StagnationTracker(total_objects=4)
    for _ in range(5):
        assert tracker.update(0) is False


def test_firing_resets_baseline_to_total():
    tracker = StagnationTracker(total_objects=9)
    for count in (6, 6, 6, 6):
        tracker.update(count)
    assert tracker.prev_unestimated_count == 9


def test_streak_survives_reset_below_reset_threshold():
    tracker = StagnationTracker(total_objects=9)
    for _ in range(3):
        tracker.update(9)
    tracker.acknowledge_reset()
    assert tracker.unchanged_count == 3
    # fresh pile, still untouched: reported again right away
    assert tracker.update(9) is True
    assert tracker.update(9) is True
    tracker.acknowledge_reset()
    assert tracker.unchanged_count == 0
