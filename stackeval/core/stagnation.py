"""
Detection of estimation rounds that make no progress.
"""


class StagnationTracker:
    """
    Counts consecutive estimation rounds with the same nonzero number of
    unestimated objects.

    Once the streak reaches `unchanged_threshold` the trial is inestimable.
    The streak itself is only cleared when the trial is reset with a streak
    of at least `reset_threshold`, so a pile that stays untouched after a
    rethrow is reported again.
    """

    def __init__(self, total_objects, unchanged_threshold=3, reset_threshold=5):
        self.total_objects = total_objects
        self.unchanged_threshold = unchanged_threshold
        self.reset_threshold = reset_threshold

        self.prev_unestimated_count = total_objects
        self.unchanged_count = 0

    def update(self, unestimated_count):
        """
        Record the end of an estimation round.

        Args:
            unestimated_count: Objects not yet estimated in this trial

        Returns:
            bool: True if the trial is now inestimable
        """
        if unestimated_count != 0 and unestimated_count == self.prev_unestimated_count:
            self.unchanged_count += 1
        else:
            self.unchanged_count = 0

        self.prev_unestimated_count = unestimated_count

        if self.unchanged_count >= self.unchanged_threshold:
            self.prev_unestimated_count = self.total_objects
            return True

        return False

    @property
    def stagnated(self):
        return self.unchanged_count >= self.unchanged_threshold

    def acknowledge_reset(self):
        """Called when the trial is reset after this round."""
        if self.unchanged_count >= self.reset_threshold:
            self.unchanged_count = 0
