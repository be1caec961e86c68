"""Running median of the reaction times collected during a session"""
import bisect

from errors import PrematureQueryError


class RunningMedianTracker:
    """
    Keeps every reaction time in a sorted list so the median can be read after
    each insertion. Samples are never removed during a session.
    """

    def __init__(self):
        self._sorted_rts = []

    def __len__(self):
        return len(self._sorted_rts)

    @property
    def has_samples(self):
        return bool(self._sorted_rts)

    @property
    def samples(self):
        return tuple(self._sorted_rts)

    def insert(self, rt):
        bisect.insort(self._sorted_rts, float(rt))

    def current_median(self):
        """
        Median of the samples so far.

        Odd counts return the middle element. Even counts return the mean of
        the elements at count/2 and count/2 - 1.

        Returns:
        float: Current median reaction time in seconds
        """
        size = len(self._sorted_rts)
        if size == 0:
            raise PrematureQueryError("No reaction times recorded yet; check has_samples first")

        mid = size // 2
        mid_value = self._sorted_rts[mid]
        if size % 2 != 0:
            return mid_value
        return (mid_value + self._sorted_rts[mid - 1]) / 2
