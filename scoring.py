"""Median-relative scoring of responses and early presses"""
from enum import Enum

from config import SCORING, FEEDBACK


class Feedback(Enum):
    CAUGHT_ON_TIME = 'caught_on_time'
    CAUGHT_LATE = 'caught_late'
    TOO_EARLY = 'too_early'

    @property
    def text(self):
        return FEEDBACK[self.value]['text']

    @property
    def color(self):
        return FEEDBACK[self.value]['color']


class ScoringPolicy:
    """
    Converts reaction times into score changes.

    A response is "on time" when it is faster than the running median plus a
    100 ms window. Early presses cost points, but the score never drops below 0.

    Parameters:
    rules (dict, optional): Scoring rules, defaults to config.SCORING
    """

    def __init__(self, rules=None):
        self.rules = SCORING.copy()
        if rules:
            self.rules.update(rules)

    def reference_median(self, median_rt, has_median):
        """
        Median the response window is built on.

        Falls back to `initial_median_rt` before any response, then clamps to
        [min_rt, max_rt] when those bounds are set.

        Returns:
        float or None: Reference median, None when no median is available
        """
        if not has_median:
            median_rt = self.rules.get('initial_median_rt')
            if median_rt is None:
                return None

        if self.rules.get('min_rt') is not None:
            median_rt = max(median_rt, self.rules['min_rt'])
        if self.rules.get('max_rt') is not None:
            median_rt = min(median_rt, self.rules['max_rt'])
        return median_rt

    def score_response(self, rt, median_rt, has_median):
        """
        Score a valid response.

        Parameters:
        rt (float): Reaction time in seconds
        median_rt (float): Current running median (ignored without a median)
        has_median (bool): Whether any reaction time has been recorded

        Returns:
        tuple: (score delta, Feedback category)
        """
        reference = self.reference_median(median_rt, has_median)
        if reference is not None and rt < reference + self.rules['median_window']:
            return self.rules['on_time_bonus'], Feedback.CAUGHT_ON_TIME
        return self.rules['late_bonus'], Feedback.CAUGHT_LATE

    def score_early_press(self, current_score):
        """
        Apply the early-press penalty.

        Parameters:
        current_score (int): Cumulative score before the press

        Returns:
        tuple: (new score, Feedback.TOO_EARLY)
        """
        new_score = max(self.rules['min_score'], current_score - self.rules['early_penalty'])
        return new_score, Feedback.TOO_EARLY

    def should_hide_stimulus(self, response_elapsed, median_rt, has_median):
        """Whether the stimulus has been visible longer than the response window."""
        reference = self.reference_median(median_rt, has_median)
        if reference is not None and response_elapsed > reference + self.rules['median_window']:
            return True
        return response_elapsed > self.rules['hard_hide_limit']
