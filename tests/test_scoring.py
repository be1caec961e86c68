import pytest

from config import FEEDBACK
from scoring import Feedback, ScoringPolicy


@pytest.fixture
def policy():
    return ScoringPolicy()


def test_fast_response_is_on_time(policy):
    assert policy.score_response(0.35, 0.30, True) == (3, Feedback.CAUGHT_ON_TIME)


def test_slow_response_is_late(policy):
    assert policy.score_response(0.50, 0.30, True) == (1, Feedback.CAUGHT_LATE)


def test_response_exactly_at_window_is_late(policy):
    assert policy.score_response(0.25 + 0.1, 0.25, True) == (1, Feedback.CAUGHT_LATE)


def test_without_median_response_is_late(policy):
    assert policy.score_response(0.01, 0.0, False) == (1, Feedback.CAUGHT_LATE)


@pytest.mark.parametrize("current, expected", [(1, 0), (5, 3), (0, 0), (2, 0)])
def test_early_press_penalty_floors_at_zero(policy, current, expected):
    assert policy.score_early_press(current) == (expected, Feedback.TOO_EARLY)


def test_custom_rules_override_defaults():
    policy = ScoringPolicy({'on_time_bonus': 5})
    assert policy.score_response(0.2, 0.3, True) == (5, Feedback.CAUGHT_ON_TIME)
    assert policy.score_response(0.9, 0.3, True) == (1, Feedback.CAUGHT_LATE)


def test_hide_without_samples_only_after_hard_limit(policy):
    assert not policy.should_hide_stimulus(1.5, None, False)
    assert policy.should_hide_stimulus(1.5001, None, False)


def test_hide_after_median_window(policy):
    assert not policy.should_hide_stimulus(0.39, 0.3, True)
    assert policy.should_hide_stimulus(0.41, 0.3, True)


def test_feedback_text_and_colour_come_from_config():
    assert Feedback.CAUGHT_ON_TIME.text == FEEDBACK['caught_on_time']['text']
    assert Feedback.TOO_EARLY.color == FEEDBACK['too_early']['color']


# Adaptive-window bounds


def test_bounds_are_off_by_default(policy):
    assert policy.rules['initial_median_rt'] is None
    assert policy.reference_median(0.9, True) == 0.9
    assert policy.reference_median(None, False) is None


def test_initial_median_used_before_first_response():
    policy = ScoringPolicy({'initial_median_rt': 0.375})
    assert policy.score_response(0.4, None, False) == (3, Feedback.CAUGHT_ON_TIME)
    assert policy.score_response(0.5, None, False) == (1, Feedback.CAUGHT_LATE)
    assert not policy.should_hide_stimulus(0.45, None, False)
    assert policy.should_hide_stimulus(0.48, None, False)


def test_median_is_clamped_to_rt_bounds():
    policy = ScoringPolicy({'min_rt': 0.15, 'max_rt': 0.6})
    assert policy.reference_median(0.05, True) == 0.15
    assert policy.reference_median(0.9, True) == 0.6
    assert policy.reference_median(0.3, True) == 0.3

    # slow median capped at 0.6 -> window 0.7
    assert policy.score_response(0.65, 0.9, True) == (3, Feedback.CAUGHT_ON_TIME)
    assert policy.score_response(0.75, 0.9, True) == (1, Feedback.CAUGHT_LATE)
    # fast median raised to 0.15 -> window 0.25
    assert policy.score_response(0.2, 0.05, True) == (3, Feedback.CAUGHT_ON_TIME)
    assert policy.should_hide_stimulus(0.71, 0.9, True)
    assert not policy.should_hide_stimulus(0.69, 0.9, True)


def test_initial_median_is_clamped_too():
    policy = ScoringPolicy({'initial_median_rt': 0.9, 'max_rt': 0.6})
    assert policy.reference_median(None, False) == 0.6
