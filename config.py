"""Configuration for the catch-the-bone reaction time task: parameters, scoring and feedback"""
from psychopy import logging

from errors import ConfigurationError

# Default session parameters (all durations in seconds)
DEFAULT_PARAMS = {
    'isi_low': 0.2,
    'isi_high': 3.5,
    'isi_step': 0.1,
    'isi_rep': 3,            # how many times each ISI is repeated
    'trial_limit': -1,       # -1 never matches a trial index, so the full schedule runs
    'stimulus_show_scale': 0.4,
    'seed': None             # None = process-randomised shuffle
}

# Scoring rules
SCORING = {
    'on_time_bonus': 3,
    'late_bonus': 1,
    'early_penalty': 2,
    'median_window': 0.1,    # responses faster than median + 100 ms count as on time
    'hard_hide_limit': 1.5,  # bone is hidden after 1.5 s whatever the median
    'min_score': 0,
    # Optional adaptive-window bounds (None = off). A typical setup uses 0.375 / 0.15 / 0.6
    'initial_median_rt': None,  # median assumed before the first response
    'min_rt': None,             # lower clamp on the median used for the window
    'max_rt': None              # upper clamp on the median used for the window
}

# Player feedback per scoring category
FEEDBACK = {
    'caught_on_time': {
        'text': "YUMMY!\nDoggo caught the bone!",
        'color': (0.0677, 0.5818, 0.0)  # forest green
    },
    'caught_late': {
        'text': "Good!\nDoggo fetched the bone.",
        'color': (0.0, 0.0, 1.0)
    },
    'too_early': {
        'text': "TOO QUICK!\nWait until the bone has appeared.",
        'color': (1.0, 0.0, 0.0)
    }
}

# Window and text layout for the PsychoPy runner
DISPLAY = {
    'size': (1024, 768),
    'background': 'black',
    'text_height': 0.06,
    'score_pos': (0, 0.8),
    'feedback_pos': (0, -0.6),
    'bone_image': 'bone.png'
}

# Timestamp format used for trial records and session metadata
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def validate_params(params):
    """
    Check a session parameter dictionary and raise on invalid values.

    Parameters:
    params (dict): Session parameters (see DEFAULT_PARAMS)

    Raises:
    ConfigurationError: If any value is missing or out of range
    """
    unknown = set(params) - set(DEFAULT_PARAMS)
    if unknown:
        raise ConfigurationError(f"Unknown session parameters: {sorted(unknown)}")

    for key in ('isi_low', 'isi_high', 'isi_step', 'stimulus_show_scale'):
        value = params.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"{key} must be a number, got {value!r}")

    for key in ('isi_rep', 'trial_limit'):
        value = params.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")

    if params['isi_low'] < 0:
        raise ConfigurationError(f"isi_low cannot be negative, got {params['isi_low']}")
    if params['isi_high'] < params['isi_low']:
        raise ConfigurationError(
            f"isi_high ({params['isi_high']}) is below isi_low ({params['isi_low']})")
    if params['isi_step'] <= 0:
        raise ConfigurationError(f"isi_step must be positive, got {params['isi_step']}")
    if params['isi_rep'] < 0:
        raise ConfigurationError(f"isi_rep cannot be negative, got {params['isi_rep']}")
    if params['stimulus_show_scale'] <= 0:
        raise ConfigurationError(
            f"stimulus_show_scale must be positive, got {params['stimulus_show_scale']}")


def prepare_session_parameters(overrides=None):
    """
    Merge overrides into the default parameters and validate the result.

    Parameters:
    overrides (dict, optional): Values replacing entries of DEFAULT_PARAMS

    Returns:
    dict: Validated session parameters
    """
    params = DEFAULT_PARAMS.copy()
    if overrides:
        params.update(overrides)

    validate_params(params)

    logging.log(level=logging.INFO, msg="Session parameters after overrides:")
    for key, value in params.items():
        logging.log(level=logging.INFO, msg=f"  {key}: {value}")

    return params
