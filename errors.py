"""Exceptions raised by the catch-the-bone task core"""


class TaskError(Exception):
    """Base class for all task errors"""


class ConfigurationError(TaskError):
    """Invalid session parameters (ISI range, step, repeats, trial limit...)"""


class PrematureQueryError(TaskError):
    """The running median was queried before any reaction time was recorded"""


class RecorderClosedError(TaskError):
    """A trial record was appended after the session completed"""
