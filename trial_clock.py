"""
Two-phase trial timer.

Each trial has an ISI (waiting) phase followed by a response phase. Both are
timed from PsychoPy's monotonic clock, so wall-clock adjustments have no effect.
"""
from psychopy import core


class Stopwatch:
    """Start/stop timer reading from a monotonic time source."""

    def __init__(self, get_time):
        self._get_time = get_time
        self._started_at = None
        self._elapsed = 0.0

    @property
    def is_running(self):
        return self._started_at is not None

    def reset(self):
        self._started_at = None
        self._elapsed = 0.0

    def start(self, now=None):
        if self._started_at is None:
            self._started_at = self._get_time() if now is None else now

    def stop(self, now=None):
        if self._started_at is not None:
            now = self._get_time() if now is None else now
            self._elapsed += now - self._started_at
            self._started_at = None
        return self._elapsed

    def elapsed(self):
        if self._started_at is None:
            return self._elapsed
        return self._elapsed + (self._get_time() - self._started_at)


class TrialClock:
    """
    ISI and response stopwatches for a single trial.

    Parameters:
    get_time (callable, optional): Monotonic time source in seconds; defaults
        to psychopy.core.monotonicClock.getTime
    """

    def __init__(self, get_time=None):
        if get_time is None:
            get_time = core.monotonicClock.getTime
        self._get_time = get_time
        self.isi_timer = Stopwatch(get_time)
        self.rt_timer = Stopwatch(get_time)

    @property
    def in_isi_phase(self):
        return self.isi_timer.is_running

    def start_isi_phase(self):
        self.isi_timer.reset()
        self.rt_timer.reset()
        self.isi_timer.start()

    def isi_elapsed_seconds(self):
        return self.isi_timer.elapsed()

    def end_isi_phase_start_response(self):
        # Single time reading so no gap or overlap exists between the phases
        now = self._get_time()
        self.isi_timer.stop(now)
        self.rt_timer.reset()
        self.rt_timer.start(now)

    def response_elapsed_seconds(self):
        return self.rt_timer.elapsed()

    def stop_response_phase(self):
        return self.rt_timer.stop()
