"""
Trial state machine for the catch-the-bone task.

Each trial waits for its ISI with the bone hidden (presses here are early and
penalised), then shows the bone and waits for the single response. The caller
drives the machine once per frame through advance(), passing the elapsed ISI
and response times plus whether the response key was pressed this frame.
Several key presses within one frame must be merged into a single True before
calling advance(), otherwise one frame could be scored twice.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from psychopy import logging

from config import DATETIME_FORMAT, prepare_session_parameters
from errors import TaskError
from isi_schedule import schedule_from_params
from median_tracker import RunningMedianTracker
from recorder import SessionMetadata, TrialRecord, TrialRecorder, generate_session_id, round_rt
from scoring import Feedback, ScoringPolicy


class Phase(Enum):
    WAITING = 'waiting'
    RESPONDING_WINDOW = 'responding_window'
    SESSION_COMPLETE = 'session_complete'


@dataclass(frozen=True)
class SessionState:
    trial_index: int = 0
    score: int = 0
    early_presses: int = 0
    phase: Phase = Phase.WAITING
    stimulus_visible: bool = False
    feedback: Optional[Feedback] = None


# ----- Session events -----

@dataclass(frozen=True)
class NoChange:
    pass


@dataclass(frozen=True)
class EarlyPenalty:
    new_score: int
    early_presses: int
    feedback: Feedback = Feedback.TOO_EARLY


@dataclass(frozen=True)
class StimulusShown:
    trial_n: int
    isi: float
    early_penalty: Optional[EarlyPenalty] = None  # early press on the same frame


@dataclass(frozen=True)
class StimulusAutoHidden:
    trial_n: int


@dataclass(frozen=True)
class TrialCompleted:
    record: TrialRecord
    feedback_category: Feedback
    new_score: int


@dataclass(frozen=True)
class SessionComplete:
    all_records: Tuple[TrialRecord, ...]
    metadata: SessionMetadata
    record: TrialRecord
    feedback_category: Feedback
    new_score: int


class TrialStateMachine:
    """
    Runs the trials of one session over a fixed ISI schedule.

    Parameters:
    schedule (sequence): ISIs in seconds, indexed by trial number
    trial_limit (int): Trial index after which the session ends early (-1 = never)
    policy (ScoringPolicy, optional): Scoring rules
    clock (TrialClock, optional): Phase timer switched on each transition;
        required for tick()
    metadata (SessionMetadata, optional): Session metadata; start time is stamped
        here unless the caller already set it
    on_complete (callable, optional): Called once with (records, metadata)
        when the session completes
    params (dict, optional): Session parameters kept for the caller (e.g. show scale)

    The current SessionState is a frozen value held in `state`. Every transition
    replaces it with a new value and never mutates it in place, so callers can keep
    the value read after each advance() as a snapshot of that frame.
    """

    def __init__(self, schedule, trial_limit=-1, policy=None, clock=None,
                 metadata=None, on_complete=None, params=None):
        self.schedule = tuple(schedule)
        self.trial_limit = trial_limit
        self.policy = policy or ScoringPolicy()
        self.clock = clock
        self.metadata = metadata or SessionMetadata(id=generate_session_id())
        self.on_complete = on_complete
        self.params = dict(params or {})

        self.tracker = RunningMedianTracker()
        self.recorder = TrialRecorder()
        self.state = SessionState()

        if not self.metadata.start:
            self.metadata.mark_start()
        self._start_trial(0, self.state.score)

    # ----- Queries -----

    @property
    def records(self):
        return self.recorder.records

    @property
    def is_complete(self):
        return self.state.phase is Phase.SESSION_COMPLETE

    @property
    def current_isi(self):
        index = self.state.trial_index
        if index < len(self.schedule):
            return self.schedule[index]
        return 0.0

    def _is_last_trial(self, trial_index):
        return trial_index >= len(self.schedule) - 1 or trial_index == self.trial_limit

    # ----- Transitions -----

    def _start_trial(self, trial_index, score):
        self.state = SessionState(trial_index=trial_index, score=score, feedback=self.state.feedback)
        if self.clock is not None:
            self.clock.start_isi_phase()
        logging.log(level=logging.DEBUG,
                    msg=f"Trial {trial_index} started, ISI {self.current_isi:.1f}s")

    def advance(self, elapsed_isi, elapsed_response, input_occurred):
        """
        Move the session forward by one frame.

        Parameters:
        elapsed_isi (float): Seconds since the current ISI phase started
        elapsed_response (float): Seconds since the bone was shown
        input_occurred (bool): Whether the response key was pressed this frame

        Returns:
        NoChange | StimulusShown | StimulusAutoHidden | EarlyPenalty |
        TrialCompleted | SessionComplete
        """
        if self.state.phase is Phase.SESSION_COMPLETE:
            return NoChange()
        if self.state.phase is Phase.WAITING:
            return self._advance_waiting(elapsed_isi, input_occurred)
        return self._advance_responding(elapsed_response, input_occurred)

    def tick(self, input_occurred):
        """Advance using the elapsed times of the attached TrialClock."""
        if self.clock is None:
            raise TaskError("tick() needs a TrialClock; pass clock= or call advance() directly")
        return self.advance(self.clock.isi_elapsed_seconds(),
                            self.clock.response_elapsed_seconds(),
                            input_occurred)

    def _advance_waiting(self, elapsed_isi, input_occurred):
        state = self.state
        event = NoChange()

        if input_occurred:
            new_score, feedback = self.policy.score_early_press(state.score)
            state = replace(state, score=new_score, early_presses=state.early_presses + 1,
                            feedback=feedback)
            event = EarlyPenalty(new_score=new_score, early_presses=state.early_presses)
            logging.log(level=logging.INFO,
                        msg=f"Early press on trial {state.trial_index} "
                            f"({state.early_presses} so far), score {new_score}")

        # An early press in the same frame still lets the bone appear
        if elapsed_isi >= self.current_isi:
            state = replace(state, phase=Phase.RESPONDING_WINDOW, stimulus_visible=True,
                            feedback=None)
            if self.clock is not None:
                self.clock.end_isi_phase_start_response()
            penalty = event if isinstance(event, EarlyPenalty) else None
            event = StimulusShown(trial_n=state.trial_index, isi=self.current_isi,
                                  early_penalty=penalty)
            logging.log(level=logging.DEBUG,
                        msg=f"Bone shown on trial {state.trial_index} after {elapsed_isi:.4f}s")

        self.state = state
        return event

    def _advance_responding(self, elapsed_response, input_occurred):
        state = self.state
        event = NoChange()

        if state.stimulus_visible:
            median_rt = self.tracker.current_median() if self.tracker.has_samples else None
            if self.policy.should_hide_stimulus(elapsed_response, median_rt,
                                                self.tracker.has_samples):
                state = replace(state, stimulus_visible=False)
                event = StimulusAutoHidden(trial_n=state.trial_index)
                logging.log(level=logging.DEBUG,
                            msg=f"Bone hidden on trial {state.trial_index} "
                                f"after {elapsed_response:.4f}s")

        self.state = state
        if input_occurred:
            return self._complete_trial(elapsed_response)
        return event

    def _complete_trial(self, elapsed_response):
        state = self.state
        rt = elapsed_response
        if self.clock is not None:
            self.clock.stop_response_phase()

        self.tracker.insert(rt)
        median_rt = self.tracker.current_median()
        delta, feedback = self.policy.score_response(rt, median_rt, self.tracker.has_samples)
        new_score = state.score + delta

        record = TrialRecord(
            trial_n=state.trial_index,
            isi=self.current_isi,
            rt=round_rt(rt),
            datetime=datetime.now().strftime(DATETIME_FORMAT),
            score=new_score,
            early_presses=state.early_presses,
            feedback=feedback.value,
            median_rt=round_rt(median_rt)
        )
        self.recorder.append(record)
        logging.log(level=logging.INFO,
                    msg=f"Trial {record.trial_n}: rt {rt:.4f}s, median {median_rt:.4f}s, "
                        f"{feedback.value} (+{delta}), score {new_score}")

        if self._is_last_trial(state.trial_index):
            return self._finish(record, feedback, new_score)

        self.state = replace(state, feedback=feedback)
        self._start_trial(state.trial_index + 1, new_score)
        return TrialCompleted(record=record, feedback_category=feedback, new_score=new_score)

    def _finish(self, record, feedback, new_score):
        self.state = replace(self.state, score=new_score, phase=Phase.SESSION_COMPLETE,
                             stimulus_visible=False, feedback=feedback)
        self.recorder.close()
        self.metadata.mark_end()
        records = self.recorder.records
        logging.log(level=logging.INFO,
                    msg=f"Session {self.metadata.id} complete: {len(records)} trials, "
                        f"final score {new_score}")

        if self.on_complete is not None:
            self.on_complete(records, self.metadata)

        return SessionComplete(all_records=records, metadata=self.metadata, record=record,
                               feedback_category=feedback, new_score=new_score)


def new_session(config=None, metadata=None, clock=None, on_complete=None, policy=None):
    """
    Validate the session parameters, generate the ISI schedule and build the
    state machine positioned at the start of trial 0.

    Parameters:
    config (dict, optional): Overrides for config.DEFAULT_PARAMS
    metadata (SessionMetadata, optional): Session metadata
    clock (TrialClock, optional): Phase timer
    on_complete (callable, optional): Export hook, called once on completion
    policy (ScoringPolicy, optional): Scoring rules

    Returns:
    TrialStateMachine: Ready-to-run session
    """
    params = prepare_session_parameters(config)
    schedule = schedule_from_params(params)
    return TrialStateMachine(schedule, trial_limit=params['trial_limit'], policy=policy,
                             clock=clock, metadata=metadata, on_complete=on_complete,
                             params=params)
