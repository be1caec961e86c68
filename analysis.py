"""
Post-session summary and plots for the catch-the-bone task.
"""
import os

import matplotlib
matplotlib.use('Agg')  # no display needed for saving figures
import matplotlib.pyplot as plt
import numpy as np

from config import SCORING
from median_tracker import RunningMedianTracker


def summarise_session(records):
    """
    Compute summary statistics for a completed (or partial) session.

    Parameters:
    - records: Sequence of TrialRecord objects

    Returns:
    - stats: Dictionary with trial count, RT statistics, feedback counts,
      early presses and final score
    """
    rts = np.array([r.rt for r in records if r.rt is not None], dtype=float)

    stats = {
        'n_trials': len(records),
        'n_responses': int(rts.size),
        'mean_rt': None,
        'median_rt': None,
        'rt_sd': None,
        'on_time_count': sum(1 for r in records if r.feedback == 'caught_on_time'),
        'late_count': sum(1 for r in records if r.feedback == 'caught_late'),
        'early_presses': sum(r.early_presses for r in records),
        'final_score': records[-1].score if records else 0
    }

    if rts.size:
        stats['mean_rt'] = float(np.mean(rts))
        stats['median_rt'] = float(np.median(rts))
        stats['rt_sd'] = float(np.std(rts, ddof=1)) if rts.size > 1 else 0.0

    return stats


def running_medians(records):
    """Median after each response, as used for scoring during the session."""
    tracker = RunningMedianTracker()
    medians = []
    for record in records:
        if record.rt is not None:
            tracker.insert(record.rt)
        medians.append(tracker.current_median() if tracker.has_samples else np.nan)
    return np.array(medians, dtype=float)


def plot_reaction_times(records, file_path):
    """
    Plot reaction time per trial together with the running median window.

    Parameters:
    - records: Sequence of TrialRecord objects
    - file_path: Where to save the PNG

    Returns:
    - file_path: Path to the saved figure
    """
    trials = np.array([r.trial_n for r in records])
    rts = np.array([np.nan if r.rt is None else r.rt for r in records], dtype=float)
    medians = running_medians(records)
    on_time = np.array([r.feedback == 'caught_on_time' for r in records], dtype=bool)

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(trials, medians, color='grey', label='Running median')
    ax.plot(trials, medians + SCORING['median_window'], color='grey', linestyle='--', label='On-time window')
    ax.scatter(trials[on_time], rts[on_time], color='green', label='Caught on time')
    ax.scatter(trials[~on_time], rts[~on_time], color='blue', label='Caught late')
    ax.set_xlabel('Trial')
    ax.set_ylabel('Reaction time (s)')
    ax.set_title('Reaction times')
    ax.legend(loc='upper right')
    fig.tight_layout()

    folder = os.path.dirname(file_path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder)
    fig.savefig(file_path)
    plt.close(fig)

    return file_path
