# Imports
import json
import math
import os
import random

from psychopy import logging

from errors import ConfigurationError

ISI_DECIMALS = 1  # ISIs are rounded to 100 ms to avoid floating point drift


def shuffle_in_place(values, rng):
    """
    Fisher-Yates shuffle: walk from the last index down to 1 and swap each
    element with a uniformly chosen index at or below it.

    Parameters:
    values (list): List to shuffle (mutated)
    rng (random.Random): Random number generator driving the swaps
    """
    for k in range(len(values) - 1, 0, -1):
        j = rng.randint(0, k)
        values[k], values[j] = values[j], values[k]


def generate_isi_schedule(low, high, step, repeats, seed=None):
    """
    Build the full, shuffled set of inter-stimulus intervals for a session.

    Every ISI from low to high (inclusive, in increments of step) appears
    `repeats` times, rounded to one decimal, in a random order.

    Parameters:
    low (float): Shortest ISI in seconds
    high (float): Longest ISI in seconds
    step (float): Increment between consecutive ISIs
    repeats (int): How many times to repeat each ISI
    seed (optional): Seed for the shuffle; None uses a process-randomised seed

    Returns:
    tuple: ISIs in presentation order, indexed by trial number
    """
    if high < low:
        raise ConfigurationError(f"ISI range is inverted: high={high} < low={low}")
    if step <= 0:
        raise ConfigurationError(f"ISI step must be positive, got {step}")
    if repeats < 0:
        raise ConfigurationError(f"ISI repeat count cannot be negative, got {repeats}")

    # Round up so (high - low) / step landing just under an integer still reaches high
    set_length = math.ceil((high - low) / step + 1)
    isi_set = [round(low + i * step, ISI_DECIMALS) for i in range(set_length)]

    isis = isi_set * repeats
    shuffle_in_place(isis, random.Random(seed))

    logging.log(level=logging.INFO,
                msg=f"Generated ISI schedule: {len(isis)} trials "
                    f"({set_length} ISIs x {repeats} repeats, seed={seed})")
    return tuple(isis)


def schedule_from_params(params):
    """
    Generate an ISI schedule from a session parameter dictionary.

    Parameters:
    params (dict): Session parameters including isi_low, isi_high, isi_step,
        isi_rep and (optionally) seed

    Returns:
    tuple: Shuffled ISI schedule
    """
    return generate_isi_schedule(
        params['isi_low'],
        params['isi_high'],
        params['isi_step'],
        params['isi_rep'],
        seed=params.get('seed')
    )


def summarise_schedule(schedule):
    """
    Summarise a schedule for logging and sanity checks.

    Parameters:
    schedule (sequence): ISI schedule

    Returns:
    dict: Counts per ISI value, total waiting time and schedule length
    """
    counts = {}
    for isi in schedule:
        counts[isi] = counts.get(isi, 0) + 1

    return {
        'isi_counts': dict(sorted(counts.items())),
        'total_wait': round(sum(schedule), ISI_DECIMALS),
        'n_trials': len(schedule)
    }


def save_schedule(schedule, file_path, seed=None):
    """
    Save a schedule to JSON so a session can be replayed with the same ISIs.

    Parameters:
    schedule (sequence): ISI schedule
    file_path (str): Destination path
    seed (optional): Seed used to generate the schedule, stored for reference

    Returns:
    str: Path to the saved file
    """
    folder = os.path.dirname(file_path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder)

    with open(file_path, 'w') as f:
        json.dump({'seed': seed, 'isis': list(schedule)}, f, indent=2)

    return file_path


def load_schedule(file_path):
    """
    Load a schedule saved by save_schedule.

    Parameters:
    file_path (str): Path to the JSON file

    Returns:
    tuple: ISI schedule, or None if the file does not exist
    """
    if not os.path.exists(file_path):
        logging.log(level=logging.WARNING, msg=f"Schedule file not found: {file_path}")
        return None

    with open(file_path, 'r') as f:
        saved = json.load(f)

    return tuple(float(isi) for isi in saved['isis'])
