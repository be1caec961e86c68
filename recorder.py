"""
Trial records and session export.

Records are immutable snapshots taken when a trial ends. The export helpers
turn them into the metadata + trials payload and into CSV/JSON files; sending
the payload anywhere is left to the caller.
"""
import json
import os
import random
import string
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional

import pandas as pd
from psychopy import logging

from config import DATETIME_FORMAT
from errors import RecorderClosedError

ID_CHARACTERS = string.ascii_letters + string.digits
RT_DECIMALS = 7


@dataclass(frozen=True)
class TrialRecord:
    trial_n: int
    isi: float
    rt: Optional[float]
    datetime: str
    score: int
    early_presses: int
    feedback: Optional[str] = None
    median_rt: Optional[float] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class SessionMetadata:
    id: str
    name: str = "No Name"
    userAgent: str = "NO_UA"
    start: str = ""
    end: str = ""

    def mark_start(self):
        self.start = datetime.now().strftime(DATETIME_FORMAT)

    def mark_end(self):
        self.end = datetime.now().strftime(DATETIME_FORMAT)

    def to_dict(self):
        return asdict(self)


def generate_session_id(size=24, rng=None):
    """Random alphanumeric session identifier."""
    rng = rng or random.Random()
    return ''.join(rng.choice(ID_CHARACTERS) for _ in range(size))


def round_rt(rt):
    if rt is None:
        return None
    return round(rt, RT_DECIMALS)


class TrialRecorder:
    """Append-only list of trial records, closed once the session completes."""

    def __init__(self):
        self._records: List[TrialRecord] = []
        self.closed = False

    def __len__(self):
        return len(self._records)

    @property
    def records(self):
        return tuple(self._records)

    def append(self, record):
        if self.closed:
            raise RecorderClosedError(
                f"Cannot add trial {record.trial_n}: the session is already complete")
        self._records.append(record)

    def close(self):
        self.closed = True


def build_payload(metadata, records):
    """
    Build the export payload: one metadata object plus one object per trial.

    Parameters:
    metadata (SessionMetadata): Session metadata
    records (sequence): TrialRecord objects in trial order

    Returns:
    dict: {'metadata': {...}, 'trials': [{...}, ...]}
    """
    return {
        'metadata': metadata.to_dict(),
        'trials': [record.to_dict() for record in records]
    }


def records_to_dataframe(records):
    """
    Convert trial records to a DataFrame (one row per trial).

    Parameters:
    records (sequence): TrialRecord objects

    Returns:
    pd.DataFrame: Trial data with one column per record field
    """
    columns = list(TrialRecord.__dataclass_fields__)
    return pd.DataFrame([record.to_dict() for record in records], columns=columns)


def session_filename(metadata):
    return f"{metadata.name}_{metadata.id}"


def save_session(metadata, records, folder):
    """
    Save the session payload as JSON and the trials as CSV.

    Parameters:
    metadata (SessionMetadata): Session metadata
    records (sequence): TrialRecord objects
    folder (str): Output folder (created if missing)

    Returns:
    tuple: (json_path, csv_path)
    """
    if not os.path.exists(folder):
        os.makedirs(folder)

    base = os.path.join(folder, session_filename(metadata))
    json_path = f"{base}.json"
    csv_path = f"{base}_trials.csv"

    with open(json_path, 'w') as f:
        json.dump(build_payload(metadata, records), f, indent=2)

    df = records_to_dataframe(records)
    df.insert(0, 'participant', metadata.name)
    df.insert(0, 'session_id', metadata.id)
    df.to_csv(csv_path, index=False)

    logging.log(level=logging.INFO, msg=f"Session data saved to {json_path} and {csv_path}")
    return json_path, csv_path
