"""Timed drum note events and their tabular form."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from .instruments import PERCUSSION_CHANNEL, TICKS_PER_STEP

__all__ = ["DrumEvent", "EVENT_COLUMNS", "events_to_dataframe"]

EVENT_COLUMNS = ["instrument", "note", "start_tick", "velocity", "duration", "channel"]


@dataclass(frozen=True)
class DrumEvent:
    """A single percussion hit on the absolute tick timeline."""

    instrument: str
    note: int
    start_tick: int
    velocity: int
    duration: int = TICKS_PER_STEP
    channel: int = PERCUSSION_CHANNEL

    @property
    def end_tick(self) -> int:
        return self.start_tick + self.duration

    def to_dict(self) -> dict[str, int | str]:
        return dataclasses.asdict(self)


def events_to_dataframe(events: Iterable[DrumEvent]) -> pd.DataFrame:
    data = [event.to_dict() for event in events]
    if not data:
        return pd.DataFrame(columns=EVENT_COLUMNS)
    return pd.DataFrame(data, columns=EVENT_COLUMNS)
