"""Compile resolved arrangement sections into timed drum events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence

import numpy as np

from .events import DrumEvent
from .instruments import (
    DEFAULT_FILL_DENSITY,
    DEFAULT_VELOCITY,
    FILL_INSTRUMENTS,
    INSTRUMENT_MIDI_NOTES,
    INSTRUMENTS,
    MAX_STORED_VELOCITY,
    TICKS_PER_STEP,
)
from .structure import PatternTable, ResolvedSection, resolve_arrangement

__all__ = [
    "SongInputError",
    "HumanizeSettings",
    "MAX_SWING",
    "rescale_velocity",
    "swing_offset",
    "compile_section",
    "compile_sections",
    "compile_events",
    "validate_song_input",
]

MAX_SWING = 0.25
MIN_OUTPUT_VELOCITY = 1
MAX_OUTPUT_VELOCITY = 100
VELOCITY_JITTER_RANGE = 20
TIMING_JITTER_FRACTION = 0.25


class SongInputError(ValueError):
    """Raised when there is no arrangement or no pattern to compile."""


@dataclass(frozen=True)
class HumanizeSettings:
    """Swing and humanization controls.

    Swing applies whether or not ``enabled`` is set; the timing and velocity
    jitter amounts only apply when it is.
    """

    enabled: bool = False
    swing: float = 0.0
    timing: float = 0.0
    velocity: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.swing <= MAX_SWING:
            raise ValueError(f"Swing must be within [0, {MAX_SWING}], got {self.swing}")
        for label, amount in (("timing", self.timing), ("velocity", self.velocity)):
            if not 0.0 <= amount <= 1.0:
                raise ValueError(f"Humanize {label} amount must be within [0, 1], got {amount}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "HumanizeSettings":
        return cls(
            enabled=bool(payload.get("enabled", False)),
            swing=float(payload.get("swing", 0.0)),
            timing=float(payload.get("timing", 0.0)),
            velocity=float(payload.get("velocity", 0.0)),
        )


def _clamp_velocity(value: int) -> int:
    return max(MIN_OUTPUT_VELOCITY, min(MAX_OUTPUT_VELOCITY, value))


def _scale_stored_velocity(stored: int) -> int:
    return int(round(stored / MAX_STORED_VELOCITY * MAX_OUTPUT_VELOCITY))


def rescale_velocity(stored: int) -> int:
    """Map a stored 0-127 velocity onto the 1-100 output range."""

    return _clamp_velocity(_scale_stored_velocity(stored))


def swing_offset(step: int, swing: float) -> int:
    """Tick delay for ``step``: odd steps are pushed late when swing is set."""

    if swing > 0 and step % 2 != 0:
        return int(round(swing * 2 * TICKS_PER_STEP))
    return 0


def _velocity_jitter(amount: float, rng: np.random.Generator) -> int:
    return int(round(rng.uniform(-1.0, 1.0) * VELOCITY_JITTER_RANGE * amount))


def _timing_jitter(amount: float, rng: np.random.Generator) -> int:
    return int(round(rng.uniform(-1.0, 1.0) * TICKS_PER_STEP * TIMING_JITTER_FRACTION * amount))


def compile_section(
    section: ResolvedSection,
    *,
    base_tick: int,
    note_map: Mapping[str, int],
    humanize: HumanizeSettings,
    rng: np.random.Generator,
) -> tuple[List[DrumEvent], int]:
    """Emit the events of one section and return them with the ticks consumed."""

    grid = section.grid
    source = section.velocity_source
    events: List[DrumEvent] = []

    for step in range(section.step_count):
        for row, instrument in enumerate(grid.instruments):
            if not grid.cells[row, step]:
                continue
            note = note_map.get(instrument)
            if note is None:
                continue

            velocity = DEFAULT_VELOCITY
            if source is not None:
                stored = source.velocity_at(instrument, step)
                if stored is not None:
                    velocity = _scale_stored_velocity(stored)

            tick_offset = 0
            if humanize.enabled:
                if humanize.velocity > 0:
                    velocity += _velocity_jitter(humanize.velocity, rng)
                if humanize.timing > 0:
                    tick_offset += _timing_jitter(humanize.timing, rng)
            tick_offset += swing_offset(step, humanize.swing)

            # MIDI files have no negative ticks.
            start_tick = max(0, base_tick + step * TICKS_PER_STEP + tick_offset)
            events.append(
                DrumEvent(
                    instrument=instrument,
                    note=int(note),
                    start_tick=start_tick,
                    velocity=_clamp_velocity(velocity),
                )
            )

    return events, section.step_count * TICKS_PER_STEP


def compile_sections(
    sections: Sequence[ResolvedSection],
    *,
    note_map: Mapping[str, int] = INSTRUMENT_MIDI_NOTES,
    humanize: HumanizeSettings | None = None,
    rng: np.random.Generator | None = None,
) -> List[DrumEvent]:
    """Compile ``sections`` back to back, starting at tick zero."""

    humanize = humanize or HumanizeSettings()
    if rng is None:
        rng = np.random.default_rng()

    events: List[DrumEvent] = []
    current_tick = 0
    for section in sections:
        section_events, consumed = compile_section(
            section,
            base_tick=current_tick,
            note_map=note_map,
            humanize=humanize,
            rng=rng,
        )
        events.extend(section_events)
        current_tick += consumed

    return sorted(events, key=lambda event: event.start_tick)


def validate_song_input(arrangement: str, patterns: PatternTable) -> None:
    if not arrangement or not patterns:
        raise SongInputError("Please define a song structure and have at least one sequencer pattern.")


def compile_events(
    arrangement: str,
    patterns: PatternTable,
    *,
    note_map: Mapping[str, int] = INSTRUMENT_MIDI_NOTES,
    fill_instruments: Sequence[str] = FILL_INSTRUMENTS,
    catalog: Sequence[str] = INSTRUMENTS,
    humanize: HumanizeSettings | None = None,
    fill_density: float = DEFAULT_FILL_DENSITY,
    rng: np.random.Generator | None = None,
) -> List[DrumEvent]:
    """Resolve ``arrangement`` against ``patterns`` and compile the whole song."""

    validate_song_input(arrangement, patterns)
    if rng is None:
        rng = np.random.default_rng()

    sections = resolve_arrangement(
        arrangement,
        patterns,
        rng=rng,
        fill_instruments=fill_instruments,
        catalog=catalog,
        fill_density=fill_density,
    )
    return compile_sections(sections, note_map=note_map, humanize=humanize, rng=rng)
