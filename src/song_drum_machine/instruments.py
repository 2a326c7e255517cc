"""Drum instrument catalog and General MIDI note assignments."""

from __future__ import annotations

__all__ = [
    "INSTRUMENTS",
    "INSTRUMENT_MIDI_NOTES",
    "FILL_INSTRUMENTS",
    "TICKS_PER_STEP",
    "TICKS_PER_QUARTER",
    "DEFAULT_VELOCITY",
    "MAX_STORED_VELOCITY",
    "PERCUSSION_CHANNEL",
    "DEFAULT_FILL_DENSITY",
]

INSTRUMENTS: tuple[str, ...] = (
    "kick",
    "snare",
    "hi-hat-closed",
    "hi-hat-open",
    "clap",
    "rimshot",
    "tom-low",
    "tom-mid",
    "tom-high",
    "crash",
    "ride",
    "cowbell",
    "shaker",
)

INSTRUMENT_MIDI_NOTES: dict[str, int] = {
    "kick": 36,
    "snare": 38,
    "hi-hat-closed": 42,
    "hi-hat-open": 46,
    "clap": 39,
    "rimshot": 37,
    "tom-low": 45,
    "tom-mid": 47,
    "tom-high": 50,
    "crash": 49,
    "ride": 51,
    "cowbell": 56,
    "shaker": 82,
}

FILL_INSTRUMENTS: tuple[str, ...] = ("snare", "tom-low", "tom-mid", "tom-high")

# One grid step is a 16th note.
TICKS_PER_STEP = 128
TICKS_PER_QUARTER = TICKS_PER_STEP * 4

DEFAULT_VELOCITY = 100
MAX_STORED_VELOCITY = 127

# 1-indexed, as written on drum machines and in the General MIDI spec.
PERCUSSION_CHANNEL = 10

DEFAULT_FILL_DENSITY = 0.6
