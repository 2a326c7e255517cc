"""Serialise compiled drum events into a Standard MIDI File."""

from __future__ import annotations

import base64
import importlib
import io
import re
from typing import TYPE_CHECKING, Iterable

from .events import DrumEvent
from .instruments import TICKS_PER_QUARTER

if TYPE_CHECKING:  # pragma: no cover
    import pretty_midi

__all__ = [
    "MidiWriterUnavailable",
    "FILENAME_PREFIX",
    "build_pretty_midi",
    "render_midi",
    "derive_filename",
    "midi_data_uri",
]

FILENAME_PREFIX = "SongDrumMachine"
DRUM_TRACK_NAME = "Drums"


class MidiWriterUnavailable(RuntimeError):
    """Raised when the MIDI writing backend cannot be loaded."""


def _load_pretty_midi():
    try:
        return importlib.import_module("pretty_midi")
    except ModuleNotFoundError as exc:
        raise MidiWriterUnavailable("Install `pretty_midi` to enable MIDI export.") from exc


def build_pretty_midi(events: Iterable[DrumEvent], bpm: float) -> "pretty_midi.PrettyMIDI":
    """Place ``events`` on a single percussion track at ``bpm``.

    The file resolution is chosen so one grid step is exactly
    :data:`~song_drum_machine.instruments.TICKS_PER_STEP` ticks.
    """

    if bpm <= 0:
        raise ValueError(f"BPM must be positive, got {bpm}")

    pm_module = _load_pretty_midi()
    midi = pm_module.PrettyMIDI(resolution=TICKS_PER_QUARTER, initial_tempo=float(bpm))
    drums = pm_module.Instrument(program=0, is_drum=True, name=DRUM_TRACK_NAME)
    for event in events:
        drums.notes.append(
            pm_module.Note(
                velocity=event.velocity,
                pitch=event.note,
                start=midi.tick_to_time(event.start_tick),
                end=midi.tick_to_time(event.end_tick),
            )
        )
    midi.instruments.append(drums)
    return midi


def render_midi(events: Iterable[DrumEvent], bpm: float) -> io.BytesIO:
    """Return the MIDI file bytes for ``events``."""

    midi = build_pretty_midi(events, bpm)
    midi_bytes = io.BytesIO()
    midi.write(midi_bytes)
    midi_bytes.seek(0)
    return midi_bytes


def _format_bpm(bpm: float) -> str:
    return str(int(bpm)) if float(bpm).is_integer() else f"{bpm:g}"


def derive_filename(arrangement: str, bpm: float) -> str:
    slug = re.sub(r"[^a-z0-9]", "", arrangement.lower())
    return f"{FILENAME_PREFIX}-{slug}-{_format_bpm(bpm)}bpm.mid"


def midi_data_uri(payload: io.BytesIO | bytes) -> str:
    """Encode MIDI bytes as a ``data:`` URI for browser downloads."""

    raw = payload.getvalue() if isinstance(payload, io.BytesIO) else bytes(payload)
    return "data:audio/midi;base64," + base64.b64encode(raw).decode("ascii")
