"""Compile drum machine song arrangements into timed MIDI events."""

from __future__ import annotations

from .compiler import HumanizeSettings, SongInputError, compile_events, rescale_velocity, swing_offset
from .events import DrumEvent, events_to_dataframe
from .midi_writer import MidiWriterUnavailable, derive_filename, midi_data_uri, render_midi
from .patterns import Grid, Pattern, generate_fill
from .project import ExportResult, SongProject, export_song
from .structure import ResolvedSection, resolve_arrangement

__all__ = [
    "DrumEvent",
    "ExportResult",
    "Grid",
    "HumanizeSettings",
    "MidiWriterUnavailable",
    "Pattern",
    "ResolvedSection",
    "SongInputError",
    "SongProject",
    "compile_events",
    "derive_filename",
    "events_to_dataframe",
    "export_song",
    "generate_fill",
    "midi_data_uri",
    "render_midi",
    "rescale_velocity",
    "resolve_arrangement",
    "swing_offset",
]
