"""Song projects and the end-to-end export pipeline."""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Mapping

import numpy as np

from .compiler import HumanizeSettings, compile_events
from .events import DrumEvent
from .instruments import DEFAULT_FILL_DENSITY, FILL_INSTRUMENTS, INSTRUMENT_MIDI_NOTES, INSTRUMENTS
from .midi_writer import derive_filename, render_midi
from .patterns import Pattern

__all__ = ["SongProject", "ExportResult", "export_song"]

logger = logging.getLogger(__name__)


def _field(payload: Mapping[str, Any], key: str, convert: Callable[[Any], Any], default: Any) -> Any:
    value = payload.get(key)
    if value is None:
        return default
    try:
        return convert(value)
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid {key!r} in song project: {exc}") from exc


@dataclass
class SongProject:
    """Everything needed to export one song."""

    arrangement: str
    patterns: List[Pattern]
    bpm: float = 120.0
    humanize: HumanizeSettings = field(default_factory=HumanizeSettings)
    fill_density: float = DEFAULT_FILL_DENSITY
    note_map: dict[str, int] = field(default_factory=lambda: dict(INSTRUMENT_MIDI_NOTES))
    fill_instruments: tuple[str, ...] = FILL_INSTRUMENTS

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SongProject":
        """Build a project from decoded JSON.

        Malformed fields raise :class:`ValueError` naming the field.
        """

        if not isinstance(payload, Mapping):
            raise ValueError(f"Song project must be a JSON object, got {type(payload).__name__}")
        return cls(
            arrangement=_field(payload, "arrangement", str, ""),
            patterns=_field(payload, "patterns", lambda items: [Pattern.from_dict(i) for i in items], []),
            bpm=_field(payload, "bpm", float, 120.0),
            humanize=_field(payload, "humanize", HumanizeSettings.from_dict, HumanizeSettings()),
            fill_density=_field(payload, "fill_density", float, DEFAULT_FILL_DENSITY),
            note_map=_field(
                payload,
                "note_map",
                lambda mapping: {str(k): int(v) for k, v in mapping.items()},
                dict(INSTRUMENT_MIDI_NOTES),
            ),
            fill_instruments=_field(
                payload,
                "fill_instruments",
                lambda names: tuple(str(name) for name in names),
                FILL_INSTRUMENTS,
            ),
        )

    @classmethod
    def from_json(cls, path: Path) -> "SongProject":
        return cls.from_dict(json.loads(Path(path).read_text()))


@dataclass(frozen=True)
class ExportResult:
    midi: io.BytesIO
    events: List[DrumEvent]
    filename: str


def export_song(project: SongProject, *, rng: np.random.Generator | None = None) -> ExportResult:
    """Compile ``project`` and render it to MIDI bytes."""

    logger.info("Starting MIDI export of %r at %s BPM", project.arrangement, project.bpm)
    events = compile_events(
        project.arrangement,
        project.patterns,
        note_map=project.note_map,
        fill_instruments=project.fill_instruments,
        catalog=INSTRUMENTS,
        humanize=project.humanize,
        fill_density=project.fill_density,
        rng=rng,
    )
    midi = render_midi(events, project.bpm)
    filename = derive_filename(project.arrangement, project.bpm)
    logger.info("MIDI export finished: %d events for %s", len(events), filename)
    return ExportResult(midi=midi, events=events, filename=filename)
