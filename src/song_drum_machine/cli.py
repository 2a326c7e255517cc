"""Command-line entry point for exporting songs to MIDI."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import numpy as np

from .config import OUTPUT_DIR_ENV_VAR, SEED_ENV_VAR, resolve_output_dir, resolve_seed
from .events import events_to_dataframe
from .midi_writer import MidiWriterUnavailable, midi_data_uri
from .project import SongProject, export_song


def _export(args: argparse.Namespace) -> Path:
    project = SongProject.from_json(Path(args.project))
    rng = np.random.default_rng(resolve_seed(args.seed))
    result = export_song(project, rng=rng)

    output_dir = resolve_output_dir(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / result.filename
    target.write_bytes(result.midi.getvalue())
    print(f"Wrote {target}")

    if args.events_csv:
        events_to_dataframe(result.events).to_csv(args.events_csv, index=False)
    if args.data_uri:
        print(midi_data_uri(result.midi))
    return target


def main(argv: Sequence[str] | None = None) -> None:
    """Export a JSON song project to a MIDI file."""

    parser = argparse.ArgumentParser(description="Render a SongDrumMachine project to a MIDI file")
    parser.add_argument("project", help="Path to the JSON song project.")
    parser.add_argument(
        "--output-dir",
        default=None,
        help=f"Directory for the .mid file (default: ${OUTPUT_DIR_ENV_VAR} or the working directory).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help=f"Seed for fills and humanization (default: ${SEED_ENV_VAR}, else random).",
    )
    parser.add_argument("--events-csv", default=None, help="Also write the compiled events as CSV.")
    parser.add_argument("--data-uri", action="store_true", help="Print the MIDI file as a data: URI.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log export progress.")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="[SongDrumMachine] %(levelname)s %(message)s",
    )

    try:
        _export(args)
    except MidiWriterUnavailable as exc:
        print(f"MIDI export failed: {exc}", file=sys.stderr)
        raise SystemExit(1)
    except (ValueError, FileNotFoundError) as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":  # pragma: no cover
    main()
