"""Environment-driven defaults for exports."""

from __future__ import annotations

import os
from pathlib import Path

OUTPUT_DIR_ENV_VAR = "SONG_DRUM_MACHINE_OUTPUT_DIR"
SEED_ENV_VAR = "SONG_DRUM_MACHINE_SEED"

__all__ = ["OUTPUT_DIR_ENV_VAR", "SEED_ENV_VAR", "resolve_output_dir", "resolve_seed"]


def resolve_output_dir(preferred: str | os.PathLike[str] | None = None) -> Path:
    """Return the directory MIDI files are written to."""

    if preferred:
        return Path(preferred).expanduser()
    env_value = os.environ.get(OUTPUT_DIR_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.cwd()


def resolve_seed(preferred: int | None = None) -> int | None:
    """Return the random seed to use, or ``None`` for a fresh one per export."""

    if preferred is not None:
        return preferred
    env_value = os.environ.get(SEED_ENV_VAR, "").strip()
    if not env_value:
        return None
    try:
        return int(env_value)
    except ValueError as exc:
        raise ValueError(f"{SEED_ENV_VAR} must be an integer, got {env_value!r}") from exc
