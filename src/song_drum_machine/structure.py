"""Resolve an arrangement string into an ordered list of compilable sections."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Union

import numpy as np

from .instruments import DEFAULT_FILL_DENSITY, FILL_INSTRUMENTS, INSTRUMENTS
from .patterns import Grid, Pattern, generate_fill, is_pattern_name

__all__ = [
    "PATTERN_TOKEN",
    "FILL_TOKEN",
    "PatternTable",
    "ResolvedSection",
    "classify_token",
    "find_pattern",
    "resolve_arrangement",
]

logger = logging.getLogger(__name__)

PATTERN_TOKEN = "pattern"
FILL_TOKEN = "fill"

PatternTable = Union[Mapping[str, Pattern], Sequence[Pattern]]


@dataclass(frozen=True, eq=False)
class ResolvedSection:
    """One arrangement token ready for the event compiler.

    ``step_count`` may be shorter than ``grid.steps`` when a following fill
    takes over the tail of a named pattern.
    """

    token: str
    grid: Grid
    step_count: int
    velocity_source: Pattern | None
    is_fill: bool = False


def classify_token(token: str) -> str | None:
    if is_pattern_name(token):
        return PATTERN_TOKEN
    if len(token) == 1 and "1" <= token <= "9":
        return FILL_TOKEN
    return None


def _iter_patterns(patterns: PatternTable) -> Iterable[Pattern]:
    if isinstance(patterns, Mapping):
        return patterns.values()
    return patterns


def find_pattern(patterns: PatternTable, name: str) -> Pattern | None:
    """Return the first pattern in table order whose declared name is ``name``."""

    for pattern in _iter_patterns(patterns):
        if pattern.name == name:
            return pattern
    return None


def _first_declared(patterns: PatternTable) -> Pattern | None:
    for pattern in _iter_patterns(patterns):
        return pattern
    return None


def _resolve_named(
    token: str,
    next_token: str | None,
    patterns: PatternTable,
) -> ResolvedSection | None:
    pattern = find_pattern(patterns, token)
    if pattern is None:
        logger.warning('Pattern "%s" not found, skipping.', token)
        return None

    step_count = pattern.steps
    if next_token is not None and classify_token(next_token) == FILL_TOKEN:
        fill_length = int(next_token)
        if fill_length <= step_count:
            step_count -= fill_length
    return ResolvedSection(token=token, grid=pattern.grid, step_count=step_count, velocity_source=pattern)


def _resolve_fill(
    token: str,
    source: Pattern | None,
    patterns: PatternTable,
    *,
    rng: np.random.Generator,
    fill_instruments: Sequence[str],
    catalog: Sequence[str],
    fill_density: float,
) -> ResolvedSection | None:
    if source is None:
        source = _first_declared(patterns)
        if source is None:
            logger.warning('Fill "%s" has no pattern to borrow velocities from, skipping.', token)
            return None

    length = int(token)
    grid = generate_fill(
        length,
        rng=rng,
        fill_instruments=fill_instruments,
        catalog=catalog,
        density=fill_density,
    )
    return ResolvedSection(token=token, grid=grid, step_count=length, velocity_source=source, is_fill=True)


def resolve_arrangement(
    arrangement: str,
    patterns: PatternTable,
    *,
    rng: np.random.Generator | None = None,
    fill_instruments: Sequence[str] = FILL_INSTRUMENTS,
    catalog: Sequence[str] = INSTRUMENTS,
    fill_density: float = DEFAULT_FILL_DENSITY,
) -> List[ResolvedSection]:
    """Walk ``arrangement`` left to right and resolve every usable token.

    Unknown pattern letters, fills with no pattern to borrow from and any
    other characters are skipped with a logged warning.
    """

    if rng is None:
        rng = np.random.default_rng()

    sections: List[ResolvedSection] = []
    source: Pattern | None = None

    for index, token in enumerate(arrangement):
        kind = classify_token(token)
        if kind == PATTERN_TOKEN:
            next_token = arrangement[index + 1] if index + 1 < len(arrangement) else None
            section = _resolve_named(token, next_token, patterns)
            if section is not None:
                source = section.velocity_source
        elif kind == FILL_TOKEN:
            section = _resolve_fill(
                token,
                source,
                patterns,
                rng=rng,
                fill_instruments=fill_instruments,
                catalog=catalog,
                fill_density=fill_density,
            )
        else:
            logger.warning('Unrecognised arrangement token "%s", skipping.', token)
            section = None

        if section is not None:
            sections.append(section)

    return sections
