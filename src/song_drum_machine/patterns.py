"""Step grids, named patterns and ephemeral fill synthesis."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from .instruments import DEFAULT_FILL_DENSITY, FILL_INSTRUMENTS, INSTRUMENTS, MAX_STORED_VELOCITY

__all__ = ["Grid", "Pattern", "generate_fill", "is_pattern_name"]


def is_pattern_name(value: str) -> bool:
    """Return ``True`` for a single ASCII uppercase letter."""

    return len(value) == 1 and value.isascii() and value.isupper()


def _table_from_rows(
    rows: Mapping[str, Sequence[Any]],
    steps: int,
    catalog: Sequence[str],
    *,
    dtype: type,
    fill_value: Any,
    label: str,
) -> np.ndarray:
    """Allocate a ``catalog x steps`` table and copy ``rows`` into it.

    Rows shorter than ``steps`` keep ``fill_value`` in their tail; instruments
    outside the catalog and rows longer than ``steps`` are rejected.
    """

    table = np.full((len(catalog), steps), fill_value, dtype=dtype)
    for instrument, values in rows.items():
        if instrument not in catalog:
            raise ValueError(f"Unknown instrument {instrument!r} in {label}")
        values = list(values)
        if len(values) > steps:
            raise ValueError(
                f"{label} row for {instrument!r} has {len(values)} steps, expected at most {steps}"
            )
        if values:
            table[catalog.index(instrument), : len(values)] = values
    return table


def _rows_from_payload(
    payload: Mapping[str, Any],
    key: str,
    convert: Callable[[Any], Any],
    name: str,
) -> dict[str, list[Any]]:
    rows = payload.get(key) or {}
    try:
        return {str(instrument): [convert(v) for v in row] for instrument, row in dict(rows).items()}
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Pattern {name!r} field {key!r} must map instruments to lists of steps"
        ) from exc


@dataclass(frozen=True, eq=False)
class Grid:
    """Read-only table of step activations, one row per catalog instrument."""

    instruments: tuple[str, ...]
    cells: np.ndarray

    def __post_init__(self) -> None:
        cells = np.array(self.cells, dtype=bool)
        if cells.ndim != 2 or cells.shape[0] != len(self.instruments):
            raise ValueError(
                f"Grid shape {cells.shape} does not match {len(self.instruments)} instruments"
            )
        if cells.shape[1] < 1:
            raise ValueError("Grid must have a positive step count")
        cells.setflags(write=False)
        object.__setattr__(self, "instruments", tuple(self.instruments))
        object.__setattr__(self, "cells", cells)

    @classmethod
    def from_rows(
        cls,
        rows: Mapping[str, Sequence[bool]],
        steps: int,
        *,
        catalog: Sequence[str] = INSTRUMENTS,
    ) -> "Grid":
        if steps < 1:
            raise ValueError(f"Step count must be positive, got {steps}")
        cells = _table_from_rows(rows, steps, catalog, dtype=bool, fill_value=False, label="grid")
        return cls(tuple(catalog), cells)

    @property
    def steps(self) -> int:
        return int(self.cells.shape[1])

    def index(self, instrument: str) -> int | None:
        try:
            return self.instruments.index(instrument)
        except ValueError:
            return None

    def is_active(self, instrument: str, step: int) -> bool:
        row = self.index(instrument)
        if row is None or not 0 <= step < self.steps:
            return False
        return bool(self.cells[row, step])

    def to_dict(self) -> dict[str, list[bool]]:
        return {
            instrument: [bool(cell) for cell in self.cells[row]]
            for row, instrument in enumerate(self.instruments)
            if self.cells[row].any()
        }


@dataclass(frozen=True, eq=False)
class Pattern:
    """A named grid plus its stored 0-127 velocity table."""

    name: str
    grid: Grid
    velocities: np.ndarray

    def __post_init__(self) -> None:
        if not is_pattern_name(self.name):
            raise ValueError(f"Pattern name must be a single uppercase letter, got {self.name!r}")
        velocities = np.array(self.velocities, dtype=int)
        if velocities.shape != self.grid.cells.shape:
            raise ValueError(
                f"Velocity table shape {velocities.shape} does not match grid shape {self.grid.cells.shape}"
            )
        if velocities.size and (velocities.min() < 0 or velocities.max() > MAX_STORED_VELOCITY):
            warnings.warn(
                f"Pattern {self.name} has velocities outside 0-{MAX_STORED_VELOCITY}; clamping.",
                RuntimeWarning,
                stacklevel=3,
            )
            velocities = np.clip(velocities, 0, MAX_STORED_VELOCITY)
        velocities.setflags(write=False)
        object.__setattr__(self, "velocities", velocities)

    @classmethod
    def create(
        cls,
        name: str,
        steps: int,
        hits: Mapping[str, Sequence[bool]],
        velocities: Mapping[str, Sequence[int]] | None = None,
        *,
        catalog: Sequence[str] = INSTRUMENTS,
    ) -> "Pattern":
        """Build a pattern from sparse per-instrument rows.

        Missing velocity rows (or the tail of short ones) are stored as 127.
        """

        grid = Grid.from_rows(hits, steps, catalog=catalog)
        table = _table_from_rows(
            velocities or {},
            steps,
            catalog,
            dtype=int,
            fill_value=MAX_STORED_VELOCITY,
            label=f"pattern {name} velocities",
        )
        return cls(name=name, grid=grid, velocities=table)

    @classmethod
    def from_dict(
        cls,
        payload: Mapping[str, Any],
        *,
        catalog: Sequence[str] = INSTRUMENTS,
    ) -> "Pattern":
        if not isinstance(payload, Mapping):
            raise ValueError(f"Pattern entry must be an object, got {type(payload).__name__}")
        for key in ("name", "steps"):
            if key not in payload:
                raise ValueError(f"Pattern entry is missing the {key!r} field")
        try:
            steps = int(payload["steps"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Pattern {payload['name']!r} has an invalid 'steps' value") from exc
        name = str(payload["name"])
        return cls.create(
            name,
            steps,
            _rows_from_payload(payload, "grid", bool, name),
            _rows_from_payload(payload, "velocities", int, name),
            catalog=catalog,
        )

    def to_dict(self) -> dict[str, Any]:
        active = self.grid.to_dict()
        return {
            "name": self.name,
            "steps": self.steps,
            "grid": active,
            "velocities": {
                instrument: [int(v) for v in self.velocities[self.grid.index(instrument)]]
                for instrument in active
            },
        }

    @property
    def steps(self) -> int:
        return self.grid.steps

    def velocity_at(self, instrument: str, step: int) -> int | None:
        """Stored velocity for ``instrument`` at ``step`` or ``None`` when absent."""

        row = self.grid.index(instrument)
        if row is None or not 0 <= step < self.steps:
            return None
        return int(self.velocities[row, step])


def generate_fill(
    length: int,
    *,
    rng: np.random.Generator,
    fill_instruments: Sequence[str] = FILL_INSTRUMENTS,
    catalog: Sequence[str] = INSTRUMENTS,
    density: float = DEFAULT_FILL_DENSITY,
) -> Grid:
    """Synthesise a random fill grid covering the whole catalog.

    Each step is struck with probability ``density``; a struck step activates
    exactly one instrument drawn from ``fill_instruments``. At ``density`` 1.0
    every step is struck and no activation draw is made.
    """

    if length < 1:
        raise ValueError(f"Fill length must be positive, got {length}")
    if not fill_instruments:
        raise ValueError("Fill instrument subset must not be empty")
    unknown = [name for name in fill_instruments if name not in catalog]
    if unknown:
        raise ValueError(f"Fill instruments not in catalog: {', '.join(unknown)}")
    if not 0.0 <= density <= 1.0:
        raise ValueError(f"Fill density must be within [0, 1], got {density}")

    rows = [list(catalog).index(name) for name in fill_instruments]
    cells = np.zeros((len(catalog), length), dtype=bool)
    for step in range(length):
        if density < 1.0 and rng.random() >= density:
            continue
        cells[rows[int(rng.integers(len(rows)))], step] = True
    return Grid(tuple(catalog), cells)
