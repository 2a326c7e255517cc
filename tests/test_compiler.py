from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import numpy as np
import pytest

from song_drum_machine.compiler import (
    HumanizeSettings,
    SongInputError,
    compile_events,
    compile_section,
    rescale_velocity,
    swing_offset,
)
from song_drum_machine.instruments import PERCUSSION_CHANNEL, TICKS_PER_STEP
from song_drum_machine.patterns import Pattern
from song_drum_machine.structure import resolve_arrangement

NOTES = {"kick": 36, "snare": 38, "hi-hat-closed": 42}


class NoRandom:
    """Generator stand-in that fails if any draw is made."""

    def _fail(self, *_, **__):
        raise AssertionError("no random draw expected")

    uniform = random = integers = _fail


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def uniform(self, low, high):
        return self.value


def _hits(events):
    return [(event.instrument, event.start_tick, event.velocity) for event in events]


@pytest.mark.parametrize(
    "stored, expected",
    [(127, 100), (0, 1), (1, 1), (64, 50), (80, 63), (100, 79)],
)
def test_rescale_velocity(stored, expected):
    assert rescale_velocity(stored) == expected


def test_rescale_velocity_is_monotonic():
    values = [rescale_velocity(stored) for stored in range(128)]

    assert values == sorted(values)
    assert min(values) == 1
    assert max(values) == 100


@pytest.mark.parametrize(
    "step, swing, expected",
    [(0, 0.1, 0), (1, 0.1, 26), (2, 0.25, 0), (3, 0.25, 64), (1, 0.0, 0)],
)
def test_swing_offset(step, swing, expected):
    assert swing_offset(step, swing) == expected


def test_single_pattern_emits_exactly_its_grid():
    pattern = Pattern.create(
        "A",
        4,
        {
            "kick": [True, False, True, False],
            "snare": [False, True, False, True],
            "shaker": [True, True, True, True],
        },
    )

    events = compile_events("A", [pattern], note_map=NOTES, rng=NoRandom())

    assert _hits(events) == [
        ("kick", 0, 100),
        ("snare", 128, 100),
        ("kick", 256, 100),
        ("snare", 384, 100),
    ]
    assert all(event.duration == TICKS_PER_STEP for event in events)
    assert all(event.channel == PERCUSSION_CHANNEL for event in events)
    assert [event.note for event in events] == [36, 38, 36, 38]


def test_end_to_end_two_patterns():
    a = Pattern.create("A", 2, {"kick": [True, False]}, {"kick": [100, 0]})
    b = Pattern.create("B", 2, {"snare": [False, True]}, {"snare": [0, 80]})

    events = compile_events("AB", {"a": a, "b": b}, note_map=NOTES, rng=NoRandom())

    assert _hits(events) == [("kick", 0, 79), ("snare", 384, 63)]


def test_swing_applies_on_odd_steps_without_humanize():
    pattern = Pattern.create("A", 4, {"hi-hat-closed": [True] * 4})
    humanize = HumanizeSettings(enabled=False, swing=0.1)

    events = compile_events("A", [pattern], note_map=NOTES, humanize=humanize, rng=NoRandom())

    assert [event.start_tick for event in events] == [0, 128 + 26, 256, 384 + 26]


def test_humanize_off_ignores_amounts():
    pattern = Pattern.create("A", 4, {"kick": [True] * 4}, {"kick": [64] * 4})
    humanize = HumanizeSettings(enabled=False, timing=1.0, velocity=1.0)

    events = compile_events("A", [pattern], note_map=NOTES, humanize=humanize, rng=NoRandom())

    assert [event.start_tick for event in events] == [0, 128, 256, 384]
    assert {event.velocity for event in events} == {50}


def test_humanize_offsets_stay_within_bounds():
    pattern = Pattern.create("A", 16, {"kick": [True] * 16}, {"kick": [64] * 16})
    humanize = HumanizeSettings(enabled=True, timing=1.0, velocity=1.0)

    events = compile_events(
        "A", [pattern], note_map=NOTES, humanize=humanize, rng=np.random.default_rng(11)
    )

    assert len(events) == 16
    for step, event in enumerate(events):
        assert abs(event.start_tick - step * TICKS_PER_STEP) <= TICKS_PER_STEP // 4
        assert 30 <= event.velocity <= 70
    assert len({event.velocity for event in events}) > 1


def test_humanize_is_reproducible_with_seed():
    pattern = Pattern.create("A", 8, {"kick": [True] * 8, "snare": [True, False] * 4})
    humanize = HumanizeSettings(enabled=True, swing=0.05, timing=0.5, velocity=0.5)

    first = compile_events("A1A", [pattern], humanize=humanize, rng=np.random.default_rng(5))
    second = compile_events("A1A", [pattern], humanize=humanize, rng=np.random.default_rng(5))

    assert first == second


def test_early_events_clamp_to_zero_and_velocity_to_one():
    pattern = Pattern.create("A", 2, {"kick": [True, False]}, {"kick": [10, 0]})
    humanize = HumanizeSettings(enabled=True, timing=1.0, velocity=1.0)

    events = compile_events("A", [pattern], note_map=NOTES, humanize=humanize, rng=FixedRandom(-1.0))

    assert _hits(events) == [("kick", 0, 1)]


def test_velocity_clamps_to_hundred():
    pattern = Pattern.create("A", 1, {"kick": [True]}, {"kick": [127]})
    humanize = HumanizeSettings(enabled=True, velocity=1.0)

    events = compile_events("A", [pattern], note_map=NOTES, humanize=humanize, rng=FixedRandom(1.0))

    assert events[0].velocity == 100


def test_fill_replaces_tail_of_pattern():
    pattern = Pattern.create("A", 4, {"kick": [True] * 4})
    rng = np.random.default_rng(2)
    sections = resolve_arrangement(
        "A2", [pattern], rng=rng, fill_instruments=("snare", "hi-hat-closed"), fill_density=1.0
    )

    total = 0
    events = []
    for section in sections:
        section_events, consumed = compile_section(
            section, base_tick=total, note_map=NOTES, humanize=HumanizeSettings(), rng=rng
        )
        events.extend(section_events)
        total += consumed

    assert total == 4 * TICKS_PER_STEP
    kicks = [event.start_tick for event in events if event.instrument == "kick"]
    fill = [event.start_tick for event in events if event.instrument != "kick"]
    assert kicks == [0, 128]
    assert len(fill) == 2
    assert fill == [256, 384]


def test_fill_borrows_velocities_positionally():
    pattern = Pattern.create("A", 4, {"kick": [True] * 4}, {"snare": [127, 64, 127, 64]})

    events = compile_events(
        "A2",
        [pattern],
        note_map=NOTES,
        fill_instruments=("snare",),
        fill_density=1.0,
        rng=np.random.default_rng(0),
    )

    assert [(e.instrument, e.start_tick, e.velocity) for e in events if e.instrument == "snare"] == [
        ("snare", 256, 100),
        ("snare", 384, 50),
    ]


def test_fill_past_source_length_uses_default_velocity():
    pattern = Pattern.create("A", 1, {}, {"snare": [64]})

    events = compile_events(
        "A3",
        [pattern],
        note_map=NOTES,
        fill_instruments=("snare",),
        fill_density=1.0,
        rng=np.random.default_rng(0),
    )

    assert _hits(events) == [("snare", 128, 50), ("snare", 256, 100), ("snare", 384, 100)]


def test_leading_fill_binds_to_first_pattern():
    pattern = Pattern.create("A", 2, {"kick": [True, False]}, {"snare": [64, 64]})

    events = compile_events(
        "1A",
        {"a": pattern},
        note_map=NOTES,
        fill_instruments=("snare",),
        fill_density=1.0,
        rng=np.random.default_rng(0),
    )

    assert _hits(events) == [("snare", 0, 50), ("kick", 128, 100)]


def test_unknown_token_leaves_no_gap():
    a = Pattern.create("A", 2, {"kick": [True, False]})
    b = Pattern.create("B", 2, {"snare": [True, False]})

    events = compile_events("AXB", [a, b], note_map=NOTES, rng=NoRandom())

    assert [(event.instrument, event.start_tick) for event in events] == [("kick", 0), ("snare", 256)]


@pytest.mark.parametrize(
    "arrangement, patterns",
    [("", [Pattern.create("A", 1, {})]), ("A", []), ("A", {})],
)
def test_missing_input_raises(arrangement, patterns):
    with pytest.raises(SongInputError, match="song structure"):
        compile_events(arrangement, patterns)


@pytest.mark.parametrize(
    "kwargs",
    [{"swing": 0.3}, {"swing": -0.1}, {"timing": 1.5}, {"velocity": -0.2}],
)
def test_humanize_settings_validate_ranges(kwargs):
    with pytest.raises(ValueError):
        HumanizeSettings(**kwargs)


def test_humanize_settings_from_dict_defaults():
    settings = HumanizeSettings.from_dict({"enabled": True, "swing": 0.2})

    assert settings == HumanizeSettings(enabled=True, swing=0.2, timing=0.0, velocity=0.0)
