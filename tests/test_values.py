"""Continuous value generators: CC interpolation, ADSR envelope, note curves."""

from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midianim.control import (  # noqa: E402
    ControlMode,
    MidiControl,
    MidiEnvelope,
    NoteFilter,
    ResponseCurve,
)
from midianim.events import MidiEvent  # noqa: E402
from midianim.timeline import TrackTimeline  # noqa: E402
from midianim.values import (  # noqa: E402
    calculate_envelope,
    cc_value,
    control_value,
    note_curve_value,
    note_envelope_value,
)

TPQN = 96
TEMPO = 120.0


def _event(tick: int, status: int, data1: int = 0, data2: int = 0) -> MidiEvent:
    return MidiEvent(time=tick * 60 / (TEMPO * TPQN), tick=tick, status=status, data1=data1, data2=data2)


def _timeline(*events: MidiEvent) -> TrackTimeline:
    return TrackTimeline(events=tuple(events), duration=384, ticks_per_quarter_note=TPQN)


# ── CC ──────────────────────────────────────────────────────────────

CC_RAMP = _timeline(
    _event(0, 0xB0, 1, 0),
    _event(0, 0xB0, 7, 100),
    _event(96, 0xB0, 1, 127),
)


def test_cc_interpolates_between_neighbours() -> None:
    # Tick 48 is 0.25 s at 120 BPM / 96 tpqn.
    assert cc_value(CC_RAMP, 0.25, 1, TEMPO) == pytest.approx(63.5 / 127)


def test_cc_holds_last_value_after_final_event() -> None:
    assert cc_value(CC_RAMP, 1.5, 1, TEMPO) == pytest.approx(1.0)


def test_cc_with_no_events_for_controller_is_zero() -> None:
    assert cc_value(CC_RAMP, 0.25, 74, TEMPO) == 0.0


def test_cc_before_first_event_is_zero() -> None:
    timeline = _timeline(_event(0, 0x90, 60, 100), _event(96, 0xB0, 1, 127))
    assert cc_value(timeline, 0.1, 1, TEMPO) == 0.0


def test_cc_single_event() -> None:
    timeline = _timeline(_event(0, 0xB3, 7, 100))
    assert cc_value(timeline, 0.3, 7, TEMPO) == pytest.approx(100 / 127)


def test_cc_ignores_meta_with_matching_type() -> None:
    timeline = _timeline(_event(0, 0xFF, 0x51, 120), _event(96, 0xB0, 0x51, 0))
    assert cc_value(timeline, 0.1, 0x51, TEMPO) == 0.0


# ── envelope ────────────────────────────────────────────────────────

ENVELOPE = MidiEnvelope(attack=0.0, decay=1.0, sustain=0.5, release=1.0)


def test_envelope_time_properties() -> None:
    assert ENVELOPE.attack_time == pytest.approx(1e-5)
    assert ENVELOPE.decay_time == pytest.approx(0.1)
    assert ENVELOPE.release_time == pytest.approx(0.1)
    assert MidiEnvelope(sustain=1.7).sustain_level == 1.0


def test_calculate_envelope_phases() -> None:
    slow = MidiEnvelope(attack=2.0, decay=2.0, sustain=0.25, release=5.0)
    assert calculate_envelope(slow, 0.1, 0.0) == pytest.approx(0.5)  # attack
    assert calculate_envelope(slow, 0.3, 0.0) == pytest.approx(1 - 0.5 * 0.75)  # decay
    assert calculate_envelope(slow, 1.0, 0.0) == pytest.approx(0.25)  # sustain
    assert calculate_envelope(slow, 1.0, 0.25) == pytest.approx(0.0)  # released
    assert calculate_envelope(slow, 1.0, 0.1) == pytest.approx(0.05)


NOTE_TIMELINE = _timeline(
    _event(0, 0x90, 60, 127),
    _event(96, 0x80, 60, 0),
    _event(192, 0x90, 62, 64),
)


def test_envelope_sustains_while_note_is_held() -> None:
    value = note_envelope_value(NOTE_TIMELINE, 0.3, NoteFilter(note=0), ENVELOPE, TEMPO)
    assert value == pytest.approx(0.5)


def test_envelope_decay_phase() -> None:
    value = note_envelope_value(NOTE_TIMELINE, 0.05, NoteFilter(note=0), ENVELOPE, TEMPO)
    assert value == pytest.approx(0.75, abs=1e-3)


def test_envelope_release_after_note_off() -> None:
    value = note_envelope_value(NOTE_TIMELINE, 0.52, NoteFilter(note=0), ENVELOPE, TEMPO)
    assert value == pytest.approx(0.3)
    assert note_envelope_value(NOTE_TIMELINE, 0.9, NoteFilter(note=0), ENVELOPE, TEMPO) == 0.0


def test_envelope_scaled_by_velocity() -> None:
    value = note_envelope_value(NOTE_TIMELINE, 1.5, NoteFilter(note=2), ENVELOPE, TEMPO)
    assert value == pytest.approx(0.5 * 64 / 127)


def test_envelope_without_matching_note_is_zero() -> None:
    assert note_envelope_value(NOTE_TIMELINE, 0.3, NoteFilter(note=5), ENVELOPE, TEMPO) == 0.0
    assert note_envelope_value(NOTE_TIMELINE, 0.3, NoteFilter(octave=2), ENVELOPE, TEMPO) == 0.0


# ── curve ───────────────────────────────────────────────────────────


def test_note_curve_follows_time_since_note_on() -> None:
    ramp = ResponseCurve(((0.0, 0.0), (1.0, 1.0)))
    assert note_curve_value(NOTE_TIMELINE, 0.25, NoteFilter(), ramp, TEMPO) == pytest.approx(0.25)
    # Second note (tick 192 = 1.0 s) is at velocity 64.
    assert note_curve_value(NOTE_TIMELINE, 1.5, NoteFilter(), ramp, TEMPO) == pytest.approx(0.5 * 64 / 127)


def test_note_curve_accepts_any_callable() -> None:
    value = note_curve_value(NOTE_TIMELINE, 0.3, NoteFilter(note=0, octave=4), lambda t: 2.0, TEMPO)
    assert value == pytest.approx(2.0)


def test_control_value_dispatch() -> None:
    cc = MidiControl(mode=ControlMode.CC, cc_number=1)
    env = MidiControl(mode=ControlMode.NOTE_ENVELOPE, note_filter=NoteFilter(note=0), envelope=ENVELOPE)
    assert control_value(CC_RAMP, 0.25, cc, TEMPO) == pytest.approx(0.5)
    assert control_value(NOTE_TIMELINE, 0.3, env, TEMPO) == pytest.approx(0.5)
