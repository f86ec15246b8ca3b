"""Continuous control values sampled from a track timeline.

All functions are pure: they read the timeline and return a float in
[0, 1] (scaled by velocity for note-driven modes).  ``tempo`` is the
scalar tempo the caller is currently playing at; it converts event ticks
back to seconds.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .control import ControlMode, Curve, MidiControl, MidiEnvelope, NoteFilter
from .timeline import TrackTimeline, seconds_to_tick, tick_to_seconds

VELOCITY_SCALE = 127.0


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def _cc_indices_around_tick(
    timeline: TrackTimeline, tick: int, cc_number: int
) -> Tuple[Optional[int], Optional[int]]:
    last: Optional[int] = None
    for idx, event in enumerate(timeline.events):
        if not event.is_cc or event.data1 != cc_number:
            continue
        if event.tick > tick:
            return last, idx
        last = idx
    return last, None


def _note_indices_before_tick(
    timeline: TrackTimeline, tick: int, note_filter: NoteFilter
) -> Tuple[Optional[int], Optional[int]]:
    on_idx: Optional[int] = None
    off_idx: Optional[int] = None
    for idx, event in enumerate(timeline.events):
        if event.tick > tick:
            break
        if not note_filter.check(event):
            continue
        if event.is_note_on:
            on_idx = idx
        else:
            off_idx = idx
    return on_idx, off_idx


def calculate_envelope(envelope: MidiEnvelope, held: float, since_off: float) -> float:
    """ADSR level for a note held ``held`` seconds and released ``since_off`` ago."""

    attack_time = envelope.attack_time
    decay_time = envelope.decay_time

    level = -since_off / envelope.release_time
    if held < attack_time:
        level += held / attack_time
    elif held < attack_time + decay_time:
        level += 1 - (held - attack_time) / decay_time * (1 - envelope.sustain_level)
    else:
        level += envelope.sustain_level
    return max(0.0, level)


def cc_value(timeline: TrackTimeline, time: float, cc_number: int, tempo: float) -> float:
    tick = seconds_to_tick(timeline.events, time)
    i0, i1 = _cc_indices_around_tick(timeline, tick, cc_number)
    if i0 is None:
        return 0.0
    e0 = timeline.events[i0]
    v0 = e0.data2 / VELOCITY_SCALE
    if i1 is None:
        return v0

    e1 = timeline.events[i1]
    v1 = e1.data2 / VELOCITY_SCALE
    tpqn = timeline.ticks_per_quarter_note
    t0 = tick_to_seconds(e0.tick, tempo, tpqn)
    t1 = tick_to_seconds(e1.tick, tempo, tpqn)
    if t1 <= t0:
        return v1
    return v0 + (v1 - v0) * _clamp01((time - t0) / (t1 - t0))


def note_envelope_value(
    timeline: TrackTimeline,
    time: float,
    note_filter: NoteFilter,
    envelope: MidiEnvelope,
    tempo: float,
) -> float:
    tick = seconds_to_tick(timeline.events, time)
    on_idx, off_idx = _note_indices_before_tick(timeline, tick, note_filter)
    if on_idx is None:
        return 0.0

    tpqn = timeline.ticks_per_quarter_note
    note_on = timeline.events[on_idx]
    on_time = tick_to_seconds(note_on.tick, tempo, tpqn)
    if off_idx is None or off_idx < on_idx:
        off_time = time  # still sustaining
    else:
        off_time = tick_to_seconds(timeline.events[off_idx].tick, tempo, tpqn)

    level = calculate_envelope(
        envelope,
        max(0.0, off_time - on_time),
        max(0.0, time - off_time),
    )
    return level * note_on.data2 / VELOCITY_SCALE


def note_curve_value(
    timeline: TrackTimeline,
    time: float,
    note_filter: NoteFilter,
    curve: Curve,
    tempo: float,
) -> float:
    tick = seconds_to_tick(timeline.events, time)
    on_idx, _ = _note_indices_before_tick(timeline, tick, note_filter)
    if on_idx is None:
        return 0.0

    note_on = timeline.events[on_idx]
    on_time = tick_to_seconds(note_on.tick, tempo, timeline.ticks_per_quarter_note)
    return curve(max(0.0, time - on_time)) * note_on.data2 / VELOCITY_SCALE


def control_value(
    timeline: TrackTimeline, time: float, control: MidiControl, tempo: float
) -> float:
    """Dispatch on ``control.mode``."""

    if control.mode is ControlMode.NOTE_ENVELOPE:
        return note_envelope_value(timeline, time, control.note_filter, control.envelope, tempo)
    if control.mode is ControlMode.NOTE_CURVE:
        return note_curve_value(timeline, time, control.note_filter, control.curve, tempo)
    return cc_value(timeline, time, control.cc_number, tempo)
