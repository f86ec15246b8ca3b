"""Select the discrete note signals that fire inside a tick window.

The window ``[previous, current)`` advances each frame.  When the host
loops, ``current`` lands behind ``previous``; the window is then unrolled
across the loop boundary so every note fires exactly once per lap.
"""

from __future__ import annotations

import sys
from typing import List

from .events import MidiEvent
from .timeline import PlaybackCursor, TrackTimeline

END_OF_SEQUENCE = sys.maxsize


def _fire_range(
    timeline: TrackTimeline,
    cursor: PlaybackCursor,
    previous: int,
    current: int,
    fired: List[MidiEvent],
) -> None:
    for event in timeline.events:
        if event.tick >= current:
            break
        if event.tick < previous:
            continue
        if event.is_tempo_set:
            if event.data2 > 0:
                cursor.tempo = float(event.data2)
            continue
        if event.is_note:
            fired.append(event)


def trigger_signals(
    timeline: TrackTimeline, cursor: PlaybackCursor, previous: int, current: int
) -> List[MidiEvent]:
    """Return the note events in ``[previous, current)``, unrolling loops.

    Tempo-set events inside the window update ``cursor.tempo`` instead of
    being returned.  ``cursor.previous_tick`` is left at the normalised
    right edge of the window.
    """

    fired: List[MidiEvent] = []
    duration = timeline.duration
    if duration <= 0:
        return fired

    if current < previous:
        current += (previous // duration + 1) * duration

    offset = (previous // duration) * duration
    previous -= offset
    current -= offset

    while current >= duration:
        _fire_range(timeline, cursor, previous, duration, fired)
        previous = 0
        current -= duration

    _fire_range(timeline, cursor, previous, current, fired)
    cursor.previous_tick = current
    return fired


def flush_remaining(timeline: TrackTimeline, cursor: PlaybackCursor) -> List[MidiEvent]:
    """Fire everything from ``cursor.previous_tick`` to the end of the sequence."""

    fired: List[MidiEvent] = []
    if timeline.duration <= 0:
        return fired
    previous = cursor.previous_tick
    if previous > timeline.duration:
        previous %= timeline.duration
    _fire_range(timeline, cursor, previous, END_OF_SEQUENCE, fired)
    cursor.previous_tick = timeline.duration
    return fired
