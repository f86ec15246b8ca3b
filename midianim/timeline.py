"""Decoded timelines and the tick/time mapping used during playback."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

from .events import MidiEvent

DEFAULT_TEMPO = 120.0
DEFAULT_TICKS_PER_QUARTER_NOTE = 96
BEATS_PER_BAR = 4


@dataclass(frozen=True)
class TrackTimeline:
    """One SMF track: its ordered events plus scalar metadata.

    ``tempo`` is the baseline tempo in BPM, in effect until the first
    tempo-set event.  ``duration`` is in ticks, rounded up to whole
    4-beat bars.
    """

    events: Tuple[MidiEvent, ...]
    duration: int
    ticks_per_quarter_note: int = DEFAULT_TICKS_PER_QUARTER_NOTE
    tempo: float = DEFAULT_TEMPO

    @property
    def duration_seconds(self) -> float:
        if self.duration == 0:
            return 0.0
        return self.duration * 60 / (self.tempo * self.ticks_per_quarter_note)

    @property
    def end_time(self) -> float:
        """Seconds from the start to the end of the last bar, following tempo changes."""

        if not self.events:
            return 0.0
        tempo = self.tempo
        for event in self.events:
            if event.is_tempo_set and event.data2 > 0:
                tempo = float(event.data2)
        last = self.events[-1]
        return last.time + (self.duration - last.tick) * 60 / (tempo * self.ticks_per_quarter_note)

    @property
    def bar_ticks(self) -> int:
        return self.ticks_per_quarter_note * BEATS_PER_BAR

    @property
    def note_count(self) -> int:
        return sum(1 for e in self.events if e.is_note_on)

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class MidiFileTimeline:
    """All tracks of one file, in file order."""

    tracks: Tuple[TrackTimeline, ...]
    ticks_per_quarter_note: int
    format: int = 1

    def __len__(self) -> int:
        return len(self.tracks)

    def __getitem__(self, index: int) -> TrackTimeline:
        return self.tracks[index]


@dataclass
class PlaybackCursor:
    """Mutable per-instance playback state.

    Each playing instance owns one cursor; the timeline it reads is shared
    and never modified.
    """

    tempo: float = DEFAULT_TEMPO
    previous_tick: int = 0
    previous_time: float = 0.0
    cache_time: float = 0.0
    cache_index: int = 0
    cache_tick: int = 0
    initial_tempo: float = field(default=DEFAULT_TEMPO, repr=False)

    @classmethod
    def for_timeline(cls, timeline: TrackTimeline) -> "PlaybackCursor":
        return cls(tempo=timeline.tempo, initial_tempo=timeline.tempo)

    def reset(self, time: float = 0.0) -> None:
        self.tempo = self.initial_tempo
        self.previous_tick = 0
        self.previous_time = time
        self.cache_time = 0.0
        self.cache_index = 0
        self.cache_tick = 0


def quantize_duration(final_tick: int, ticks_per_quarter_note: int) -> int:
    """Round ``final_tick`` up to a whole number of 4-beat bars."""

    bar = ticks_per_quarter_note * BEATS_PER_BAR
    if bar <= 0:
        return 0
    bars = (final_tick + bar - 1) // bar
    return bars * bar


def seconds_to_tick(events: Sequence[MidiEvent], time: float) -> int:
    """Return the tick of the last event stamped at or before ``time``."""

    tick = 0
    for event in events:
        if event.time > time:
            break
        tick = event.tick
    return tick


def seconds_to_tick_cached(
    events: Sequence[MidiEvent], time: float, cursor: PlaybackCursor
) -> int:
    """Same answer as :func:`seconds_to_tick`, resuming forward scans.

    A query at or after the cursor's cached time continues from the cached
    event index; a backward query rescans from the start.
    """

    if time >= cursor.cache_time:
        index, tick = cursor.cache_index, cursor.cache_tick
    else:
        index, tick = 0, 0

    count = len(events)
    while index < count and events[index].time <= time:
        tick = events[index].tick
        index += 1

    cursor.cache_time = time
    cursor.cache_index = index
    cursor.cache_tick = tick
    return tick


def tick_to_seconds(tick: int, tempo: float, ticks_per_quarter_note: int) -> float:
    """Closed-form conversion at a single scalar tempo."""

    return tick * 60 / (tempo * ticks_per_quarter_note)
