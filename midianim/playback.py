"""Per-instance player driven by a host clock.

The host calls :meth:`MidiAnimation.prepare_frame` once per frame with the
current playback time and tells it whether the frame is ordinary playback
or a scrub.  Times are local to the track: a looping host passes a time
that jumps back towards zero, which fires the rest of the lap before
starting the next one.  Fired note events are returned and also pushed to the
optional ``listener``.  Continuous values come from
:meth:`MidiAnimation.evaluate`.

Several instances may share one :class:`TrackTimeline`; each keeps its own
:class:`PlaybackCursor`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .control import MidiControl
from .events import MidiEvent
from .timeline import PlaybackCursor, TrackTimeline, seconds_to_tick, seconds_to_tick_cached
from .trigger import flush_remaining, trigger_signals
from .values import control_value

logger = logging.getLogger(__name__)

SignalListener = Callable[[MidiEvent], None]


class EvaluationType(Enum):
    PLAYBACK = "playback"
    SCRUB = "scrub"


@dataclass(frozen=True)
class PlaybackOptions:
    # Largest forward step (seconds) still treated as continuous scrubbing.
    max_scrub_gap: float = 0.1

    def __post_init__(self) -> None:
        if self.max_scrub_gap < 0:
            raise ValueError(f"max_scrub_gap must be >= 0, got {self.max_scrub_gap}")


class MidiAnimation:
    def __init__(
        self,
        timeline: TrackTimeline,
        *,
        listener: Optional[SignalListener] = None,
        options: Optional[PlaybackOptions] = None,
    ) -> None:
        self.timeline = timeline
        self.listener = listener
        self.options = options or PlaybackOptions()
        self.cursor = PlaybackCursor.for_timeline(timeline)

    @property
    def duration_seconds(self) -> float:
        return self.timeline.duration_seconds

    def _local_time(self, time: float) -> float:
        end = self.timeline.end_time
        return time % end if end > 0 else time

    def on_graph_start(self, time: float = 0.0) -> None:
        """Reset playback state; call whenever the host (re)starts playback."""

        self.cursor.reset(time)

    def _emit(self, events: List[MidiEvent]) -> List[MidiEvent]:
        if self.listener is not None:
            for event in events:
                self.listener(event)
        return events

    def prepare_frame(
        self, time: float, evaluation_type: EvaluationType = EvaluationType.PLAYBACK
    ) -> List[MidiEvent]:
        cursor = self.cursor
        events = self.timeline.events
        current_tick = seconds_to_tick_cached(events, time, cursor)

        if evaluation_type is EvaluationType.PLAYBACK:
            fired = trigger_signals(self.timeline, cursor, cursor.previous_tick, current_tick)
        elif 0.0 <= time - cursor.previous_time < self.options.max_scrub_gap:
            fired = trigger_signals(self.timeline, cursor, cursor.previous_tick, current_tick)
        else:
            # Jump: only fire what lies just before the target.
            start = max(0.0, time - self.options.max_scrub_gap)
            logger.debug("scrub jump %.3fs -> %.3fs", cursor.previous_time, time)
            fired = trigger_signals(
                self.timeline, cursor, seconds_to_tick(events, start), current_tick
            )

        cursor.previous_time = time
        cursor.previous_tick = current_tick
        return self._emit(fired)

    def on_finished(self) -> List[MidiEvent]:
        """Flush every signal after the last fired tick."""

        return self._emit(flush_remaining(self.timeline, self.cursor))

    def evaluate(self, time: float, control: MidiControl) -> float:
        duration = self.duration_seconds
        if not self.timeline.events or duration <= 0:
            return 0.0
        return control_value(self.timeline, self._local_time(time), control, self.cursor.tempo)
