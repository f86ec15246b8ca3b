"""Decode Standard MIDI Files into per-track event timelines.

File layout (all integers big-endian):

  MThd  u32 length (=6)  u16 format  u16 track count  u16 division
  MTrk  u32 length  <delta-time, event> pairs ...   (repeated per track)

Delta times are variable-length quantities.  Channel-voice events may
omit their status byte (running status) when it repeats the previous
one.  Tempo is carried in-stream by meta event 0x51, so seconds are
accumulated while decoding: each delta is converted with the tempo in
effect when it is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from .cursor import ByteCursor
from .errors import (
    BadHeader,
    BadHeaderLength,
    BadTrackHeader,
    MissingStatus,
    UnsupportedTimeFormat,
)
from .events import (
    META_STATUS,
    SYSEX_ESCAPE_STATUS,
    SYSEX_STATUS,
    TEMPO_META_TYPE,
    MidiEvent,
)
from .timeline import DEFAULT_TEMPO, MidiFileTimeline, TrackTimeline, quantize_duration

logger = logging.getLogger(__name__)

HEADER_TAG = "MThd"
TRACK_TAG = "MTrk"
HEADER_LENGTH = 6
SMPTE_FLAG = 0x8000
MICROSECONDS_PER_MINUTE = 60_000_000
PAYLOAD_MAX = 0xFF


@dataclass(frozen=True)
class DecoderOptions:
    """Decoding policy.

    ``drop_duplicates`` discards a channel-voice event whose (tick, status)
    pair was already seen in the same track.  This silences same-tick
    retriggers from malformed files, but also collapses chords written on
    one channel, so it can be turned off.
    """

    drop_duplicates: bool = True
    initial_tempo: float = DEFAULT_TEMPO

    def __post_init__(self) -> None:
        if self.initial_tempo <= 0:
            raise ValueError(f"initial_tempo must be positive, got {self.initial_tempo}")


def _data_bytes(status: int) -> int:
    # Program change and channel pressure carry a single data byte.
    return 1 if (status & 0xE0) == 0xC0 else 2


def _read_track(
    cursor: ByteCursor, ticks_per_quarter_note: int, options: DecoderOptions
) -> TrackTimeline:
    start = cursor.position
    tag = cursor.read_chars(4)
    if tag != TRACK_TAG:
        raise BadTrackHeader(f"expected {TRACK_TAG!r} at offset {start}, found {tag!r}")
    chunk_end = cursor.read_u32() + cursor.position

    events: List[MidiEvent] = []
    seen: Set[Tuple[int, int]] = set()
    tick = 0
    time = 0.0
    tempo = options.initial_tempo
    status = 0
    dropped = 0

    while cursor.position < chunk_end:
        delta = cursor.read_varlen()
        tick += delta
        time += (60.0 / tempo) * delta / ticks_per_quarter_note

        if cursor.peek_byte() & 0x80:
            status = cursor.read_byte()
        elif not status:
            raise MissingStatus(
                f"data byte 0x{cursor.peek_byte():02X} at offset {cursor.position} "
                "without a running status"
            )

        if status == META_STATUS:
            meta_type = cursor.read_byte()
            length = cursor.read_varlen()
            if meta_type == TEMPO_META_TYPE and length >= 3:
                usec = cursor.read_u24()
                cursor.skip(length - 3)
                if usec > 0:
                    tempo = float(round(MICROSECONDS_PER_MINUTE / usec))
                    logger.debug("tick %d: tempo %d BPM", tick, tempo)
                events.append(
                    MidiEvent(time, tick, status, meta_type, min(int(tempo), PAYLOAD_MAX))
                )
            else:
                cursor.skip(length)
                events.append(MidiEvent(time, tick, status, meta_type, 0))
        elif status == SYSEX_STATUS:
            while cursor.read_byte() != 0xF7:
                pass
            events.append(MidiEvent(time, tick, status))
        elif status == SYSEX_ESCAPE_STATUS:
            cursor.skip(cursor.read_varlen())
            events.append(MidiEvent(time, tick, status))
        else:
            data1 = cursor.read_byte()
            data2 = cursor.read_byte() if _data_bytes(status) == 2 else 0
            key = (tick, status)
            if options.drop_duplicates and key in seen:
                dropped += 1
                logger.debug(
                    "tick %d: dropped duplicate status 0x%02X (%d, %d)",
                    tick,
                    status,
                    data1,
                    data2,
                )
                continue
            seen.add(key)
            events.append(MidiEvent(time, tick, status, data1, data2))

        if status >= SYSEX_STATUS:
            # Meta and system exclusive events cancel running status.
            status = 0

    track = TrackTimeline(
        events=tuple(events),
        duration=quantize_duration(tick, ticks_per_quarter_note),
        ticks_per_quarter_note=ticks_per_quarter_note,
        tempo=options.initial_tempo,
    )
    logger.debug(
        "track: %d events, %d notes, %d duplicates dropped, %d ticks",
        len(track.events),
        track.note_count,
        dropped,
        track.duration,
    )
    return track


def load_smf(data: bytes, options: Optional[DecoderOptions] = None) -> MidiFileTimeline:
    """Decode a complete SMF byte buffer.

    Parameters
    ----------
    data : bytes
        The whole file.
    options : DecoderOptions, optional
        Decoding policy; defaults to ``DecoderOptions()``.

    Returns
    -------
    MidiFileTimeline
        One :class:`TrackTimeline` per ``MTrk`` chunk, in file order.

    Raises
    ------
    SmfError
        On the first malformed or truncated structure.  Nothing is
        returned for the tracks decoded before it.
    """
    options = options or DecoderOptions()
    cursor = ByteCursor(data)

    tag = cursor.read_chars(4)
    if tag != HEADER_TAG:
        raise BadHeader(f"expected {HEADER_TAG!r}, found {tag!r}")
    length = cursor.read_u32()
    if length != HEADER_LENGTH:
        raise BadHeaderLength(f"header chunk length must be {HEADER_LENGTH}, got {length}")

    smf_format = cursor.read_u16()
    track_count = cursor.read_u16()
    division = cursor.read_u16()
    if division & SMPTE_FLAG:
        raise UnsupportedTimeFormat(f"SMPTE time code is not supported (division 0x{division:04X})")
    ticks_per_quarter_note = division & 0x7FFF
    if ticks_per_quarter_note == 0:
        raise BadHeader("ticks per quarter note must be non-zero")

    logger.debug(
        "format %d, %d tracks, %d ticks per quarter note",
        smf_format,
        track_count,
        ticks_per_quarter_note,
    )

    tracks = tuple(
        _read_track(cursor, ticks_per_quarter_note, options) for _ in range(track_count)
    )
    return MidiFileTimeline(
        tracks=tracks,
        ticks_per_quarter_note=ticks_per_quarter_note,
        format=smf_format,
    )


def load_smf_file(
    path: Union[str, Path], options: Optional[DecoderOptions] = None
) -> MidiFileTimeline:
    return load_smf(Path(path).read_bytes(), options)
