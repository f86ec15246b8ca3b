#!/usr/bin/env python3
"""Summarise how a Standard MIDI File decodes into track timelines.

Examples
--------
    python tools/inspect_smf.py song.mid
    python tools/inspect_smf.py song.mid --events --track 1
    python tools/inspect_smf.py song.mid --compare-mido
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional, Sequence, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import mido  # noqa: E402

from midianim.decoder import DecoderOptions, load_smf  # noqa: E402
from midianim.errors import SmfError  # noqa: E402
from midianim.timeline import MidiFileTimeline, TrackTimeline  # noqa: E402

NoteKey = Tuple[int, int, int]  # (tick, status, note)


def _note_keys(track: TrackTimeline) -> List[NoteKey]:
    return [(e.tick, e.status, e.data1) for e in track.events if e.is_note]


def _mido_note_keys(mid: mido.MidiFile) -> List[List[NoteKey]]:
    result: List[List[NoteKey]] = []
    for track in mid.tracks:
        keys: List[NoteKey] = []
        abs_tick = 0
        for msg in track:
            abs_tick += msg.time
            if msg.type in ("note_on", "note_off"):
                keys.append((abs_tick, msg.bytes()[0], msg.note))
        result.append(keys)
    return result


def _describe_track(index: int, track: TrackTimeline) -> str:
    tempos = sorted({e.data2 for e in track.events if e.is_tempo_set})
    tempo_text = ",".join(str(t) for t in tempos) if tempos else "-"
    return (
        f"track {index:>2}: events={len(track.events):<6} notes={track.note_count:<5} "
        f"duration={track.duration} ticks ({track.duration_seconds:.3f}s) tempos={tempo_text}"
    )


def compare_with_mido(path: Path, timeline: MidiFileTimeline) -> int:
    """Return the number of tracks whose note ticks disagree with mido."""

    mid = mido.MidiFile(str(path))
    expected = _mido_note_keys(mid)
    mismatches = 0
    for index, (track, keys) in enumerate(zip(timeline.tracks, expected)):
        ours = _note_keys(track)
        if ours != keys:
            mismatches += 1
            print(f"track {index}: {len(ours)} notes decoded, mido reads {len(keys)}")
    if len(expected) != len(timeline.tracks):
        mismatches += 1
        print(f"track count differs: {len(timeline.tracks)} vs mido {len(expected)}")
    return mismatches


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect SMF track timelines")
    parser.add_argument("path", type=Path, help="Path to a .mid file")
    parser.add_argument(
        "--events",
        action="store_true",
        help="Print every decoded event",
    )
    parser.add_argument(
        "--track",
        type=int,
        default=None,
        help="Only report this track index",
    )
    parser.add_argument(
        "--keep-duplicates",
        action="store_true",
        help="Keep same-tick channel events with identical status",
    )
    parser.add_argument(
        "--compare-mido",
        action="store_true",
        help="Cross-check note ticks against mido (implies --keep-duplicates)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    options = DecoderOptions(drop_duplicates=not (args.keep_duplicates or args.compare_mido))
    try:
        timeline = load_smf(args.path.read_bytes(), options)
    except SmfError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(
        f"{args.path}: format {timeline.format}, {len(timeline)} tracks, "
        f"{timeline.ticks_per_quarter_note} ticks/quarter"
    )
    for index, track in enumerate(timeline.tracks):
        if args.track is not None and index != args.track:
            continue
        print(_describe_track(index, track))
        if args.events:
            for event in track.events:
                print(f"    {event.time:9.4f}s {event}")

    if args.compare_mido:
        mismatches = compare_with_mido(args.path, timeline)
        print("mido match: yes" if mismatches == 0 else "mido match: no")
        return 0 if mismatches == 0 else 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
