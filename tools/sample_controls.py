#!/usr/bin/env python3
"""Play a track at a fixed frame rate and print sampled control values.

Each frame prints ``time,value[,value...]`` followed by the notes that
fired during that frame, e.g.::

    0.0167,0.0000,0.7874  on:ch0:38:100

Controls come from a JSON file (``{"controls": [...]}``) or, when no file
is given, from ``--mode/--cc/--note/--octave``.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midianim.control import MidiControl, load_controls, parse_control  # noqa: E402
from midianim.decoder import load_smf_file  # noqa: E402
from midianim.errors import SmfError  # noqa: E402
from midianim.events import MidiEvent  # noqa: E402
from midianim.playback import EvaluationType, MidiAnimation  # noqa: E402


def _format_note(event: MidiEvent) -> str:
    kind = "on" if event.is_note_on else "off"
    return f"{kind}:ch{event.channel}:{event.data1}:{event.data2}"


def _controls_from_args(args: argparse.Namespace) -> List[MidiControl]:
    if args.controls is not None:
        return load_controls(args.controls)
    raw = {"mode": args.mode, "cc_number": args.cc}
    if args.note is not None or args.octave is not None:
        raw["note_filter"] = {"note": args.note, "octave": args.octave}
    return [parse_control(raw)]


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sample control values from a MIDI track")
    parser.add_argument("path", type=Path, help="Path to a .mid file")
    parser.add_argument("--track", type=int, default=0, help="Track index (default 0)")
    parser.add_argument("--controls", type=Path, default=None, help="JSON control file")
    parser.add_argument(
        "--mode",
        default="cc",
        choices=["cc", "note_envelope", "note_curve"],
        help="Control mode when no JSON file is given",
    )
    parser.add_argument("--cc", type=int, default=1, help="CC number for cc mode")
    parser.add_argument("--note", default=None, help="Note name filter (C, C#, ...)")
    parser.add_argument("--octave", type=int, default=None, help="Octave filter")
    parser.add_argument("--fps", type=float, default=60.0, help="Frames per second")
    parser.add_argument(
        "--seconds",
        type=float,
        default=None,
        help="Length to sample (default: one loop of the track)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if args.fps <= 0:
        print("error: --fps must be positive", file=sys.stderr)
        return 1

    try:
        timeline = load_smf_file(args.path)
        controls = _controls_from_args(args)
    except (SmfError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if not 0 <= args.track < len(timeline):
        print(f"error: track {args.track} out of range (0-{len(timeline) - 1})", file=sys.stderr)
        return 1

    player = MidiAnimation(timeline[args.track])
    end = timeline[args.track].end_time
    seconds = args.seconds if args.seconds is not None else end
    frames = int(seconds * args.fps)

    player.on_graph_start(0.0)
    for frame in range(frames):
        time = frame / args.fps
        if end > 0:
            time %= end
        fired = player.prepare_frame(time, EvaluationType.PLAYBACK)
        values = ",".join(f"{player.evaluate(time, c):.4f}" for c in controls)
        notes = " ".join(_format_note(e) for e in fired)
        print(f"{time:.4f},{values}" + (f"  {notes}" if notes else ""))
    for event in player.on_finished():
        print(f"flush  {_format_note(event)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
