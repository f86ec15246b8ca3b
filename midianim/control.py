"""Control descriptions: what value a track drives and how it is shaped.

Controls can be built directly or loaded from JSON-shaped dicts::

    {
      "mode": "note_envelope",
      "note_filter": {"note": "D", "octave": 2},
      "envelope": {"attack": 0.0, "decay": 1.0, "sustain": 0.5, "release": 1.0}
    }
"""

from __future__ import annotations

import json
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .events import MidiEvent

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
MIN_ENVELOPE_TIME = 1e-5


class ControlMode(Enum):
    CC = "cc"
    NOTE_ENVELOPE = "note_envelope"
    NOTE_CURVE = "note_curve"


@dataclass(frozen=True)
class NoteFilter:
    """Match notes by pitch class and/or octave; ``None`` matches any.

    Octaves follow the convention where MIDI note 60 is C4.
    """

    note: Optional[int] = None  # pitch class 0-11
    octave: Optional[int] = None  # -1..9

    def check(self, event: MidiEvent) -> bool:
        if not event.is_note:
            return False
        if self.octave is not None and event.data1 // 12 - 1 != self.octave:
            return False
        if self.note is not None and event.data1 % 12 != self.note:
            return False
        return True


@dataclass(frozen=True)
class MidiEnvelope:
    attack: float = 0.0
    decay: float = 1.0
    sustain: float = 0.5
    release: float = 1.0

    @property
    def attack_time(self) -> float:
        return max(MIN_ENVELOPE_TIME, self.attack / 10)

    @property
    def decay_time(self) -> float:
        return max(MIN_ENVELOPE_TIME, self.decay / 10)

    @property
    def sustain_level(self) -> float:
        return min(1.0, max(0.0, self.sustain))

    @property
    def release_time(self) -> float:
        return max(MIN_ENVELOPE_TIME, self.release / 10)


@dataclass(frozen=True)
class ResponseCurve:
    """Piecewise-linear curve over ``(time, value)`` keys, held flat past the ends."""

    keys: Tuple[Tuple[float, float], ...] = ((0.0, 1.0), (1.0, 0.0))

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", tuple(sorted((float(t), float(v)) for t, v in self.keys)))

    def __call__(self, time: float) -> float:
        keys = self.keys
        if not keys:
            return 0.0
        if time <= keys[0][0]:
            return keys[0][1]
        if time >= keys[-1][0]:
            return keys[-1][1]
        idx = bisect_right([k[0] for k in keys], time)
        (t0, v0), (t1, v1) = keys[idx - 1], keys[idx]
        if t1 == t0:
            return v1
        return v0 + (v1 - v0) * (time - t0) / (t1 - t0)


Curve = Callable[[float], float]


@dataclass(frozen=True)
class MidiControl:
    mode: ControlMode = ControlMode.CC
    cc_number: int = 1
    note_filter: NoteFilter = field(default_factory=NoteFilter)
    envelope: MidiEnvelope = field(default_factory=MidiEnvelope)
    curve: Curve = field(default_factory=ResponseCurve)


# ── JSON loading ─────────────────────────────────────────────────────
#
# Errors read "<path>: <problem>", e.g. "controls[2].envelope.decay: -1.0 is negative".


def _as_object(value: object, where: str) -> dict:
    if isinstance(value, dict):
        return value
    raise ValueError(f"{where}: expected a JSON object, got {type(value).__name__}")


def _as_array(value: object, where: str) -> list:
    if isinstance(value, list):
        return value
    raise ValueError(f"{where}: expected a JSON array, got {type(value).__name__}")


def _midi_int(value: object, where: str, low: int = 0, high: int = 127) -> int:
    """Integer field, bounded like a MIDI data byte unless told otherwise."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{where}: expected an integer, got {value!r}")
    if value < low or value > high:
        raise ValueError(f"{where}: {value} is outside {low}..{high}")
    return value


def _number(value: object, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{where}: expected a number, got {value!r}")
    return float(value)


def _parse_pitch_class(value: object, where: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        name = value.strip().upper()
        if name not in NOTE_NAMES:
            raise ValueError(f"{where}: expected a note name ({' '.join(NOTE_NAMES)}), got {value!r}")
        return NOTE_NAMES.index(name)
    return _midi_int(value, where, high=11)


def _parse_note_filter(raw: object, where: str) -> NoteFilter:
    if raw is None:
        return NoteFilter()
    obj = _as_object(raw, where)
    octave = obj.get("octave")
    if octave is not None:
        octave = _midi_int(octave, f"{where}.octave", low=-1, high=9)
    return NoteFilter(
        note=_parse_pitch_class(obj.get("note"), f"{where}.note"),
        octave=octave,
    )


def _parse_envelope(raw: object, where: str) -> MidiEnvelope:
    if raw is None:
        return MidiEnvelope()
    obj = _as_object(raw, where)
    defaults = MidiEnvelope()
    values = {}
    for name in ("attack", "decay", "sustain", "release"):
        value = _number(obj.get(name, getattr(defaults, name)), f"{where}.{name}")
        if value < 0:
            raise ValueError(f"{where}.{name}: {value} is negative")
        values[name] = value
    return MidiEnvelope(**values)


def _parse_curve(raw: object, where: str) -> ResponseCurve:
    if raw is None:
        return ResponseCurve()
    keys: List[Tuple[float, float]] = []
    for idx, key_raw in enumerate(_as_array(raw, where)):
        key = _as_array(key_raw, f"{where}[{idx}]")
        if len(key) != 2:
            raise ValueError(f"{where}[{idx}]: expected a [time, value] pair, got {len(key)} items")
        keys.append((_number(key[0], f"{where}[{idx}][0]"), _number(key[1], f"{where}[{idx}][1]")))
    return ResponseCurve(tuple(keys))


def parse_control(raw: object, *, where: str = "control") -> MidiControl:
    obj = _as_object(raw, where)
    mode_raw = obj.get("mode", ControlMode.CC.value)
    try:
        mode = ControlMode(mode_raw)
    except ValueError:
        valid = ", ".join(m.value for m in ControlMode)
        raise ValueError(f"{where}.mode: expected one of {valid}, got {mode_raw!r}") from None
    return MidiControl(
        mode=mode,
        cc_number=_midi_int(obj.get("cc_number", 1), f"{where}.cc_number"),
        note_filter=_parse_note_filter(obj.get("note_filter"), f"{where}.note_filter"),
        envelope=_parse_envelope(obj.get("envelope"), f"{where}.envelope"),
        curve=_parse_curve(obj.get("curve"), f"{where}.curve"),
    )


def parse_controls(raw: object) -> List[MidiControl]:
    """Parse either ``{"controls": [...]}`` or a bare list of controls."""

    if isinstance(raw, dict):
        raw = raw.get("controls")
    items = _as_array(raw, "controls")
    return [parse_control(item, where=f"controls[{idx}]") for idx, item in enumerate(items)]


def load_controls(path: Union[str, Path]) -> List[MidiControl]:
    return parse_controls(json.loads(Path(path).read_text(encoding="utf-8")))
