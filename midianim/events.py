"""MIDI event record shared by the decoder and the playback engine.

Classification is derived from the status byte, never stored:

  0x8n: note off            0xBn: control change
  0x9n: note on             0xFF: meta (data1 = meta type)
  0xFF + data1 0x51: tempo set (data2 = tempo in BPM)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

META_STATUS = 0xFF
SYSEX_STATUS = 0xF0
SYSEX_ESCAPE_STATUS = 0xF7
TEMPO_META_TYPE = 0x51
END_OF_TRACK_META_TYPE = 0x2F


@dataclass(frozen=True)
class MidiEvent:
    time: float  # seconds from track start
    tick: int  # absolute ticks from track start
    status: int
    data1: int = 0
    data2: int = 0

    @property
    def is_note(self) -> bool:
        return (self.status & 0xE0) == 0x80

    @property
    def is_note_on(self) -> bool:
        return (self.status & 0xF0) == 0x90

    @property
    def is_note_off(self) -> bool:
        return (self.status & 0xF0) == 0x80

    @property
    def is_cc(self) -> bool:
        return (self.status & 0xF0) == 0xB0

    @property
    def is_meta(self) -> bool:
        return self.status == META_STATUS

    @property
    def is_tempo_set(self) -> bool:
        return self.is_meta and self.data1 == TEMPO_META_TYPE

    @property
    def is_channel_voice(self) -> bool:
        return 0x80 <= self.status < 0xF0

    @property
    def channel(self) -> Optional[int]:
        if not self.is_channel_voice:
            return None
        return self.status & 0x0F

    def __str__(self) -> str:
        return f"[{self.tick}: {self.status:X}, {self.data1}, {self.data2}]"
