"""Decode Standard MIDI Files into timelines and sample them per frame."""

from .control import (  # noqa: F401
    ControlMode,
    MidiControl,
    MidiEnvelope,
    NoteFilter,
    ResponseCurve,
    load_controls,
    parse_control,
    parse_controls,
)
from .cursor import ByteCursor  # noqa: F401
from .decoder import DecoderOptions, load_smf, load_smf_file  # noqa: F401
from .errors import (  # noqa: F401
    BadHeader,
    BadHeaderLength,
    BadTrackHeader,
    MissingStatus,
    SmfError,
    TruncatedStream,
    UnsupportedTimeFormat,
)
from .events import MidiEvent  # noqa: F401
from .playback import EvaluationType, MidiAnimation, PlaybackOptions  # noqa: F401
from .timeline import (  # noqa: F401
    MidiFileTimeline,
    PlaybackCursor,
    TrackTimeline,
    quantize_duration,
    seconds_to_tick,
    seconds_to_tick_cached,
    tick_to_seconds,
)
from .trigger import flush_remaining, trigger_signals  # noqa: F401
from .values import (  # noqa: F401
    calculate_envelope,
    cc_value,
    control_value,
    note_curve_value,
    note_envelope_value,
)
