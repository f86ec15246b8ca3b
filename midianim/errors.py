"""Parse errors raised while decoding Standard MIDI Files.

Every error aborts the whole decode; no partial timeline is returned.
"""

from __future__ import annotations


class SmfError(ValueError):
    """Base class for all SMF decoding failures."""


class TruncatedStream(SmfError):
    """A read would run past the end of the byte buffer."""


class BadHeader(SmfError):
    """The file does not start with an ``MThd`` chunk."""


class BadHeaderLength(SmfError):
    """The ``MThd`` chunk length is not 6."""


class BadTrackHeader(SmfError):
    """A track chunk does not start with ``MTrk``."""


class UnsupportedTimeFormat(SmfError):
    """The division word selects SMPTE time code."""


class MissingStatus(SmfError):
    """A data byte arrived with no running status to apply it to."""
