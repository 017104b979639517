"""EDF container decoding."""

from megascore.parsers.base import FormatError, ParserError
from megascore.parsers.formats.edf import decode, read_edf
from megascore.parsers.formats.types import (
    Channel,
    ChannelDescriptor,
    DecodedRecording,
    RecordingHeader,
)

__all__ = [
    "Channel",
    "ChannelDescriptor",
    "DecodedRecording",
    "FormatError",
    "ParserError",
    "RecordingHeader",
    "decode",
    "read_edf",
]
