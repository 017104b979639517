"""
EDF File Format Decoder

Decodes European Data Format (EDF) recordings from an in-memory buffer into
typed header/signal metadata and physical-unit waveforms.

Layout:
- 256-byte global header of fixed-width ASCII fields
- num_signals x 256 bytes of signal headers, stored column-major: every
  signal's label, then every signal's transducer, and so on
- num_data_records data records starting at header_bytes; each record holds
  samples_per_record little-endian int16 values per signal, in signal order
"""

import logging
import math
import struct

from pathlib import Path

import numpy as np

from megascore.constants import (
    EDF_GLOBAL_FIELDS,
    EDF_HEADER_BYTES,
    EDF_SAMPLE_BYTES,
    EDF_SIGNAL_FIELDS,
    EDF_SIGNAL_HEADER_BYTES,
)
from megascore.parsers.base import FormatError
from megascore.parsers.formats.types import (
    Channel,
    ChannelDescriptor,
    DecodedRecording,
    RecordingHeader,
)

logger = logging.getLogger(__name__)

_GLOBAL_HEADER_FORMAT = "".join(f"{width}s" for _, width in EDF_GLOBAL_FIELDS)


def _text(raw: bytes) -> str:
    return raw.decode("latin-1").strip()


def _parse_int(value: str, field: str, minimum: int | None = None) -> int:
    """Parse an integer header field, raising FormatError on bad input."""
    try:
        parsed = int(value)
    except ValueError:
        raise FormatError(f"Header field '{field}' is not an integer: {value!r}") from None
    if minimum is not None and parsed < minimum:
        raise FormatError(f"Header field '{field}' must be >= {minimum}, got {parsed}")
    return parsed


def _parse_float(value: str, field: str) -> float:
    """Parse a real-valued header field, raising FormatError on bad input."""
    try:
        parsed = float(value)
    except ValueError:
        raise FormatError(f"Header field '{field}' is not a number: {value!r}") from None
    if not math.isfinite(parsed):
        raise FormatError(f"Header field '{field}' is not finite: {value!r}")
    return parsed


def _decode_header(raw: bytes) -> RecordingHeader:
    if len(raw) < EDF_HEADER_BYTES:
        raise FormatError(
            f"Buffer too short for EDF header: {len(raw)} < {EDF_HEADER_BYTES} bytes"
        )

    values = struct.unpack_from(_GLOBAL_HEADER_FORMAT, raw, 0)
    fields = {
        name: _text(value)
        for (name, _), value in zip(EDF_GLOBAL_FIELDS, values, strict=True)
    }

    record_duration = _parse_float(fields["record_duration_sec"], "record_duration_sec")
    if record_duration < 0:
        raise FormatError(f"Record duration must be >= 0, got {record_duration}")

    return RecordingHeader(
        version=fields["version"],
        patient_id=fields["patient_id"],
        recording_id=fields["recording_id"],
        start_date=fields["start_date"],
        start_time=fields["start_time"],
        header_bytes=_parse_int(fields["header_bytes"], "header_bytes", minimum=0),
        num_data_records=_parse_int(
            fields["num_data_records"], "num_data_records", minimum=0
        ),
        record_duration_sec=record_duration,
        num_signals=_parse_int(fields["num_signals"], "num_signals", minimum=0),
    )


def _decode_signal_blocks(raw: bytes, num_signals: int) -> list[dict[str, str]]:
    """Read the column-major signal header blocks into one dict per signal."""
    required = EDF_HEADER_BYTES + num_signals * EDF_SIGNAL_HEADER_BYTES
    if len(raw) < required:
        raise FormatError(
            f"Buffer too short for {num_signals} signal headers: "
            f"{len(raw)} < {required} bytes"
        )

    signals: list[dict[str, str]] = [{} for _ in range(num_signals)]
    offset = EDF_HEADER_BYTES
    for name, width in EDF_SIGNAL_FIELDS:
        entries = struct.unpack_from(f"{width}s" * num_signals, raw, offset)
        for signal, entry in zip(signals, entries, strict=True):
            signal[name] = _text(entry)
        offset += width * num_signals

    return signals


def _build_descriptor(
    fields: dict[str, str], index: int, record_duration: float
) -> ChannelDescriptor:
    label = fields["label"]
    where = f"(signal {index} '{label}')"

    physical_min = _parse_float(fields["physical_min"], f"physical_min {where}")
    physical_max = _parse_float(fields["physical_max"], f"physical_max {where}")
    digital_min = _parse_int(fields["digital_min"], f"digital_min {where}")
    digital_max = _parse_int(fields["digital_max"], f"digital_max {where}")
    samples_per_record = _parse_int(
        fields["samples_per_record"], f"samples_per_record {where}", minimum=0
    )

    if digital_max == digital_min:
        raise FormatError(
            f"Signal {index} '{label}' has zero digital range "
            f"(digital_min == digital_max == {digital_min})"
        )

    sampling_rate = samples_per_record / record_duration if record_duration > 0 else 0.0

    return ChannelDescriptor(
        label=label,
        transducer=fields["transducer"],
        physical_dimension=fields["physical_dimension"],
        physical_min=physical_min,
        physical_max=physical_max,
        digital_min=digital_min,
        digital_max=digital_max,
        prefiltering=fields["prefiltering"],
        samples_per_record=samples_per_record,
        signal_index=index,
        sampling_rate_hz=sampling_rate,
    )


def _decode_samples(
    raw: bytes, header: RecordingHeader, descriptors: list[ChannelDescriptor]
) -> list[np.ndarray]:
    """Split the interleaved data records into one physical waveform per signal."""
    record_samples = sum(d.samples_per_record for d in descriptors)
    total_samples = header.num_data_records * record_samples
    required = header.header_bytes + total_samples * EDF_SAMPLE_BYTES
    if len(raw) < required:
        raise FormatError(
            f"Buffer too short for {header.num_data_records} data records: "
            f"{len(raw)} < {required} bytes"
        )

    if total_samples == 0:
        digital = np.zeros((header.num_data_records, record_samples), dtype="<i2")
    else:
        digital = np.frombuffer(
            raw, dtype="<i2", count=total_samples, offset=header.header_bytes
        ).reshape(header.num_data_records, record_samples)

    waveforms = []
    column = 0
    for descriptor in descriptors:
        slot = digital[:, column : column + descriptor.samples_per_record]
        column += descriptor.samples_per_record

        waveform = descriptor.digital_to_physical(slot.reshape(-1))
        waveform.setflags(write=False)
        waveforms.append(waveform)

    return waveforms


def decode(raw: bytes) -> DecodedRecording:
    """
    Decode an EDF container held in memory.

    Args:
        raw: Complete file contents

    Returns:
        DecodedRecording with header, every channel's physical waveform and
        the airflow channel (first label containing "flow" or "flw")

    Raises:
        FormatError: If the buffer is truncated, a numeric field cannot be
            parsed, or a signal has digital_min == digital_max
    """
    raw = bytes(raw)
    header = _decode_header(raw)
    signal_fields = _decode_signal_blocks(raw, header.num_signals)

    signal_header_end = EDF_HEADER_BYTES + header.num_signals * EDF_SIGNAL_HEADER_BYTES
    if header.header_bytes != signal_header_end:
        logger.warning(
            f"Header declares {header.header_bytes} header bytes, "
            f"expected {signal_header_end} for {header.num_signals} signals"
        )

    descriptors = [
        _build_descriptor(fields, index, header.record_duration_sec)
        for index, fields in enumerate(signal_fields)
    ]
    waveforms = _decode_samples(raw, header, descriptors)

    channels = [
        Channel(descriptor=descriptor, waveform=waveform)
        for descriptor, waveform in zip(descriptors, waveforms, strict=True)
    ]
    flow_channel = next((c for c in channels if c.descriptor.is_flow), None)

    logger.debug(
        f"Decoded EDF: {header.num_signals} signals, "
        f"{header.num_data_records} records x {header.record_duration_sec}s"
    )

    return DecodedRecording(header=header, channels=channels, flow_channel=flow_channel)


def read_edf(path: Path | str) -> DecodedRecording:
    """
    Read and decode an EDF file from disk.

    Raises:
        OSError: If the file cannot be read
        FormatError: If the file is not a decodable EDF container
    """
    path = Path(path)
    raw = path.read_bytes()

    try:
        recording = decode(raw)
    except FormatError as e:
        raise FormatError(f"{path.name}: {e}", source=str(path)) from e

    logger.info(
        f"Decoded {path.name}: {len(recording.channels)} signals, "
        f"{recording.header.total_duration_minutes:.1f} min"
    )
    return recording
