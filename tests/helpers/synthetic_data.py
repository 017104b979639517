"""
Synthetic test data generators for flow waveforms and EDF containers.

Provides functions to generate controlled, reproducible test data for unit testing.
"""

import struct

from dataclasses import dataclass, field

import numpy as np

from megascore.constants import EDF_GLOBAL_FIELDS, EDF_HEADER_BYTES, EDF_SIGNAL_FIELDS


def generate_sinusoidal_flow(
    duration: float = 120.0,
    breath_period: float = 4.0,
    amplitude: float = 30.0,
    sample_rate: float = 25.0,
    phase: float = 0.3,
) -> np.ndarray:
    """
    Generate steady sinusoidal breathing.

    Args:
        duration: Recording length in seconds
        breath_period: Seconds per breath
        amplitude: Peak flow amplitude in L/min
        sample_rate: Sample rate in Hz
        phase: Phase offset (radians) so no sample lands exactly on zero

    Returns:
        Flow values
    """
    n_samples = int(duration * sample_rate)
    t = np.arange(n_samples) / sample_rate
    return amplitude * np.sin(2 * np.pi * t / breath_period + phase)


def generate_flattened_breath(
    n_samples: int = 50,
    amplitude: float = 30.0,
) -> np.ndarray:
    """
    Generate one flow-limited breath: a square-topped inspiration followed
    by a rounded expiration of the same length.

    The first and last inspiratory samples ramp at half amplitude so the
    breath starts and ends with a zero crossing.
    """
    inspiration = np.full(n_samples, amplitude)
    inspiration[0] = inspiration[-1] = amplitude / 2
    expiration = -amplitude * np.sin(np.linspace(0, np.pi, n_samples + 2)[1:-1])
    return np.concatenate([inspiration, expiration])


def generate_breath_train(breath: np.ndarray, count: int) -> np.ndarray:
    """Repeat one breath and prepend a negative sample so the first onset counts."""
    return np.concatenate([[-1.0], np.tile(breath, count)])


def generate_periodic_breathing(
    duration: float = 1200.0,
    breath_period: float = 4.0,
    cycle_period: float = 40.0,
    amplitude: float = 30.0,
    sample_rate: float = 25.0,
) -> np.ndarray:
    """
    Generate waxing and waning breathing (Cheyne-Stokes like).

    The breath amplitude is modulated with period cycle_period, which for the
    default 40 s puts the ventilation oscillation at 0.025 Hz.
    """
    n_samples = int(duration * sample_rate)
    t = np.arange(n_samples) / sample_rate
    envelope = 0.55 + 0.45 * np.sin(2 * np.pi * t / cycle_period)
    return amplitude * envelope * np.sin(2 * np.pi * t / breath_period + 0.3)


def insert_arousal(
    flow: np.ndarray,
    at_seconds: float,
    sample_rate: float = 25.0,
    breaths: int = 2,
    breath_period: float = 2.0,
    amplitude: float = 60.0,
) -> np.ndarray:
    """
    Replace a stretch of flow with faster, deeper breaths.

    Returns:
        New flow array; the input is not modified
    """
    flow = flow.copy()
    start = int(at_seconds * sample_rate)
    n_samples = int(breaths * breath_period * sample_rate)
    t = np.arange(n_samples) / sample_rate
    flow[start : start + n_samples] = amplitude * np.sin(
        2 * np.pi * t / breath_period + 0.3
    )
    return flow


@dataclass
class SyntheticSignal:
    """One channel of a synthetic EDF container."""

    label: str
    samples: np.ndarray  # Physical values, length = records x samples_per_record
    samples_per_record: int
    physical_min: float = -100.0
    physical_max: float = 100.0
    digital_min: int = -32768
    digital_max: int = 32767
    transducer: str = ""
    physical_dimension: str = "L/min"
    prefiltering: str = ""
    raw_digital: np.ndarray | None = field(default=None)

    def digital(self) -> np.ndarray:
        """Quantize the physical samples into the digital range."""
        if self.raw_digital is not None:
            return np.asarray(self.raw_digital, dtype="<i2")
        scale = (self.physical_max - self.physical_min) / (
            self.digital_max - self.digital_min
        )
        values = np.round((self.samples - self.physical_min) / scale + self.digital_min)
        return np.clip(values, self.digital_min, self.digital_max).astype("<i2")


def _field(value: object, width: int) -> bytes:
    text = str(value).encode("ascii")
    assert len(text) <= width, f"{value!r} does not fit in {width} bytes"
    return text.ljust(width, b" ")


def build_edf(
    signals: list[SyntheticSignal],
    num_data_records: int,
    record_duration: float = 1.0,
    start_date: str = "01.02.24",
    start_time: str = "23.15.00",
    patient_id: str = "X X X X",
    recording_id: str = "Startdate 01-FEB-2024 X X X",
    header_bytes: int | None = None,
    signal_overrides: dict[str, list[str]] | None = None,
) -> bytes:
    """
    Build an EDF container in memory.

    Args:
        signals: Channels in declared order
        num_data_records: Number of data records
        record_duration: Seconds per data record
        header_bytes: Declared header size (None = computed)
        signal_overrides: Raw text per signal header field, replacing the
            values derived from signals (e.g., {"digital_min": ["abc"]})

    Returns:
        Complete file contents
    """
    ns = len(signals)
    declared_header_bytes = (
        header_bytes if header_bytes is not None else EDF_HEADER_BYTES + ns * 256
    )

    global_values = {
        "version": "0",
        "patient_id": patient_id,
        "recording_id": recording_id,
        "start_date": start_date,
        "start_time": start_time,
        "header_bytes": declared_header_bytes,
        "reserved": "",
        "num_data_records": num_data_records,
        "record_duration_sec": f"{record_duration:g}",
        "num_signals": ns,
    }
    header = b"".join(_field(global_values[name], width) for name, width in EDF_GLOBAL_FIELDS)

    per_signal = {
        "label": [s.label for s in signals],
        "transducer": [s.transducer for s in signals],
        "physical_dimension": [s.physical_dimension for s in signals],
        "physical_min": [f"{s.physical_min:g}" for s in signals],
        "physical_max": [f"{s.physical_max:g}" for s in signals],
        "digital_min": [str(s.digital_min) for s in signals],
        "digital_max": [str(s.digital_max) for s in signals],
        "prefiltering": [s.prefiltering for s in signals],
        "samples_per_record": [str(s.samples_per_record) for s in signals],
        "reserved": ["" for _ in signals],
    }
    per_signal.update(signal_overrides or {})

    signal_header = b"".join(
        _field(value, width)
        for name, width in EDF_SIGNAL_FIELDS
        for value in per_signal[name]
    )

    records = []
    digital = [s.digital() for s in signals]
    for record in range(num_data_records):
        for signal, values in zip(signals, digital):
            n = signal.samples_per_record
            chunk = values[record * n : (record + 1) * n]
            records.append(struct.pack(f"<{n}h", *chunk.tolist()))

    return header + signal_header + b"".join(records)


def build_flow_edf(
    flow: np.ndarray,
    sample_rate: int = 25,
    label: str = "Flow.40ms",
    extra_signals: list[SyntheticSignal] | None = None,
) -> bytes:
    """
    Wrap a flow waveform in a single-flow-channel EDF (plus optional extras).

    The waveform is truncated to whole 1-second records.
    """
    num_records = len(flow) // sample_rate
    flow_signal = SyntheticSignal(
        label=label,
        samples=np.asarray(flow[: num_records * sample_rate], dtype=np.float64),
        samples_per_record=sample_rate,
    )
    signals = [flow_signal] + list(extra_signals or [])
    return build_edf(signals, num_data_records=num_records)
