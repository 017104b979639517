"""EDF format type definitions."""

from datetime import datetime

import numpy as np

from pydantic import BaseModel, ConfigDict, Field, model_validator

from megascore.constants import EDF_YEAR_PIVOT, FLOW_LABEL_MARKERS


def parse_edf_datetime(start_date: str, start_time: str) -> datetime | None:
    """
    Combine EDF "dd.mm.yy" and "hh.mm.ss" strings into a datetime.

    Two-digit years below 85 are taken as 20xx, the rest as 19xx. Missing
    time components default to zero.

    Returns:
        Parsed datetime, or None if the date part is unusable
    """
    date_parts = start_date.split(".")
    if len(date_parts) != 3:
        return None

    try:
        day, month, year = (int(part) for part in date_parts)
    except ValueError:
        return None

    year += 2000 if year < EDF_YEAR_PIVOT else 1900

    time_values = []
    for part in (start_time.split(".") + ["", "", ""])[:3]:
        try:
            time_values.append(int(part))
        except ValueError:
            time_values.append(0)

    try:
        return datetime(year, month, day, *time_values)
    except ValueError:
        return None


class RecordingHeader(BaseModel):
    """EDF global header (first 256 bytes)."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(description="EDF version")
    patient_id: str = Field(description="Patient identification")
    recording_id: str = Field(description="Recording identification")
    start_date: str = Field(description="Start date as stored (dd.mm.yy)")
    start_time: str = Field(description="Start time as stored (hh.mm.ss)")
    header_bytes: int = Field(ge=0, description="Byte offset of the data records")
    num_data_records: int = Field(ge=0, description="Number of data records")
    record_duration_sec: float = Field(ge=0, description="Record duration (seconds)")
    num_signals: int = Field(ge=0, description="Number of signals")

    @property
    def recording_timestamp(self) -> datetime | None:
        """Recording start as a datetime, None if the stored text is unusable."""
        return parse_edf_datetime(self.start_date, self.start_time)

    @property
    def total_duration_minutes(self) -> float:
        """Total recording length in minutes."""
        return self.num_data_records * self.record_duration_sec / 60


class ChannelDescriptor(BaseModel):
    """Information about a single EDF signal/channel."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Signal name")
    transducer: str = Field(description="Transducer type")
    physical_dimension: str = Field(description="Units (e.g., 'cmH2O', 'L/min')")
    physical_min: float = Field(description="Physical minimum value")
    physical_max: float = Field(description="Physical maximum value")
    digital_min: int = Field(description="Digital minimum value")
    digital_max: int = Field(description="Digital maximum value")
    prefiltering: str = Field(description="Prefiltering info")
    samples_per_record: int = Field(ge=0, description="Samples per data record")
    signal_index: int = Field(ge=0, description="Signal index in EDF file")
    sampling_rate_hz: float = Field(ge=0, description="Samples per second")

    @model_validator(mode="after")
    def check_digital_range(self) -> "ChannelDescriptor":
        """A zero digital range has no usable scale factor."""
        if self.digital_max == self.digital_min:
            raise ValueError(
                f"Signal '{self.label}' has zero digital range "
                f"(digital_min == digital_max == {self.digital_min})"
            )
        return self

    @property
    def scale_factor(self) -> float:
        """Physical units per digital step."""
        return (self.physical_max - self.physical_min) / (
            self.digital_max - self.digital_min
        )

    @property
    def is_flow(self) -> bool:
        """Whether the label marks this as the airflow channel."""
        label = self.label.lower()
        return any(marker in label for marker in FLOW_LABEL_MARKERS)

    def digital_to_physical(self, digital: np.ndarray) -> np.ndarray:
        """Convert raw integer samples to physical units."""
        return (digital.astype(np.float64) - self.digital_min) * (
            self.scale_factor
        ) + self.physical_min


class Channel(BaseModel):
    """One decoded signal: its descriptor plus the physical waveform."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    descriptor: ChannelDescriptor
    waveform: np.ndarray = Field(description="Physical values, read-only")

    @property
    def label(self) -> str:
        return self.descriptor.label

    @property
    def sampling_rate_hz(self) -> float:
        return self.descriptor.sampling_rate_hz


class DecodedRecording(BaseModel):
    """A fully decoded EDF file."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    header: RecordingHeader
    channels: tuple[Channel, ...] = Field(description="Signals in declared order")
    flow_channel: Channel | None = Field(
        default=None, description="Airflow channel, if one is labelled as such"
    )

    @property
    def labels(self) -> list[str]:
        return [channel.label for channel in self.channels]

    def get_channel(self, label: str) -> Channel | None:
        """Find a channel by label, ignoring case."""
        wanted = label.strip().lower()
        for channel in self.channels:
            if channel.label.lower() == wanted:
                return channel
        return None
