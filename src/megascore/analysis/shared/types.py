"""Shared analysis type definitions."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# ============================================================================
# Breath Segmentation Types
# ============================================================================


class Breath(BaseModel):
    """
    One breath delimited by flow zero-crossings.

    Attributes:
        start_index: Sample index of the rising zero-crossing
        inspiration_end_index: Sample index of the following falling crossing
        end_index: Breath end; unset for a trailing breath that never closed
        start_time: start_index / sampling rate (seconds)
    """

    model_config = ConfigDict(frozen=True)

    start_index: int = Field(ge=0, description="Rising zero-crossing index")
    inspiration_end_index: int | None = Field(
        default=None, description="Falling zero-crossing index"
    )
    end_index: int | None = Field(default=None, description="Breath end index")
    start_time: float = Field(ge=0, description="Breath start (seconds)")

    @model_validator(mode="after")
    def check_ordering(self) -> "Breath":
        if self.inspiration_end_index is not None:
            if self.inspiration_end_index <= self.start_index:
                raise ValueError(
                    f"inspiration_end_index ({self.inspiration_end_index}) must be "
                    f"greater than start_index ({self.start_index})"
                )
            if self.end_index is not None and self.end_index < self.inspiration_end_index:
                raise ValueError(
                    f"end_index ({self.end_index}) must not precede "
                    f"inspiration_end_index ({self.inspiration_end_index})"
                )
        return self

    @property
    def is_complete(self) -> bool:
        return self.end_index is not None

    @property
    def inspiration_slice(self) -> slice:
        """Slice of the inspiratory samples; empty if the breath never closed."""
        end = self.inspiration_end_index
        return slice(self.start_index, end if end is not None else self.start_index)


# ============================================================================
# Configuration Types
# ============================================================================


class AnalysisConfig(BaseModel):
    """
    Numeric parameters consumed by the analyzers.

    Accepts both camelCase keys (flTopPercentage) and snake_case keys
    (fl_top_percentage). Unknown keys are ignored and missing keys take
    their defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # General
    min_breath_duration_sec: float = Field(
        default=0.5, ge=0, description="Minimum breath duration (seconds)"
    )
    max_breath_duration_sec: float = Field(
        default=20.0, gt=0, description="Maximum breath duration (seconds)"
    )

    # Flow limitation
    fl_top_percentage: float = Field(
        default=0.5,
        ge=0,
        le=1,
        description="Fraction of peak flow marking the top of the inspiration",
    )
    fl_flatness_target: float = Field(
        default=0.05, gt=0, description="Variance at which flatness reaches 0"
    )

    # Arousal estimation
    arousal_baseline_window_sec: float = Field(
        default=120.0, gt=0, description="History used for the baseline (seconds)"
    )
    arousal_rate_increase_min: float = Field(
        default=0.20, description="Relative respiratory rate increase for an arousal"
    )
    arousal_vol_increase_min: float = Field(
        default=0.30, description="Relative tidal volume increase for an arousal"
    )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None = None) -> "AnalysisConfig":
        """Build a config from a flat key/value mapping."""
        return cls.model_validate(dict(values or {}))

    def to_mapping(self) -> dict[str, float]:
        """Flat mapping using the camelCase key names."""
        return self.model_dump(by_alias=True)


# ============================================================================
# Result Types
# ============================================================================


class ColumnSpec(BaseModel):
    """One output column declared by an analyzer."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1, description="Result key")
    label: str = Field(description="Human-readable column header")


class ColumnSchemaEntry(ColumnSpec):
    """A column tagged with the analyzer that produces it."""

    analyzer_id: str = Field(description="Owning analyzer id")


AnalyzerResult = dict[str, str]
CombinedResultSet = dict[str, AnalyzerResult]

ERROR_KEY = "error"
