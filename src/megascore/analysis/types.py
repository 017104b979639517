"""Analysis pipeline type definitions."""

from datetime import datetime

from pydantic import BaseModel, Field

from megascore.analysis.shared.types import ERROR_KEY, CombinedResultSet


class RecordingAnalysis(BaseModel):
    """Results from analyzing one recording."""

    source: str = Field(description="File name or other origin of the recording")
    recording_start: datetime | None = Field(
        default=None, description="Recording start from the EDF header"
    )
    duration_minutes: float = Field(ge=0, description="Recording length (minutes)")
    flow_label: str = Field(description="Label of the analyzed flow channel")
    sampling_rate: float = Field(gt=0, description="Flow sample rate (Hz)")
    results: CombinedResultSet = Field(description="Results by analyzer id")
    processing_time_ms: float = Field(default=0.0, ge=0, description="Analysis time")

    @property
    def failed_analyzers(self) -> list[str]:
        """Ids of analyzers whose result is an error marker."""
        return [
            analyzer_id
            for analyzer_id, result in self.results.items()
            if ERROR_KEY in result
        ]
