"""Periodic breathing index from the spectrum of minute ventilation."""

import numpy as np

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.shared.types import AnalysisConfig, ColumnSpec
from megascore.analysis.shared.ventilation import (
    minute_ventilation_series,
    periodicity_index,
)


class PeriodicityAnalyzer(MetricAnalyzer):
    """
    Periodicity index 0-100.

    Measures how much of the minute-ventilation spectrum falls in the
    0.01-0.03 Hz band (cycles of roughly 30 to 100 seconds).
    """

    analyzer_id = "periodicity"
    name = "Periodicity (FFT)"
    columns = (ColumnSpec(key="periodicity_index", label="Periodicity Index"),)

    def compute(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig,
    ) -> dict[str, float]:
        series = minute_ventilation_series(flow, sampling_rate)
        return {"periodicity_index": periodicity_index(series)}
