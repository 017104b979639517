"""Breathing regularity from the sample entropy of minute ventilation."""

import numpy as np

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.shared.types import AnalysisConfig, ColumnSpec
from megascore.analysis.shared.ventilation import (
    minute_ventilation_series,
    regularity_score,
)


class RegularityEntropyAnalyzer(MetricAnalyzer):
    """
    Regularity score 0-100.

    100 means the minute-ventilation series repeats itself perfectly;
    a sample entropy of 2.5 or more scores 0.
    """

    analyzer_id = "regularity"
    name = "Regularity (Sample Entropy)"
    columns = (ColumnSpec(key="regularity_score", label="Regularity Score"),)

    def compute(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig,
    ) -> dict[str, float]:
        series = minute_ventilation_series(flow, sampling_rate)
        return {"regularity_score": regularity_score(series)}
