"""
Flow limitation (flatness) scoring.

A normal inspiration has a rounded, peaked top; a flow-limited one plateaus.
For each breath the inspiratory curve is normalized to its peak and the
variance of the part above a threshold is compared against a target: zero
variance scores 100 (perfectly flat), variance at or above the target
scores 0.
"""

import logging

import numpy as np

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.shared.breath_segmenter import BreathSegmenter
from megascore.analysis.shared.types import AnalysisConfig, ColumnSpec
from megascore.constants import SCORE_MAX, SCORE_MIN
from megascore.constants import BreathSegmentationConstants as BSC

logger = logging.getLogger(__name__)


def breath_flatness(
    inspiration: np.ndarray, top_percentage: float, flatness_target: float
) -> float | None:
    """
    Flatness of one inspiratory curve.

    Args:
        inspiration: Inspiratory flow samples
        top_percentage: Normalized level above which the curve counts as "top"
        flatness_target: Variance at which flatness falls to 0

    Returns:
        Flatness 0-100, or None if the breath has no usable top region
    """
    if len(inspiration) < BSC.MIN_INSPIRATION_SAMPLES:
        return None

    peak = float(np.max(np.abs(inspiration)))
    if peak < BSC.MIN_PEAK_FLOW:
        return None

    normalized = inspiration / peak
    above = np.flatnonzero(normalized > top_percentage)
    if len(above) == 0 or above[-1] <= above[0]:
        return None

    variance = float(np.var(normalized[above[0] : above[-1] + 1]))
    flatness = (flatness_target - variance) / flatness_target * SCORE_MAX
    return float(np.clip(flatness, SCORE_MIN, SCORE_MAX))


class FlowLimitationAnalyzer(MetricAnalyzer):
    """Mean inspiratory flatness over all qualifying breaths."""

    analyzer_id = "flow_limitation"
    name = "Flow Limitation"
    columns = (ColumnSpec(key="fl_score", label="FL Score (%)"),)

    def __init__(self) -> None:
        self.segmenter = BreathSegmenter()

    def compute(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig,
    ) -> dict[str, float]:
        breaths = self.segmenter.segment(flow, sampling_rate)

        scores = []
        for breath in breaths:
            flatness = breath_flatness(
                flow[breath.inspiration_slice],
                config.fl_top_percentage,
                config.fl_flatness_target,
            )
            if flatness is not None:
                scores.append(flatness)

        logger.debug(f"Flatness scored for {len(scores)} of {len(breaths)} breaths")

        fl_score = float(np.mean(scores)) if scores else 0.0
        return {"fl_score": fl_score}
