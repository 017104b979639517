"""
Respiratory arousal estimation.

Arousals from sleep show up in the flow signal as a sudden jump in
respiratory rate or tidal volume relative to the preceding couple of
minutes. Each breath is compared against a rolling baseline of earlier
breaths; qualifying jumps closer than 15 seconds to the previous arousal
are treated as the same arousal.
"""

import logging

from dataclasses import dataclass

import numpy as np

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.shared.breath_segmenter import BreathSegmenter
from megascore.analysis.shared.types import AnalysisConfig, Breath, ColumnSpec
from megascore.constants import SECONDS_PER_HOUR, SECONDS_PER_MINUTE
from megascore.constants import ArousalConstants as AC

logger = logging.getLogger(__name__)


@dataclass
class BreathRate:
    """Rate and volume of one breath, measured from the previous breath onset."""

    time: float  # Breath start (seconds)
    rate: float  # Breaths per minute
    volume: float  # Inspiratory sum |flow| / sampling rate


def _relative_increase(current: float, baseline: float) -> float:
    if baseline == 0:
        return 0.0
    return (current - baseline) / baseline


class ArousalEstimator(MetricAnalyzer):
    """Estimated arousals per hour of recording."""

    analyzer_id = "arousal"
    name = "Arousal Estimator"
    columns = (ColumnSpec(key="arousal_index", label="Est. Arousals (/hr)"),)

    def __init__(self) -> None:
        self.segmenter = BreathSegmenter()

    def breath_rates(
        self,
        flow: np.ndarray,
        breaths: list[Breath],
        sampling_rate: float,
        max_interval: float = AC.MAX_INTER_BREATH_SECONDS,
    ) -> list[BreathRate]:
        """
        Measure rate and volume for every breath after the first.

        Breaths whose interval from the previous onset is not positive or
        exceeds max_interval are skipped.
        """
        rates = []
        for previous, breath in zip(breaths, breaths[1:]):
            interval = breath.start_time - previous.start_time
            if interval <= 0 or interval > max_interval:
                continue

            volume = float(np.sum(np.abs(flow[breath.inspiration_slice]))) / sampling_rate
            rates.append(
                BreathRate(
                    time=breath.start_time,
                    rate=SECONDS_PER_MINUTE / interval,
                    volume=volume,
                )
            )
        return rates

    def detect_arousals(
        self, rates: list[BreathRate], config: AnalysisConfig
    ) -> list[float]:
        """
        Find arousal onset times.

        The baseline for breath i is the preceding
        floor(baseline_window / breath period) breaths; at least 5 are needed.

        Returns:
            Start times (seconds) of the recorded arousals
        """
        arousal_times: list[float] = []

        for i, current in enumerate(rates):
            window_breaths = int(
                np.floor(
                    config.arousal_baseline_window_sec
                    / (SECONDS_PER_MINUTE / current.rate)
                )
            )
            baseline = rates[max(0, i - window_breaths) : i]
            if len(baseline) < AC.MIN_BASELINE_BREATHS:
                continue

            baseline_rate = float(np.mean([b.rate for b in baseline]))
            baseline_volume = float(np.mean([b.volume for b in baseline]))

            rate_increase = _relative_increase(current.rate, baseline_rate)
            volume_increase = _relative_increase(current.volume, baseline_volume)

            if (
                rate_increase <= config.arousal_rate_increase_min
                and volume_increase <= config.arousal_vol_increase_min
            ):
                continue

            if arousal_times and current.time - arousal_times[-1] < AC.DEBOUNCE_SECONDS:
                continue

            arousal_times.append(current.time)

        return arousal_times

    def compute(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig,
    ) -> dict[str, float]:
        breaths = self.segmenter.segment(flow, sampling_rate)
        duration_hours = len(flow) / sampling_rate / SECONDS_PER_HOUR

        if len(breaths) < AC.MIN_BREATHS or duration_hours <= 0:
            logger.debug(
                f"Skipping arousal estimation: {len(breaths)} breaths, "
                f"{duration_hours:.3f} h"
            )
            return {"arousal_index": 0.0}

        rates = self.breath_rates(flow, breaths, sampling_rate)
        arousal_times = self.detect_arousals(rates, config)

        logger.debug(
            f"Detected {len(arousal_times)} arousals over {duration_hours:.2f} h"
        )
        return {"arousal_index": len(arousal_times) / duration_hours}
