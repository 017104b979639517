"""
Unit tests for respiratory arousal estimation.

Tests per-breath rate/volume measurement, baseline comparison,
debouncing, and the arousals-per-hour index.
"""

import numpy as np
import pytest

from megascore.analysis.analyzers.arousal import ArousalEstimator, BreathRate
from megascore.analysis.shared.breath_segmenter import BreathSegmenter
from megascore.analysis.shared.types import AnalysisConfig
from tests.helpers.synthetic_data import generate_sinusoidal_flow, insert_arousal

pytestmark = pytest.mark.business_logic


def steady_rates(count: int = 20, period: float = 4.0) -> list[BreathRate]:
    """Breaths at 15/min with unit volume, one every period seconds."""
    return [
        BreathRate(time=period * (i + 1), rate=60.0 / period, volume=1.0)
        for i in range(count)
    ]


class TestBreathRates:
    """Test rate and volume measurement."""

    def test_steady_breathing(self):
        flow = generate_sinusoidal_flow(duration=60.0, breath_period=4.0)
        breaths = BreathSegmenter().segment(flow, 25.0)

        rates = ArousalEstimator().breath_rates(flow, breaths, 25.0)

        assert len(rates) == len(breaths) - 1
        assert all(r.rate == pytest.approx(15.0) for r in rates)
        assert rates[0].time == breaths[1].start_time

    def test_long_interval_skipped(self):
        """Gaps above the maximum breath duration are not measured."""
        flow = np.concatenate(
            [
                generate_sinusoidal_flow(duration=20.0),
                -np.ones(25 * 30),
                generate_sinusoidal_flow(duration=20.0),
            ]
        )
        breaths = BreathSegmenter().segment(flow, 25.0)

        rates = ArousalEstimator().breath_rates(flow, breaths, 25.0, max_interval=20.0)

        assert len(rates) == len(breaths) - 2


class TestArousalDetection:
    """Test baseline comparison and debouncing."""

    def test_steady_breathing_has_no_arousals(self, default_config):
        assert ArousalEstimator().detect_arousals(steady_rates(), default_config) == []

    def test_rate_jump_detected(self, default_config):
        rates = steady_rates() + [BreathRate(time=84.0, rate=30.0, volume=1.0)]

        assert ArousalEstimator().detect_arousals(rates, default_config) == [84.0]

    def test_volume_jump_detected(self, default_config):
        rates = steady_rates() + [BreathRate(time=84.0, rate=15.0, volume=1.5)]

        assert ArousalEstimator().detect_arousals(rates, default_config) == [84.0]

    def test_small_changes_ignored(self, default_config):
        rates = steady_rates() + [BreathRate(time=84.0, rate=17.0, volume=1.2)]

        assert ArousalEstimator().detect_arousals(rates, default_config) == []

    def test_debounce_within_15_seconds(self, default_config):
        """Qualifying breaths closer than 15 s to the last arousal are merged."""
        rates = steady_rates() + [
            BreathRate(time=84.0, rate=30.0, volume=1.0),
            BreathRate(time=90.0, rate=30.0, volume=2.0),
            BreathRate(time=98.9, rate=30.0, volume=2.0),
            BreathRate(time=99.0, rate=30.0, volume=2.0),
        ]

        assert ArousalEstimator().detect_arousals(rates, default_config) == [84.0, 99.0]

    def test_needs_five_baseline_breaths(self, default_config):
        rates = steady_rates(count=4) + [BreathRate(time=20.0, rate=30.0, volume=2.0)]

        assert ArousalEstimator().detect_arousals(rates, default_config) == []

    def test_zero_baseline_volume(self, default_config):
        """A zero baseline volume contributes no relative increase."""
        rates = [BreathRate(time=4.0 * (i + 1), rate=15.0, volume=0.0) for i in range(20)]
        rates.append(BreathRate(time=84.0, rate=15.0, volume=5.0))

        assert ArousalEstimator().detect_arousals(rates, default_config) == []

    def test_thresholds_from_config(self):
        rates = steady_rates() + [BreathRate(time=84.0, rate=17.0, volume=1.0)]
        config = AnalysisConfig(arousal_rate_increase_min=0.1)

        assert ArousalEstimator().detect_arousals(rates, config) == [84.0]


class TestArousalIndex:
    """Test the arousals-per-hour result."""

    def test_single_arousal(self, default_config):
        """One burst of fast breathing in 10 minutes is 6 arousals per hour."""
        flow = insert_arousal(generate_sinusoidal_flow(duration=600.0), at_seconds=300.0)

        result = ArousalEstimator().compute(flow, 25.0, default_config)

        assert result["arousal_index"] == pytest.approx(6.0)

    def test_breath_duration_limit_does_not_cap_intervals(self, default_config):
        """maxBreathDurationSec leaves the fixed 20 s inter-breath cap alone."""
        flow = insert_arousal(generate_sinusoidal_flow(duration=600.0), at_seconds=300.0)
        short_limit = AnalysisConfig(maxBreathDurationSec=3.0)

        result = ArousalEstimator().compute(flow, 25.0, short_limit)

        assert result == ArousalEstimator().compute(flow, 25.0, default_config)
        assert result["arousal_index"] == pytest.approx(6.0)

    def test_separate_arousals(self, default_config):
        flow = generate_sinusoidal_flow(duration=600.0)
        flow = insert_arousal(flow, at_seconds=300.0)
        flow = insert_arousal(flow, at_seconds=360.0)

        result = ArousalEstimator().compute(flow, 25.0, default_config)

        assert result["arousal_index"] == pytest.approx(12.0)

    def test_steady_breathing(self, default_config):
        flow = generate_sinusoidal_flow(duration=600.0)

        result = ArousalEstimator().compute(flow, 25.0, default_config)

        assert result == {"arousal_index": 0.0}

    def test_too_few_breaths(self, default_config):
        """Fewer than 10 breaths reports 0 per hour."""
        flow = generate_sinusoidal_flow(duration=36.0)

        result = ArousalEstimator().compute(flow, 25.0, default_config)

        assert result == {"arousal_index": 0.0}
