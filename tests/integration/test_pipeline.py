"""
End-to-end pipeline tests: EDF bytes -> decode -> analyzers -> results.
"""

from datetime import datetime

import pytest

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.registry import AnalyzerRegistry
from megascore.analysis.service import AnalysisError, AnalysisService, NoFlowChannelError
from megascore.analysis.shared.types import AnalysisConfig, ColumnSpec
from megascore.parsers import FormatError, read_edf


class FailingAnalyzer(MetricAnalyzer):
    analyzer_id = "failing"
    name = "Failing"
    columns = (ColumnSpec(key="never", label="Never"),)

    def compute(self, flow, sampling_rate, config):
        raise RuntimeError("sensor dropout")


class TestAnalyzeFile:
    """Tests for AnalysisService.analyze_file."""

    def test_full_pipeline(self, flow_edf_path):
        analysis = AnalysisService().analyze_file(flow_edf_path)

        assert analysis.source == "20240201_231500_BRP.edf"
        assert analysis.recording_start == datetime(2024, 2, 1, 23, 15, 0)
        assert analysis.duration_minutes == pytest.approx(10.0)
        assert analysis.flow_label == "Flow.40ms"
        assert analysis.sampling_rate == 25.0
        assert list(analysis.results) == [
            "flow_limitation",
            "arousal",
            "regularity",
            "periodicity",
        ]
        assert analysis.results["arousal"] == {"arousal_index": "6.0"}
        assert analysis.failed_analyzers == []

    def test_results_are_formatted_strings(self, flow_edf_path):
        analysis = AnalysisService().analyze_file(flow_edf_path)

        for result in analysis.results.values():
            for value in result.values():
                assert isinstance(value, str)
                assert value == f"{float(value):.1f}"

    def test_config_passed_to_analyzers(self, flow_edf_path):
        service = AnalysisService()
        config = AnalysisConfig(arousal_rate_increase_min=5.0, arousal_vol_increase_min=5.0)

        strict = service.analyze_file(flow_edf_path, config)

        assert strict.results["arousal"] == {"arousal_index": "0.0"}

    def test_no_flow_channel(self, no_flow_edf_path):
        with pytest.raises(NoFlowChannelError, match="Press.2s"):
            AnalysisService().analyze_file(no_flow_edf_path)

    def test_no_flow_channel_is_analysis_error(self, no_flow_edf_path):
        with pytest.raises(AnalysisError):
            AnalysisService().analyze_file(no_flow_edf_path)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "notes.edf"
        path.write_text("not an edf file")

        with pytest.raises(FormatError, match="notes.edf"):
            AnalysisService().analyze_file(path)


class TestAnalyzeRecording:
    """Tests for AnalysisService.analyze_recording."""

    def test_custom_registry(self, flow_edf_path):
        registry = AnalyzerRegistry()
        registry.register(FailingAnalyzer())
        recording = read_edf(flow_edf_path)

        analysis = AnalysisService(registry).analyze_recording(recording, source="night")

        assert analysis.source == "night"
        assert analysis.failed_analyzers == ["failing"]
        assert analysis.results["failing"] == {"error": "sensor dropout"}

    def test_recording_left_unchanged(self, flow_edf_path):
        recording = read_edf(flow_edf_path)
        before = recording.flow_channel.waveform.copy()

        AnalysisService().analyze_recording(recording)

        assert (recording.flow_channel.waveform == before).all()
