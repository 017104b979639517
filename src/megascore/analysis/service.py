"""
Analysis service for running the metric panel over decoded recordings.

This module picks the airflow channel out of a decoded EDF recording, runs
every registered analyzer over it, and packages the combined results.
"""

import logging
import time

from pathlib import Path

from megascore.analysis.register_all import create_default_registry
from megascore.analysis.registry import AnalyzerRegistry
from megascore.analysis.shared.types import AnalysisConfig
from megascore.analysis.types import RecordingAnalysis
from megascore.parsers.formats.edf import read_edf
from megascore.parsers.formats.types import DecodedRecording

logger = logging.getLogger(__name__)

__all__ = [
    "AnalysisError",
    "AnalysisService",
    "NoFlowChannelError",
    "RecordingAnalysis",
]


class AnalysisError(Exception):
    """Base exception for analysis errors."""


class NoFlowChannelError(AnalysisError):
    """The recording has no channel labelled as airflow."""


class AnalysisService:
    """
    Service for analyzing decoded recordings.

    Example:
        >>> service = AnalysisService()
        >>> analysis = service.analyze_file("20240101_230000_BRP.edf")
        >>> print(analysis.results["flow_limitation"]["fl_score"])
    """

    def __init__(self, registry: AnalyzerRegistry | None = None):
        """
        Initialize analysis service.

        Args:
            registry: Analyzers to run (None = every built-in analyzer)
        """
        self.registry = registry if registry is not None else create_default_registry()

    def analyze_recording(
        self,
        recording: DecodedRecording,
        config: AnalysisConfig | None = None,
        source: str = "",
    ) -> RecordingAnalysis:
        """
        Run all registered analyzers over the recording's flow channel.

        Args:
            recording: Decoded EDF recording
            config: Analysis parameters (None = defaults)
            source: Name reported alongside the results

        Returns:
            RecordingAnalysis with results keyed by analyzer id

        Raises:
            NoFlowChannelError: If no channel label contains "flow" or "flw"
            AnalysisError: If the flow channel has no usable sampling rate
        """
        config = config or AnalysisConfig()
        flow_channel = recording.flow_channel
        if flow_channel is None:
            raise NoFlowChannelError(
                f"No flow channel found in {source or 'recording'} "
                f"(signals: {', '.join(recording.labels) or 'none'})"
            )

        sampling_rate = flow_channel.sampling_rate_hz
        if sampling_rate <= 0:
            raise AnalysisError(
                f"Flow channel '{flow_channel.label}' has no usable sampling rate"
            )

        logger.info(
            f"Analyzing {source or 'recording'}: '{flow_channel.label}', "
            f"{len(flow_channel.waveform)} samples at {sampling_rate} Hz"
        )

        start_time = time.time()
        results = self.registry.run(flow_channel.waveform, sampling_rate, config)
        processing_time_ms = (time.time() - start_time) * 1000

        analysis = RecordingAnalysis(
            source=source,
            recording_start=recording.header.recording_timestamp,
            duration_minutes=recording.header.total_duration_minutes,
            flow_label=flow_channel.label,
            sampling_rate=sampling_rate,
            results=results,
            processing_time_ms=processing_time_ms,
        )

        if analysis.failed_analyzers:
            logger.warning(
                f"Analyzers failed for {source or 'recording'}: "
                f"{', '.join(analysis.failed_analyzers)}"
            )
        logger.info(f"Analysis complete in {processing_time_ms:.0f}ms")

        return analysis

    def analyze_file(
        self, path: Path | str, config: AnalysisConfig | None = None
    ) -> RecordingAnalysis:
        """
        Decode an EDF file and analyze it.

        Raises:
            OSError: If the file cannot be read
            FormatError: If the file cannot be decoded
            NoFlowChannelError: If the file has no flow channel
        """
        path = Path(path)
        recording = read_edf(path)
        return self.analyze_recording(recording, config, source=path.name)
