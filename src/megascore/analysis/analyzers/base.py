"""
Base class for ventilatory stability metrics.

Every analyzer exposes the same three capabilities: an identifier, the
columns it reports, and a compute step over one flow waveform.
"""

from abc import ABC, abstractmethod

import numpy as np

from megascore.analysis.shared.types import AnalysisConfig, ColumnSpec


class MetricAnalyzer(ABC):
    """
    Abstract base class for metric analyzers.

    Implementations must be stateless: compute() may be called repeatedly
    and must not modify the flow array or keep a reference to it.
    """

    analyzer_id: str  # e.g., "flow_limitation"
    name: str  # Human-readable name
    columns: tuple[ColumnSpec, ...]

    @abstractmethod
    def compute(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig,
    ) -> dict[str, float]:
        """
        Run the metric over one flow waveform.

        Args:
            flow: 1D array of flow values (read-only)
            sampling_rate: Sample rate in Hz
            config: Analysis parameters

        Returns:
            Mapping from each declared column key to its value
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(analyzer_id={self.analyzer_id!r})"
