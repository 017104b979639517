"""
Metric analyzer registry.

Provides factory functions to instantiate the built-in analyzers.
"""

from .arousal import ArousalEstimator
from .base import MetricAnalyzer
from .flow_limitation import FlowLimitationAnalyzer
from .periodicity import PeriodicityAnalyzer
from .regularity import RegularityEntropyAnalyzer

__all__ = [
    "MetricAnalyzer",
    "FlowLimitationAnalyzer",
    "ArousalEstimator",
    "RegularityEntropyAnalyzer",
    "PeriodicityAnalyzer",
    "AVAILABLE_ANALYZERS",
    "get_analyzer",
    "get_all_analyzers",
]

AVAILABLE_ANALYZERS: dict[str, type[MetricAnalyzer]] = {
    "flow_limitation": FlowLimitationAnalyzer,
    "arousal": ArousalEstimator,
    "regularity": RegularityEntropyAnalyzer,
    "periodicity": PeriodicityAnalyzer,
}


def get_analyzer(analyzer_id: str) -> MetricAnalyzer:
    """
    Factory function to get a built-in analyzer by id.

    Raises:
        ValueError: If the id is not recognized
    """
    if analyzer_id not in AVAILABLE_ANALYZERS:
        raise ValueError(
            f"Unknown analyzer: {analyzer_id}. "
            f"Available: {list(AVAILABLE_ANALYZERS.keys())}"
        )
    return AVAILABLE_ANALYZERS[analyzer_id]()


def get_all_analyzers() -> list[MetricAnalyzer]:
    """Instances of every built-in analyzer, in reporting order."""
    return [analyzer_class() for analyzer_class in AVAILABLE_ANALYZERS.values()]
