"""Ventilatory stability analysis."""

from megascore.analysis.register_all import (
    create_default_registry,
    register_all_analyzers,
)
from megascore.analysis.registry import AnalyzerFault, AnalyzerRegistry
from megascore.analysis.shared.types import (
    AnalysisConfig,
    AnalyzerResult,
    Breath,
    ColumnSchemaEntry,
    ColumnSpec,
    CombinedResultSet,
)

__all__ = [
    "AnalysisConfig",
    "AnalyzerFault",
    "AnalyzerRegistry",
    "AnalyzerResult",
    "Breath",
    "ColumnSchemaEntry",
    "ColumnSpec",
    "CombinedResultSet",
    "create_default_registry",
    "register_all_analyzers",
]
