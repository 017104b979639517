"""
MEGASCORE: ventilatory stability scoring for CPAP flow recordings

Decodes EDF flow recordings from CPAP devices and scores flow limitation,
estimated arousals, breathing regularity, and periodic breathing.
"""

from megascore.analysis import AnalysisConfig, AnalyzerRegistry, create_default_registry
from megascore.parsers import FormatError, decode, read_edf

__all__ = [
    "AnalysisConfig",
    "AnalyzerRegistry",
    "FormatError",
    "create_default_registry",
    "decode",
    "read_edf",
]
