"""
Analyzer Registry

Holds metric analyzers and runs all of them over one flow waveform.

Key Features:
- Validates registrations; malformed analyzers are reported and skipped
- Runs analyzers in registration order
- Contains failures: one analyzer raising does not stop the others
- Publishes the combined output-column schema
"""

import logging
import math

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

import numpy as np

from megascore.analysis.analyzers.base import MetricAnalyzer
from megascore.analysis.shared.types import (
    ERROR_KEY,
    AnalysisConfig,
    AnalyzerResult,
    ColumnSchemaEntry,
    ColumnSpec,
    CombinedResultSet,
)

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


class AnalyzerFault(Exception):
    """An exception raised inside one analyzer's compute step."""

    def __init__(self, analyzer_id: str, error: BaseException):
        message = str(error)
        super().__init__(message)
        self.analyzer_id = analyzer_id
        self.message = message
        self.__cause__ = error


def _normalize_columns(columns: Any) -> tuple[ColumnSpec, ...] | None:
    """Coerce a declared column list into ColumnSpecs, or None if unusable."""
    if columns is None or isinstance(columns, (str, bytes)):
        return None
    if not isinstance(columns, Iterable):
        return None

    specs = []
    for column in columns:
        if isinstance(column, ColumnSpec):
            specs.append(column)
        elif isinstance(column, Mapping):
            try:
                specs.append(ColumnSpec.model_validate(dict(column)))
            except ValueError:
                return None
        else:
            return None

    return tuple(specs)


def _format_number(value: float) -> str:
    """One decimal place, rounding exact binary ties away from zero."""
    if not math.isfinite(value):
        return f"{value:.1f}"
    exact = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + 2)
        return str(exact.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _format_value(value: Any) -> str:
    if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        return _format_number(float(value))
    return str(value)


def _format_result(values: Any) -> AnalyzerResult:
    if not isinstance(values, Mapping):
        raise TypeError(
            f"compute() must return a mapping, got {type(values).__name__}"
        )
    return {str(key): _format_value(value) for key, value in values.items()}


class AnalyzerRegistry:
    """
    Registry of metric analyzers.

    Usage:
        registry = AnalyzerRegistry()
        registry.register(FlowLimitationAnalyzer())

        results = registry.run(flow, 25.0, AnalysisConfig())
        columns = registry.column_schema()
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._analyzers: list[MetricAnalyzer] = []
        self._analyzers_by_id: dict[str, MetricAnalyzer] = {}
        self._columns_by_id: dict[str, tuple[ColumnSpec, ...]] = {}

    def __len__(self) -> int:
        return len(self._analyzers)

    def __contains__(self, analyzer_id: object) -> bool:
        return analyzer_id in self._analyzers_by_id

    def register(self, analyzer: MetricAnalyzer) -> bool:
        """
        Register an analyzer.

        The analyzer must have a non-empty string analyzer_id, a callable
        compute, and a declared column list. Malformed or duplicate
        registrations are logged and rejected without raising.

        Args:
            analyzer: Analyzer instance to register

        Returns:
            True if the analyzer was registered
        """
        analyzer_id = getattr(analyzer, "analyzer_id", None)
        if not isinstance(analyzer_id, str) or not analyzer_id:
            logger.error(f"Failed to register analyzer {analyzer!r}: missing analyzer_id")
            return False

        if not callable(getattr(analyzer, "compute", None)):
            logger.error(f"Failed to register analyzer '{analyzer_id}': missing compute()")
            return False

        columns = _normalize_columns(getattr(analyzer, "columns", None))
        if columns is None:
            logger.error(
                f"Failed to register analyzer '{analyzer_id}': missing or invalid columns"
            )
            return False

        if analyzer_id in self._analyzers_by_id:
            existing = self._analyzers_by_id[analyzer_id]
            logger.error(
                f"Failed to register analyzer '{analyzer_id}': "
                f"id already registered by {existing.__class__.__name__}"
            )
            return False

        self._analyzers.append(analyzer)
        self._analyzers_by_id[analyzer_id] = analyzer
        self._columns_by_id[analyzer_id] = columns

        logger.info(f"Registered analyzer: {getattr(analyzer, 'name', analyzer_id)}")
        return True

    def unregister(self, analyzer_id: str) -> bool:
        """
        Unregister an analyzer by id.

        Returns:
            True if the analyzer was removed, False if not found
        """
        if analyzer_id not in self._analyzers_by_id:
            return False

        analyzer = self._analyzers_by_id.pop(analyzer_id)
        self._analyzers.remove(analyzer)
        del self._columns_by_id[analyzer_id]

        logger.info(f"Unregistered analyzer: {analyzer_id}")
        return True

    def get(self, analyzer_id: str) -> MetricAnalyzer | None:
        return self._analyzers_by_id.get(analyzer_id)

    def list_analyzers(self) -> list[str]:
        """Ids of all registered analyzers, in registration order."""
        return [analyzer.analyzer_id for analyzer in self._analyzers]

    def run(
        self,
        flow: np.ndarray,
        sampling_rate: float,
        config: AnalysisConfig | Mapping[str, Any] | None = None,
    ) -> CombinedResultSet:
        """
        Run every registered analyzer over one flow waveform.

        Each analyzer gets a read-only view of the waveform. Any exception
        raised by an analyzer is logged and recorded as
        {"error": message} for that analyzer; the others still run.

        Args:
            flow: 1D array of flow values
            sampling_rate: Sample rate in Hz
            config: Analysis parameters (an AnalysisConfig or a flat mapping)

        Returns:
            Results keyed by analyzer id, in registration order
        """
        if not isinstance(config, AnalysisConfig):
            config = AnalysisConfig.from_mapping(config)

        flow_view = np.asarray(flow, dtype=np.float64).view()
        flow_view.setflags(write=False)

        results: CombinedResultSet = {}
        for analyzer in self._analyzers:
            analyzer_id = analyzer.analyzer_id
            try:
                values = analyzer.compute(flow_view, sampling_rate, config)
                results[analyzer_id] = _format_result(values)
            except Exception as e:
                fault = AnalyzerFault(analyzer_id, e)
                logger.error(
                    f"Error running analyzer [{analyzer_id}]: {fault.message}",
                    exc_info=True,
                )
                results[analyzer_id] = {ERROR_KEY: fault.message}

        return results

    def column_schema(self) -> list[ColumnSchemaEntry]:
        """All declared columns tagged with their analyzer id, in registration order."""
        return [
            ColumnSchemaEntry(key=column.key, label=column.label, analyzer_id=analyzer_id)
            for analyzer_id in self.list_analyzers()
            for column in self._columns_by_id[analyzer_id]
        ]
