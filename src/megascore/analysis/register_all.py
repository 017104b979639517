"""
Register all built-in analyzers.

Registration is explicit rather than a side effect of importing the
analyzer modules. Call create_default_registry() (or
register_all_analyzers() on an existing registry) at application startup.
"""

import logging

from megascore.analysis.analyzers import get_all_analyzers
from megascore.analysis.registry import AnalyzerRegistry

logger = logging.getLogger(__name__)


def register_all_analyzers(registry: AnalyzerRegistry) -> AnalyzerRegistry:
    """
    Register the four built-in analyzers.

    Order: flow_limitation, arousal, regularity, periodicity. An analyzer
    the registry rejects is logged and the rest still register.
    """
    for analyzer in get_all_analyzers():
        if not registry.register(analyzer):
            logger.warning(f"Built-in analyzer not registered: {analyzer!r}")

    logger.info(f"Analyzer registration complete: {len(registry)} analyzer(s) available")
    return registry


def create_default_registry() -> AnalyzerRegistry:
    """New registry holding every built-in analyzer."""
    return register_all_analyzers(AnalyzerRegistry())
