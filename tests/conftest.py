"""Pytest configuration and fixtures for MEGASCORE tests."""

import pytest

from megascore.analysis.shared.types import AnalysisConfig


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line("markers", "parser: Tests for the EDF decoder")
    config.addinivalue_line(
        "markers", "business_logic: Tests for core business logic and algorithms"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take significant time (>5 seconds)"
    )


@pytest.fixture
def default_config():
    """Analysis parameters with every default."""
    return AnalysisConfig()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point MEGASCORE_CONFIG at a fresh path under tmp_path."""
    path = tmp_path / "megascore" / "config.toml"
    monkeypatch.setenv("MEGASCORE_CONFIG", str(path))
    return path
