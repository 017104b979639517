import numpy as np
import pytest

from tests.helpers.synthetic_data import (
    SyntheticSignal,
    build_edf,
    build_flow_edf,
    generate_sinusoidal_flow,
    insert_arousal,
)


def pytest_collection_modifyitems(items):
    """Apply integration marker to all tests in this directory."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pressure_signal(seconds: int) -> SyntheticSignal:
    """Constant 8 cmH2O sampled at 1 Hz."""
    return SyntheticSignal(
        label="Press.2s",
        samples=np.full(seconds, 8.0),
        samples_per_record=1,
        physical_min=0.0,
        physical_max=30.0,
        physical_dimension="cmH2O",
    )


@pytest.fixture(autouse=True)
def isolated_environment(config_file, monkeypatch):
    """Keep CLI runs away from the user's config and log files."""
    monkeypatch.setattr("megascore.logging_config._logging_configured", True)
    return config_file


@pytest.fixture
def flow_edf_path(tmp_path):
    """Ten minutes of steady breathing with one arousal, plus a pressure channel."""
    flow = insert_arousal(generate_sinusoidal_flow(duration=600.0), at_seconds=300.0)
    path = tmp_path / "20240201_231500_BRP.edf"
    path.write_bytes(build_flow_edf(flow, extra_signals=[pressure_signal(600)]))
    return path


@pytest.fixture
def no_flow_edf_path(tmp_path):
    """A recording with only a pressure channel."""
    path = tmp_path / "20240201_231500_PLD.edf"
    path.write_bytes(build_edf([pressure_signal(60)], num_data_records=60))
    return path
