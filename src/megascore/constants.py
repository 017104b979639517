"""
Constants for EDF decoding and ventilatory stability analysis.

Layout widths follow the EDF standard (global header + column-major
signal header blocks + interleaved int16 data records).
"""

from pathlib import Path

# ============================================================================
# EDF Layout
# ============================================================================

EDF_HEADER_BYTES = 256
EDF_SIGNAL_HEADER_BYTES = 256  # Sum of all per-signal field widths
EDF_SAMPLE_BYTES = 2  # Signed little-endian int16

# Global header fields: (name, width) in file order
EDF_GLOBAL_FIELDS: tuple[tuple[str, int], ...] = (
    ("version", 8),
    ("patient_id", 80),
    ("recording_id", 80),
    ("start_date", 8),
    ("start_time", 8),
    ("header_bytes", 8),
    ("reserved", 44),
    ("num_data_records", 8),
    ("record_duration_sec", 8),
    ("num_signals", 4),
)

# Signal header fields: (name, width). Each field is stored as one block
# holding the entry for every signal before the next field starts.
EDF_SIGNAL_FIELDS: tuple[tuple[str, int], ...] = (
    ("label", 16),
    ("transducer", 80),
    ("physical_dimension", 8),
    ("physical_min", 8),
    ("physical_max", 8),
    ("digital_min", 8),
    ("digital_max", 8),
    ("prefiltering", 80),
    ("samples_per_record", 8),
    ("reserved", 32),
)

# Two-digit years below this pivot belong to the 2000s
EDF_YEAR_PIVOT = 85

# Case-insensitive label fragments identifying the airflow channel
FLOW_LABEL_MARKERS = ("flow", "flw")


# ============================================================================
# Analysis Algorithm Constants
# ============================================================================


class BreathSegmentationConstants:
    """Constants for breath segmentation (breath_segmenter.py)."""

    MIN_INSPIRATION_SAMPLES = 10
    MIN_PEAK_FLOW = 0.1


class ArousalConstants:
    """Constants for respiratory arousal estimation (arousal.py)."""

    MIN_BREATHS = 10
    MAX_INTER_BREATH_SECONDS = 20.0
    MIN_BASELINE_BREATHS = 5
    DEBOUNCE_SECONDS = 15.0


class VentilationConstants:
    """Constants for the minute-ventilation series (ventilation.py)."""

    WINDOW_SECONDS = 60.0
    STEP_SECONDS = 5.0

    ENTROPY_TOLERANCE_FACTOR = 0.2
    ENTROPY_SHORT_TEMPLATE = 2
    ENTROPY_LONG_TEMPLATE = 3
    ENTROPY_SCALE = 2.5
    # Sample entropy is quadratic in series length
    ENTROPY_SERIES_WARN_LENGTH = 10000

    PERIODIC_BAND_MIN_HZ = 0.01
    PERIODIC_BAND_MAX_HZ = 0.03
    PERIODIC_SCALE = 200.0


SCORE_MIN = 0.0
SCORE_MAX = 100.0

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

# ============================================================================
# Default Settings
# ============================================================================

DEFAULT_CONFIG_DIR = Path.home() / ".megascore"
DEFAULT_CONFIG_FILE = "config.toml"
CONFIG_PATH_ENV_VAR = "MEGASCORE_CONFIG"

# Logging configuration
DEFAULT_LOG_DIR = DEFAULT_CONFIG_DIR / "logs"
DEFAULT_LOG_FILE = "megascore.log"
DEFAULT_LOG_BACKUP_COUNT = 5
