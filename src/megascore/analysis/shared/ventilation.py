"""
Minute-ventilation series and the statistics computed over it.

The series is sampled every 5 seconds from a sliding 60-second window over
the flow waveform. Sample entropy measures how regular it is; the share of
spectral magnitude in the 0.01-0.03 Hz band measures periodic breathing.
"""

import logging

import numpy as np

from numpy.lib.stride_tricks import sliding_window_view
from scipy import fft

from megascore.analysis.shared.breath_segmenter import rising_crossings
from megascore.constants import SCORE_MAX, SCORE_MIN, SECONDS_PER_MINUTE
from megascore.constants import VentilationConstants as VC

logger = logging.getLogger(__name__)


def _window_ventilation(window: np.ndarray, sampling_rate: float) -> float:
    """
    Approximate minute ventilation for one window.

    Tidal volume sums |flow| over samples inside an inspiration that began in
    this window; a positive run already under way at the window start is
    not counted.
    """
    onsets = rising_crossings(window)
    if len(onsets) == 0:
        return 0.0

    inspiring = window > 0
    inspiring[: onsets[0]] = False

    tidal_volume = float(np.sum(np.abs(window[inspiring]))) / sampling_rate
    return tidal_volume * len(onsets) / SECONDS_PER_MINUTE


def minute_ventilation_series(
    flow: np.ndarray,
    sampling_rate: float,
    window_seconds: float = VC.WINDOW_SECONDS,
    step_seconds: float = VC.STEP_SECONDS,
) -> np.ndarray:
    """
    Slide a window over the flow waveform and estimate ventilation per step.

    Args:
        flow: 1D array of flow values
        sampling_rate: Sample rate in Hz
        window_seconds: Window length (seconds)
        step_seconds: Step between window starts (seconds)

    Returns:
        1D array with one value per window start; empty when the recording
        is not longer than one window
    """
    if sampling_rate <= 0:
        raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")

    flow = np.asarray(flow, dtype=np.float64)
    window = int(np.floor(window_seconds * sampling_rate))
    step = max(1, int(np.floor(step_seconds * sampling_rate)))

    if window < 1:
        return np.zeros(0)

    values = [
        _window_ventilation(flow[start : start + window], sampling_rate)
        for start in range(0, len(flow) - window, step)
    ]
    return np.asarray(values, dtype=np.float64)


def count_template_matches(series: np.ndarray, m: int, tolerance: float) -> int:
    """
    Count pairs of length-m templates within tolerance of each other.

    Templates start at every index below N - m; a pair (i, j), i < j, matches
    when the largest absolute difference across the m offsets is <= tolerance.
    Runs in O(N^2) time and O(N) memory.
    """
    count = len(series) - m
    if count < 2:
        return 0

    templates = sliding_window_view(series, m)[:count]
    matches = 0
    for i in range(count - 1):
        distance = np.max(np.abs(templates[i + 1 :] - templates[i]), axis=1)
        matches += int(np.count_nonzero(distance <= tolerance))
    return matches


def sample_entropy(series: np.ndarray) -> float:
    """
    Sample entropy of a series with m = 2 and r = 0.2 * std.

    Returns:
        -ln(A / B) where B counts 2-point and A 3-point template matches,
        or 0.0 when either count is zero
    """
    series = np.asarray(series, dtype=np.float64)
    if len(series) == 0:
        return 0.0

    if len(series) > VC.ENTROPY_SERIES_WARN_LENGTH:
        logger.warning(
            f"Sample entropy over {len(series)} points is quadratic in length "
            f"and may be slow"
        )

    tolerance = VC.ENTROPY_TOLERANCE_FACTOR * float(np.std(series))
    b = count_template_matches(series, VC.ENTROPY_SHORT_TEMPLATE, tolerance)
    a = count_template_matches(series, VC.ENTROPY_LONG_TEMPLATE, tolerance)

    if a == 0 or b == 0:
        return 0.0
    return float(-np.log(a / b))


def regularity_score(series: np.ndarray) -> float:
    """
    Map sample entropy onto 0-100, where 100 is perfectly regular.

    An empty series scores 0.
    """
    if len(series) == 0:
        return 0.0

    entropy = sample_entropy(series)
    score = SCORE_MAX - (entropy / VC.ENTROPY_SCALE) * SCORE_MAX
    return float(np.clip(score, SCORE_MIN, SCORE_MAX))


def magnitude_spectrum(
    series: np.ndarray, step_seconds: float = VC.STEP_SECONDS
) -> tuple[np.ndarray, np.ndarray]:
    """
    One-sided magnitude spectrum of the detrended series.

    The series is mean-subtracted and zero-padded once to the next power of
    two before the transform.

    Returns:
        Tuple of (frequencies in Hz, magnitudes) for the first half of bins
    """
    series = np.asarray(series, dtype=np.float64)
    if len(series) == 0:
        return np.zeros(0), np.zeros(0)

    padded_length = 1 << (len(series) - 1).bit_length()
    padded = np.zeros(padded_length)
    padded[: len(series)] = series - np.mean(series)

    half = padded_length // 2
    magnitudes = np.abs(fft.fft(padded)[:half])
    freqs = np.arange(half) / (padded_length * step_seconds)
    return freqs, magnitudes


def periodicity_index(
    series: np.ndarray, step_seconds: float = VC.STEP_SECONDS
) -> float:
    """
    Share of spectral magnitude in the periodic-breathing band, scaled to 0-100.

    Returns:
        min(100, band / total * 200), or 0.0 when the total is zero
    """
    freqs, magnitudes = magnitude_spectrum(series, step_seconds)
    total = float(np.sum(magnitudes))
    if total == 0:
        return 0.0

    in_band = (freqs >= VC.PERIODIC_BAND_MIN_HZ) & (freqs <= VC.PERIODIC_BAND_MAX_HZ)
    band = float(np.sum(magnitudes[in_band]))
    return min(SCORE_MAX, band / total * VC.PERIODIC_SCALE)
