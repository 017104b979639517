"""
Breath segmentation for flow waveform analysis.

Breaths are delimited by zero-crossings of the flow signal: a rising
crossing opens a breath and the next falling crossing closes its
inspiration.
"""

import logging

import numpy as np

from megascore.analysis.shared.types import Breath

logger = logging.getLogger(__name__)


def rising_crossings(flow: np.ndarray) -> np.ndarray:
    """Indices i >= 1 where flow[i] > 0 and flow[i - 1] <= 0."""
    positive = flow > 0
    return np.flatnonzero(positive[1:] & ~positive[:-1]) + 1


def falling_crossings(flow: np.ndarray) -> np.ndarray:
    """Indices j >= 1 where flow[j] <= 0 and flow[j - 1] > 0."""
    positive = flow > 0
    return np.flatnonzero(~positive[1:] & positive[:-1]) + 1


class BreathSegmenter:
    """
    Segments a flow waveform into breaths.

    Example:
        >>> segmenter = BreathSegmenter()
        >>> breaths = segmenter.segment(np.array([-1.0, 1.0, -1.0, 1.0, -1.0]), 1.0)
        >>> [b.start_index for b in breaths]
        [1, 3]
    """

    def segment(self, flow: np.ndarray, sampling_rate: float) -> list[Breath]:
        """
        Find every breath in the waveform.

        A breath starts at each rising zero-crossing. Its inspiration (and
        the breath) ends at the next falling crossing. A breath still open
        when the waveform ends keeps end_index unset.

        Args:
            flow: 1D array of flow values
            sampling_rate: Sample rate in Hz

        Returns:
            Breaths in time order

        Raises:
            ValueError: If sampling_rate is not positive
        """
        if sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}")

        flow = np.asarray(flow, dtype=np.float64)
        if len(flow) < 2:
            return []

        starts = rising_crossings(flow)
        ends = falling_crossings(flow)

        breaths: list[Breath] = []
        for start in starts:
            pos = int(np.searchsorted(ends, start, side="right"))
            end = int(ends[pos]) if pos < len(ends) else None
            breaths.append(
                Breath(
                    start_index=int(start),
                    inspiration_end_index=end,
                    end_index=end,
                    start_time=float(start) / sampling_rate,
                )
            )

        logger.debug(
            f"Segmented {len(breaths)} breaths from {len(flow)} samples "
            f"at {sampling_rate} Hz"
        )
        return breaths
