"""
Natural frequency grid for the SDOF oscillator bank.
"""

import numpy as np
from loguru import logger

from src.severity.errors import InvalidFrequencyRange

# Lowest grid frequency never exceeds sr/30; the grid stops at the first value above sr/8.
LOW_FREQUENCY_DIVISOR = 30.0
HIGH_FREQUENCY_DIVISOR = 8.0


def validate_frequency_range(starting_frequency: float, sample_rate: float) -> None:
    if not sample_rate > 0:
        raise InvalidFrequencyRange(f"Sample rate must be positive, got {sample_rate}")
    if not starting_frequency > 0:
        raise InvalidFrequencyRange(
            f"Starting frequency must be positive, got {starting_frequency}"
        )
    if starting_frequency >= sample_rate / HIGH_FREQUENCY_DIVISOR:
        raise InvalidFrequencyRange(
            f"Starting frequency {starting_frequency} Hz must be below "
            f"sample_rate/8 = {sample_rate / HIGH_FREQUENCY_DIVISOR} Hz"
        )


def build_frequency_grid(
    starting_frequency: float, sample_rate: float, points_per_octave: int = 12
) -> np.ndarray:
    """
    Geometric frequency grid f_j = f_0 * 2**(j / points_per_octave).

    f_0 is min(starting_frequency, sample_rate/30). Values are appended until one
    exceeds sample_rate/8; that last value is kept.
    """
    validate_frequency_range(starting_frequency, sample_rate)
    if points_per_octave < 1:
        raise InvalidFrequencyRange(
            f"points_per_octave must be >= 1, got {points_per_octave}"
        )

    f0 = min(starting_frequency, sample_rate / LOW_FREQUENCY_DIVISOR)
    upper = sample_rate / HIGH_FREQUENCY_DIVISOR

    freqs = [f0]
    j = 1
    while freqs[-1] <= upper:
        freqs.append(f0 * 2.0 ** (j / points_per_octave))
        j += 1

    logger.debug(
        f"Frequency grid: {len(freqs)} oscillators, {freqs[0]:.3f} - {freqs[-1]:.3f} Hz"
    )
    return np.array(freqs)
