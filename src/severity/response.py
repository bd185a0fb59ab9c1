"""
Shock response matrix engine.
Applies each oscillator's recursive filter to the input acceleration signal.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Literal, Tuple

import numpy as np
from loguru import logger
from scipy import signal as sp_signal

from src.severity.coefficients import (
    FilterCoefficients,
    compute_filter_coefficients,
    compute_relative_displacement_coefficients,
    damping_from_quality_factor,
)
from src.severity.core import ShockResponseMatrix, Signal
from src.severity.errors import ShapeMismatch
from src.severity.frequency import build_frequency_grid, validate_frequency_range

Backend = Literal["scipy", "batched"]
ResponseKind = Literal["acceleration", "relative_displacement"]

_COEFFICIENT_SOLVERS = {
    "acceleration": compute_filter_coefficients,
    "relative_displacement": compute_relative_displacement_coefficients,
}


class ResponseMatrixEngine:
    """
    Builds the (frequency x time) response matrix of an SDOF oscillator bank.

    Backends:
    - "scipy":   scipy.signal.lfilter per oscillator row, optionally spread over
                 `max_workers` threads. Rows share no state.
    - "batched": one recursion over time that advances every oscillator at once,
                 in `dtype` (single precision by default).
    """

    def __init__(
        self,
        backend: Backend = "scipy",
        max_workers: int = 1,
        dtype=np.float32,
    ):
        if backend not in ("scipy", "batched"):
            raise ValueError(f"Unknown filter backend: {backend}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.backend = backend
        self.max_workers = max_workers
        self.dtype = dtype

    def compute(
        self,
        signal: Signal,
        starting_frequency: float,
        quality_factor: float,
        points_per_octave: int = 12,
        response: ResponseKind = "acceleration",
    ) -> ShockResponseMatrix:
        """Signal -> frequency grid -> coefficients -> response matrix."""
        if response not in _COEFFICIENT_SOLVERS:
            raise ValueError(f"Unknown response kind: {response}")

        # Fail fast on both preconditions before anything is filtered.
        validate_frequency_range(starting_frequency, signal.sample_rate)
        damping = damping_from_quality_factor(quality_factor)

        freqs = build_frequency_grid(
            starting_frequency, signal.sample_rate, points_per_octave
        )
        coeffs = _COEFFICIENT_SOLVERS[response](freqs, damping, signal.dt)

        logger.debug(
            f"Filtering {len(freqs)} oscillators x {len(signal)} samples "
            f"(backend={self.backend}, Q={quality_factor})"
        )
        resp = self.filter_bank(coeffs, signal.acceleration)

        return ShockResponseMatrix(
            frequencies=freqs,
            time=signal.time,
            response=resp,
            starting_frequency=starting_frequency,
            quality_factor=quality_factor,
        )

    def filter_bank(self, coeffs: FilterCoefficients, acceleration) -> np.ndarray:
        """Apply every coefficient set to the same 1-D input (zero initial conditions)."""
        x = np.asarray(acceleration, dtype=float)
        if x.ndim != 1:
            raise ShapeMismatch(f"acceleration must be 1-D, got shape {x.shape}")

        if self.backend == "batched":
            return self._filter_batched(coeffs, x)
        return self._filter_rows(coeffs, x)

    def _filter_rows(self, coeffs: FilterCoefficients, x: np.ndarray) -> np.ndarray:
        def filter_row(j: int) -> np.ndarray:
            return sp_signal.lfilter(coeffs.numerator(j), coeffs.denominator(j), x)

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                rows = list(pool.map(filter_row, range(len(coeffs))))
        else:
            rows = [filter_row(j) for j in range(len(coeffs))]

        return np.vstack(rows)

    def _filter_batched(self, coeffs: FilterCoefficients, x: np.ndarray) -> np.ndarray:
        ftype = np.dtype(self.dtype).type
        a1, a2 = coeffs.a1.astype(ftype), coeffs.a2.astype(ftype)
        b1, b2, b3 = (c.astype(ftype) for c in (coeffs.b1, coeffs.b2, coeffs.b3))
        xs = x.astype(ftype)

        out = np.empty((len(coeffs), len(xs)), dtype=ftype)
        y1 = np.zeros(len(coeffs), dtype=ftype)
        y2 = np.zeros(len(coeffs), dtype=ftype)
        x1 = x2 = ftype(0)

        for n, xn in enumerate(xs):
            yn = b1 * xn + b2 * x1 + b3 * x2 + a1 * y1 + a2 * y2
            out[:, n] = yn
            y2, y1 = y1, yn
            x2, x1 = x1, xn

        return out.astype(float)


def compute_srs(
    signal: Signal,
    starting_frequency: float,
    quality_factor: float,
    points_per_octave: int = 12,
    response: ResponseKind = "acceleration",
    backend: Backend = "scipy",
    max_workers: int = 1,
) -> ShockResponseMatrix:
    engine = ResponseMatrixEngine(backend=backend, max_workers=max_workers)
    return engine.compute(
        signal,
        starting_frequency,
        quality_factor,
        points_per_octave=points_per_octave,
        response=response,
    )


def compute_maximax_srs(
    time,
    accelerations,
    starting_frequency: float,
    quality_factor: float,
    points_per_octave: int = 12,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Maximax SRS of several channels at once, without keeping the response matrix.

    :param accelerations: (n_samples,) or (n_samples, n_channels) array sharing `time`
    :return: (frequencies, maximax) with maximax of shape (n_frequencies, n_channels)
    """
    channels = np.asarray(accelerations, dtype=float)
    if channels.ndim == 1:
        channels = channels[:, np.newaxis]
    if channels.ndim != 2 or channels.shape[0] != len(time):
        raise ShapeMismatch(
            f"accelerations shape {channels.shape} does not match {len(time)} time samples"
        )

    # Validates the time vector and gives dt / sample rate.
    reference = Signal(time=time, acceleration=channels[:, 0])

    validate_frequency_range(starting_frequency, reference.sample_rate)
    damping = damping_from_quality_factor(quality_factor)
    freqs = build_frequency_grid(
        starting_frequency, reference.sample_rate, points_per_octave
    )
    coeffs = compute_filter_coefficients(freqs, damping, reference.dt)

    maximax = np.zeros((len(freqs), channels.shape[1]))
    for j in range(len(freqs)):
        z = sp_signal.lfilter(coeffs.numerator(j), coeffs.denominator(j), channels, axis=0)
        maximax[j, :] = np.max(np.abs(z), axis=0)

    return freqs, maximax
