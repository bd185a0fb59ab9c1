"""
Core data structures for shock severity analysis.
"""

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np
import pandas as pd
from scipy import integrate as sp_integrate

from src.severity.errors import InvalidSignal, ShapeMismatch


def _frozen_array(values, ndim: int, name: str) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim != ndim:
        raise ShapeMismatch(f"{name} must be {ndim}-D, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Signal:
    """
    Uniformly sampled acceleration time history.
    Arrays are copied on construction and kept read-only.
    """

    time: np.ndarray  # time (s)
    acceleration: np.ndarray  # acceleration (any consistent unit)

    def __post_init__(self):
        time = _frozen_array(self.time, 1, "time")
        accel = _frozen_array(self.acceleration, 1, "acceleration")

        if len(time) != len(accel):
            raise ShapeMismatch(
                f"time ({len(time)}) and acceleration ({len(accel)}) lengths differ"
            )
        if len(time) < 2:
            raise InvalidSignal("Signal needs at least two samples")
        if not (np.all(np.isfinite(time)) and np.all(np.isfinite(accel))):
            raise InvalidSignal("Signal contains non-finite values")

        steps = np.diff(time)
        if np.any(steps <= 0):
            raise InvalidSignal("Time vector must be strictly increasing")
        # Absolute (epoch) timestamps carry rounding of a few ulps of their magnitude.
        spacing = 8 * np.spacing(np.max(np.abs(time)))
        if not np.allclose(steps, steps[0], rtol=1e-5, atol=spacing):
            raise InvalidSignal("Time vector must be uniformly sampled")

        object.__setattr__(self, "time", time)
        object.__setattr__(self, "acceleration", accel)

    def __len__(self) -> int:
        return len(self.time)

    @property
    def dt(self) -> float:
        """Time step (seconds)"""
        return float((self.time[-1] - self.time[0]) / (len(self.time) - 1))

    @property
    def sample_rate(self) -> float:
        return 1.0 / self.dt

    @property
    def duration(self) -> float:
        return float(self.time[-1] - self.time[0])


@dataclass(frozen=True, eq=False)
class ShockResponseMatrix:
    """
    Time-resolved response of the oscillator bank.
    `response[j, n]` is the response of the oscillator at `frequencies[j]` at `time[n]`.
    """

    frequencies: np.ndarray  # natural frequencies (Hz)
    time: np.ndarray  # time (s), identical to the input signal
    response: np.ndarray  # (n_frequencies, n_samples)
    starting_frequency: float
    quality_factor: float

    def __post_init__(self):
        frequencies = _frozen_array(self.frequencies, 1, "frequencies")
        time = _frozen_array(self.time, 1, "time")
        response = _frozen_array(self.response, 2, "response")

        if response.shape != (len(frequencies), len(time)):
            raise ShapeMismatch(
                f"response shape {response.shape} does not match "
                f"(frequencies, time) = ({len(frequencies)}, {len(time)})"
            )

        object.__setattr__(self, "frequencies", frequencies)
        object.__setattr__(self, "time", time)
        object.__setattr__(self, "response", response)

    @property
    def damping(self) -> float:
        return 1.0 / (2.0 * self.quality_factor)

    @property
    def maximax_srs(self) -> np.ndarray:
        """Absolute peak response per frequency"""
        return np.max(np.abs(self.response), axis=1)

    @property
    def t_peak(self) -> np.ndarray:
        """Time at which each oscillator reaches its absolute peak"""
        return self.time[np.argmax(np.abs(self.response), axis=1)]

    @property
    def positive_srs(self) -> np.ndarray:
        return np.max(self.response, axis=1)

    @property
    def negative_srs(self) -> np.ndarray:
        return np.abs(np.min(self.response, axis=1))

    def with_response(self, response: np.ndarray) -> "ShockResponseMatrix":
        """Same grids and parameters, new response values."""
        return replace(self, response=response)

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "frequency_hz": self.frequencies,
                "maximax_srs": self.maximax_srs,
                "t_peak_s": self.t_peak,
                "positive_srs": self.positive_srs,
                "negative_srs": self.negative_srs,
            }
        )


# --- Signal helpers (pure, never plot) ---


def differentiate(signal: Signal) -> Signal:
    """Forward difference scaled by the sample rate, on t[:-1]."""
    return Signal(
        time=signal.time[:-1],
        acceleration=np.diff(signal.acceleration) * signal.sample_rate,
    )


def integrate(signal: Signal) -> Signal:
    """Cumulative trapezoidal integral starting from zero."""
    integral = sp_integrate.cumulative_trapezoid(
        signal.acceleration, signal.time, initial=0
    )
    return Signal(time=signal.time, acceleration=integral)


def extend(signal: Signal, duration: float) -> Signal:
    """Zero-pad the signal so that it spans `duration` seconds."""
    n_total = int(round(duration * signal.sample_rate)) + 1
    if n_total <= len(signal):
        return signal

    time = signal.time[0] + np.arange(n_total) * signal.dt
    accel = np.zeros(n_total)
    accel[: len(signal)] = signal.acceleration
    return Signal(time=time, acceleration=accel)


def spectrum(signal: Signal) -> Tuple[np.ndarray, np.ndarray]:
    """
    Single-sided amplitude spectrum.
    Odd-length signals drop their last sample so the FFT length is even.
    """
    n = len(signal) - (len(signal) % 2)
    amplitude = np.abs(np.fft.fft(signal.acceleration[:n]) / n)
    single = amplitude[: n // 2 + 1].copy()
    single[1:-1] = 2 * single[1:-1]
    freqs = signal.sample_rate * np.arange(n // 2 + 1) / n
    return freqs, single
