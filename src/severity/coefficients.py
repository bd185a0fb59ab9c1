"""
Ramp-invariant recursive filter coefficients for damped SDOF oscillators.

For natural frequency f and damping ratio zeta, with w = 2*pi*f and wd = w*sqrt(1 - zeta^2):

    E = exp(-zeta*w*dt), K = wd*dt, C = E*cos(K), S = E*sin(K), Sp = S/K

    a1 = 2C, a2 = -E^2, b1 = 1 - Sp, b2 = 2(Sp - C), b3 = E^2 - Sp

so that y[n] = b1*x[n] + b2*x[n-1] + b3*x[n-2] + a1*y[n-1] + a2*y[n-2] reproduces the
absolute acceleration response to a piecewise-linear input exactly.
"""

from dataclasses import dataclass

import numpy as np

from src.severity.errors import InvalidDamping


@dataclass(frozen=True, eq=False)
class FilterCoefficients:
    """One coefficient set per oscillator (arrays of equal length)."""

    a1: np.ndarray
    a2: np.ndarray
    b1: np.ndarray
    b2: np.ndarray
    b3: np.ndarray
    damping: float

    def __len__(self) -> int:
        return len(self.a1)

    def numerator(self, j: int) -> np.ndarray:
        """Feed-forward taps of oscillator j (scipy.signal.lfilter `b`)."""
        return np.array([self.b1[j], self.b2[j], self.b3[j]])

    def denominator(self, j: int) -> np.ndarray:
        """Feedback taps of oscillator j (scipy.signal.lfilter `a`)."""
        return np.array([1.0, -self.a1[j], -self.a2[j]])


def damping_from_quality_factor(quality_factor: float) -> float:
    """zeta = 1 / (2Q); Q must exceed 0.5 for an underdamped oscillator."""
    if not quality_factor > 0.5:
        raise InvalidDamping(
            f"Quality factor must be > 0.5 (damping ratio < 1), got {quality_factor}"
        )
    return 1.0 / (2.0 * quality_factor)


def validate_damping(damping: float) -> None:
    if not 0.0 <= damping < 1.0:
        raise InvalidDamping(f"Damping ratio must be in [0, 1), got {damping}")


def _damped_terms(frequencies, damping: float, dt: float):
    validate_damping(damping)
    omega = 2.0 * np.pi * np.asarray(frequencies, dtype=float)
    omega_d = omega * np.sqrt(1.0 - damping**2)
    E = np.exp(-damping * omega * dt)
    K = omega_d * dt
    return omega_d, E, K


def compute_filter_coefficients(
    frequencies, damping: float, dt: float
) -> FilterCoefficients:
    """Absolute acceleration (ramp-invariant) coefficients for every frequency."""
    _, E, K = _damped_terms(frequencies, damping, dt)
    C = E * np.cos(K)
    S = E * np.sin(K)
    Sp = S / K

    return FilterCoefficients(
        a1=2.0 * C,
        a2=-(E**2),
        b1=1.0 - Sp,
        b2=2.0 * (Sp - C),
        b3=E**2 - Sp,
        damping=damping,
    )


def compute_relative_displacement_coefficients(
    frequencies, damping: float, dt: float
) -> FilterCoefficients:
    """Relative displacement recursion sharing the same feedback terms."""
    omega_d, E, K = _damped_terms(frequencies, damping, dt)
    zeros = np.zeros_like(K)

    return FilterCoefficients(
        a1=2.0 * E * np.cos(K),
        a2=-(E**2),
        b1=zeros,
        b2=-(dt / omega_d) * E * np.sin(K),
        b3=zeros.copy(),
        damping=damping,
    )
