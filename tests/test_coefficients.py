import numpy as np
import pytest

from src.severity.coefficients import (
    compute_filter_coefficients,
    compute_relative_displacement_coefficients,
    damping_from_quality_factor,
)
from src.severity.errors import InvalidDamping

FREQS = np.array([10.0, 100.0, 1000.0])
DT = 1e-4


def test_damping_from_quality_factor():
    assert damping_from_quality_factor(10.0) == pytest.approx(0.05)
    assert damping_from_quality_factor(25.0) == pytest.approx(0.02)


@pytest.mark.parametrize("q", [0.5, 0.3, 0.0, -1.0])
def test_overdamped_quality_factor_rejected(q):
    with pytest.raises(InvalidDamping):
        damping_from_quality_factor(q)


@pytest.mark.parametrize("damping", [1.0, 1.5, -0.1])
def test_invalid_damping_rejected(damping):
    with pytest.raises(InvalidDamping):
        compute_filter_coefficients(FREQS, damping, DT)


def test_reference_values():
    c = compute_filter_coefficients([100.0], 0.05, 1e-3)

    omega = 2 * np.pi * 100.0
    omega_d = omega * np.sqrt(1 - 0.05**2)
    E = np.exp(-0.05 * omega * 1e-3)
    K = omega_d * 1e-3
    C, S = E * np.cos(K), E * np.sin(K)
    Sp = S / K

    np.testing.assert_allclose(c.a1, [2 * C])
    np.testing.assert_allclose(c.a2, [-(E**2)])
    np.testing.assert_allclose(c.b1, [1 - Sp])
    np.testing.assert_allclose(c.b2, [2 * (Sp - C)])
    np.testing.assert_allclose(c.b3, [E**2 - Sp])


def test_undamped_limit():
    theta = 2 * np.pi * FREQS * DT
    sinc = np.sin(theta) / theta

    for damping in (0.0, 1e-9):
        c = compute_filter_coefficients(FREQS, damping, DT)
        np.testing.assert_allclose(c.a1, 2 * np.cos(theta), rtol=1e-6)
        np.testing.assert_allclose(c.a2, -1.0, rtol=1e-6)
        np.testing.assert_allclose(c.b1, 1 - sinc, rtol=1e-5)
        np.testing.assert_allclose(c.b2, 2 * (sinc - np.cos(theta)), rtol=1e-5)
        np.testing.assert_allclose(c.b3, 1 - sinc, rtol=1e-5)


def test_unit_static_gain():
    # Constant base acceleration passes through the absolute acceleration filter unchanged
    c = compute_filter_coefficients(FREQS, 0.05, DT)
    gain = (c.b1 + c.b2 + c.b3) / (1 - c.a1 - c.a2)
    np.testing.assert_allclose(gain, 1.0, rtol=1e-9)


def test_relative_displacement_static_gain():
    # Agreement degrades as (omega*dt)^2 grows, so only well-sampled frequencies
    freqs = FREQS[:2]
    c = compute_relative_displacement_coefficients(freqs, 0.05, DT)
    gain = (c.b1 + c.b2 + c.b3) / (1 - c.a1 - c.a2)
    omega = 2 * np.pi * freqs
    np.testing.assert_allclose(gain, -1.0 / omega**2, rtol=1e-2)
    np.testing.assert_allclose(c.b1, 0.0)
    np.testing.assert_allclose(c.b3, 0.0)


def test_lfilter_taps():
    c = compute_filter_coefficients(FREQS, 0.05, DT)
    assert len(c) == 3
    np.testing.assert_allclose(c.numerator(1), [c.b1[1], c.b2[1], c.b3[1]])
    np.testing.assert_allclose(c.denominator(1), [1.0, -c.a1[1], -c.a2[1]])
    assert c.damping == 0.05
