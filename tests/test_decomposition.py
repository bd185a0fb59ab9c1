import numpy as np
import pytest

from src.severity.core import ShockResponseMatrix
from src.severity.decomposition import (
    decompose,
    log_margin_histogram,
    log_margin_per_sample,
    margin_sweep,
    principal_waveforms,
    severity_margin,
    singular_value_decomposition,
)
from src.severity.errors import InvalidRankSelection, ShapeMismatch
from src.severity.response import compute_srs


def _matrix(response):
    response = np.asarray(response, dtype=float)
    n_freq, n_time = response.shape
    return ShockResponseMatrix(
        frequencies=10.0 * 2.0 ** (np.arange(n_freq) / 12.0),
        time=np.arange(n_time) * 0.001,
        response=response,
        starting_frequency=10.0,
        quality_factor=10.0,
    )


def test_full_rank_reconstruction_is_identity(half_sine_srs):
    rank = singular_value_decomposition(half_sine_srs).rank
    ssi = decompose(half_sine_srs, order=range(1, rank + 1))

    scale = np.max(np.abs(half_sine_srs.response))
    np.testing.assert_allclose(
        ssi.srs.response, np.abs(half_sine_srs.response), rtol=0, atol=1e-9 * scale
    )
    np.testing.assert_allclose(ssi.margin_db, 0.0, atol=1e-6)
    assert ssi.mean_margin_db == pytest.approx(0.0, abs=1e-6)


def test_reduced_matrix_keeps_grids(half_sine_srs):
    ssi = decompose(half_sine_srs)

    assert ssi.order == (1,)
    assert ssi.srs.response.shape == half_sine_srs.response.shape
    np.testing.assert_array_equal(ssi.srs.frequencies, half_sine_srs.frequencies)
    np.testing.assert_array_equal(ssi.srs.time, half_sine_srs.time)
    assert ssi.margin_db.shape == half_sine_srs.frequencies.shape
    assert ssi.mean_margin_db == pytest.approx(np.mean(ssi.margin_db))


def test_integer_order_selects_single_triplet(half_sine_srs):
    factors = singular_value_decomposition(half_sine_srs)
    ssi = decompose(half_sine_srs, order=2, factors=factors)

    expected = (factors.s[1] * np.outer(factors.u[:, 1], factors.vt[1, :])).T
    np.testing.assert_allclose(ssi.srs.response, expected, atol=1e-12 * factors.s[0])


def test_non_contiguous_order(half_sine_srs):
    factors = singular_value_decomposition(half_sine_srs)
    ssi = decompose(half_sine_srs, order=[1, 3], factors=factors)

    expected = decompose(half_sine_srs, 1, factors).srs.response + decompose(
        half_sine_srs, 3, factors
    ).srs.response
    assert ssi.order == (1, 3)
    np.testing.assert_allclose(ssi.srs.response, expected, atol=1e-12 * factors.s[0])


def test_cost_fraction_bounds(half_sine_srs):
    ssi = decompose(half_sine_srs)
    assert 0.0 < ssi.cost < 1.0
    assert np.all(np.diff(ssi.singular_values) <= 0)


def test_rank_one_matrix_has_zero_cost():
    a = np.array([1.0, 2.0, 3.0])
    b = np.array([0.5, 1.0, 0.25, 4.0])
    ssi = decompose(_matrix(np.outer(a, b)))

    assert ssi.cost == pytest.approx(0.0, abs=1e-20)
    np.testing.assert_allclose(ssi.srs.response, np.outer(a, b), rtol=1e-10)
    np.testing.assert_allclose(ssi.margin_db, 0.0, atol=1e-8)


def test_zero_input_is_guarded(zero_signal):
    srs = compute_srs(zero_signal, starting_frequency=10.0, quality_factor=10.0)
    ssi = decompose(srs)

    assert ssi.cost == 0.0
    np.testing.assert_array_equal(ssi.margin_db, 0.0)
    assert ssi.mean_margin_db == 0.0
    assert not np.any(ssi.srs.response)


def test_margin_trend_reaches_zero(half_sine_srs):
    margins = margin_sweep(half_sine_srs)

    assert margins[-1] == pytest.approx(0.0, abs=1e-6)
    assert abs(margins[0]) >= abs(margins[-1])
    assert np.mean(np.abs(margins[: len(margins) // 2])) >= np.mean(
        np.abs(margins[len(margins) // 2 :])
    )


def test_margin_sweep_limits(half_sine_srs):
    assert len(margin_sweep(half_sine_srs, max_order=3)) == 3
    with pytest.raises(InvalidRankSelection):
        margin_sweep(half_sine_srs, max_order=0)


@pytest.mark.parametrize("order", [0, 10_000, [], [1, 1], [2, -1]])
def test_invalid_rank_selection(half_sine_srs, order):
    with pytest.raises(InvalidRankSelection):
        decompose(half_sine_srs, order=order)


def test_factors_from_another_matrix(half_sine_srs):
    other = _matrix(np.ones((3, 4)))
    with pytest.raises(ShapeMismatch):
        decompose(half_sine_srs, factors=singular_value_decomposition(other))


def test_severity_margin_values():
    margin, mean = severity_margin([10.0, 1.0, 0.0], [1.0, 1.0, 0.0])
    np.testing.assert_allclose(margin, [20.0, 0.0, 0.0])
    assert mean == pytest.approx(20.0 / 3)

    with pytest.raises(ShapeMismatch):
        severity_margin([1.0, 2.0], [1.0])


def test_severity_index_serialisation(half_sine_srs):
    dumped = decompose(half_sine_srs).model_dump()
    assert set(dumped) == {"order", "cost", "mean_margin_db", "mean_abs_margin_db"}


def test_principal_waveforms(half_sine_srs):
    waves = principal_waveforms(half_sine_srs, count=6)

    assert len(waves) == 6
    for w in waves:
        np.testing.assert_array_equal(w.time, half_sine_srs.time)
        assert np.max(w.acceleration) == pytest.approx(1.0)
        assert np.max(np.abs(w.acceleration)) == pytest.approx(1.0)


def test_principal_waveforms_capped_by_rank():
    waves = principal_waveforms(_matrix(np.random.default_rng(0).random((3, 50))), count=6)
    assert len(waves) == 3


@pytest.mark.parametrize("order", [1.7, [1, 2.5], [np.nan]])
def test_non_integer_order_is_rejected(half_sine_srs, order):
    with pytest.raises(InvalidRankSelection):
        decompose(half_sine_srs, order=order)


def test_integral_float_order_is_accepted(half_sine_srs):
    assert decompose(half_sine_srs, order=[1.0, np.int64(2)]).order == (1, 2)


def test_absolute_mean_margin(half_sine_srs):
    ssi = decompose(half_sine_srs, order=1)

    assert ssi.mean_abs_margin_db == pytest.approx(np.mean(np.abs(ssi.margin_db)))
    # Rank 1 overshoots the full SRS at some frequencies, so signed values partly cancel.
    assert np.any(ssi.margin_db < 0)
    assert ssi.mean_abs_margin_db > abs(ssi.mean_margin_db)


def test_log_margin_per_sample_values():
    srs = _matrix([[1.0, 2.0, 0.5, -1.0], [3.0, -1.0, 0.0, 1.0]])
    values = log_margin_per_sample(srs)

    f_step = np.log10(2.0) / 12.0
    assert values.shape == (4,)
    # Samples 0 and 1 hold a peak of some oscillator.
    assert np.isneginf(values[0]) and np.isneginf(values[1])
    assert values[2] == pytest.approx(f_step * np.log10(1.5 * 3.0))
    assert values[3] == pytest.approx(f_step * np.log10(1.0 * 2.0))


def test_log_margin_histogram(half_sine_srs):
    values = log_margin_per_sample(half_sine_srs)
    counts, edges = log_margin_histogram(half_sine_srs, bins=20)

    assert len(counts) == 20 and len(edges) == 21
    assert counts.sum() == np.count_nonzero(np.isfinite(values))


def test_log_margin_needs_two_frequencies():
    with pytest.raises(ShapeMismatch):
        log_margin_per_sample(_matrix([[1.0, 2.0, 0.5]]))
