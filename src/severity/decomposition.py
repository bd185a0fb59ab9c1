"""
Shock Severity Infimum (SSI) extraction.

The absolute-valued response matrix (time-major) is factorised as M = U S V^T.
Rebuilding it from a subset of singular triplets gives the SSI response matrix;
its maximax spectrum is compared with the full SRS in decibels.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

import numpy as np
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from src.severity.core import ShockResponseMatrix, Signal
from src.severity.errors import InvalidRankSelection, ShapeMismatch

Order = Union[int, Iterable[int]]


@dataclass(frozen=True, eq=False)
class DecompositionFactors:
    """Thin SVD of abs(response).T: u (time x r), s (r,), vt (r x frequency)."""

    u: np.ndarray
    s: np.ndarray
    vt: np.ndarray

    @property
    def rank(self) -> int:
        return len(self.s)

    @property
    def cost(self) -> float:
        """Squared share of the singular-value norm outside the first component."""
        total = np.linalg.norm(self.s)
        if total == 0:
            return 0.0
        return float(min((np.linalg.norm(self.s[1:]) / total) ** 2, 1.0))

    def reconstruct(self, indices: np.ndarray) -> np.ndarray:
        """Frequency-major matrix rebuilt from the 0-based `indices`."""
        time_major = (self.u[:, indices] * self.s[indices]) @ self.vt[indices, :]
        return time_major.T


class SeverityIndex(BaseModel):
    """
    Output data model for an SSI decomposition.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    order: Tuple[int, ...]
    cost: float = Field(..., ge=0.0, le=1.0)
    mean_margin_db: float
    mean_abs_margin_db: float = Field(..., ge=0.0)
    srs: InstanceOf[ShockResponseMatrix] = Field(exclude=True)
    singular_values: np.ndarray = Field(exclude=True)
    margin_db: np.ndarray = Field(exclude=True)


def singular_value_decomposition(srs: ShockResponseMatrix) -> DecompositionFactors:
    """SVD of the absolute response, transposed to (time x frequency)."""
    u, s, vt = np.linalg.svd(np.abs(srs.response).T, full_matrices=False)
    logger.debug(f"SVD of {srs.response.shape[::-1]} response: rank {len(s)}")
    return DecompositionFactors(u=u, s=s, vt=vt)


def _order_indices(order: Order, rank: int) -> Tuple[int, ...]:
    """
    1-based singular-value selection. An integer k keeps only the k-th triplet,
    an iterable keeps exactly the listed ones.
    """
    requested = [order] if np.isscalar(order) else list(order)
    non_integer = [k for k in requested if not float(k).is_integer()]
    if non_integer:
        raise InvalidRankSelection(
            f"Singular value indices must be integers, got {non_integer}"
        )
    selected = tuple(int(k) for k in requested)

    if not selected:
        raise InvalidRankSelection("At least one singular value index is required")
    if len(set(selected)) != len(selected):
        raise InvalidRankSelection(f"Duplicate singular value indices: {selected}")
    out_of_range = [k for k in selected if not 1 <= k <= rank]
    if out_of_range:
        raise InvalidRankSelection(
            f"Singular value indices {out_of_range} outside 1..{rank}"
        )
    return selected


def severity_margin(full_srs, reduced_srs) -> Tuple[np.ndarray, float]:
    """
    Per-frequency margin L = 20*log10(full / reduced) in dB and its signed mean.
    Frequencies where both spectra are zero contribute 0 dB.
    """
    full = np.asarray(full_srs, dtype=float)
    reduced = np.asarray(reduced_srs, dtype=float)
    if full.shape != reduced.shape:
        raise ShapeMismatch(f"SRS shapes differ: {full.shape} vs {reduced.shape}")

    with np.errstate(divide="ignore", invalid="ignore"):
        margin = 20.0 * np.log10(full / reduced)
    margin[(full == 0) & (reduced == 0)] = 0.0

    return margin, float(np.mean(margin))


def decompose(
    srs: ShockResponseMatrix,
    order: Order = 1,
    factors: DecompositionFactors = None,
) -> SeverityIndex:
    """
    Extract the SSI response matrix of the given order.

    :param order: 1-based singular value index, or an iterable of them
    :param factors: precomputed SVD of `srs`, to reuse across several orders
    """
    if factors is None:
        factors = singular_value_decomposition(srs)
    elif factors.u.shape[0] != len(srs.time) or factors.vt.shape[1] != len(srs.frequencies):
        raise ShapeMismatch("Decomposition factors do not belong to this response matrix")

    selected = _order_indices(order, factors.rank)
    indices = np.array(selected) - 1

    reduced = srs.with_response(factors.reconstruct(indices))
    margin, mean_margin = severity_margin(srs.maximax_srs, reduced.maximax_srs)

    cost = factors.cost
    logger.info(f"Cost function is {cost:.6g}")
    mean_abs_margin = float(np.mean(np.abs(margin)))
    logger.info(
        f"L = {mean_margin:.4g} dB, |L| = {mean_abs_margin:.4g} dB (order {list(selected)})"
    )

    return SeverityIndex(
        order=selected,
        cost=cost,
        mean_margin_db=mean_margin,
        mean_abs_margin_db=mean_abs_margin,
        srs=reduced,
        singular_values=factors.s,
        margin_db=margin,
    )


def margin_sweep(srs: ShockResponseMatrix, max_order: int = None) -> np.ndarray:
    """Mean margin (dB) of the SSI built from triplets 1..k, for k = 1..max_order."""
    factors = singular_value_decomposition(srs)
    if max_order is None:
        max_order = factors.rank
    if not 1 <= max_order <= factors.rank:
        raise InvalidRankSelection(f"max_order {max_order} outside 1..{factors.rank}")

    margins = np.empty(max_order)
    for k in range(1, max_order + 1):
        reduced = factors.reconstruct(np.arange(k))
        _, margins[k - 1] = severity_margin(
            srs.maximax_srs, np.max(np.abs(reduced), axis=1)
        )
    return margins


def principal_waveforms(srs: ShockResponseMatrix, count: int = 6) -> List[Signal]:
    """
    First `count` left singular vectors as time histories, each scaled to unit
    peak magnitude and signed so that its largest-magnitude sample is positive.
    """
    factors = singular_value_decomposition(srs)
    count = min(count, factors.rank)

    waveforms = []
    for i in range(count):
        u = factors.u[:, i]
        peak = u[np.argmax(np.abs(u))]
        shape = u / peak if peak != 0 else u
        waveforms.append(Signal(time=srs.time, acceleration=shape))
    return waveforms


def log_margin_per_sample(srs: ShockResponseMatrix) -> np.ndarray:
    """
    Per-sample distance of the bank from its peaks, integrated over log frequency:

        e[n] = mean(diff(log10(f))) * sum_j log10(maximax_srs[j] - |response[j, n]|)

    Samples at which any oscillator reaches its peak give -inf.
    """
    if len(srs.frequencies) < 2:
        raise ShapeMismatch("At least two frequencies are needed for a log-frequency step")

    gap = srs.maximax_srs[np.newaxis, :] - np.abs(srs.response).T
    with np.errstate(divide="ignore"):
        log_gap = np.log10(gap)
    f_step = float(np.mean(np.diff(np.log10(srs.frequencies))))
    return f_step * log_gap.sum(axis=1)


def log_margin_histogram(
    srs: ShockResponseMatrix, bins: int = 50
) -> Tuple[np.ndarray, np.ndarray]:
    """Histogram (counts, bin edges) of the finite values of `log_margin_per_sample`."""
    values = log_margin_per_sample(srs)
    return np.histogram(values[np.isfinite(values)], bins=bins)
