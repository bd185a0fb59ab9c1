"""
Structural response estimate from a shock response matrix (response spectrum method).

Given modal information (natural frequency, participation factor, mode shape value),
the response matrix is interpolated onto the modal frequencies and the modal
contributions are summed:

    signed:   y_M(t) = M_q(t, :) . (participation * shape)       (cubic spline in frequency)
    unsigned: y_N(t) = N_q(t, :) . |participation * shape|       (linear, on |response|)

Two scalar bounds complete the estimate: the maximax SRS and the SSI maximax SRS,
each interpolated at the modal frequencies and weighted by |participation * shape|.
"""

from dataclasses import dataclass
from typing import Iterable, Literal, Union

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, InstanceOf
from scipy.interpolate import CubicSpline, interp1d

from src.severity.core import ShockResponseMatrix, Signal
from src.severity.decomposition import decompose
from src.severity.errors import InterpolationOutOfRange, InvalidModalInfo, ShapeMismatch

OutOfRangePolicy = Literal["extrapolate", "raise"]

MODAL_COLUMNS = ("frequency", "participation", "shape")


class ModalMode(BaseModel):
    """
    Input data model for one structural mode.
    """

    frequency: float = Field(..., gt=0, allow_inf_nan=False, description="Natural frequency (Hz)")
    participation: float = Field(..., allow_inf_nan=False, description="Participation factor")
    shape: float = Field(..., allow_inf_nan=False, description="Mode shape value at the point of interest")


@dataclass(frozen=True, eq=False)
class ModalInfo:
    """Ordered set of structural modes (no ordering requirement on frequency)."""

    frequency: np.ndarray
    participation: np.ndarray
    shape: np.ndarray

    def __post_init__(self):
        columns = [np.array(getattr(self, name), dtype=float) for name in MODAL_COLUMNS]
        lengths = {c.shape for c in columns}
        if len(lengths) != 1 or columns[0].ndim != 1:
            raise ShapeMismatch(f"Modal columns must be 1-D of equal length, got {lengths}")
        if len(columns[0]) == 0:
            raise ShapeMismatch("Modal information needs at least one mode")
        if not all(np.all(np.isfinite(c)) for c in columns):
            raise InvalidModalInfo("Modal information contains non-finite values")
        if np.any(columns[0] <= 0):
            raise InvalidModalInfo("Modal frequencies must be positive")

        for name, column in zip(MODAL_COLUMNS, columns):
            column.setflags(write=False)
            object.__setattr__(self, name, column)

    def __len__(self) -> int:
        return len(self.frequency)

    @property
    def weights(self) -> np.ndarray:
        """Modal weights participation * shape, signs kept."""
        return self.participation * self.shape

    @classmethod
    def from_modes(cls, modes: Iterable[Union[ModalMode, dict]]) -> "ModalInfo":
        validated = [ModalMode.model_validate(m) for m in modes]
        if not validated:
            raise ShapeMismatch("Modal information needs at least one mode")
        return cls(
            frequency=[m.frequency for m in validated],
            participation=[m.participation for m in validated],
            shape=[m.shape for m in validated],
        )

    @classmethod
    def from_table(cls, table) -> "ModalInfo":
        """
        Build from an (n_modes x 3) table: frequency, participation factor, mode shape.
        A DataFrame carrying the named columns is read by name, otherwise by position.
        """
        if isinstance(table, pd.DataFrame) and set(MODAL_COLUMNS) <= set(table.columns):
            values = table[list(MODAL_COLUMNS)].to_numpy(dtype=float)
        else:
            values = np.asarray(table, dtype=float)
            if values.ndim == 1 and values.size == 3:
                values = values.reshape(1, 3)

        if values.ndim != 2 or values.shape[1] != 3:
            raise ShapeMismatch(f"Modal table must have 3 columns, got shape {values.shape}")

        return cls.from_modes(
            ModalMode(frequency=row[0], participation=row[1], shape=row[2]) for row in values
        )


class StructuralResponse(BaseModel):
    """
    Output data model for the structural response estimate.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    peak_signed: float
    peak_unsigned: float
    peak_maximax: float
    peak_ssi: float
    signed: InstanceOf[Signal] = Field(exclude=True)
    unsigned: InstanceOf[Signal] = Field(exclude=True)


def _check_range(
    frequencies: np.ndarray, grid: np.ndarray, policy: OutOfRangePolicy
) -> None:
    if policy not in ("extrapolate", "raise"):
        raise ValueError(f"Unknown out-of-range policy: {policy}")

    outside = frequencies[(frequencies < grid[0]) | (frequencies > grid[-1])]
    if outside.size == 0:
        return
    if policy == "raise":
        raise InterpolationOutOfRange(
            f"Modal frequencies {outside.tolist()} outside grid "
            f"[{grid[0]:.4g}, {grid[-1]:.4g}] Hz"
        )
    logger.warning(
        f"Extrapolating response at {outside.tolist()} Hz beyond grid "
        f"[{grid[0]:.4g}, {grid[-1]:.4g}] Hz"
    )


def _linear(grid: np.ndarray, values: np.ndarray, at: np.ndarray) -> np.ndarray:
    return interp1d(
        grid, values, kind="linear", axis=0, fill_value="extrapolate", assume_sorted=True
    )(at)


def interpolate_response(
    srs: ShockResponseMatrix, frequencies, signed: bool = True
) -> np.ndarray:
    """
    Response matrix evaluated at arbitrary frequencies on the same time grid.

    :param signed: cubic spline of the signed response when True,
                   linear interpolation of |response| otherwise
    :return: (n_samples, n_frequencies) matrix
    """
    at = np.asarray(frequencies, dtype=float)
    if signed:
        spline = CubicSpline(srs.frequencies, srs.response, axis=0, extrapolate=True)
        return spline(at).T
    return _linear(srs.frequencies, np.abs(srs.response), at).T


def estimate_structural_response(
    srs: ShockResponseMatrix,
    modal_info: ModalInfo,
    out_of_range: OutOfRangePolicy = "extrapolate",
    ssi_order: int = 1,
) -> StructuralResponse:
    """
    Signed and unsigned response histories plus the maximax and SSI scalar bounds.
    """
    fq = modal_info.frequency
    _check_range(fq, srs.frequencies, out_of_range)

    weights = modal_info.weights
    abs_weights = np.abs(weights)

    # 1. Signed estimate
    y_m = interpolate_response(srs, fq, signed=True) @ weights
    peak_m = float(np.max(np.abs(y_m)))
    logger.info(f"Absolute maximum response by matrix M is {peak_m:.6g}")

    # 2. Unsigned (conservative) estimate
    y_n = interpolate_response(srs, fq, signed=False) @ abs_weights
    peak_n = float(np.max(np.abs(y_n)))
    logger.info(f"Absolute maximum response by matrix N is {peak_n:.6g}")

    # 3. Maximax SRS bound
    peak_maximax = float(_linear(srs.frequencies, srs.maximax_srs, fq) @ abs_weights)
    logger.info(f"Absolute maximum response by maximaxSRS is {peak_maximax:.6g}")

    # 4. SSI bound
    ssi = decompose(srs, order=ssi_order)
    peak_ssi = float(_linear(srs.frequencies, ssi.srs.maximax_srs, fq) @ abs_weights)
    logger.info(f"Absolute maximum response by SSI (order {ssi_order}) is {peak_ssi:.6g}")

    return StructuralResponse(
        peak_signed=peak_m,
        peak_unsigned=peak_n,
        peak_maximax=peak_maximax,
        peak_ssi=peak_ssi,
        signed=Signal(time=srs.time, acceleration=y_m),
        unsigned=Signal(time=srs.time, acceleration=y_n),
    )
