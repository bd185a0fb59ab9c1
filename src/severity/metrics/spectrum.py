"""
Basic spectrum metrics (peak SRS, frequency and time of the peak)
"""

import numpy as np
from typing import Any, Dict

from .base import MetricStrategy
from src.severity.core import ShockResponseMatrix


class PeakSRS(MetricStrategy):
    def calculate(self, srs: ShockResponseMatrix) -> Dict[str, Any]:
        maximax = srs.maximax_srs
        idx = int(np.argmax(maximax))

        return {
            "Peak_SRS": float(maximax[idx]),
            "Frequency_at_Peak_Hz": round(float(srs.frequencies[idx]), 2),
            "Time_at_Peak_s": float(srs.t_peak[idx]),
            "Peak_Positive_SRS": float(np.max(srs.positive_srs)),
            "Peak_Negative_SRS": float(np.max(srs.negative_srs)),
        }
