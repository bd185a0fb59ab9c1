"""
Severity metrics built on the SSI decomposition and the structural response estimate.
"""

from typing import Any, Dict

from .base import MetricStrategy
from src.severity.core import ShockResponseMatrix
from src.severity.decomposition import decompose
from src.severity.mdof import estimate_structural_response


class SSIMargin(MetricStrategy):
    """dB margin between the full SRS and the SSI of the requested order"""

    def calculate(self, srs: ShockResponseMatrix) -> Dict[str, Any]:
        ssi = decompose(srs, order=self.params.get("order", 1))

        return {
            "SSI_Order": list(ssi.order),
            "SSI_Cost": round(ssi.cost, 6),
            "SSI_Mean_Margin_dB": round(ssi.mean_margin_db, 3),
            "SSI_Mean_Abs_Margin_dB": round(ssi.mean_abs_margin_db, 3),
        }


class StructuralResponseBound(MetricStrategy):
    """
    Peak structural response from modal information.
    Requires `modal_info`; `out_of_range` and `ssi_order` are optional.
    """

    def calculate(self, srs: ShockResponseMatrix) -> Dict[str, Any]:
        modal_info = self.params.get("modal_info")
        if modal_info is None:
            raise ValueError("StructuralResponseBound requires modal_info")

        est = estimate_structural_response(
            srs,
            modal_info,
            out_of_range=self.params.get("out_of_range", "extrapolate"),
            ssi_order=self.params.get("ssi_order", 1),
        )

        return {
            "Peak_Response_Signed": est.peak_signed,
            "Peak_Response_Unsigned": est.peak_unsigned,
            "Peak_Response_Maximax": est.peak_maximax,
            "Peak_Response_SSI": est.peak_ssi,
        }
