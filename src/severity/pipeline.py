"""
Shock Severity Analysis Pipeline Manager.
Signal -> shock response matrix -> registered metrics.
"""

from typing import Any, Dict, List

from config import settings
from src.severity.core import Signal
from src.severity.metrics.base import MetricStrategy
from src.severity.response import ResponseMatrixEngine


class SeverityAnalysisPipeline:
    def __init__(
        self,
        starting_frequency: float = None,
        quality_factor: float = None,
        points_per_octave: int = None,
        backend: str = None,
        max_workers: int = None,
    ):
        self.starting_frequency = (
            settings.STARTING_FREQUENCY_HZ if starting_frequency is None else starting_frequency
        )
        self.quality_factor = (
            settings.QUALITY_FACTOR if quality_factor is None else quality_factor
        )
        self.points_per_octave = points_per_octave or settings.POINTS_PER_OCTAVE
        self.engine = ResponseMatrixEngine(
            backend=backend or settings.FILTER_BACKEND,
            max_workers=max_workers or settings.MAX_WORKERS,
        )
        self.metrics: List[MetricStrategy] = []

    def add_metric(self, metric: MetricStrategy):
        self.metrics.append(metric)

    def run(self, time_data, accel_data) -> Dict[str, Any]:
        """
        Build the signal, compute the shock response matrix and every registered metric.
        Metric errors propagate; no partial results are returned.
        """
        # 1. Response matrix
        signal = Signal(time=time_data, acceleration=accel_data)
        srs = self.engine.compute(
            signal,
            self.starting_frequency,
            self.quality_factor,
            points_per_octave=self.points_per_octave,
        )

        results = {
            "srs_obj": srs,
            "Sample_Rate_Hz": round(signal.sample_rate, 3),
            "First_Frequency_Hz": round(float(srs.frequencies[0]), 3),
            "Oscillator_Count": len(srs.frequencies),
        }

        # 2. Metrics
        for metric in self.metrics:
            results.update(metric.calculate(srs))

        return results
