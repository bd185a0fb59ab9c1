"""
Base interface for all severity metrics.
Strategy Pattern implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from src.severity.core import ShockResponseMatrix


class MetricStrategy(ABC):
    """Parent class of every metric computed from a shock response matrix."""

    # Some metrics need extra inputs (SSI order, modal information, ...)
    def __init__(self, **kwargs):
        self.params = kwargs

    @abstractmethod
    def calculate(self, srs: ShockResponseMatrix) -> Dict[str, Any]:
        """Take the response matrix and return the results as a dictionary"""
        pass
