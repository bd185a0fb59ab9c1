import numpy as np
import pytest

from src.severity.core import Signal
from src.severity.response import compute_srs


def make_half_sine(amplitude=100.0, width_s=0.005, sample_rate=10000.0, duration_s=0.2):
    time_s = np.arange(int(round(duration_s * sample_rate)) + 1) / sample_rate
    accel = np.where(time_s <= width_s, amplitude * np.sin(np.pi * time_s / width_s), 0.0)
    return Signal(time=time_s, acceleration=accel)


@pytest.fixture
def half_sine():
    return make_half_sine()


@pytest.fixture
def half_sine_srs(half_sine):
    return compute_srs(half_sine, starting_frequency=20.0, quality_factor=10.0)


@pytest.fixture
def impulse():
    sample_rate = 10000.0
    time_s = np.arange(5001) / sample_rate
    accel = np.zeros_like(time_s)
    accel[0] = 1.0
    return Signal(time=time_s, acceleration=accel)


@pytest.fixture
def zero_signal():
    time_s = np.arange(1001) / 1000.0
    return Signal(time=time_s, acceleration=np.zeros_like(time_s))
