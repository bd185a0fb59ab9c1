"""
Error taxonomy for the shock severity engine.
Every error is a precondition violation raised before any heavy computation.
"""


class ShockSeverityError(Exception):
    """Base class for all engine errors."""


class InvalidSignal(ShockSeverityError, ValueError):
    """Too short, non-finite, or non-uniformly sampled acceleration signal."""


class InvalidFrequencyRange(ShockSeverityError, ValueError):
    """Starting frequency (or sample rate) that cannot produce a usable grid."""


class InvalidDamping(ShockSeverityError, ValueError):
    """Quality factor / damping ratio outside the underdamped range."""


class ShapeMismatch(ShockSeverityError, ValueError):
    """Array dimensions inconsistent with the frequency or time grid."""


class InterpolationOutOfRange(ShockSeverityError, ValueError):
    """Modal frequency outside the computed frequency grid."""


class InvalidRankSelection(ShockSeverityError, ValueError):
    """SSI order indices that are empty, duplicated or outside 1..rank."""


class InvalidModalInfo(ShockSeverityError, ValueError):
    """Modal table with non-finite values or non-positive natural frequencies."""
