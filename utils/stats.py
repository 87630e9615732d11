"""Small numeric helpers shared by the analyzers."""

import math
import statistics
from collections.abc import Iterable

# Absorbs binary floating point error in threshold checks, e.g. 0.82 - 0.72.
TOLERANCE = 1e-9


def finite_values(values: Iterable[float | None]) -> list[float]:
    """Drop None, NaN and infinite values."""
    return [float(v) for v in values if v is not None and math.isfinite(v)]


def mean(values: list[float]) -> float | None:
    return statistics.fmean(values) if values else None


def median(values: list[float]) -> float | None:
    return statistics.median(values) if values else None


def round3(value: float) -> float:
    """Round to three decimals for evidence and summaries."""
    return round(value, 3)


def at_least(value: float, threshold: float) -> bool:
    return value >= threshold - TOLERANCE


def at_most(value: float, threshold: float) -> bool:
    return value <= threshold + TOLERANCE
