"""
Regression statistics for longitudinal growth series.

Ordinary least squares of value on age, with the slope tested against zero
by a two-sided t-test (df = n - 2). Kept free of any growth-specific logic
so it can be checked against published p-values.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import stats

from .config import TrendSettings
from .models import Significance


@dataclass(frozen=True)
class LinearFit:
    """
    Result of a simple linear regression.

    Attributes:
        slope: Change in y per unit x.
        intercept: y at x = 0.
        r_squared: Coefficient of determination in [0, 1].
        stderr: Standard error of the slope (None with fewer than 3 points).
        p_value: Two-sided p-value for slope = 0 (None with fewer than 3 points).
        n: Number of points.
    """

    slope: float
    intercept: float
    r_squared: float
    stderr: Optional[float]
    p_value: Optional[float]
    n: int


def slope_p_value(slope: float, stderr: float, df: int) -> float:
    """
    Two-sided p-value of a t-test on a regression slope.

    A zero standard error means the points are exactly collinear: any
    non-zero slope is then certain (p = 0) and a zero slope carries no
    evidence (p = 1).
    """
    if df < 1:
        raise ValueError("t-test requires at least one degree of freedom")
    if stderr == 0.0:
        return 0.0 if slope != 0.0 else 1.0
    t = slope / stderr
    return float(2.0 * stats.t.sf(abs(t), df))


def linear_fit(x: np.ndarray, y: np.ndarray) -> LinearFit:
    """
    Least-squares line through (x, y).

    Two points fit exactly, so r_squared is 1.0 and no p-value is reported.
    A series with constant y has r_squared 1.0 by the same convention. When
    every x is identical no slope can be estimated: slope is 0, and
    r_squared is 0 unless two points or a constant y make it 1.0.

    Raises:
        ValueError: If fewer than 2 points or mismatched lengths.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError("x and y must have the same length")
    n = len(x)
    if n < 2:
        raise ValueError("Linear fit requires at least 2 points")

    x_mean = x.mean()
    y_mean = y.mean()
    dx = x - x_mean
    dy = y - y_mean
    sxx = float(np.dot(dx, dx))
    if sxx == 0.0:
        r_squared = 1.0 if n == 2 or not dy.any() else 0.0
        return LinearFit(0.0, float(y_mean), r_squared, None, None, n)

    slope = float(np.dot(dx, dy) / sxx)
    intercept = float(y_mean - slope * x_mean)
    residuals = y - (intercept + slope * x)
    ss_res = float(np.dot(residuals, residuals))
    ss_tot = float(np.dot(dy, dy))
    r_squared = 1.0 if ss_tot == 0.0 else float(np.clip(1.0 - ss_res / ss_tot, 0.0, 1.0))

    if n == 2:
        return LinearFit(slope, intercept, 1.0, None, None, n)

    df = n - 2
    stderr = float(np.sqrt(ss_res / df / sxx))
    return LinearFit(
        slope, intercept, r_squared, stderr, slope_p_value(slope, stderr, df), n
    )


def interval_velocities(
    x: np.ndarray, y: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Velocities between consecutive points and the mid-x of each interval.

    Intervals of zero width are skipped.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    dx = np.diff(x)
    dy = np.diff(y)
    usable = dx > 0
    mids = (x[:-1] + x[1:])[usable] / 2.0
    return mids, dy[usable] / dx[usable]


def acceleration(x: np.ndarray, y: np.ndarray) -> float:
    """
    Slope of interval velocities against interval mid-x.

    Positive when growth is speeding up. 0.0 with fewer than two usable
    intervals.
    """
    mids, velocities = interval_velocities(x, y)
    if len(mids) < 2:
        return 0.0
    return linear_fit(mids, velocities).slope


def bucket_significance(
    p_value: Optional[float], settings: Optional[TrendSettings] = None
) -> Significance:
    """
    Map a p-value onto NONE/LOW/MODERATE/HIGH.

    Default cut-offs: p >= 0.1 NONE, 0.05 <= p < 0.1 LOW,
    0.01 <= p < 0.05 MODERATE, p < 0.01 HIGH. A missing p-value is NONE.
    """
    settings = settings or TrendSettings()
    if p_value is None or not np.isfinite(p_value):
        return Significance.NONE
    if p_value < settings.high_p:
        return Significance.HIGH
    if p_value < settings.moderate_p:
        return Significance.MODERATE
    if p_value < settings.low_p:
        return Significance.LOW
    return Significance.NONE
