"""
Z-Score Calculation Utilities for Growth Assessment

This module converts anthropometric measurements into age- and sex-specific
z-scores, percentiles and a three-tier clinical status using the WHO LMS
reference tables. Includes a compiled vectorized LMS kernel used by both the
scalar assessment path and the DataFrame batch path.
"""

from typing import Optional, Union
import logging

import numpy as np
from numba import jit
from scipy import stats

from .config import StatusThresholds
from .models import GrowthAssessment, Indicator, Sex, Status, ZScoreResult
from .reference import ReferenceStandards, load_reference_standards

# Constants
L_ZERO_THRESHOLD = 1e-6


@jit(nopython=True, cache=True)
def lms_zscore(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    """
    Calculate LMS z-scores element-wise.

    Implements the LMS method from Cole (1990) used by the WHO Child Growth
    Standards. Three curves: median (M), coefficient of variation (S),
    Box-Cox power (L).

    For L ≠ 0: z = ((X/M)^L - 1) / (L * S)
    For L ≈ 0: z = ln(X/M) / S

    Entries with a non-finite input, X <= 0, M <= 0 or S <= 0 are NaN.

    References:
    - Cole, T.J. (1990). "The LMS method for constructing normalized growth standards."
      European Journal of Clinical Nutrition, 44(1), 45-60.
    - WHO Multicentre Growth Reference Study Group (2006). WHO Child Growth
      Standards: Methods and development.

    Args:
        X: Observed values (kg/cm/kg·m⁻²), 1-D float64
        L: Lambda (power, skewness parameter)
        M: Mu (median)
        S: Sigma (coefficient of variation)

    Returns:
        Z-scores (0 at the median)
    """
    n = X.size
    z = np.full(n, np.nan)
    for i in range(n):
        x = X[i]
        lam = L[i]
        mu = M[i]
        sigma = S[i]
        if not (
            np.isfinite(x) and np.isfinite(lam) and np.isfinite(mu) and np.isfinite(sigma)
        ):
            continue
        if x <= 0.0 or mu <= 0.0 or sigma <= 0.0:
            continue
        if abs(lam) < L_ZERO_THRESHOLD:
            z[i] = np.log(x / mu) / sigma
        else:
            z[i] = ((x / mu) ** lam - 1.0) / (lam * sigma)
    return z


def normal_percentile(z: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Percentile (0-100) of a z-score under the standard normal distribution."""
    return stats.norm.cdf(z) * 100.0


def status_for_zscore(
    z: float, thresholds: Optional[StatusThresholds] = None
) -> Status:
    """
    Three-tier status from |z|; exact boundaries fall to the lower tier.

    Args:
        z: Z-score
        thresholds: Cut-offs (defaults to ±2/±3)

    Returns:
        Status.NORMAL, Status.WARNING or Status.ALERT
    """
    thresholds = thresholds or StatusThresholds()
    magnitude = abs(z)
    if magnitude <= thresholds.warning:
        return Status.NORMAL
    if magnitude <= thresholds.alert:
        return Status.WARNING
    return Status.ALERT


def status_array(
    z: np.ndarray, thresholds: Optional[StatusThresholds] = None
) -> np.ndarray:
    """Vectorized status_for_zscore; NaN z-scores map to None."""
    thresholds = thresholds or StatusThresholds()
    magnitude = np.abs(z)
    out = np.full(len(z), None, dtype=object)
    out[magnitude <= thresholds.warning] = Status.NORMAL.value
    out[(magnitude > thresholds.warning) & (magnitude <= thresholds.alert)] = (
        Status.WARNING.value
    )
    out[magnitude > thresholds.alert] = Status.ALERT.value
    return out


def zscore_message(
    indicator: Indicator, z: float, percentile: float, status: Status
) -> str:
    """Templated English interpretation of one result."""
    label = indicator.label
    side = "below" if z < 0 else "above"
    figures = f"(z-score {z:+.2f}, percentile {percentile:.1f})"
    if status is Status.NORMAL:
        if abs(z) <= 1.0:
            return f"{label} is within the normal range {figures}."
        return (
            f"{label} is normal but {side} the median; keep monitoring at "
            f"the next visit {figures}."
        )
    if status is Status.WARNING:
        return (
            f"{label} is {side} the normal range; consult a health worker "
            f"{figures}."
        )
    return (
        f"{label} is far {side} the normal range; seek medical attention "
        f"promptly {figures}."
    )


class ZScoreEngine:
    """
    Point-in-time z-score assessment against reference standards.

    Usage:
        engine = ZScoreEngine()
        result = engine.assess(8.2, Indicator.WEIGHT_FOR_AGE, Sex.FEMALE, 9)

    Attributes:
        standards (ReferenceStandards): LMS tables used for lookups.
        thresholds (StatusThresholds): Status cut-offs.
    """

    def __init__(
        self,
        standards: Optional[ReferenceStandards] = None,
        thresholds: Optional[StatusThresholds] = None,
    ):
        self.standards = standards or load_reference_standards()
        self.thresholds = thresholds or StatusThresholds()

    def zscore(self, value: float, indicator: Indicator, sex: Sex, x: float) -> float:
        """
        Raw z-score of one measurement.

        Args:
            value: Measured value (kg, cm or kg/m²).
            indicator: Growth indicator.
            sex: Sex of the child.
            x: Age in months, or height in cm for weight-for-height.

        Raises:
            ValueError: If value is not a finite positive number.
            UnsupportedAgeRange: If the age is outside the reference table.
            UnsupportedHeightRange: If the height is outside the weight-for-height table.
        """
        value = float(value)
        if not np.isfinite(value) or value <= 0:
            raise ValueError(f"Measurement must be a finite positive number, got {value}")
        L, M, S = self.standards.lms_at(indicator, Sex(sex), x)
        z = lms_zscore(
            np.array([value]), np.array([L]), np.array([M]), np.array([S])
        )
        return float(z[0])

    def assess(
        self, value: float, indicator: Indicator, sex: Sex, x: float
    ) -> ZScoreResult:
        """Z-score, percentile, status and message for one measurement."""
        indicator = Indicator(indicator)
        z = self.zscore(value, indicator, sex, x)
        percentile = float(normal_percentile(z))
        status = status_for_zscore(z, self.thresholds)
        return ZScoreResult(
            indicator=indicator,
            z_score=z,
            percentile=percentile,
            status=status,
            message=zscore_message(indicator, z, percentile, status),
        )

    def assess_all(
        self,
        weight: float,
        height: float,
        head_circumference: Optional[float],
        age_in_months: float,
        sex: Sex,
    ) -> GrowthAssessment:
        """
        Assess every indicator available for one measurement.

        Weight-for-height is looked up by height; the others by age.

        Raises:
            UnsupportedAgeRange: If the age is outside the reference tables.
            UnsupportedHeightRange: If the height is outside the weight-for-height table.
        """
        sex = Sex(sex)
        head = None
        if head_circumference is not None:
            head = self.assess(
                head_circumference,
                Indicator.HEAD_CIRCUMFERENCE_FOR_AGE,
                sex,
                age_in_months,
            )
        return GrowthAssessment(
            weight_for_age=self.assess(
                weight, Indicator.WEIGHT_FOR_AGE, sex, age_in_months
            ),
            height_for_age=self.assess(
                height, Indicator.HEIGHT_FOR_AGE, sex, age_in_months
            ),
            weight_for_height=self.assess(
                weight, Indicator.WEIGHT_FOR_HEIGHT, sex, height
            ),
            head_circumference_for_age=head,
        )

    def zscores(
        self,
        values: np.ndarray,
        x: np.ndarray,
        sex: np.ndarray,
        indicator: Indicator,
    ) -> np.ndarray:
        """
        Vectorized z-scores for batch assessment.

        Rows outside the reference range, with an unknown sex or an invalid
        value are NaN; a warning reports how many rows fell out of range.

        Args:
            values: Measured values.
            x: Ages in months (heights in cm for weight-for-height).
            sex: 'M'/'F' codes.
            indicator: Growth indicator.

        Returns:
            Z-score array matching the input length.
        """
        indicator = Indicator(indicator)
        values = np.ascontiguousarray(values, dtype=np.float64)
        if values.size == 0:
            return np.full_like(values, np.nan)
        x = np.asarray(x, dtype=np.float64)
        L, M, S = self.standards.lms_arrays(indicator, sex, x)

        known_sex = np.isin(np.asarray(sex, dtype=str), [s.value for s in Sex])
        out_of_range = np.isfinite(x) & known_sex & ~np.isfinite(M)
        if np.any(out_of_range):
            lower, upper = self.standards.range_of(indicator)
            unit = "cm" if indicator.indexed_by_height else "months"
            logging.warning(
                f"{int(out_of_range.sum())} rows outside the {indicator.value} "
                f"reference range [{lower:g}, {upper:g}] {unit} - setting z-scores to NaN"
            )
        return lms_zscore(values, L, M, S)
