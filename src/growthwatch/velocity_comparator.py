"""
Growth velocity compared with the expected velocity for age.
"""

from typing import Optional, Sequence

import numpy as np

from .config import StatusThresholds
from .exceptions import InsufficientDataError
from .models import GrowthDataPoint, Indicator, Status, VelocityResult
from .reference import ReferenceStandards, load_reference_standards, velocity_quantity
from .stats import linear_fit
from .trends import MIN_TREND_POINTS, ordered_series
from .zscores import normal_percentile, status_for_zscore

QUANTITY_UNITS = {
    "weight": "kg",
    "height": "cm",
    "head_circumference": "cm",
}


def velocity_message(
    indicator: Indicator,
    observed: float,
    expected: float,
    status: Status,
    unit: str,
) -> str:
    figures = f"{observed:+.2f} {unit}/month vs. expected {expected:.2f} {unit}/month"
    if status is Status.NORMAL:
        return f"{indicator.label} velocity is within the expected range ({figures})."
    pace = "slower" if observed < expected else "faster"
    if status is Status.WARNING:
        return (
            f"{indicator.label} velocity is {pace} than expected ({figures}); "
            "re-measure at the next visit."
        )
    return (
        f"{indicator.label} velocity is much {pace} than expected ({figures}); "
        "refer for evaluation."
    )


class VelocityComparator:
    """
    Scores observed growth velocity against the age-specific distribution
    of velocities.

    Attributes:
        standards (ReferenceStandards): Source of the velocity bands.
        thresholds (StatusThresholds): Status cut-offs applied to the velocity z-score.
    """

    def __init__(
        self,
        standards: Optional[ReferenceStandards] = None,
        thresholds: Optional[StatusThresholds] = None,
    ):
        self.standards = standards or load_reference_standards()
        self.thresholds = thresholds or StatusThresholds()

    def compare(
        self, series: Sequence[GrowthDataPoint], indicator: Indicator
    ) -> VelocityResult:
        """
        Compare the regression velocity of a series with its expected band.

        The band is looked up at the mid-age of the series.

        Raises:
            InsufficientDataError: If fewer than 2 points are given.
            UnsupportedIndicatorError: If the indicator has no velocity table (BMI).
            UnsupportedAgeRange: If no velocity band covers the series' mid-age.
        """
        points = ordered_series(series)
        if len(points) < MIN_TREND_POINTS:
            raise InsufficientDataError(MIN_TREND_POINTS, len(points), "velocity")
        ages = np.array([p.age_in_months for p in points], dtype=np.float64)
        values = np.array([p.value for p in points], dtype=np.float64)
        return self.compare_arrays(ages, values, indicator)

    def compare_arrays(
        self, ages: np.ndarray, values: np.ndarray, indicator: Indicator
    ) -> VelocityResult:
        indicator = Indicator(indicator)
        mid_age = (float(np.min(ages)) + float(np.max(ages))) / 2.0
        band = self.standards.expected_velocity(indicator, mid_age)
        observed = linear_fit(ages, values).slope

        z = (observed - band.mean) / band.sd
        status = status_for_zscore(z, self.thresholds)
        unit = QUANTITY_UNITS[velocity_quantity(indicator)]
        return VelocityResult(
            indicator=indicator,
            velocity=observed,
            expected_velocity=band.mean,
            velocity_z_score=z,
            percentile_velocity=float(normal_percentile(z)),
            status=status,
            message=velocity_message(indicator, observed, band.mean, status, unit),
        )
