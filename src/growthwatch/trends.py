"""
Longitudinal trend analysis for a single growth indicator.

Fits value against age by least squares to obtain velocity (slope),
consistency (R²) and significance (t-test on the slope), then folds the
direction, the velocity relative to the expected velocity for the child's age
and the worst status seen in the series into one risk level.
"""

from typing import Dict, List, Optional, Sequence
import logging

import numpy as np

from .config import TrendSettings
from .exceptions import InsufficientDataError, UnsupportedAgeRange, UnsupportedIndicatorError
from .models import (
    Direction,
    GrowthDataPoint,
    Indicator,
    RiskLevel,
    Significance,
    Status,
    TrendResult,
)
from .reference import ReferenceStandards, load_reference_standards
from .stats import acceleration, bucket_significance, linear_fit

MIN_TREND_POINTS = 2

RISK_RECOMMENDATIONS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "Growth is on track. Continue routine monitoring and a balanced diet.",
    RiskLevel.MODERATE: (
        "Growth needs attention. Re-measure within a month and review feeding "
        "practices with a health worker."
    ),
    RiskLevel.HIGH: (
        "Growth is concerning. Arrange a review with a health worker within "
        "two weeks."
    ),
    RiskLevel.CRITICAL: (
        "Growth pattern is critical. Refer the child for medical evaluation "
        "without delay."
    ),
}

DIRECTION_PHRASES: Dict[Direction, str] = {
    Direction.INCREASING: "increasing",
    Direction.DECREASING: "declining",
    Direction.STABLE: "not changing",
}


def ordered_series(series: Sequence[GrowthDataPoint]) -> List[GrowthDataPoint]:
    """Points sorted by age, then by date."""
    return sorted(series, key=lambda p: (p.age_in_months, p.date))


def fold_risk(
    direction: Direction,
    significance: Significance,
    velocity_ratio: Optional[float],
    worst_status: Status,
    settings: TrendSettings,
) -> RiskLevel:
    """
    Combine trajectory and status into one risk level.

    - A decline is MODERATE, or HIGH once its significance is MODERATE or above.
    - Otherwise velocity far from expected (slow or fast) is MODERATE.
    - A WARNING anywhere in the series lifts risk to at least MODERATE.
    - An ALERT lifts it to at least HIGH, and to CRITICAL when the
      trajectory is adverse (declining or slow).
    """
    slow = velocity_ratio is not None and velocity_ratio < settings.slow_velocity_ratio
    fast = velocity_ratio is not None and velocity_ratio > settings.fast_velocity_ratio

    risk = RiskLevel.LOW
    if direction is Direction.DECREASING:
        if significance.rank >= Significance.MODERATE.rank:
            risk = RiskLevel.HIGH
        else:
            risk = RiskLevel.MODERATE
    elif slow or fast:
        risk = RiskLevel.MODERATE

    if worst_status is Status.WARNING:
        risk = max(risk, RiskLevel.MODERATE, key=lambda r: r.rank)
    elif worst_status is Status.ALERT:
        adverse = direction is Direction.DECREASING or slow
        risk = RiskLevel.CRITICAL if adverse else max(risk, RiskLevel.HIGH, key=lambda r: r.rank)
    return risk


def trend_recommendation(
    indicator: Indicator, direction: Direction, risk: RiskLevel
) -> str:
    return (
        f"{indicator.label} is {DIRECTION_PHRASES[direction]}. "
        f"{RISK_RECOMMENDATIONS[risk]}"
    )


class TrendAnalyzer:
    """
    Derives direction, velocity, acceleration, consistency, significance and
    risk from a series of recorded points for one indicator.

    Usage:
        analyzer = TrendAnalyzer()
        result = analyzer.analyze(points, Indicator.WEIGHT_FOR_AGE)

    Attributes:
        standards (ReferenceStandards): Source of expected velocities.
        settings (TrendSettings): Noise thresholds, p-value cut-offs and ratios.
    """

    def __init__(
        self,
        standards: Optional[ReferenceStandards] = None,
        settings: Optional[TrendSettings] = None,
    ):
        self.standards = standards or load_reference_standards()
        self.settings = settings or TrendSettings()

    def analyze(
        self, series: Sequence[GrowthDataPoint], indicator: Indicator
    ) -> TrendResult:
        """
        Analyze a series of at least 2 points.

        Args:
            series: Recorded points for one indicator, in any order.
            indicator: Indicator the points belong to.

        Returns:
            TrendResult. With exactly 2 points significance is NONE and
            consistency 1.0.

        Raises:
            InsufficientDataError: If fewer than 2 points are given.
        """
        points = ordered_series(series)
        if len(points) < MIN_TREND_POINTS:
            raise InsufficientDataError(MIN_TREND_POINTS, len(points), "trend")
        return self.analyze_arrays(
            np.array([p.age_in_months for p in points], dtype=np.float64),
            np.array([p.value for p in points], dtype=np.float64),
            [p.status for p in points],
            indicator,
        )

    def analyze_arrays(
        self,
        ages: np.ndarray,
        values: np.ndarray,
        statuses: Sequence[Status],
        indicator: Indicator,
    ) -> TrendResult:
        """Trend of values already sorted by age."""
        indicator = Indicator(indicator)
        if len(ages) < MIN_TREND_POINTS:
            raise InsufficientDataError(MIN_TREND_POINTS, len(ages), "trend")

        fit = linear_fit(ages, values)
        noise = self.settings.noise_threshold(indicator)
        if fit.slope > noise:
            direction = Direction.INCREASING
        elif fit.slope < -noise:
            direction = Direction.DECREASING
        else:
            direction = Direction.STABLE

        significance = bucket_significance(fit.p_value, self.settings)
        expected = self.expected_velocity(indicator, ages)
        ratio = fit.slope / expected if expected else None
        worst = max(statuses, key=lambda s: Status(s).rank)
        risk = fold_risk(direction, significance, ratio, Status(worst), self.settings)

        logging.debug(
            f"Trend {indicator.value}: slope={fit.slope:.4f} r2={fit.r_squared:.3f} "
            f"p={fit.p_value} expected={expected} risk={risk.value}"
        )
        return TrendResult(
            indicator=indicator,
            direction=direction,
            velocity=fit.slope,
            acceleration=acceleration(ages, values),
            consistency=fit.r_squared,
            significance=significance,
            p_value=fit.p_value,
            risk_level=risk,
            expected_velocity=expected,
            n_points=len(ages),
            recommendation=trend_recommendation(indicator, direction, risk),
        )

    def expected_velocity(
        self, indicator: Indicator, ages: np.ndarray
    ) -> Optional[float]:
        """Expected monthly velocity at the mid-age of the series, if tabulated."""
        mid_age = (float(np.min(ages)) + float(np.max(ages))) / 2.0
        try:
            return self.standards.expected_velocity(indicator, mid_age).mean
        except (UnsupportedIndicatorError, UnsupportedAgeRange):
            logging.debug(
                f"No expected velocity for {Indicator(indicator).value} at {mid_age} months"
            )
            return None
