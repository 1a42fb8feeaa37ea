"""
Growth faltering detection across weight and height series.

Weight and height are analyzed together because the combination carries the
signal: falling weight with preserved height points to wasting, while both
stalling with slow height gain points to stunting risk. Neither shows up in a
single-indicator trend.
"""

from typing import List, Optional, Sequence, Type
import logging

from ..config import FalteringSettings, TrendSettings
from ..exceptions import UnsupportedAgeRange
from ..models import (
    FalteringResult,
    FalteringSeverity,
    GrowthDataPoint,
    Indicator,
    Significance,
)
from ..trends import TrendAnalyzer
from ..velocity_comparator import VelocityComparator
from .alignment import align_series
from .base import AlignedSeries, BaseFalteringRule, FalteringContext, RuleOutcome
from .rules import registry

SEVERITY_RECOMMENDATIONS = {
    FalteringSeverity.MILD: "Re-measure within a month to confirm the trend.",
    FalteringSeverity.MODERATE: "Schedule a follow-up with a health worker within two weeks.",
    FalteringSeverity.SEVERE: "Refer for urgent medical and nutritional evaluation.",
}


def _insufficient_data() -> FalteringResult:
    return FalteringResult(
        has_faltering=False,
        severity=FalteringSeverity.NONE,
        indicators=[],
        recommendations=[],
        sufficient_data=False,
    )


def grade_severity(
    outcomes: Sequence[RuleOutcome], aligned: AlignedSeries, settings: FalteringSettings
) -> FalteringSeverity:
    """
    Severity of the triggered rules.

    NONE without outcomes. SEVERE when any recorded z-score is below
    severe_z, or several rules trigger with at least one of HIGH
    significance. MILD for a single rule of at most MODERATE significance.
    MODERATE otherwise.
    """
    if not outcomes:
        return FalteringSeverity.NONE
    if aligned.lowest_z < settings.severe_z:
        return FalteringSeverity.SEVERE
    any_high = any(o.significance is Significance.HIGH for o in outcomes)
    if len(outcomes) > 1 and any_high:
        return FalteringSeverity.SEVERE
    if len(outcomes) == 1 and not any_high:
        return FalteringSeverity.MILD
    return FalteringSeverity.MODERATE


class FalteringDetector:
    """
    Applies the registered faltering rules to a child's weight and height series.

    Usage:
        detector = FalteringDetector()
        result = detector.detect(weight_points, height_points)

    Attributes:
        trend_analyzer (TrendAnalyzer): Analyzer applied to each aligned series.
        velocity_comparator (VelocityComparator): Scores height velocity.
        settings (FalteringSettings): Minimum points and z-score cut-offs.
        rules (List[BaseFalteringRule]): Rule instances, in registry order.
    """

    def __init__(
        self,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        velocity_comparator: Optional[VelocityComparator] = None,
        settings: Optional[FalteringSettings] = None,
        rules: Optional[Sequence[Type[BaseFalteringRule]]] = None,
    ):
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.velocity_comparator = velocity_comparator or VelocityComparator(
            self.trend_analyzer.standards
        )
        self.settings = settings or FalteringSettings()
        rule_classes = rules if rules is not None else list(registry.values())
        self.rules: List[BaseFalteringRule] = [cls() for cls in rule_classes]

    @property
    def trend_settings(self) -> TrendSettings:
        return self.trend_analyzer.settings

    def detect(
        self,
        weight_series: Sequence[GrowthDataPoint],
        height_series: Sequence[GrowthDataPoint],
    ) -> FalteringResult:
        """
        Detect faltering patterns.

        Args:
            weight_series: Weight-for-age points (kg), any order.
            height_series: Height-for-age points (cm), any order; sampling ages
                need not match the weight series.

        Returns:
            FalteringResult. With fewer than min_points in either series, or
            fewer aligned ages, has_faltering is False, severity NONE and
            sufficient_data False.
        """
        minimum = self.settings.min_points
        if len(weight_series) < minimum or len(height_series) < minimum:
            logging.debug(
                f"Faltering needs {minimum} points per series, got "
                f"{len(weight_series)} weight / {len(height_series)} height"
            )
            return _insufficient_data()

        aligned = align_series(weight_series, height_series)
        if len(aligned) < minimum:
            logging.info(
                f"Only {len(aligned)} aligned ages in the overlap of weight and "
                "height series; faltering not evaluated"
            )
            return _insufficient_data()

        context = self._context(aligned)
        outcomes = []
        for rule in self.rules:
            outcome = rule.evaluate(context)
            logging.debug(f"Faltering rule {rule.name}: {outcome}")
            if outcome is not None:
                outcomes.append(outcome)

        severity = grade_severity(outcomes, aligned, self.settings)
        recommendations: List[str] = []
        for outcome in outcomes:
            recommendations.append(outcome.recommendation)
        if severity in SEVERITY_RECOMMENDATIONS:
            recommendations.append(SEVERITY_RECOMMENDATIONS[severity])

        return FalteringResult(
            has_faltering=bool(outcomes),
            severity=severity,
            indicators=[o.name for o in outcomes],
            recommendations=list(dict.fromkeys(recommendations)),
            sufficient_data=True,
        )

    def _context(self, aligned: AlignedSeries) -> FalteringContext:
        weight_trend = self.trend_analyzer.analyze_arrays(
            aligned.ages, aligned.weight, aligned.weight_status, Indicator.WEIGHT_FOR_AGE
        )
        height_trend = self.trend_analyzer.analyze_arrays(
            aligned.ages, aligned.height, aligned.height_status, Indicator.HEIGHT_FOR_AGE
        )
        try:
            height_velocity_z: Optional[float] = self.velocity_comparator.compare_arrays(
                aligned.ages, aligned.height, Indicator.HEIGHT_FOR_AGE
            ).velocity_z_score
        except UnsupportedAgeRange:
            height_velocity_z = None
        return FalteringContext(
            aligned=aligned,
            weight_trend=weight_trend,
            height_trend=height_trend,
            height_velocity_z=height_velocity_z,
            settings=self.settings,
            trend_settings=self.trend_settings,
        )
