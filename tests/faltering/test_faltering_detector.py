"""
Tests for cross-indicator faltering detection against the packaged WHO bands
(height velocity 1.5 ± 0.4 cm/month and weight 0.4 kg/month at 6-12 months).
"""

import logging

import numpy as np
import pytest

from growthwatch.config import FalteringSettings
from growthwatch.faltering import (
    AlignedSeries,
    FalteringDetector,
    RuleOutcome,
    grade_severity,
)
from growthwatch.faltering.rules import LowWeightRule
from growthwatch.models import FalteringSeverity, Significance, Status
from growthwatch.trends import TrendAnalyzer
from growthwatch.velocity_comparator import VelocityComparator


@pytest.fixture
def detector(who_standards):  # type: ignore[no-untyped-def]
    return FalteringDetector(
        TrendAnalyzer(who_standards), VelocityComparator(who_standards)
    )


def test_tc001_weight_decline_with_growing_height(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Falling weight with normal height gain is faltering"""
    weight = make_series([7.5, 7.3, 7.0, 6.8], z_scores=[-0.5, -0.9, -1.4, -1.8])
    height = make_series([67.0, 68.0, 69.0, 70.0])
    result = detector.detect(weight, height)
    assert result.sufficient_data
    assert result.has_faltering
    assert result.indicators == ["weight_decline_with_preserved_height"]
    assert result.severity is FalteringSeverity.MODERATE
    assert len(result.recommendations) == 2


def test_tc002_linear_stagnation(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Flat weight and stalled height with slow height velocity"""
    weight = make_series([8.0, 8.0, 8.0, 8.0])
    height = make_series([67.0, 67.02, 67.04, 67.06])
    result = detector.detect(weight, height)
    assert result.indicators == ["linear_growth_stagnation"]
    assert result.severity is FalteringSeverity.MODERATE


def test_tc003_several_rules_with_high_significance(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Stagnation plus low weight-for-age is severe"""
    weight = make_series([8.0, 8.0, 8.0, 8.0], z_scores=[-2.5] * 4)
    height = make_series([67.0, 67.02, 67.04, 67.06])
    result = detector.detect(weight, height)
    assert result.indicators == ["linear_growth_stagnation", "weight_below_minus_2sd"]
    assert result.severity is FalteringSeverity.SEVERE
    assert len(result.recommendations) == 3


def test_tc004_single_moderate_rule_is_mild(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Low height-for-age on its own is mild"""
    weight = make_series([7.5, 7.9, 8.3])
    height = make_series([67.0, 68.5, 70.0], z_scores=[-2.5, -2.5, -2.5])
    result = detector.detect(weight, height)
    assert result.indicators == ["height_below_minus_2sd"]
    assert result.severity is FalteringSeverity.MILD


def test_tc005_very_low_zscore_is_severe(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Any recorded z-score below -3 makes triggered faltering severe"""
    weight = make_series([7.5, 7.9, 8.3])
    height = make_series([67.0, 68.5, 70.0], z_scores=[-3.5, -3.4, -3.2])
    result = detector.detect(weight, height)
    assert result.has_faltering
    assert result.severity is FalteringSeverity.SEVERE


def test_tc006_normal_growth(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Healthy growth triggers nothing"""
    weight = make_series([7.5, 7.9, 8.3, 8.7])
    height = make_series([67.0, 68.5, 70.0, 71.5])
    result = detector.detect(weight, height)
    assert result.sufficient_data
    assert not result.has_faltering
    assert result.severity is FalteringSeverity.NONE
    assert result.indicators == [] and result.recommendations == []


def test_tc007_too_few_points(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Fewer than three points per series is insufficient, not normal"""
    result = detector.detect(make_series([7.5, 7.0]), make_series([67.0, 68.0, 69.0]))
    assert not result.sufficient_data
    assert not result.has_faltering
    assert result.severity is FalteringSeverity.NONE


def test_tc008_series_do_not_overlap(detector, make_series, caplog) -> None:  # type: ignore[no-untyped-def]
    """Series without common ages cannot be evaluated"""
    with caplog.at_level(logging.INFO):
        result = detector.detect(
            make_series([4.0, 5.0, 6.0], start_age=0),
            make_series([72.0, 73.0, 74.0], start_age=10),
        )
    assert not result.sufficient_data
    assert "faltering not evaluated" in caplog.text


def test_tc009_different_sampling_ages(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Height visits need not match weight visits"""
    weight = make_series([7.5, 7.3, 7.0, 6.8])
    heights = make_series([67.0, 68.0, 69.0, 70.0])
    result = detector.detect(weight, [heights[0], heights[2], heights[3]])
    assert result.sufficient_data
    assert "weight_decline_with_preserved_height" in result.indicators


def test_tc010_custom_rule_set(who_standards, make_series) -> None:  # type: ignore[no-untyped-def]
    """Only the configured rules are evaluated"""
    detector = FalteringDetector(
        TrendAnalyzer(who_standards),
        VelocityComparator(who_standards),
        rules=[LowWeightRule],
    )
    weight = make_series([7.5, 7.3, 7.0, 6.8])
    height = make_series([67.0, 68.0, 69.0, 70.0])
    assert not detector.detect(weight, height).has_faltering


def test_tc011_min_points_configurable(who_standards, make_series) -> None:  # type: ignore[no-untyped-def]
    """A stricter minimum rejects shorter series"""
    detector = FalteringDetector(
        TrendAnalyzer(who_standards),
        VelocityComparator(who_standards),
        FalteringSettings(min_points=5),
    )
    weight = make_series([7.5, 7.3, 7.0, 6.8])
    height = make_series([67.0, 68.0, 69.0, 70.0])
    assert not detector.detect(weight, height).sufficient_data


def test_tc012_min_points_lower_bound() -> None:
    """Fewer than three points is never enough"""
    with pytest.raises(ValueError):
        FalteringSettings(min_points=2)


def test_tc013_weight_recorded_after_height_ends(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """Weight visits past the last height visit still drive the low z-score checks"""
    weight = make_series(
        [7.9, 8.3, 8.7, 7.6, 7.0, 6.4],
        z_scores=[0.0, 0.2, 0.3, -2.0, -2.6, -3.4],
        statuses=[Status.NORMAL] * 3 + [Status.WARNING, Status.WARNING, Status.ALERT],
    )
    height = make_series([67.0, 68.5, 70.0])
    result = detector.detect(weight, height)
    assert result.sufficient_data
    assert result.has_faltering
    assert result.indicators == ["weight_below_minus_2sd"]
    assert result.severity is FalteringSeverity.SEVERE


def test_tc014_low_zscore_not_averaged_away(detector, make_series) -> None:  # type: ignore[no-untyped-def]
    """A z-score below -3 counts even when another point shares its age"""
    weight = make_series([7.5, 7.9, 8.3], z_scores=[-2.2, -2.4, -3.2])
    weight.append(weight[-1].model_copy(update={"z_score": -2.2}))
    height = make_series([67.0, 68.5, 70.0])
    result = detector.detect(weight, height)
    assert result.indicators == ["weight_below_minus_2sd"]
    assert result.severity is FalteringSeverity.SEVERE

class TestGradeSeverity:
    """Severity from triggered rule outcomes."""

    settings = FalteringSettings()

    @staticmethod
    def _aligned(low_z: float = -1.0) -> AlignedSeries:
        ages = np.array([6.0, 7.0, 8.0])
        return AlignedSeries(
            ages=ages,
            weight=np.array([7.0, 7.2, 7.4]),
            height=np.array([66.0, 67.0, 68.0]),
            weight_z=np.array([0.0, -0.5, low_z]),
            height_z=np.zeros(3),
            weight_status=[Status.NORMAL] * 3,
            height_status=[Status.NORMAL] * 3,
            latest_weight_z=low_z,
            latest_height_z=0.0,
            lowest_z=min(low_z, 0.0),
        )

    def test_no_outcomes(self) -> None:
        assert grade_severity([], self._aligned(-3.5), self.settings) is FalteringSeverity.NONE

    def test_single_low_significance(self) -> None:
        outcomes = [RuleOutcome("a", Significance.LOW, "")]
        assert grade_severity(outcomes, self._aligned(), self.settings) is FalteringSeverity.MILD

    def test_single_high_significance(self) -> None:
        outcomes = [RuleOutcome("a", Significance.HIGH, "")]
        assert grade_severity(outcomes, self._aligned(), self.settings) is FalteringSeverity.MODERATE

    def test_several_without_high(self) -> None:
        outcomes = [
            RuleOutcome("a", Significance.MODERATE, ""),
            RuleOutcome("b", Significance.NONE, ""),
        ]
        assert grade_severity(outcomes, self._aligned(), self.settings) is FalteringSeverity.MODERATE

    def test_several_with_high(self) -> None:
        outcomes = [
            RuleOutcome("a", Significance.HIGH, ""),
            RuleOutcome("b", Significance.LOW, ""),
        ]
        assert grade_severity(outcomes, self._aligned(), self.settings) is FalteringSeverity.SEVERE

    def test_very_low_zscore(self) -> None:
        outcomes = [RuleOutcome("a", Significance.NONE, "")]
        assert grade_severity(outcomes, self._aligned(-3.1), self.settings) is FalteringSeverity.SEVERE
