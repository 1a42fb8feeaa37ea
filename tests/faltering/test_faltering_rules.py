import dataclasses
from typing import Optional

import numpy as np
import pytest

from growthwatch.config import FalteringSettings, TrendSettings
from growthwatch.faltering import (
    AlignedSeries,
    BaseFalteringRule,
    FalteringContext,
    RuleOutcome,
    registry,
)
from growthwatch.faltering.rules import (
    LinearStagnationRule,
    LowHeightRule,
    LowWeightRule,
    WeightDeclineRule,
    _build_registry,
    _LatestZScoreRule,
)
from growthwatch.models import (
    Direction,
    Indicator,
    RiskLevel,
    Significance,
    Status,
    TrendResult,
)


def _trend(
    indicator: Indicator,
    direction: Direction,
    significance: Significance = Significance.NONE,
    velocity: float = 0.0,
    expected: Optional[float] = None,
) -> TrendResult:
    return TrendResult(
        indicator=indicator,
        direction=direction,
        velocity=velocity,
        acceleration=0.0,
        consistency=0.5,
        significance=significance,
        p_value=None,
        risk_level=RiskLevel.LOW,
        expected_velocity=expected,
        n_points=3,
        recommendation="",
    )


def _context(
    weight_direction: Direction = Direction.INCREASING,
    height_direction: Direction = Direction.INCREASING,
    weight_z: float = 0.0,
    height_z: float = 0.0,
    height_velocity: float = 1.5,
    expected_height_velocity: Optional[float] = 1.5,
    height_velocity_z: Optional[float] = 0.0,
    significance: Significance = Significance.MODERATE,
) -> FalteringContext:
    aligned = AlignedSeries(
        ages=np.array([6.0, 7.0, 8.0]),
        weight=np.array([7.0, 7.2, 7.4]),
        height=np.array([66.0, 67.0, 68.0]),
        weight_z=np.array([0.0, 0.0, weight_z]),
        height_z=np.array([0.0, 0.0, height_z]),
        weight_status=[Status.NORMAL] * 3,
        height_status=[Status.NORMAL] * 3,
        latest_weight_z=weight_z,
        latest_height_z=height_z,
        lowest_z=min(weight_z, height_z, 0.0),
    )
    return FalteringContext(
        aligned=aligned,
        weight_trend=_trend(Indicator.WEIGHT_FOR_AGE, weight_direction, significance),
        height_trend=_trend(
            Indicator.HEIGHT_FOR_AGE,
            height_direction,
            significance,
            velocity=height_velocity,
            expected=expected_height_velocity,
        ),
        height_velocity_z=height_velocity_z,
        settings=FalteringSettings(),
        trend_settings=TrendSettings(),
    )


def test_tc001_registry_discovers_rules() -> None:
    """All named rules are registered in declaration order"""
    assert list(registry) == [
        "weight_decline_with_preserved_height",
        "linear_growth_stagnation",
        "weight_below_minus_2sd",
        "height_below_minus_2sd",
    ]
    assert all(issubclass(cls, BaseFalteringRule) for cls in registry.values())


def test_tc002_base_rule_is_abstract() -> None:
    """BaseFalteringRule cannot be instantiated"""
    with pytest.raises(TypeError):
        BaseFalteringRule()  # type: ignore[abstract]


def test_tc003_duplicate_names_rejected() -> None:
    """Two rules sharing a name are a configuration error"""

    class Duplicate(BaseFalteringRule):
        name = "weight_below_minus_2sd"

        def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
            return None

    with pytest.raises(ValueError, match="Duplicate faltering rule name"):
        _build_registry()


class TestWeightDeclineRule:
    """Falling weight while height holds."""

    def test_triggers_with_weight_significance(self) -> None:
        context = _context(Direction.DECREASING, Direction.STABLE)
        outcome = WeightDeclineRule().evaluate(context)
        assert outcome is not None
        assert outcome.name == "weight_decline_with_preserved_height"
        assert outcome.significance is Significance.MODERATE

    def test_height_also_falling(self) -> None:
        context = _context(Direction.DECREASING, Direction.DECREASING)
        assert WeightDeclineRule().evaluate(context) is None

    def test_weight_rising(self) -> None:
        assert WeightDeclineRule().evaluate(_context()) is None


class TestLinearStagnationRule:
    """Both measurements flat with slow height velocity."""

    def test_triggers_on_slow_velocity_z(self) -> None:
        context = _context(
            Direction.STABLE, Direction.STABLE, height_velocity=1.2, height_velocity_z=-1.5
        )
        outcome = LinearStagnationRule().evaluate(context)
        assert outcome is not None
        assert outcome.significance is Significance.MODERATE

    def test_triggers_on_slow_ratio(self) -> None:
        context = _context(
            Direction.STABLE,
            Direction.DECREASING,
            height_velocity=0.5,
            height_velocity_z=None,
        )
        assert LinearStagnationRule().evaluate(context) is not None

    def test_velocity_near_expected(self) -> None:
        context = _context(
            Direction.STABLE, Direction.STABLE, height_velocity=1.4, height_velocity_z=-0.25
        )
        assert LinearStagnationRule().evaluate(context) is None

    def test_height_rising(self) -> None:
        context = _context(Direction.STABLE, Direction.INCREASING, height_velocity_z=-2.0)
        assert LinearStagnationRule().evaluate(context) is None

    def test_no_reference_velocity(self) -> None:
        context = _context(
            Direction.STABLE,
            Direction.STABLE,
            expected_height_velocity=None,
            height_velocity_z=None,
        )
        assert LinearStagnationRule().evaluate(context) is None


@pytest.mark.parametrize(
    "z, expected",
    [
        (-1.9, None),
        (-2.0, None),
        (-2.4, Significance.MODERATE),
        (-3.0, Significance.MODERATE),
        (-3.2, Significance.HIGH),
    ],
)
def test_tc004_latest_zscore_rules(z: float, expected: Optional[Significance]) -> None:
    """Latest z-score below -2 triggers; below -3 is highly significant"""
    for rule, context in (
        (LowWeightRule(), _context(weight_z=z)),
        (LowHeightRule(), _context(height_z=z)),
    ):
        outcome = rule.evaluate(context)
        if expected is None:
            assert outcome is None
        else:
            assert outcome is not None and outcome.significance is expected


def test_tc005_height_velocity_ratio() -> None:
    """Observed over expected height velocity"""
    assert np.isclose(_context(height_velocity=0.75).height_velocity_ratio, 0.5)
    assert _context(expected_height_velocity=None).height_velocity_ratio is None


def test_tc006_latest_zscore_rule_is_abstract() -> None:
    """The shared z-score rule needs a concrete latest_z"""
    with pytest.raises(TypeError):
        _LatestZScoreRule()  # type: ignore[abstract]


def test_tc007_latest_zscore_from_raw_series() -> None:
    """Low z-score rules read the raw latest z-score, not the aligned one"""
    context = _context()
    aligned = dataclasses.replace(context.aligned, latest_weight_z=-2.5)
    outcome = LowWeightRule().evaluate(dataclasses.replace(context, aligned=aligned))
    assert outcome is not None
    assert outcome.significance is Significance.MODERATE
    assert LowHeightRule().evaluate(dataclasses.replace(context, aligned=aligned)) is None
