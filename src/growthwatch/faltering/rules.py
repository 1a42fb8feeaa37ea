"""
Cross-indicator faltering rules.

Each rule looks at aligned weight and height series and their trends, and
reports the pattern it detects together with how much statistical weight the
pattern carries.
"""

from abc import abstractmethod
from typing import Dict, List, Optional, Type
import logging

from ..models import Direction, Significance
from .base import BaseFalteringRule, FalteringContext, RuleOutcome

_NOT_RISING = (Direction.DECREASING, Direction.STABLE)


class WeightDeclineRule(BaseFalteringRule):
    """Weight falling while height holds or keeps growing (wasting signal)."""

    name = "weight_decline_with_preserved_height"
    recommendation = (
        "Weight is falling while height is maintained: review energy intake "
        "and screen for acute illness."
    )

    def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
        if context.weight_trend.direction is not Direction.DECREASING:
            return None
        if context.height_trend.direction is Direction.DECREASING:
            return None
        return self.triggered(context.weight_trend.significance)


class LinearStagnationRule(BaseFalteringRule):
    """
    Weight and height both flat or falling with height velocity below
    expected (stunting-risk signal).
    """

    name = "linear_growth_stagnation"
    recommendation = (
        "Weight and height gain have both stalled: assess diet quality and "
        "recurrent infections, and refer for stunting evaluation."
    )

    def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
        if context.weight_trend.direction not in _NOT_RISING:
            return None
        if context.height_trend.direction not in _NOT_RISING:
            return None

        velocity_z = context.height_velocity_z
        ratio = context.height_velocity_ratio
        if velocity_z is None and ratio is None:
            logging.debug("No expected height velocity available; stagnation rule skipped")
            return None
        slow = (velocity_z is not None and velocity_z < context.settings.slow_velocity_z) or (
            ratio is not None and ratio < context.trend_settings.slow_velocity_ratio
        )
        if not slow:
            return None
        return self.triggered(context.height_trend.significance)


class _LatestZScoreRule(BaseFalteringRule):
    """Shared logic for rules on the most recent recorded z-score."""

    @abstractmethod
    def latest_z(self, context: FalteringContext) -> float:
        pass

    def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
        z = self.latest_z(context)
        if z >= context.settings.low_z:
            return None
        if z < context.settings.severe_z:
            return self.triggered(Significance.HIGH)
        return self.triggered(Significance.MODERATE)


class LowWeightRule(_LatestZScoreRule):
    name = "weight_below_minus_2sd"
    recommendation = (
        "Weight-for-age is below -2 SD: enrol in nutritional support and "
        "weigh monthly."
    )

    def latest_z(self, context: FalteringContext) -> float:
        return context.aligned.latest_weight_z


class LowHeightRule(_LatestZScoreRule):
    name = "height_below_minus_2sd"
    recommendation = "Height-for-age is below -2 SD: refer for stunting assessment."

    def latest_z(self, context: FalteringContext) -> float:
        return context.aligned.latest_height_z


def _concrete_rules(cls: Type[BaseFalteringRule]) -> List[Type[BaseFalteringRule]]:
    found = []
    for sub in cls.__subclasses__():
        if sub.name:
            found.append(sub)
        found.extend(_concrete_rules(sub))
    return found


def _build_registry() -> Dict[str, Type[BaseFalteringRule]]:
    """Build the registry by discovering named BaseFalteringRule subclasses."""
    registry = {}
    for cls in _concrete_rules(BaseFalteringRule):
        if cls.name in registry:
            raise ValueError(f"Duplicate faltering rule name '{cls.name}'")
        registry[cls.name] = cls
    return registry


# Global registry instance
registry = _build_registry()
