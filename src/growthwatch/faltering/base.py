"""
Base rule class for all growth faltering rules.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config import FalteringSettings, TrendSettings
from ..models import Significance, Status, TrendResult


@dataclass(frozen=True)
class AlignedSeries:
    """
    Weight and height series resampled onto common ages.

    Values and z-scores are linearly interpolated; statuses come from the
    nearest original observation. The latest and lowest z-scores are taken
    from the raw series, before averaging and windowing.
    """

    ages: np.ndarray
    weight: np.ndarray
    height: np.ndarray
    weight_z: np.ndarray
    height_z: np.ndarray
    weight_status: List[Status]
    height_status: List[Status]
    latest_weight_z: float
    latest_height_z: float
    lowest_z: float

    def __len__(self) -> int:
        return len(self.ages)


@dataclass(frozen=True)
class FalteringContext:
    """Everything a rule needs to decide whether it triggers."""

    aligned: AlignedSeries
    weight_trend: TrendResult
    height_trend: TrendResult
    height_velocity_z: Optional[float]
    settings: FalteringSettings
    trend_settings: TrendSettings

    @property
    def height_velocity_ratio(self) -> Optional[float]:
        expected = self.height_trend.expected_velocity
        if not expected:
            return None
        return self.height_trend.velocity / expected


@dataclass(frozen=True)
class RuleOutcome:
    name: str
    significance: Significance
    recommendation: str


class BaseFalteringRule(ABC):
    """
    Abstract base class for all faltering rules.

    Each rule inherits from this class, sets a unique `name` and a
    `recommendation`, and implements `evaluate`. Subclasses are discovered
    automatically by the rule registry.

    Example subclass implementation:
        class LowWeightRule(BaseFalteringRule):
            name = "weight_below_minus_2sd"
            recommendation = "Enrol in nutritional support."

            def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
                if context.aligned.latest_weight_z < context.settings.low_z:
                    return self.triggered(Significance.MODERATE)
                return None
    """

    name: str = ""
    recommendation: str = ""

    @abstractmethod
    def evaluate(self, context: FalteringContext) -> Optional[RuleOutcome]:
        """
        Evaluate the rule on aligned series.

        Args:
            context: Aligned series with their trend results.

        Returns:
            RuleOutcome when the rule triggers, None otherwise.
        """
        pass

    def triggered(self, significance: Significance) -> RuleOutcome:
        return RuleOutcome(self.name, significance, self.recommendation)
