"""
Faltering rules registry and detector.

Rules are discovered automatically by introspecting named BaseFalteringRule
subclasses in growthwatch.faltering.rules.
"""

from .alignment import align_series
from .base import AlignedSeries, BaseFalteringRule, FalteringContext, RuleOutcome
from .detector import FalteringDetector, grade_severity
from .rules import registry

__all__ = [
    "AlignedSeries",
    "BaseFalteringRule",
    "FalteringContext",
    "FalteringDetector",
    "RuleOutcome",
    "align_series",
    "grade_severity",
    "registry",
]
