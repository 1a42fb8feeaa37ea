"""
Growth classification and cross-indicator rollup.

Maps a z-score to a named classification, a color token and a priority the
UI layer can sort by. Priority follows status severity (NORMAL=0, WARNING=1,
ALERT=2), so it never decreases as |z| grows.
"""

from typing import Dict, Mapping, Optional, Tuple, Union

from .config import StatusThresholds
from .models import Classification, GrowthAssessment, Indicator, Status, ZScoreResult
from .zscores import status_for_zscore

STATUS_COLORS: Dict[Status, str] = {
    Status.NORMAL: "green",
    Status.WARNING: "orange",
    Status.ALERT: "red",
}

# (alert below, warning below, normal, warning above, alert above)
CLASSIFICATION_NAMES: Dict[Optional[Indicator], Tuple[str, str, str, str, str]] = {
    None: ("severely_low", "low", "normal", "high", "severely_high"),
    Indicator.WEIGHT_FOR_AGE: (
        "severely_underweight",
        "underweight",
        "normal",
        "overweight",
        "severely_overweight",
    ),
    Indicator.HEIGHT_FOR_AGE: (
        "severely_stunted",
        "stunted",
        "normal",
        "tall",
        "very_tall",
    ),
    Indicator.WEIGHT_FOR_HEIGHT: (
        "severely_wasted",
        "wasted",
        "normal",
        "overweight",
        "obese",
    ),
    Indicator.BMI_FOR_AGE: (
        "severely_wasted",
        "wasted",
        "normal",
        "overweight",
        "obese",
    ),
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: (
        "microcephaly_risk",
        "small_head",
        "normal",
        "large_head",
        "macrocephaly_risk",
    ),
}


def classify(
    z_score: float,
    indicator: Optional[Indicator] = None,
    thresholds: Optional[StatusThresholds] = None,
) -> Classification:
    """
    Classify a z-score.

    Args:
        z_score: Z-score to classify.
        indicator: Indicator for specific naming (generic names when None).
        thresholds: Status cut-offs (defaults to ±2/±3).

    Returns:
        Classification with name, color token, priority and status.
    """
    status = status_for_zscore(z_score, thresholds)
    names = CLASSIFICATION_NAMES[Indicator(indicator) if indicator is not None else None]
    if status is Status.NORMAL:
        name = names[2]
    elif status is Status.WARNING:
        name = names[1] if z_score < 0 else names[3]
    else:
        name = names[0] if z_score < 0 else names[4]
    return Classification(
        classification=name,
        color=STATUS_COLORS[status],
        priority=status.rank,
        status=status,
    )


def rollup(
    results: Union[GrowthAssessment, Mapping[Indicator, Optional[ZScoreResult]]],
) -> Status:
    """
    Overall status: the worst status among the present indicators.

    Args:
        results: A GrowthAssessment, or a mapping of indicator to result where
            absent indicators may be None.

    Returns:
        Highest-priority Status.

    Raises:
        ValueError: If no indicator is present.
    """
    if isinstance(results, GrowthAssessment):
        return results.overall_status
    present = [r.status for r in results.values() if r is not None]
    if not present:
        raise ValueError("Rollup requires at least one indicator result")
    return max(present, key=lambda s: s.rank)
