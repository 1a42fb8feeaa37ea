"""
growthwatch: child growth assessment against the WHO Child Growth Standards.

Converts anthropometric measurements into z-scores, percentiles and clinical
status, and analyzes longitudinal series for velocity, trend risk and growth
faltering.
"""

from .engine import (
    GrowthEngine,
    age_in_months,
    analyze_trend,
    assess_all,
    assess_from_dates,
    assess_measurement,
    bmi_for_age,
    classify,
    detect_faltering,
    validate,
    velocity,
)
from .models import GrowthDataPoint, Indicator, Measurement, Sex, Status

__version__ = "0.1.0"

__all__ = [
    "GrowthDataPoint",
    "GrowthEngine",
    "Indicator",
    "Measurement",
    "Sex",
    "Status",
    "age_in_months",
    "analyze_trend",
    "assess_all",
    "assess_from_dates",
    "assess_measurement",
    "bmi_for_age",
    "classify",
    "detect_faltering",
    "validate",
    "velocity",
]
