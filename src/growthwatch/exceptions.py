"""
Exception hierarchy for growth assessment.

Domain-range failures (age outside the reference table, too few points for a
trend) are raised as subclasses of ValueError so callers can treat them like
any other bad argument. A broken reference table is a RuntimeError: the
engine refuses to serve assessments rather than return wrong numbers.

Input validation problems are never raised; see growthwatch.validation.
"""

from typing import Any, Dict, Optional


class GrowthEngineError(Exception):
    """Base exception for all growth assessment errors."""

    def __init__(
        self,
        message: str,
        code: str = "GROWTH_ENGINE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {"error": self.code, "message": self.message, "details": self.details}


class InvalidDateRange(GrowthEngineError, ValueError):
    """Observation date precedes the birth date."""

    def __init__(self, birth_date: Any, observation_date: Any):
        super().__init__(
            f"Observation date {observation_date} is before birth date {birth_date}",
            code="INVALID_DATE_RANGE",
            details={
                "birth_date": str(birth_date),
                "observation_date": str(observation_date),
            },
        )


class OutOfReferenceRange(GrowthEngineError, ValueError):
    """Lookup falls outside the tabulated reference range."""

    def __init__(
        self,
        message: str,
        code: str,
        indicator: str,
        value: float,
        lower: float,
        upper: float,
    ):
        super().__init__(
            message,
            code=code,
            details={
                "indicator": indicator,
                "value": value,
                "lower": lower,
                "upper": upper,
            },
        )
        self.indicator = indicator
        self.value = value
        self.lower = lower
        self.upper = upper


class UnsupportedAgeRange(OutOfReferenceRange):
    """Age lies outside the reference table (typically 0-60 months)."""

    def __init__(self, indicator: str, age: float, lower: float, upper: float):
        super().__init__(
            f"Age {age} months is outside the {indicator} reference range "
            f"[{lower:g}, {upper:g}] months",
            code="UNSUPPORTED_AGE_RANGE",
            indicator=indicator,
            value=age,
            lower=lower,
            upper=upper,
        )


class UnsupportedHeightRange(OutOfReferenceRange):
    """Height lies outside the weight-for-height reference table."""

    def __init__(self, indicator: str, height: float, lower: float, upper: float):
        super().__init__(
            f"Height {height} cm is outside the {indicator} reference range "
            f"[{lower:g}, {upper:g}] cm",
            code="UNSUPPORTED_HEIGHT_RANGE",
            indicator=indicator,
            value=height,
            lower=lower,
            upper=upper,
        )


class InsufficientDataError(GrowthEngineError, ValueError):
    """Series too short for the requested analysis."""

    def __init__(self, required: int, received: int, analysis: str = "trend"):
        super().__init__(
            f"{analysis.capitalize()} analysis requires at least {required} "
            f"points, got {received}",
            code="INSUFFICIENT_DATA",
            details={"required": required, "received": received, "analysis": analysis},
        )


class UnsupportedIndicatorError(GrowthEngineError, ValueError):
    """Indicator has no reference data for the requested operation."""

    def __init__(self, indicator: str, operation: str):
        super().__init__(
            f"Indicator '{indicator}' is not supported for {operation}",
            code="UNSUPPORTED_INDICATOR",
            details={"indicator": indicator, "operation": operation},
        )


class ReferenceDataError(GrowthEngineError, RuntimeError):
    """Reference table is missing, malformed or incomplete."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="REFERENCE_DATA_ERROR", details=details)
