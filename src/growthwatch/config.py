"""
Configuration models for the growth assessment engine.

All thresholds the engine applies are collected here as pydantic models so a
deployment can override them (for example to match cut-offs of an existing
system) without touching the algorithms.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Indicator


class StatusThresholds(BaseModel):
    """
    Absolute z-score cut-offs for the three-tier status.

    |z| <= warning is NORMAL, warning < |z| <= alert is WARNING and anything
    beyond alert is ALERT. Boundaries belong to the lower-severity tier.
    """

    model_config = ConfigDict(frozen=True)

    warning: float = Field(default=2.0, gt=0)
    alert: float = Field(default=3.0, gt=0)

    @field_validator("alert", mode="after")
    @classmethod
    def warning_lt_alert(cls, v: float, info: Any) -> float:
        """Validate that warning < alert."""
        if info.data.get("warning", float("inf")) >= v:
            raise ValueError("warning threshold must be < alert threshold")
        return v


class MeasurementRange(BaseModel):
    """
    Plausible interval for a raw measurement.

    The lower bound is exclusive unless lower_inclusive is set; the upper
    bound is always inclusive.
    """

    model_config = ConfigDict(frozen=True)

    lower: float
    upper: float
    lower_inclusive: bool = False

    @field_validator("upper", mode="after")
    @classmethod
    def lower_lt_upper(cls, v: float, info: Any) -> float:
        """Validate that lower < upper."""
        if v <= info.data.get("lower", float("inf")):
            raise ValueError("upper must be > lower")
        return v

    def contains(self, value: float) -> bool:
        above = value >= self.lower if self.lower_inclusive else value > self.lower
        return above and value <= self.upper

    def describe(self) -> str:
        opening = "[" if self.lower_inclusive else "("
        return f"{opening}{self.lower:g}, {self.upper:g}]"


class MeasurementLimits(BaseModel):
    """Bounds enforced by the measurement validator."""

    model_config = ConfigDict(frozen=True)

    weight: MeasurementRange = MeasurementRange(lower=0.0, upper=50.0)
    height: MeasurementRange = MeasurementRange(lower=0.0, upper=150.0)
    head_circumference: MeasurementRange = MeasurementRange(lower=0.0, upper=70.0)
    bmi: MeasurementRange = MeasurementRange(
        lower=5.0, upper=40.0, lower_inclusive=True
    )
    max_age_months: int = Field(default=60, gt=0)


class TrendSettings(BaseModel):
    """
    Parameters of the longitudinal trend analysis.

    Attributes:
        weight_noise: Slope magnitude (kg/month) below which weight is STABLE.
        height_noise: Same for height (cm/month).
        head_circumference_noise: Same for head circumference (cm/month).
        bmi_noise: Same for BMI (kg/m² per month).
        high_p: p-values below this are HIGH significance.
        moderate_p: p-values below this are at least MODERATE.
        low_p: p-values below this are at least LOW; the rest is NONE.
        slow_velocity_ratio: Observed/expected velocity below which growth is slow.
        fast_velocity_ratio: Observed/expected velocity above which growth is fast.
    """

    model_config = ConfigDict(frozen=True)

    weight_noise: float = Field(default=0.01, ge=0)
    height_noise: float = Field(default=0.05, ge=0)
    head_circumference_noise: float = Field(default=0.02, ge=0)
    bmi_noise: float = Field(default=0.02, ge=0)
    high_p: float = Field(default=0.01, gt=0, lt=1)
    moderate_p: float = Field(default=0.05, gt=0, lt=1)
    low_p: float = Field(default=0.1, gt=0, lt=1)
    slow_velocity_ratio: float = Field(default=0.5, gt=0)
    fast_velocity_ratio: float = Field(default=2.0, gt=0)

    @field_validator("moderate_p", mode="after")
    @classmethod
    def high_lt_moderate(cls, v: float, info: Any) -> float:
        if info.data.get("high_p", float("inf")) >= v:
            raise ValueError("p-value cut-offs must be strictly increasing")
        return v

    @field_validator("low_p", mode="after")
    @classmethod
    def moderate_lt_low(cls, v: float, info: Any) -> float:
        if info.data.get("moderate_p", float("inf")) >= v:
            raise ValueError("p-value cut-offs must be strictly increasing")
        return v

    @field_validator("fast_velocity_ratio", mode="after")
    @classmethod
    def slow_lt_fast(cls, v: float, info: Any) -> float:
        if info.data.get("slow_velocity_ratio", float("inf")) >= v:
            raise ValueError("slow_velocity_ratio must be < fast_velocity_ratio")
        return v

    def noise_threshold(self, indicator: Indicator) -> float:
        """Return the STABLE band half-width for an indicator's measured quantity."""
        if indicator is Indicator.BMI_FOR_AGE:
            return self.bmi_noise
        if indicator is Indicator.HEIGHT_FOR_AGE:
            return self.height_noise
        if indicator is Indicator.HEAD_CIRCUMFERENCE_FOR_AGE:
            return self.head_circumference_noise
        return self.weight_noise


class FalteringSettings(BaseModel):
    """Parameters of the cross-indicator faltering rules."""

    model_config = ConfigDict(frozen=True)

    min_points: int = Field(default=3, ge=3)
    low_z: float = -2.0
    severe_z: float = -3.0
    slow_velocity_z: float = -1.0

    @field_validator("low_z", mode="after")
    @classmethod
    def low_z_negative(cls, v: float) -> float:
        if v >= 0:
            raise ValueError("low_z must be negative")
        return v

    @field_validator("severe_z", mode="after")
    @classmethod
    def severe_below_low(cls, v: float, info: Any) -> float:
        if v >= info.data.get("low_z", float("-inf")):
            raise ValueError("severe_z must be < low_z")
        return v


class EngineConfig(BaseModel):
    """
    Top-level configuration aggregating every tunable of the engine.

    Usage:
        config = EngineConfig(thresholds={"warning": 2.0, "alert": 3.0})
        engine = GrowthEngine(config=config)
    """

    model_config = ConfigDict(frozen=True)

    thresholds: StatusThresholds = StatusThresholds()
    limits: MeasurementLimits = MeasurementLimits()
    trend: TrendSettings = TrendSettings()
    faltering: FalteringSettings = FalteringSettings()
