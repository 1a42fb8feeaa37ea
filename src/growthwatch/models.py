"""
Typed records exchanged with the growth assessment engine.

Inputs and results are immutable pydantic models. A GrowthDataPoint is never
mutated once recorded; a correction creates a new point.
"""

import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class _RankedEnum(str, Enum):
    """String enum whose declaration order is its severity order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Sex"]:
        if isinstance(value, str):
            return _SEX_ALIASES.get(value.strip().upper())
        return None


_SEX_ALIASES = {
    "M": Sex.MALE,
    "MALE": Sex.MALE,
    "BOY": Sex.MALE,
    "F": Sex.FEMALE,
    "FEMALE": Sex.FEMALE,
    "GIRL": Sex.FEMALE,
}


class Indicator(str, Enum):
    WEIGHT_FOR_AGE = "weight_for_age"
    HEIGHT_FOR_AGE = "height_for_age"
    WEIGHT_FOR_HEIGHT = "weight_for_height"
    HEAD_CIRCUMFERENCE_FOR_AGE = "head_circumference_for_age"
    BMI_FOR_AGE = "bmi_for_age"

    @property
    def label(self) -> str:
        return INDICATOR_LABELS[self]

    @property
    def indexed_by_height(self) -> bool:
        return self is Indicator.WEIGHT_FOR_HEIGHT


INDICATOR_LABELS: Dict[Indicator, str] = {
    Indicator.WEIGHT_FOR_AGE: "Weight-for-age",
    Indicator.HEIGHT_FOR_AGE: "Height-for-age",
    Indicator.WEIGHT_FOR_HEIGHT: "Weight-for-height",
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "Head circumference-for-age",
    Indicator.BMI_FOR_AGE: "BMI-for-age",
}


class Status(_RankedEnum):
    NORMAL = "normal"
    WARNING = "warning"
    ALERT = "alert"


class Direction(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Significance(_RankedEnum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class RiskLevel(_RankedEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class FalteringSeverity(_RankedEnum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class Measurement(BaseModel):
    """One set of raw anthropometric inputs for a child."""

    model_config = ConfigDict(frozen=True)

    weight_kg: float = Field(gt=0, allow_inf_nan=False)
    height_cm: float = Field(gt=0, allow_inf_nan=False)
    head_circumference_cm: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False
    )
    age_in_months: int = Field(ge=0)
    sex: Sex

    @field_validator("sex", mode="before")
    @classmethod
    def parse_sex(cls, v: object) -> Sex:
        return Sex(v)


class ZScoreResult(BaseModel):
    """Point-in-time assessment of one indicator."""

    model_config = ConfigDict(frozen=True)

    indicator: Indicator
    z_score: float
    percentile: float = Field(ge=0, le=100)
    status: Status
    message: str


class GrowthAssessment(BaseModel):
    """All age-indexed and weight-for-height results for one measurement."""

    model_config = ConfigDict(frozen=True)

    weight_for_age: ZScoreResult
    height_for_age: ZScoreResult
    weight_for_height: ZScoreResult
    head_circumference_for_age: Optional[ZScoreResult] = None

    def results(self) -> Dict[Indicator, ZScoreResult]:
        """Present results keyed by indicator."""
        found = [
            self.weight_for_age,
            self.height_for_age,
            self.weight_for_height,
            self.head_circumference_for_age,
        ]
        return {r.indicator: r for r in found if r is not None}

    @property
    def overall_status(self) -> Status:
        return max((r.status for r in self.results().values()), key=lambda s: s.rank)


class BMIResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    bmi: float
    z_score: float
    percentile: float = Field(ge=0, le=100)
    status: Status
    message: str

    @property
    def display_bmi(self) -> float:
        """BMI rounded for presentation; bmi itself keeps full precision."""
        return round(self.bmi, 1)


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    classification: str
    color: str
    priority: int = Field(ge=0)
    status: Status


class GrowthDataPoint(BaseModel):
    """A recorded measurement with its computed z-score and status."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    age_in_months: int = Field(ge=0)
    value: float = Field(gt=0, allow_inf_nan=False)
    z_score: float = Field(allow_inf_nan=False)
    status: Status


class TrendResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    indicator: Indicator
    direction: Direction
    velocity: float
    acceleration: float
    consistency: float = Field(ge=0, le=1)
    significance: Significance
    p_value: Optional[float] = None
    risk_level: RiskLevel
    expected_velocity: Optional[float] = None
    n_points: int
    recommendation: str


class VelocityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    indicator: Indicator
    velocity: float
    expected_velocity: float
    velocity_z_score: float
    percentile_velocity: float = Field(ge=0, le=100)
    status: Status
    message: str


class FalteringResult(BaseModel):
    """
    Outcome of the cross-indicator faltering analysis.

    sufficient_data is False when either series was too short to evaluate;
    in that case has_faltering is False without implying normal growth.
    """

    model_config = ConfigDict(frozen=True)

    has_faltering: bool
    severity: FalteringSeverity
    indicators: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    sufficient_data: bool = True


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    errors: List[FieldError] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages_for(self, field: str) -> List[str]:
        return [e.message for e in self.errors if e.field == field]


class VelocityReferenceBand(BaseModel):
    """Expected monthly increment of a quantity over an age band."""

    model_config = ConfigDict(frozen=True)

    quantity: str
    age_start: float
    age_end: float
    mean: float
    sd: float = Field(gt=0)
