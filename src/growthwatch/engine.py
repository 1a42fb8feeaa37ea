"""
Growth assessment engine facade.

GrowthEngine wires the reference standards, configuration and components
together and exposes the operations callers use. The module-level functions
delegate to a default engine built from the packaged WHO tables on first use.
"""

from typing import Any, Dict, Optional, Sequence, Union
import datetime
import functools

from pydantic import ValidationError

from . import ages, validation
from .bmi import BMIEngine
from .classifier import classify as _classify
from .classifier import rollup
from .config import EngineConfig
from .faltering import FalteringDetector
from .models import (
    BMIResult,
    Classification,
    FalteringResult,
    GrowthAssessment,
    GrowthDataPoint,
    Indicator,
    Measurement,
    Sex,
    Status,
    TrendResult,
    ValidationResult,
    VelocityResult,
    ZScoreResult,
)
from .reference import ReferenceStandards, load_reference_standards
from .trends import TrendAnalyzer
from .velocity_comparator import VelocityComparator
from .zscores import ZScoreEngine


class GrowthEngine:
    """
    Entry point for point-in-time and longitudinal growth assessment.

    Usage:
        engine = GrowthEngine()
        months = engine.age_in_months(date(2023, 1, 1), date(2023, 7, 1))
        assessment = engine.assess_all(7.9, 67.6, 43.3, months, "M")

    Attributes:
        standards (ReferenceStandards): Reference tables shared by all components.
        config (EngineConfig): Thresholds and settings.
    """

    def __init__(
        self,
        standards: Optional[ReferenceStandards] = None,
        config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
    ):
        """
        Initialize the engine and its components.

        Args:
            standards: Reference tables (defaults to the packaged WHO tables).
            config: EngineConfig or a dict of its fields.

        Raises:
            ValueError: If configuration is invalid per EngineConfig validation
        """
        try:
            if config is None:
                self.config = EngineConfig()
            elif isinstance(config, EngineConfig):
                self.config = config
            else:
                self.config = EngineConfig(**config)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        self.standards = standards or load_reference_standards()
        self.zscore_engine = ZScoreEngine(self.standards, self.config.thresholds)
        self.bmi_engine = BMIEngine(self.zscore_engine)
        self.trend_analyzer = TrendAnalyzer(self.standards, self.config.trend)
        self.velocity_comparator = VelocityComparator(
            self.standards, self.config.thresholds
        )
        self.faltering_detector = FalteringDetector(
            self.trend_analyzer, self.velocity_comparator, self.config.faltering
        )

    def age_in_months(
        self, birth_date: datetime.date, observation_date: datetime.date
    ) -> int:
        return ages.age_in_months(birth_date, observation_date)

    def validate(
        self,
        weight: object,
        height: object,
        head_circumference: object = None,
        age_in_months: object = None,
        **dates: Any,
    ) -> ValidationResult:
        """Validate raw inputs; accepts observation_date, birth_date and today."""
        return validation.validate(
            weight,
            height,
            head_circumference,
            age_in_months,
            limits=self.config.limits,
            **dates,
        )

    def assess(
        self, value: float, indicator: Indicator, sex: Sex, x: float
    ) -> ZScoreResult:
        return self.zscore_engine.assess(value, indicator, sex, x)

    def assess_all(
        self,
        weight: float,
        height: float,
        head_circumference: Optional[float],
        age_in_months: float,
        sex: Sex,
    ) -> GrowthAssessment:
        return self.zscore_engine.assess_all(
            weight, height, head_circumference, age_in_months, sex
        )

    def assess_measurement(self, measurement: Measurement) -> GrowthAssessment:
        return self.assess_all(
            measurement.weight_kg,
            measurement.height_cm,
            measurement.head_circumference_cm,
            measurement.age_in_months,
            measurement.sex,
        )

    def assess_from_dates(
        self,
        weight: float,
        height: float,
        head_circumference: Optional[float],
        birth_date: datetime.date,
        observation_date: datetime.date,
        sex: Sex,
    ) -> GrowthAssessment:
        """
        Assess a measurement dated by birth and observation instead of age.

        Raises:
            InvalidDateRange: If observation_date is before birth_date.
            pydantic.ValidationError: If a measurement is not finite and positive.
        """
        measurement = Measurement(
            weight_kg=weight,
            height_cm=height,
            head_circumference_cm=head_circumference,
            age_in_months=self.age_in_months(birth_date, observation_date),
            sex=sex,
        )
        return self.assess_measurement(measurement)

    def classify(
        self, z_score: float, indicator: Optional[Indicator] = None
    ) -> Classification:
        return _classify(z_score, indicator, self.config.thresholds)

    def overall_status(self, assessment: GrowthAssessment) -> Status:
        return rollup(assessment)

    def bmi_for_age(
        self, weight: float, height: float, age_in_months: float, sex: Sex
    ) -> BMIResult:
        return self.bmi_engine.bmi_for_age(weight, height, age_in_months, sex)

    def analyze_trend(
        self, series: Sequence[GrowthDataPoint], indicator: Indicator
    ) -> TrendResult:
        return self.trend_analyzer.analyze(series, indicator)

    def velocity(
        self, series: Sequence[GrowthDataPoint], indicator: Indicator
    ) -> VelocityResult:
        return self.velocity_comparator.compare(series, indicator)

    def detect_faltering(
        self,
        weight_series: Sequence[GrowthDataPoint],
        height_series: Sequence[GrowthDataPoint],
    ) -> FalteringResult:
        return self.faltering_detector.detect(weight_series, height_series)


@functools.lru_cache(maxsize=1)
def default_engine() -> GrowthEngine:
    """Engine over the packaged WHO tables with default configuration."""
    return GrowthEngine()


def age_in_months(birth_date: datetime.date, observation_date: datetime.date) -> int:
    return ages.age_in_months(birth_date, observation_date)


def validate(
    weight: object,
    height: object,
    head_circumference: object = None,
    age_in_months: object = None,
    **dates: Any,
) -> ValidationResult:
    return validation.validate(weight, height, head_circumference, age_in_months, **dates)


def assess_all(
    weight: float,
    height: float,
    head_circumference: Optional[float],
    age_in_months: float,
    sex: Sex,
) -> GrowthAssessment:
    return default_engine().assess_all(
        weight, height, head_circumference, age_in_months, sex
    )


def assess_measurement(measurement: Measurement) -> GrowthAssessment:
    return default_engine().assess_measurement(measurement)


def assess_from_dates(
    weight: float,
    height: float,
    head_circumference: Optional[float],
    birth_date: datetime.date,
    observation_date: datetime.date,
    sex: Sex,
) -> GrowthAssessment:
    return default_engine().assess_from_dates(
        weight, height, head_circumference, birth_date, observation_date, sex
    )


def classify(z_score: float, indicator: Optional[Indicator] = None) -> Classification:
    return _classify(z_score, indicator)


def bmi_for_age(
    weight: float, height: float, age_in_months: float, sex: Sex
) -> BMIResult:
    return default_engine().bmi_for_age(weight, height, age_in_months, sex)


def analyze_trend(
    series: Sequence[GrowthDataPoint], indicator: Indicator
) -> TrendResult:
    return default_engine().analyze_trend(series, indicator)


def velocity(series: Sequence[GrowthDataPoint], indicator: Indicator) -> VelocityResult:
    return default_engine().velocity(series, indicator)


def detect_faltering(
    weight_series: Sequence[GrowthDataPoint],
    height_series: Sequence[GrowthDataPoint],
) -> FalteringResult:
    return default_engine().detect_faltering(weight_series, height_series)
