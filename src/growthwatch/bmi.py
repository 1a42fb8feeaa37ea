"""
BMI-for-age assessment.
"""

from typing import Optional, Union

import numpy as np

from .models import BMIResult, Indicator, Sex
from .zscores import ZScoreEngine


def compute_bmi(
    weight: Union[float, np.ndarray], height: Union[float, np.ndarray]
) -> Union[float, np.ndarray]:
    """BMI in kg/m² from weight (kg) and height (cm), at full precision."""
    return weight / (height / 100.0) ** 2


class BMIEngine:
    """
    Computes BMI and scores it against the BMI-for-age table.

    Attributes:
        zscore_engine (ZScoreEngine): Engine the assessment is delegated to.
    """

    def __init__(self, zscore_engine: Optional[ZScoreEngine] = None):
        self.zscore_engine = zscore_engine or ZScoreEngine()

    def bmi_for_age(
        self, weight: float, height: float, age_in_months: float, sex: Sex
    ) -> BMIResult:
        """
        BMI-for-age z-score, percentile and status.

        Args:
            weight: Weight in kg.
            height: Length/height in cm.
            age_in_months: Age in months.
            sex: Sex of the child.

        Returns:
            BMIResult with unrounded bmi; use display_bmi for presentation.

        Raises:
            ValueError: If weight or height is not a finite positive number.
            UnsupportedAgeRange: If the age is outside the BMI-for-age table.
        """
        weight = float(weight)
        height = float(height)
        if not (np.isfinite(weight) and weight > 0):
            raise ValueError(f"Weight must be a finite positive number, got {weight}")
        if not (np.isfinite(height) and height > 0):
            raise ValueError(f"Height must be a finite positive number, got {height}")

        bmi = compute_bmi(weight, height)
        result = self.zscore_engine.assess(bmi, Indicator.BMI_FOR_AGE, sex, age_in_months)
        return BMIResult(
            bmi=bmi,
            z_score=result.z_score,
            percentile=result.percentile,
            status=result.status,
            message=result.message,
        )
