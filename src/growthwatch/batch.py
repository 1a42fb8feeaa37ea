"""
Batch growth assessment over pandas DataFrames.

Scores every row of a measurement table against the WHO standards in one
vectorized pass. Rows that cannot be scored (age or height outside the
reference tables, unknown sex, missing values) get NaN z-scores and no
status instead of failing the whole batch.
"""

from typing import Dict, List, Optional
import logging

import numpy as np
import pandas as pd
from pydantic import BaseModel, ValidationError, field_validator

from .bmi import compute_bmi
from .models import Indicator, Sex
from .zscores import ZScoreEngine, status_array


class FrameConfig(BaseModel):
    """
    Column mapping for batch assessment.

    Attributes:
        age_col (str): Age in months ('age_months' by default).
        sex_col (str): Sex column ('sex' by default). Accepts 'M'/'F' and 'male'/'female'.
        weight_col (str): Weight in kg ('weight_kg' by default).
        height_col (str): Length/height in cm ('height_cm' by default).
        head_circ_col (Optional[str]): Head circumference in cm; None skips headcz.
        validate_units (bool): Log warnings for values suggesting wrong units. True by default.
    """

    age_col: str = "age_months"
    sex_col: str = "sex"
    weight_col: str = "weight_kg"
    height_col: str = "height_cm"
    head_circ_col: Optional[str] = None
    validate_units: bool = True

    @field_validator("age_col", "sex_col", "weight_col", "height_col")
    @classmethod
    def validate_column_names(cls, v: str) -> str:
        """Ensure column names are valid string identifiers."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Column name must be a non-empty string")
        return v

    @field_validator("head_circ_col")
    @classmethod
    def validate_optional_column(cls, v: Optional[str]) -> Optional[str]:
        """Ensure optional column name is valid if provided."""
        if v is not None and (not isinstance(v, str) or not v.strip()):
            raise ValueError("Head circumference column name must be a valid string")
        return v


# Output column -> indicator it scores
OUTPUT_COLUMNS: Dict[str, Indicator] = {
    "waz": Indicator.WEIGHT_FOR_AGE,
    "haz": Indicator.HEIGHT_FOR_AGE,
    "whz": Indicator.WEIGHT_FOR_HEIGHT,
    "bmiz": Indicator.BMI_FOR_AGE,
    "headcz": Indicator.HEAD_CIRCUMFERENCE_FOR_AGE,
}


def _normalize_sex(values: pd.Series) -> np.ndarray:
    """Map sex labels to 'M'/'F'; anything unrecognized becomes ''."""

    def code(value: object) -> str:
        try:
            return Sex(value).value
        except ValueError:
            return ""

    return np.array([code(v) for v in values], dtype=str)


def _log_unit_warnings(
    agemos: np.ndarray, height: np.ndarray, weight: np.ndarray
) -> None:
    """Log warnings for potential unit mismatches."""
    if np.all(np.isnan(agemos)):
        return
    if np.any(np.isfinite(height)) and np.nanmean(height) < 5:
        logging.warning(
            "Height values have mean <5 - heights may be in metres instead of cm"
        )
    elif np.any(np.isfinite(height)) and np.nanpercentile(height, 95) > 150:
        logging.warning(
            "Height values >150 cm detected - exceeds the range of children under five"
        )
    if np.any(np.isfinite(weight)) and np.nanpercentile(weight, 99) > 50:
        logging.warning(
            "Weight values >50 kg detected - may be lbs instead of kg"
        )
    if np.nanmax(agemos) > 60 and np.nanmedian(agemos) > 60:
        logging.warning(
            "Age values suggest days or weeks instead of months (median >60)"
        )


class FrameAssessor:
    """
    Vectorized z-score assessment of a measurement DataFrame.

    Usage:
        assessor = FrameAssessor(age_col="visit_age", sex_col="gender")
        scored = assessor.assess(df)

    Attributes:
        config (FrameConfig): Column mapping.
        zscore_engine (ZScoreEngine): Engine providing reference lookups and thresholds.
    """

    def __init__(
        self,
        age_col: str = "age_months",
        sex_col: str = "sex",
        weight_col: str = "weight_kg",
        height_col: str = "height_cm",
        head_circ_col: Optional[str] = None,
        validate_units: bool = True,
        zscore_engine: Optional[ZScoreEngine] = None,
    ):
        """
        Initialize FrameAssessor with configurable column mappings.

        Raises:
            ValueError: If configuration is invalid per FrameConfig validation
        """
        try:
            self.config = FrameConfig(
                age_col=age_col,
                sex_col=sex_col,
                weight_col=weight_col,
                height_col=height_col,
                head_circ_col=head_circ_col,
                validate_units=validate_units,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        columns = self.required_columns()
        if len(columns) != len(set(columns)):
            raise ValueError("Configuration must specify unique column names")
        self.zscore_engine = zscore_engine or ZScoreEngine()

    def required_columns(self) -> List[str]:
        columns = [
            self.config.age_col,
            self.config.sex_col,
            self.config.weight_col,
            self.config.height_col,
        ]
        if self.config.head_circ_col is not None:
            columns.append(self.config.head_circ_col)
        return columns

    def assess(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add z-score and status columns to a copy of the frame.

        Output columns: bmi, waz, haz, whz, bmiz (and headcz when a head
        circumference column is configured), each z-score with a matching
        `<name>_status` column holding 'normal'/'warning'/'alert'.

        Args:
            df: Input DataFrame with one measurement per row.

        Returns:
            New DataFrame; the input is not modified.

        Raises:
            ValueError: If a configured column is missing.
        """
        for column in self.required_columns():
            if column not in df.columns:
                raise ValueError(f"Column '{column}' does not exist in DataFrame")

        out = df.copy()
        if df.empty:
            return out

        agemos = pd.to_numeric(df[self.config.age_col], errors="coerce").to_numpy(
            dtype=np.float64
        )
        weight = pd.to_numeric(df[self.config.weight_col], errors="coerce").to_numpy(
            dtype=np.float64
        )
        height = pd.to_numeric(df[self.config.height_col], errors="coerce").to_numpy(
            dtype=np.float64
        )
        sex = _normalize_sex(df[self.config.sex_col])
        if np.any(sex == ""):
            logging.warning(
                f"{int((sex == '').sum())} rows have an unrecognized sex value - "
                "setting z-scores to NaN"
            )
        if self.config.validate_units:
            _log_unit_warnings(agemos, height, weight)

        with np.errstate(divide="ignore", invalid="ignore"):
            bmi = compute_bmi(weight, height)
        inputs = {
            "waz": (weight, agemos),
            "haz": (height, agemos),
            "whz": (weight, height),
            "bmiz": (bmi, agemos),
        }
        if self.config.head_circ_col is not None:
            head = pd.to_numeric(
                df[self.config.head_circ_col], errors="coerce"
            ).to_numpy(dtype=np.float64)
            inputs["headcz"] = (head, agemos)

        out["bmi"] = bmi
        thresholds = self.zscore_engine.thresholds
        for name, (values, x) in inputs.items():
            z = self.zscore_engine.zscores(values, x, sex, OUTPUT_COLUMNS[name])
            out[name] = pd.Series(z, index=df.index)
            out[f"{name}_status"] = pd.Series(status_array(z, thresholds), index=df.index)
        return out
