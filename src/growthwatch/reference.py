"""
Reference Standards for Growth Assessment

Loads the WHO Child Growth Standards (2006) LMS tables and the expected
growth-velocity bands shipped with the package, checks their integrity and
serves interpolated L, M, S parameters.

Age-indexed tables (weight, length/height, head circumference and BMI for
age) cover 0-60 months. Weight-for-height is indexed by height in cm.
Lookups outside the tabulated range raise instead of extrapolating.

A ReferenceStandards instance is immutable once built. The packaged tables are
loaded once per process by load_reference_standards(); tests build their own
instance with ReferenceStandards.from_frames().
"""

from dataclasses import dataclass
from importlib import resources
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
import functools
import logging

import numpy as np
import pandas as pd

from .exceptions import (
    ReferenceDataError,
    UnsupportedAgeRange,
    UnsupportedHeightRange,
    UnsupportedIndicatorError,
)
from .models import Indicator, Sex, VelocityReferenceBand

LMS_FILE = "who_lms.csv"
VELOCITY_FILE = "growth_velocity.csv"

LMS_COLUMNS = ["indicator", "sex", "x", "L", "M", "S"]
VELOCITY_COLUMNS = ["quantity", "age_start", "age_end", "mean", "sd"]

# Measured quantity behind each indicator's velocity; BMI has no velocity table
INDICATOR_QUANTITY: Dict[Indicator, str] = {
    Indicator.WEIGHT_FOR_AGE: "weight",
    Indicator.WEIGHT_FOR_HEIGHT: "weight",
    Indicator.HEIGHT_FOR_AGE: "height",
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "head_circumference",
}

REQUIRED_QUANTITIES = ("weight", "height", "head_circumference")


@dataclass(frozen=True)
class LMSCurve:
    """L, M, S parameters tabulated over x (age in months or height in cm)."""

    x: np.ndarray
    L: np.ndarray
    M: np.ndarray
    S: np.ndarray

    @property
    def lower(self) -> float:
        return float(self.x[0])

    @property
    def upper(self) -> float:
        return float(self.x[-1])

    def covers(self, x: float) -> bool:
        return self.lower <= x <= self.upper


class ReferenceStandards:
    """
    Immutable lookup of LMS curves and velocity bands.

    Usage:
        standards = load_reference_standards()
        L, M, S = standards.lms_at(Indicator.WEIGHT_FOR_AGE, Sex.MALE, 7.5)

    Attributes:
        curves: Read-only mapping (indicator, sex) -> LMSCurve.
        velocity_bands: Read-only mapping quantity -> tuple of bands sorted by age.
    """

    def __init__(
        self,
        curves: Mapping[Tuple[Indicator, Sex], LMSCurve],
        velocity_bands: Mapping[str, Tuple[VelocityReferenceBand, ...]],
    ):
        self.curves = MappingProxyType(dict(curves))
        self.velocity_bands = MappingProxyType(dict(velocity_bands))

    @classmethod
    def from_frames(
        cls, lms_frame: pd.DataFrame, velocity_frame: pd.DataFrame
    ) -> "ReferenceStandards":
        """
        Build reference standards from tabular data.

        Args:
            lms_frame: Columns indicator, sex, x, L, M, S.
            velocity_frame: Columns quantity, age_start, age_end, mean, sd.

        Returns:
            A validated, read-only ReferenceStandards.

        Raises:
            ReferenceDataError: If any required curve or band is missing or malformed.
        """
        curves = _build_curves(lms_frame)
        bands = _build_velocity_bands(velocity_frame)
        logging.debug(
            f"Built reference standards: {len(curves)} LMS curves, "
            f"{sum(len(b) for b in bands.values())} velocity bands"
        )
        return cls(curves, bands)

    def curve(self, indicator: Indicator, sex: Sex) -> LMSCurve:
        return self.curves[(Indicator(indicator), Sex(sex))]

    def range_of(self, indicator: Indicator, sex: Sex = Sex.MALE) -> Tuple[float, float]:
        """Tabulated (lower, upper) x for an indicator."""
        curve = self.curve(indicator, sex)
        return curve.lower, curve.upper

    def lms_at(
        self, indicator: Indicator, sex: Sex, x: float
    ) -> Tuple[float, float, float]:
        """
        L, M, S at x, linearly interpolated between adjacent tabulated points.

        Args:
            indicator: Growth indicator.
            sex: Sex of the child.
            x: Age in months, or height in cm for weight-for-height.

        Returns:
            Tuple (L, M, S).

        Raises:
            UnsupportedAgeRange: Age outside the table of an age-indexed indicator.
            UnsupportedHeightRange: Height outside the weight-for-height table.
        """
        indicator = Indicator(indicator)
        curve = self.curve(indicator, sex)
        x = float(x)
        if not np.isfinite(x) or not curve.covers(x):
            if indicator.indexed_by_height:
                raise UnsupportedHeightRange(
                    indicator.value, x, curve.lower, curve.upper
                )
            raise UnsupportedAgeRange(indicator.value, x, curve.lower, curve.upper)
        L = float(np.interp(x, curve.x, curve.L))
        M = float(np.interp(x, curve.x, curve.M))
        S = float(np.interp(x, curve.x, curve.S))
        logging.debug(f"LMS {indicator.value}/{Sex(sex).value} at {x}: {L}, {M}, {S}")
        return L, M, S

    def lms_arrays(
        self, indicator: Indicator, sex: np.ndarray, x: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Vectorized LMS interpolation for batch use.

        Rows with an unknown sex code or x outside the table get NaN.

        Args:
            indicator: Growth indicator.
            sex: Array of 'M'/'F' codes.
            x: Array of ages (months) or heights (cm).

        Returns:
            Tuple of (L, M, S) arrays matching the input shape.
        """
        indicator = Indicator(indicator)
        x = np.asarray(x, dtype=np.float64)
        sex = np.asarray(sex, dtype=str)
        n = len(x)
        L_out = np.full(n, np.nan, dtype=np.float64)
        M_out = np.full(n, np.nan, dtype=np.float64)
        S_out = np.full(n, np.nan, dtype=np.float64)

        for sex_code in Sex:
            sex_mask = sex == sex_code.value
            if not np.any(sex_mask):
                continue
            curve = self.curve(indicator, sex_code)
            x_sex = x[sex_mask]
            L_out[sex_mask] = np.interp(x_sex, curve.x, curve.L, left=np.nan, right=np.nan)
            M_out[sex_mask] = np.interp(x_sex, curve.x, curve.M, left=np.nan, right=np.nan)
            S_out[sex_mask] = np.interp(x_sex, curve.x, curve.S, left=np.nan, right=np.nan)

        return L_out, M_out, S_out

    def velocity_band(self, quantity: str, age: float) -> VelocityReferenceBand:
        """
        Expected velocity band covering an age.

        Bands are half-open [age_start, age_end) except the last, which
        includes its upper edge.

        Raises:
            UnsupportedAgeRange: If no band covers the age.
        """
        bands = self.velocity_bands[quantity]
        for i, band in enumerate(bands):
            last = i == len(bands) - 1
            if band.age_start <= age < band.age_end or (last and age == band.age_end):
                return band
        raise UnsupportedAgeRange(
            f"{quantity}_velocity", age, bands[0].age_start, bands[-1].age_end
        )

    def expected_velocity(
        self, indicator: Indicator, age: float
    ) -> VelocityReferenceBand:
        """
        Velocity band for the quantity an indicator measures.

        Raises:
            UnsupportedIndicatorError: If the indicator has no velocity table.
            UnsupportedAgeRange: If no band covers the age.
        """
        indicator = Indicator(indicator)
        quantity = velocity_quantity(indicator)
        if quantity is None:
            raise UnsupportedIndicatorError(indicator.value, "velocity comparison")
        return self.velocity_band(quantity, age)


def velocity_quantity(indicator: Indicator) -> Optional[str]:
    """Measured quantity whose velocity reflects an indicator, if any."""
    return INDICATOR_QUANTITY.get(Indicator(indicator))


def _require_columns(frame: pd.DataFrame, columns: List[str], name: str) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise ReferenceDataError(
            f"{name} reference table is missing columns: {missing}",
            details={"missing_columns": missing},
        )


def _build_curves(frame: pd.DataFrame) -> Dict[Tuple[Indicator, Sex], LMSCurve]:
    """Split the LMS table into validated read-only curves."""
    _require_columns(frame, LMS_COLUMNS, "LMS")
    values = frame[["x", "L", "M", "S"]].apply(pd.to_numeric, errors="coerce")
    if not np.all(np.isfinite(values.to_numpy(dtype=np.float64))):
        raise ReferenceDataError("LMS reference table contains non-numeric values")

    curves = {}
    for indicator in Indicator:
        for sex in Sex:
            mask = (frame["indicator"] == indicator.value) & (frame["sex"] == sex.value)
            rows = values[mask]
            key = f"{indicator.value}/{sex.value}"
            if len(rows) < 2:
                raise ReferenceDataError(
                    f"LMS reference curve {key} needs at least 2 rows, found {len(rows)}",
                    details={"curve": key},
                )
            x = rows["x"].to_numpy(dtype=np.float64)
            if np.any(np.diff(x) <= 0):
                raise ReferenceDataError(
                    f"LMS reference curve {key} is not strictly increasing in x",
                    details={"curve": key},
                )
            if np.any(x < 0):
                raise ReferenceDataError(
                    f"Negative x values in LMS reference curve {key}",
                    details={"curve": key},
                )
            M = rows["M"].to_numpy(dtype=np.float64)
            S = rows["S"].to_numpy(dtype=np.float64)
            if np.any(M <= 0) or np.any(S <= 0):
                raise ReferenceDataError(
                    f"Non-positive M or S values in LMS reference curve {key}",
                    details={"curve": key},
                )
            arrays = [x, rows["L"].to_numpy(dtype=np.float64), M, S]
            for arr in arrays:
                arr.setflags(write=False)
            curves[(indicator, sex)] = LMSCurve(*arrays)
    return curves


def _build_velocity_bands(
    frame: pd.DataFrame,
) -> Dict[str, Tuple[VelocityReferenceBand, ...]]:
    """Group velocity bands by quantity and check they tile the age axis."""
    _require_columns(frame, VELOCITY_COLUMNS, "Velocity")
    bands: Dict[str, Tuple[VelocityReferenceBand, ...]] = {}
    for quantity in REQUIRED_QUANTITIES:
        rows = frame[frame["quantity"] == quantity].sort_values("age_start")
        if rows.empty:
            raise ReferenceDataError(
                f"Velocity reference table has no bands for {quantity}",
                details={"quantity": quantity},
            )
        try:
            parsed = tuple(
                VelocityReferenceBand(
                    quantity=quantity,
                    age_start=float(row.age_start),
                    age_end=float(row.age_end),
                    mean=float(row.mean),
                    sd=float(row.sd),
                )
                for row in rows.itertuples(index=False)
            )
        except ValueError as e:
            raise ReferenceDataError(
                f"Malformed velocity band for {quantity}: {e}",
                details={"quantity": quantity},
            ) from e
        for band in parsed:
            if band.age_start >= band.age_end:
                raise ReferenceDataError(
                    f"Velocity band for {quantity} has age_start >= age_end",
                    details={"quantity": quantity, "age_start": band.age_start},
                )
        for prev, nxt in zip(parsed, parsed[1:]):
            if prev.age_end != nxt.age_start:
                raise ReferenceDataError(
                    f"Velocity bands for {quantity} are not contiguous at "
                    f"{prev.age_end:g}/{nxt.age_start:g} months",
                    details={"quantity": quantity},
                )
        bands[quantity] = parsed
    return bands


def _read_packaged_csv(name: str) -> pd.DataFrame:
    """Read a CSV shipped in growthwatch/data."""
    try:
        with (resources.files("growthwatch") / "data" / name).open("r") as f:
            return pd.read_csv(f)
    except FileNotFoundError:
        raise ReferenceDataError(
            f"Reference data file {name} not found. "
            "Ensure growthwatch is properly installed with its package data.",
            details={"file": name},
        ) from None


@functools.lru_cache(maxsize=1)
def load_reference_standards() -> ReferenceStandards:
    """
    Load the packaged WHO tables once per process.

    Returns:
        The shared, read-only ReferenceStandards.

    Raises:
        ReferenceDataError: If the packaged tables are missing or malformed.
    """
    standards = ReferenceStandards.from_frames(
        _read_packaged_csv(LMS_FILE), _read_packaged_csv(VELOCITY_FILE)
    )
    logging.info(f"Loaded reference standards from {LMS_FILE} and {VELOCITY_FILE}")
    return standards
