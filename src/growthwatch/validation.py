"""
Measurement validation for growth record inputs.

validate() never raises for bad measurements: every problem is collected as
a field-tagged message so a form can show all of them at once.
"""

from typing import List, Optional
import datetime
import math

from .config import MeasurementLimits, MeasurementRange
from .models import FieldError, ValidationResult


def _as_number(value: object) -> Optional[float]:
    """Finite float for numeric input, None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _check_range(
    errors: List[FieldError],
    field: str,
    label: str,
    unit: str,
    value: object,
    bounds: MeasurementRange,
    required: bool = True,
) -> Optional[float]:
    if value is None:
        if required:
            errors.append(FieldError(field=field, message=f"{label} is required"))
        return None
    number = _as_number(value)
    if number is None:
        errors.append(
            FieldError(field=field, message=f"{label} must be a finite number")
        )
        return None
    if not bounds.contains(number):
        errors.append(
            FieldError(
                field=field,
                message=f"{label} must be in {bounds.describe()} {unit}, got {number:g}",
            )
        )
        return None
    return number


def _check_age(
    errors: List[FieldError], age_in_months: object, max_age: int
) -> None:
    age = _as_number(age_in_months)
    if age is None or age != int(age):
        errors.append(
            FieldError(
                field="age_in_months", message="Age must be a whole number of months"
            )
        )
    elif age < 0:
        errors.append(
            FieldError(field="age_in_months", message="Age cannot be negative")
        )
    elif age > max_age:
        errors.append(
            FieldError(
                field="age_in_months",
                message=f"Age {int(age)} months is outside the supported range "
                f"[0, {max_age}] months",
            )
        )


def _as_date(
    errors: List[FieldError], field: str, label: str, value: object
) -> Optional[datetime.date]:
    """Date for date, datetime or ISO string input; records an error otherwise."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value.strip()).date()
        except ValueError:
            pass
    errors.append(FieldError(field=field, message=f"{label} must be a date"))
    return None


def _check_dates(
    errors: List[FieldError],
    observation_date: object,
    birth_date: object,
    today: Optional[datetime.date],
) -> None:
    observed = _as_date(errors, "observation_date", "Observation date", observation_date)
    birth = _as_date(errors, "birth_date", "Birth date", birth_date)
    if observed is None:
        return
    today = today or datetime.date.today()
    if observed > today:
        errors.append(
            FieldError(
                field="observation_date",
                message="Observation date cannot be in the future",
            )
        )
    if birth is not None and observed < birth:
        errors.append(
            FieldError(
                field="observation_date",
                message="Observation date cannot be before the birth date",
            )
        )


def validate(
    weight: object,
    height: object,
    head_circumference: object = None,
    age_in_months: object = None,
    *,
    observation_date: object = None,
    birth_date: object = None,
    today: Optional[datetime.date] = None,
    limits: Optional[MeasurementLimits] = None,
) -> ValidationResult:
    """
    Range and sanity checks on raw measurement inputs.

    Checks performed:
    - weight in (0, 50] kg, height in (0, 150] cm
    - head circumference, when given, in (0, 70] cm
    - age, when given, a whole number of months within the reference range
    - BMI implied by weight and height within [5, 40] kg/m²
    - dates parse, and the observation date is neither in the future nor
      before the birth date

    Args:
        weight: Weight in kg.
        height: Length/height in cm.
        head_circumference: Head circumference in cm (optional).
        age_in_months: Age in completed months (optional).
        observation_date: Date of measurement, or an ISO date string (optional).
        birth_date: Date of birth, or an ISO date string (optional).
        today: Reference "today" for the future-date check (defaults to date.today()).
        limits: Bounds to enforce (defaults to MeasurementLimits()).

    Returns:
        ValidationResult listing every violation.
    """
    limits = limits or MeasurementLimits()
    errors: List[FieldError] = []

    weight_kg = _check_range(errors, "weight", "Weight", "kg", weight, limits.weight)
    height_cm = _check_range(errors, "height", "Height", "cm", height, limits.height)
    _check_range(
        errors,
        "head_circumference",
        "Head circumference",
        "cm",
        head_circumference,
        limits.head_circumference,
        required=False,
    )

    if age_in_months is not None:
        _check_age(errors, age_in_months, limits.max_age_months)

    if weight_kg is not None and height_cm is not None:
        bmi = weight_kg / (height_cm / 100.0) ** 2
        if not limits.bmi.contains(bmi):
            errors.append(
                FieldError(
                    field="bmi",
                    message=f"Weight and height give an implausible BMI of {bmi:.1f} "
                    f"(expected {limits.bmi.describe()} kg/m²)",
                )
            )

    _check_dates(errors, observation_date, birth_date, today)

    return ValidationResult(errors=errors)
