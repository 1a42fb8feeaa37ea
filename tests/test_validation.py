import datetime

import pytest

from growthwatch.config import MeasurementLimits, MeasurementRange
from growthwatch.validation import validate


def test_tc001_valid_measurement() -> None:
    """Plausible inputs produce no errors"""
    result = validate(7.9, 67.6, 43.3, 6)
    assert result.is_valid
    assert result.errors == []


def test_tc002_missing_required_fields() -> None:
    """Weight and height are required"""
    result = validate(None, None)
    assert not result.is_valid
    assert result.messages_for("weight") == ["Weight is required"]
    assert result.messages_for("height") == ["Height is required"]


@pytest.mark.parametrize("weight", [0, -1.0, 50.01, 120])
def test_tc003_weight_out_of_range(weight: float) -> None:
    """Weight must lie in (0, 50] kg"""
    result = validate(weight, 80.0)
    messages = result.messages_for("weight")
    assert len(messages) == 1
    assert "Weight must be in (0, 50] kg" in messages[0]


def test_tc004_weight_upper_bound_inclusive() -> None:
    """50 kg is accepted"""
    assert validate(50.0, 150.0).messages_for("weight") == []


@pytest.mark.parametrize("height", [0, 150.5, -10])
def test_tc005_height_out_of_range(height: float) -> None:
    """Height must lie in (0, 150] cm"""
    assert validate(10.0, height).messages_for("height")


@pytest.mark.parametrize("value", ["abc", float("nan"), float("inf"), True])
def test_tc006_non_numeric(value: object) -> None:
    """Non-numeric and non-finite inputs are rejected, not raised"""
    result = validate(value, 80.0)
    assert result.messages_for("weight") == ["Weight must be a finite number"]


def test_tc007_numeric_strings_accepted() -> None:
    """Numeric strings from form input are parsed"""
    assert validate("9.5", "75").is_valid


def test_tc008_head_circumference_optional() -> None:
    """Head circumference is checked only when given"""
    assert validate(9.5, 75.0, None).is_valid
    result = validate(9.5, 75.0, 71.0)
    assert result.messages_for("head_circumference")


@pytest.mark.parametrize(
    "age, fragment",
    [
        (-1, "cannot be negative"),
        (6.5, "whole number"),
        ("six", "whole number"),
        (61, "outside the supported range"),
    ],
)
def test_tc009_age_checks(age: object, fragment: str) -> None:
    """Age must be a whole number of months in [0, 60]"""
    messages = validate(9.5, 75.0, age_in_months=age).messages_for("age_in_months")
    assert len(messages) == 1
    assert fragment in messages[0]


def test_tc010_age_bounds_accepted() -> None:
    """0 and 60 months are valid"""
    assert validate(3.3, 49.9, age_in_months=0).is_valid
    assert validate(18.3, 110.0, age_in_months=60).is_valid


def test_tc011_implausible_bmi() -> None:
    """Weight and height combination outside [5, 40] kg/m²"""
    result = validate(45.0, 60.0)  # BMI 125
    assert result.messages_for("bmi")
    assert "implausible BMI" in result.messages_for("bmi")[0]
    result = validate(1.0, 140.0)  # BMI 0.5
    assert result.messages_for("bmi")


def test_tc012_bmi_skipped_when_inputs_invalid() -> None:
    """BMI is only checked when both inputs are valid"""
    result = validate(0, 60.0)
    assert result.messages_for("bmi") == []


def test_tc013_all_errors_collected() -> None:
    """Every violation is reported at once"""
    result = validate(-1, 200, 80, -2)
    fields = {e.field for e in result.errors}
    assert fields == {"weight", "height", "head_circumference", "age_in_months"}


def test_tc014_future_observation_date() -> None:
    """Observation date after today is rejected"""
    result = validate(
        9.5,
        75.0,
        observation_date=datetime.date(2024, 6, 2),
        today=datetime.date(2024, 6, 1),
    )
    assert result.messages_for("observation_date") == [
        "Observation date cannot be in the future"
    ]


def test_tc015_observation_before_birth() -> None:
    """Observation before birth is rejected"""
    result = validate(
        9.5,
        75.0,
        observation_date=datetime.date(2024, 1, 1),
        birth_date=datetime.date(2024, 2, 1),
        today=datetime.date(2024, 6, 1),
    )
    assert result.messages_for("observation_date") == [
        "Observation date cannot be before the birth date"
    ]


def test_tc016_custom_limits() -> None:
    """Limits can be overridden"""
    limits = MeasurementLimits(weight=MeasurementRange(lower=0.0, upper=30.0))
    assert validate(35.0, 140.0, limits=limits).messages_for("weight")
    assert validate(35.0, 140.0).is_valid


def test_tc017_result_serializes_validity() -> None:
    """is_valid is included in the serialized result"""
    dumped = validate(None, 80.0).model_dump()
    assert dumped["is_valid"] is False
    assert dumped["errors"][0]["field"] == "weight"


def test_tc018_zero_weight_at_six_months() -> None:
    """Zero weight is a weight-range error"""
    result = validate(0, 70, age_in_months=6)
    assert not result.is_valid
    assert [e.field for e in result.errors] == ["weight"]


def test_tc019_newborn_measurement() -> None:
    """A typical newborn passes every check"""
    result = validate(3.5, 50, age_in_months=0)
    assert result.is_valid
    assert result.errors == []


def test_tc020_iso_date_strings() -> None:
    """ISO date strings from form input are parsed before comparison"""
    result = validate(
        7.9, 67.6, None, 6, observation_date="2023-07-01", birth_date="2023-01-01"
    )
    assert result.is_valid
    result = validate(
        7.9,
        67.6,
        observation_date="2023-01-01",
        birth_date="2023-07-01",
        today=datetime.date(2024, 1, 1),
    )
    assert result.messages_for("observation_date") == [
        "Observation date cannot be before the birth date"
    ]


@pytest.mark.parametrize("value", ["01/07/2023", "yesterday", 20230701, 3.5])
def test_tc021_unparseable_dates(value: object) -> None:
    """Anything that is not a date is a field error, not an exception"""
    result = validate(7.9, 67.6, observation_date=value, birth_date=value)
    assert result.messages_for("observation_date") == ["Observation date must be a date"]
    assert result.messages_for("birth_date") == ["Birth date must be a date"]
