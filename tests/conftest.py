import datetime
from typing import Callable, List, Sequence

import pandas as pd
import pytest

from growthwatch.models import GrowthDataPoint, Indicator, Sex, Status
from growthwatch.reference import ReferenceStandards, load_reference_standards


@pytest.fixture
def lms_frame() -> pd.DataFrame:
    """Small LMS table: L=1 (normal), M rising 10 per 12 months, S=0.1."""
    rows = []
    for indicator in Indicator:
        xs = [45.0, 85.0, 125.0] if indicator.indexed_by_height else [0.0, 12.0, 24.0]
        for sex in Sex:
            for x, M in zip(xs, [10.0, 20.0, 30.0]):
                rows.append(
                    {
                        "indicator": indicator.value,
                        "sex": sex.value,
                        "x": x,
                        "L": 1.0,
                        "M": M,
                        "S": 0.1,
                    }
                )
    return pd.DataFrame(rows)


@pytest.fixture
def velocity_frame() -> pd.DataFrame:
    """Two velocity bands per quantity covering 0-24 months."""
    rows = []
    for quantity in ("weight", "height", "head_circumference"):
        rows.append(
            {"quantity": quantity, "age_start": 0, "age_end": 12, "mean": 1.0, "sd": 0.2}
        )
        rows.append(
            {"quantity": quantity, "age_start": 12, "age_end": 24, "mean": 0.5, "sd": 0.1}
        )
    return pd.DataFrame(rows)


@pytest.fixture
def fixture_standards(
    lms_frame: pd.DataFrame, velocity_frame: pd.DataFrame
) -> ReferenceStandards:
    """Reference standards built from the small fixture tables."""
    return ReferenceStandards.from_frames(lms_frame, velocity_frame)


@pytest.fixture(scope="session")
def who_standards() -> ReferenceStandards:
    """Packaged WHO reference standards."""
    return load_reference_standards()


@pytest.fixture
def make_series() -> Callable[..., List[GrowthDataPoint]]:
    """Build a monthly series of GrowthDataPoints from values."""

    def build(
        values: Sequence[float],
        start_age: int = 6,
        z_scores: Sequence[float] = (),
        statuses: Sequence[Status] = (),
        birth: datetime.date = datetime.date(2023, 1, 1),
    ) -> List[GrowthDataPoint]:
        points = []
        for i, value in enumerate(values):
            age = start_age + i
            points.append(
                GrowthDataPoint(
                    date=datetime.date(
                        birth.year + (birth.month - 1 + age) // 12,
                        (birth.month - 1 + age) % 12 + 1,
                        birth.day,
                    ),
                    age_in_months=age,
                    value=value,
                    z_score=z_scores[i] if z_scores else 0.0,
                    status=statuses[i] if statuses else Status.NORMAL,
                )
            )
        return points

    return build
