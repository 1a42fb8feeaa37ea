"""
Alignment of weight and height series onto common observation ages.
"""

from typing import List, Sequence

import numpy as np
import pandas as pd

from ..models import GrowthDataPoint, Status
from ..trends import ordered_series
from .base import AlignedSeries

_STATUSES = list(Status)


def _collapse(points: Sequence[GrowthDataPoint]) -> pd.DataFrame:
    """One row per age: mean value and z-score, worst status."""
    frame = pd.DataFrame(
        {
            "age": [float(p.age_in_months) for p in points],
            "value": [p.value for p in points],
            "z": [p.z_score for p in points],
            "status_rank": [Status(p.status).rank for p in points],
        }
    )
    return (
        frame.groupby("age", as_index=False)
        .agg(value=("value", "mean"), z=("z", "mean"), status_rank=("status_rank", "max"))
        .sort_values("age")
        .reset_index(drop=True)
    )


def _nearest_statuses(source: pd.DataFrame, ages: np.ndarray) -> List[Status]:
    source_ages = source["age"].to_numpy(dtype=np.float64)
    nearest = np.abs(source_ages[:, None] - ages[None, :]).argmin(axis=0)
    ranks = source["status_rank"].to_numpy()[nearest]
    return [_STATUSES[int(r)] for r in ranks]


def align_series(
    weight_series: Sequence[GrowthDataPoint],
    height_series: Sequence[GrowthDataPoint],
) -> AlignedSeries:
    """
    Resample both series onto the union of their ages within the overlap.

    Points sharing an age are averaged first. Only ages inside the window
    covered by both series are kept, so nothing is extrapolated. The latest
    z-score of each series and the lowest z-score overall come from the raw
    points, so observations outside the overlap still count.

    Args:
        weight_series: Weight points (kg).
        height_series: Height points (cm).

    Returns:
        AlignedSeries, possibly empty when the series do not overlap.
    """
    weight = _collapse(weight_series)
    height = _collapse(height_series)

    lower = max(weight["age"].iloc[0], height["age"].iloc[0])
    upper = min(weight["age"].iloc[-1], height["age"].iloc[-1])
    ages = np.union1d(weight["age"].to_numpy(), height["age"].to_numpy())
    ages = ages[(ages >= lower) & (ages <= upper)].astype(np.float64)

    def resample(frame: pd.DataFrame, column: str) -> np.ndarray:
        return np.interp(ages, frame["age"].to_numpy(), frame[column].to_numpy())

    return AlignedSeries(
        ages=ages,
        weight=resample(weight, "value"),
        height=resample(height, "value"),
        weight_z=resample(weight, "z"),
        height_z=resample(height, "z"),
        weight_status=_nearest_statuses(weight, ages),
        height_status=_nearest_statuses(height, ages),
        latest_weight_z=float(ordered_series(weight_series)[-1].z_score),
        latest_height_z=float(ordered_series(height_series)[-1].z_score),
        lowest_z=min(p.z_score for p in [*weight_series, *height_series]),
    )
