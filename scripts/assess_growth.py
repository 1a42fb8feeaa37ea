#!/usr/bin/env python3
"""
Assess a CSV of child measurements against the WHO Child Growth Standards.

Reads one measurement per row (age in months, sex, weight in kg, height in
cm and optionally head circumference in cm), adds z-score and status columns
for weight-for-age, height-for-age, weight-for-height, BMI-for-age and head
circumference-for-age, and writes the result to a new CSV.

Rows outside the reference range (0-60 months, 45-120 cm for
weight-for-height) are kept with empty z-scores.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from growthwatch.batch import FrameAssessor

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STATUS_COLUMNS = ["waz_status", "haz_status", "whz_status", "bmiz_status"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Add WHO growth z-scores and status columns to a measurement CSV"
    )
    parser.add_argument("input", type=Path, help="CSV file with measurements")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output CSV (default: <input>_assessed.csv)",
    )
    parser.add_argument("--age-col", default="age_months", help="Age column (months)")
    parser.add_argument("--sex-col", default="sex", help="Sex column ('M'/'F')")
    parser.add_argument("--weight-col", default="weight_kg", help="Weight column (kg)")
    parser.add_argument("--height-col", default="height_cm", help="Height column (cm)")
    parser.add_argument(
        "--head-circ-col",
        default=None,
        help="Head circumference column (cm), optional",
    )
    parser.add_argument(
        "--no-unit-checks",
        action="store_true",
        help="Disable warnings about values that suggest wrong units",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def summarize(assessed: pd.DataFrame) -> dict:
    """Count rows per status for each status column present."""
    summary = {}
    for column in STATUS_COLUMNS + ["headcz_status"]:
        if column in assessed.columns:
            counts = assessed[column].fillna("not assessed").value_counts()
            summary[column] = {str(k): int(v) for k, v in counts.items()}
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    """Run the assessment; returns a process exit code."""
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1
    output = args.output or args.input.with_name(f"{args.input.stem}_assessed.csv")

    try:
        assessor = FrameAssessor(
            age_col=args.age_col,
            sex_col=args.sex_col,
            weight_col=args.weight_col,
            height_col=args.height_col,
            head_circ_col=args.head_circ_col,
            validate_units=not args.no_unit_checks,
        )
        df = pd.read_csv(args.input)
        logger.info(f"Read {len(df)} measurements from {args.input}")
        assessed = assessor.assess(df)
    except ValueError as e:
        logger.error(f"Assessment failed: {e}")
        return 1

    assessed.to_csv(output, index=False)
    logger.info(f"Wrote assessed measurements to {output}")
    for column, counts in summarize(assessed).items():
        logger.info(f"{column}: {counts}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
