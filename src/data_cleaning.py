"""Data-quality diagnostics for a loaded transaction table."""

import logging
from typing import NamedTuple

import pandas as pd

log = logging.getLogger(__name__)


class CleaningReport(NamedTuple):
    duplicate_count: int
    missing_count: int


def cleaning_report(records: pd.DataFrame) -> CleaningReport:
    """
    Count duplicate rows and missing values.

    Duplicates are counted on a copy with incomplete rows removed; missing
    values are counted on the full, unfiltered table. The filtered copy is
    discarded afterwards and ``records`` is left untouched.

    Args:
        records (pd.DataFrame): Loaded transaction records

    Returns:
        CleaningReport: (duplicate_count, missing_count)
    """
    complete = records.dropna()
    duplicate_count = int(complete.duplicated().sum())
    missing_count = int(records.isna().sum().sum())

    log.info(f"  Complete rows : {len(complete):,} of {len(records):,}")
    log.info(f"  Duplicates    : {duplicate_count:,}")
    log.info(f"  Missing cells : {missing_count:,}")
    return CleaningReport(duplicate_count, missing_count)


def missing_summary(records: pd.DataFrame) -> pd.DataFrame:
    """Per-column missing count and percentage, worst column first."""
    total = records.isna().sum()
    pct = (total / len(records) * 100).round(2) if len(records) else total * 0.0
    out = pd.DataFrame({"Missing": total, "Missing_%": pct})
    out.index.name = "column"
    return out.sort_values("Missing", ascending=False).reset_index()


def format_cleaning_summary(report: CleaningReport) -> str:
    return f"Duplicates: {report.duplicate_count} | Missing values: {report.missing_count}"
