"""
Grouped summaries of the raw records for the descriptive charts and the
insights text.
"""

import logging

import pandas as pd

from data_loading import split_items

log = logging.getLogger(__name__)

# Fixed observations appended to the insights block. They are presentation
# copy from the original dashboard, not computed from the data.
STATIC_INSIGHTS = [
    "- Ages 22, 37, and 55 have highest spending.",
    "- Cairo and Alexandria lead in total purchases.",
    "- Payment types (Cash vs Credit) are used almost equally.",
    "- The most frequent item is likely 'whole milk'.",
    "- Association rules show people who buy yogurt often also buy whole milk.",
]


def payment_type_summary(records: pd.DataFrame) -> pd.DataFrame:
    """
    Transaction count and share per payment type.

    Returns:
        pd.DataFrame: ``paymentType``, ``count``, ``percent`` (1 dp) and a
                      pie ``label`` such as ``"Cash: 50.0%"``
    """
    counts = (
        records["paymentType"]
        .value_counts()
        .sort_index()
        .rename_axis("paymentType")
        .reset_index(name="count")
    )
    total = counts["count"].sum()
    counts["percent"] = (100 * counts["count"] / total).round(1) if total else 0.0
    counts["label"] = counts["paymentType"].astype(str) + ": " + counts["percent"].astype(str) + "%"
    return counts


def spend_by_age(records: pd.DataFrame) -> pd.DataFrame:
    """Sum of ``total`` per age, ordered by age."""
    return (
        records.dropna(subset=["age"])
        .groupby("age", as_index=False)
        .agg(Total=("total", "sum"))
        .sort_values("age")
        .reset_index(drop=True)
    )


def spend_by_city(records: pd.DataFrame) -> pd.DataFrame:
    """Sum of ``total`` per city, highest first."""
    return (
        records.groupby("city", as_index=False)
        .agg(Total=("total", "sum"))
        .sort_values("Total", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )


def spending_distribution(records: pd.DataFrame) -> pd.DataFrame:
    """Five-number summary of ``total`` (the boxplot), plus count and mean."""
    stats = records["total"].describe()
    return stats.rename_axis("statistic").reset_index(name="value")


def top_item_by_city(records: pd.DataFrame) -> pd.DataFrame:
    """
    Most sold item in each city.

    Every item token counts, including repeats within one row. When two
    items tie for a city, the one that appears first in the input wins.

    Returns:
        pd.DataFrame: ``city``, ``item``, ``count``, ordered by city
    """
    exploded = (
        records[["city"]]
        .assign(item=records["items"].map(split_items))
        .explode("item")
        .dropna(subset=["city", "item"])
    )
    if exploded.empty:
        return pd.DataFrame(columns=["city", "item", "count"])

    # sort=False keeps (city, item) pairs in first-seen order, so idxmax
    # lands on the earliest item among ties
    counts = (
        exploded.groupby(["city", "item"], sort=False)
        .size()
        .reset_index(name="count")
    )
    best = counts.loc[counts.groupby("city", sort=False)["count"].idxmax()]

    log.info(f"  Top items computed for {len(best)} cities")
    return best.sort_values("city", kind="mergesort").reset_index(drop=True)


def build_insights(top_items: pd.DataFrame) -> str:
    """Insights text: the per-city top items followed by the fixed observations."""
    lines = ["- The most sold item in each city is:"]
    for _, row in top_items.iterrows():
        lines.append(f"  • {row['city']} -> {row['item']}")
    return "\n".join(lines) + "\n\n" + "\n".join(STATIC_INSIGHTS)
