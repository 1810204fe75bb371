"""
Spending-based segmentation of ages and customers with k-means.

Ages are summarised to (age, total spend) points and clustered; each
customer then inherits the cluster of their age. Both features are used as
raw Euclidean coordinates, so the spend axis dominates the distance.
"""

import logging
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans

from dashboard_errors import InvalidConfiguration

log = logging.getLogger(__name__)


class SegmentationResult(NamedTuple):
    age_clusters: pd.DataFrame
    customers: pd.DataFrame
    inertia: float


def summarise_spend_by_age(records: pd.DataFrame) -> pd.DataFrame:
    """
    Total spend per age, ordered by age.

    Rows without an age are left out of the grouping.

    Args:
        records (pd.DataFrame): Loaded transaction records

    Returns:
        pd.DataFrame: ``age``, ``Total``
    """
    age_summary = (
        records.dropna(subset=["age"])
        .groupby("age")
        .agg(Total=("total", "sum"))
        .reset_index()
        .sort_values("age")
        .reset_index(drop=True)
    )
    log.info(f"  Distinct ages : {len(age_summary):,}")
    return age_summary


def cluster_ages(age_summary: pd.DataFrame,
                 num_clusters: int = 3,
                 n_init: int = 10,
                 max_iter: int = 300,
                 random_state: Optional[int] = 42) -> tuple:
    """
    Partition the (age, Total) points into ``num_clusters`` groups.

    Runs ``n_init`` k-means restarts from different initial centroids and
    keeps the one with the lowest within-cluster sum of squares. Each run
    stops when assignments no longer change or after ``max_iter`` Lloyd
    iterations.

    Args:
        age_summary (pd.DataFrame): Output of ``summarise_spend_by_age``
        num_clusters (int): Number of clusters k
        n_init (int): Number of restarts
        max_iter (int): Iteration cap per restart
        random_state (int | None): Seed; None gives a different run each time

    Returns:
        tuple: (age_summary copy with a ``cluster`` column in 1..k, inertia)

    Raises:
        InvalidConfiguration: If there are fewer distinct ages than clusters
    """
    if len(age_summary) < num_clusters:
        raise InvalidConfiguration(
            f"num_clusters={num_clusters} but only {len(age_summary)} distinct age(s) to cluster"
        )

    features = age_summary[["age", "Total"]].to_numpy(dtype=float)

    log.info(f"  Running k-means (k={num_clusters}, restarts={n_init}) ...")
    kmeans = KMeans(
        n_clusters=num_clusters,
        init="random",
        n_init=n_init,
        max_iter=max_iter,
        tol=0.0,
        algorithm="lloyd",
        random_state=random_state,
    )
    labels = kmeans.fit_predict(features)

    clustered = age_summary.copy()
    clustered["cluster"] = (labels + 1).astype(int)

    log.info(f"  Inertia (SSE) : {kmeans.inertia_:,.2f}")
    log.info(f"  Iterations    : {kmeans.n_iter_}")
    for label, size in clustered["cluster"].value_counts().sort_index().items():
        log.info(f"    Cluster {label} : {size:>4} ages")

    return clustered, float(kmeans.inertia_)


def customer_clusters(records: pd.DataFrame, age_clusters: pd.DataFrame) -> pd.DataFrame:
    """
    Per-customer total spend joined to the cluster of the customer's age.

    Each customer is expected to have a single age; if several appear the
    first one is used and a warning is logged.

    Returns:
        pd.DataFrame: ``customer``, ``Total``, ``Age``, ``cluster``
    """
    customers = (
        records.groupby("customer")
        .agg(Total=("total", "sum"), Age=("age", "first"), n_ages=("age", "nunique"))
        .reset_index()
    )

    conflicting = customers.loc[customers["n_ages"] > 1, "customer"]
    if len(conflicting):
        log.warning(f"  {len(conflicting)} customer(s) with more than one age; using the first")

    customers = customers.drop(columns=["n_ages"]).merge(
        age_clusters[["age", "cluster"]],
        how="left",
        left_on="Age",
        right_on="age",
    ).drop(columns=["age"])

    customers["cluster"] = customers["cluster"].astype("Int64")
    log.info(f"  Customers     : {len(customers):,}")
    return customers


def segment_customers(records: pd.DataFrame,
                      num_clusters: int = 3,
                      n_init: int = 10,
                      max_iter: int = 300,
                      random_state: Optional[int] = 42) -> SegmentationResult:
    """Aggregate by age, cluster, and join the labels back to customers."""
    age_summary = summarise_spend_by_age(records)
    age_clusters, inertia = cluster_ages(
        age_summary,
        num_clusters=num_clusters,
        n_init=n_init,
        max_iter=max_iter,
        random_state=random_state,
    )
    customers = customer_clusters(records, age_clusters)
    return SegmentationResult(age_clusters, customers, inertia)


def cluster_profile(age_clusters: pd.DataFrame) -> pd.DataFrame:
    """Per-cluster age count, age range and spend totals."""
    profile = (
        age_clusters.groupby("cluster")
        .agg(
            Ages=("age", "count"),
            Min_Age=("age", "min"),
            Max_Age=("age", "max"),
            Total_Spend=("Total", "sum"),
            Avg_Spend=("Total", "mean"),
        )
        .reset_index()
    )
    profile["Avg_Spend"] = profile["Avg_Spend"].round(2)
    profile["Spend_Share_%"] = (
        profile["Total_Spend"] / profile["Total_Spend"].sum() * 100
    ).round(1) if profile["Total_Spend"].sum() else np.nan
    return profile
