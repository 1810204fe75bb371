"""
Per-session dashboard context and the batch pipeline.

A ``DashboardSession`` holds one uploaded dataset, its transactions and the
current configuration. Every output is recomputed from that state on
request; nothing is cached between calls and sessions share nothing.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import matplotlib.pyplot as plt
import pandas as pd

import visualisations as viz
from customer_segmentation import cluster_profile, segment_customers
from dashboard_config import get_dashboard_config, get_file_paths, setup_logging, validate_config
from dashboard_errors import InvalidConfiguration
from data_cleaning import cleaning_report, format_cleaning_summary, missing_summary
from data_loading import encode_transactions, load_transactions
from descriptive_analysis import (
    build_insights,
    payment_type_summary,
    spend_by_age,
    spend_by_city,
    spending_distribution,
    top_item_by_city,
)
from market_basket import format_rules_table, item_frequency, mine_rules, rule_count_text

log = logging.getLogger(__name__)


@dataclass
class DashboardSession:
    records: pd.DataFrame
    transactions: List[frozenset]
    config: Dict[str, Any] = field(default_factory=get_dashboard_config)


def load_session(source, config: Optional[Dict[str, Any]] = None) -> DashboardSession:
    """
    Load an upload and build a fresh session around it.

    Raises:
        LoadError: If the file cannot be read; the session is not created
        InvalidConfiguration: If ``config`` is out of range
    """
    checked = validate_config(config or {})
    records = load_transactions(source)
    transactions = encode_transactions(records)
    return DashboardSession(records=records, transactions=transactions, config=checked)


def apply_config(session: DashboardSession, **changes) -> DashboardSession:
    """
    Merge ``changes`` into the session config.

    The new config is validated first; if it is rejected the session keeps
    its previous config and the error propagates.
    """
    session.config = validate_config({**session.config, **changes})
    log.info(f"  Config updated: {changes}")
    return session


# ─────────────────────────────────────────────────────────────────
# OUTPUTS
# ─────────────────────────────────────────────────────────────────

def compute_outputs(session: DashboardSession) -> dict:
    """
    Compute every dashboard output from the session's data and config.

    Returns:
        dict: {
            'cleaning_summary' : "Duplicates: N | Missing values: M",
            'missing_summary'  : per-column missing counts,
            'rule_count'       : "Number of rules: N",
            'rules'            : association rules dataframe,
            'rules_table'      : formatted rules or "No rules found",
            'item_frequency'   : top items with absolute/relative counts,
            'segmentation'     : SegmentationResult, or None when clustering is skipped,
            'segmentation_note': why clustering was skipped, else None,
            'cluster_profile'  : per-cluster summary, or None,
            'payment_types'    : payment type counts and shares,
            'spend_by_age'     : total spend per age,
            'spend_by_city'    : total spend per city,
            'spend_summary'    : distribution of ``total``,
            'top_items'        : most sold item per city,
            'insights'         : insights text
        }
    """
    cfg = session.config
    records = session.records

    log.info("[1/4] Cleaning diagnostics ...")
    report = cleaning_report(records)

    log.info("[2/4] Association rules ...")
    rules = mine_rules(
        session.transactions,
        min_support=cfg["min_support"],
        min_confidence=cfg["min_confidence"],
        min_rule_len=cfg["min_rule_len"],
    )

    log.info("[3/4] Clustering ...")
    segmentation, segmentation_note = None, None
    try:
        segmentation = segment_customers(
            records,
            num_clusters=cfg["num_clusters"],
            n_init=cfg["kmeans_n_init"],
            max_iter=cfg["kmeans_max_iter"],
            random_state=cfg["random_state"],
        )
    except InvalidConfiguration as e:
        # The other outputs do not depend on the clusters
        segmentation_note = f"Clustering skipped: {e}"
        log.warning(f"  {segmentation_note}")

    log.info("[4/4] Descriptive summaries ...")
    top_items = top_item_by_city(records)

    return {
        "cleaning_summary": format_cleaning_summary(report),
        "missing_summary": missing_summary(records),
        "rule_count": rule_count_text(rules),
        "rules": rules,
        "rules_table": format_rules_table(rules),
        "item_frequency": item_frequency(session.transactions, top_n=cfg["top_n_items"]),
        "segmentation": segmentation,
        "segmentation_note": segmentation_note,
        "cluster_profile": cluster_profile(segmentation.age_clusters) if segmentation is not None else None,
        "payment_types": payment_type_summary(records),
        "spend_by_age": spend_by_age(records),
        "spend_by_city": spend_by_city(records),
        "spend_summary": spending_distribution(records),
        "top_items": top_items,
        "insights": build_insights(top_items),
    }


def render_charts(session: DashboardSession, outputs: dict, report_dir: Path) -> List[Path]:
    """Write every chart as a PNG into ``report_dir`` and return the paths."""
    report_dir = Path(report_dir)
    report_dir.mkdir(parents=True, exist_ok=True)

    segmentation = outputs["segmentation"]
    age_clusters = (segmentation.age_clusters if segmentation is not None
                    else pd.DataFrame(columns=["age", "Total", "cluster"]))

    charts = [
        ("cluster_scatter.png", viz.plot_cluster_scatter, age_clusters),
        ("rules_graph.png", viz.plot_rules_network, outputs["rules"]),
        ("item_frequency.png", viz.plot_item_frequency, outputs["item_frequency"]),
        ("payment_types.png", viz.plot_payment_pie, outputs["payment_types"]),
        ("spend_by_age.png", viz.plot_spend_by_age, outputs["spend_by_age"]),
        ("spend_by_city.png", viz.plot_spend_by_city, outputs["spend_by_city"]),
        ("spend_boxplot.png", viz.plot_spend_boxplot, session.records),
    ]

    written = []
    for filename, plot, data in charts:
        path = report_dir / filename
        fig = plot(data, save_path=path)
        plt.close(fig)
        written.append(path)
    return written


def save_tables(outputs: dict, output_dir: Path) -> List[Path]:
    """Write the tabular outputs as CSVs into ``output_dir``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "missing_summary.csv": outputs["missing_summary"],
        "association_rules.csv": outputs["rules_table"],
        "item_frequency.csv": outputs["item_frequency"],
        "payment_types.csv": outputs["payment_types"],
        "spend_by_age.csv": outputs["spend_by_age"],
        "spend_by_city.csv": outputs["spend_by_city"],
        "spend_summary.csv": outputs["spend_summary"],
        "top_items_by_city.csv": outputs["top_items"],
    }

    segmentation = outputs["segmentation"]
    if segmentation is not None:
        tables["age_clusters.csv"] = segmentation.age_clusters
        tables["customer_clusters.csv"] = segmentation.customers
        tables["cluster_profile.csv"] = outputs["cluster_profile"]

    written = []
    for filename, table in tables.items():
        path = output_dir / filename
        table.to_csv(path, index=False)
        written.append(path)
    log.info(f"  Saved {len(written)} tables to {output_dir}")

    insights_path = output_dir / "insights.txt"
    insights_path.write_text(outputs["insights"] + "\n", encoding="utf-8")
    written.append(insights_path)
    return written


# ─────────────────────────────────────────────────────────────────
# MAIN PIPELINE
# ─────────────────────────────────────────────────────────────────

def run_dashboard_pipeline(input_file: Optional[Path] = None,
                           config: Optional[Dict[str, Any]] = None,
                           base_dir: Optional[Path] = None) -> dict:
    """
    Run the whole dashboard once, writing tables and charts to disk.

    Steps:
        1. Load the upload and encode transactions
        2. Compute all outputs
        3. Save CSVs to data/processed/
        4. Save charts to reports/
        5. Print the text outputs

    Returns:
        dict: The outputs from ``compute_outputs``
    """
    paths = get_file_paths(base_dir)
    input_file = Path(input_file) if input_file is not None else paths["input_file"]

    print("\n" + "=" * 60)
    print("  GROCERY CUSTOMER ANALYTICS")
    print("=" * 60)

    session = load_session(input_file, config=get_dashboard_config(config))
    outputs = compute_outputs(session)

    save_tables(outputs, paths["output_dir"])
    render_charts(session, outputs, paths["report_dir"])

    print("\n" + "=" * 60)
    print("  DATA CLEANING")
    print("=" * 60)
    print(f"  {outputs['cleaning_summary']}")

    print("\n" + "=" * 60)
    print("  ASSOCIATION RULES")
    print("=" * 60)
    print(f"  {outputs['rule_count']}")
    print(outputs["rules_table"].head(10).to_string(index=False))

    print("\n" + "=" * 60)
    print(f"  CLUSTERS (k={session.config['num_clusters']})")
    print("=" * 60)
    if outputs["segmentation"] is None:
        print(f"  {outputs['segmentation_note']}")
    else:
        print(outputs["cluster_profile"].to_string(index=False))

    print("\n" + "=" * 60)
    print("  INSIGHTS")
    print("=" * 60)
    print(outputs["insights"])

    return outputs


if __name__ == "__main__":
    setup_logging()
    run_dashboard_pipeline()
