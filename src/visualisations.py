"""
Chart builders for the dashboard outputs.

Each function takes an already computed summary, returns the matplotlib
Figure and, when ``save_path`` is given, writes it as a PNG. Callers own the
figure and should close it when done.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import seaborn as sns
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────
# THEME
# ─────────────────────────────────────────────────────────────────
DARK_BG = "#0d0f14"
SURFACE = "#13161e"
TEXT = "#e2e8f0"
MUTED = "#94a3b8"

CLUSTER_PALETTE = ["#10b981", "#3b82f6", "#f59e0b", "#ef4444"]
PAYMENT_COLORS = ["#22c55e", "#2563eb", "#f59e0b", "#a78bfa", "#ef4444"]

STRENGTH_COLORS = {
    "Very Strong": "#10b981",
    "Strong":      "#3b82f6",
    "Moderate":    "#f59e0b",
    "Weak":        "#94a3b8",
    "None":        "#475569",
}


def _apply_dark_style(fig, ax):
    fig.patch.set_facecolor(DARK_BG)
    ax.set_facecolor(SURFACE)
    ax.tick_params(colors=MUTED)
    for spine in ax.spines.values():
        spine.set_color("#252a38")
    for label in ax.get_xticklabels() + ax.get_yticklabels():
        label.set_color(MUTED)
    ax.title.set_color(TEXT)
    ax.xaxis.label.set_color(MUTED)
    ax.yaxis.label.set_color(MUTED)


def _finish(fig: Figure, save_path: Optional[Path]) -> Figure:
    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight", facecolor=DARK_BG)
        log.info(f"  Saved: {Path(save_path).name}")
    return fig


def _placeholder(title: str, save_path: Optional[Path]) -> Figure:
    fig, ax = plt.subplots(figsize=(8, 5))
    _apply_dark_style(fig, ax)
    ax.axis("off")
    ax.set_title(title, color=TEXT, fontsize=13, fontweight="bold")
    return _finish(fig, save_path)


# ─────────────────────────────────────────────────────────────────
# CLUSTERING
# ─────────────────────────────────────────────────────────────────

def plot_cluster_scatter(age_clusters: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    """Age vs total spending, coloured and annotated by cluster label."""
    if age_clusters.empty:
        return _placeholder("No clusters to plot.", save_path)

    fig, ax = plt.subplots(figsize=(10, 7))
    _apply_dark_style(fig, ax)

    labels = sorted(age_clusters["cluster"].unique())
    palette = {c: CLUSTER_PALETTE[(c - 1) % len(CLUSTER_PALETTE)] for c in labels}
    sns.scatterplot(
        data=age_clusters.astype({"age": float}), x="age", y="Total", hue="cluster",
        palette=palette, s=90, edgecolor="none", ax=ax,
    )
    for _, row in age_clusters.iterrows():
        ax.annotate(str(int(row["cluster"])), (row["age"], row["Total"]),
                    textcoords="offset points", xytext=(0, 8),
                    ha="center", color=TEXT, fontsize=8)

    ax.set_xlabel("Age")
    ax.set_ylabel("Total Spending")
    ax.set_title("Clustering of Age vs Total Spending", fontsize=13, fontweight="bold", pad=15)
    legend = ax.get_legend()
    if legend is not None:
        legend.get_frame().set_facecolor("#1a1e2a")
        for text in legend.get_texts():
            text.set_color(TEXT)
    return _finish(fig, save_path)


# ─────────────────────────────────────────────────────────────────
# ASSOCIATION RULES
# ─────────────────────────────────────────────────────────────────

def plot_rules_network(rules: pd.DataFrame,
                       save_path: Optional[Path] = None,
                       top_n: int = 12) -> Figure:
    """
    Items as nodes on a circle, rules as arrows from antecedent items to
    consequent items. Arrow width follows confidence, colour follows lift.

    Uses the ``top_n`` most confident rules to keep the graph readable.
    """
    if rules.empty:
        return _placeholder("No association rules found.", save_path)

    top = rules.head(top_n)
    nodes = sorted({item for side in ("antecedents", "consequents")
                    for items in top[side] for item in items})
    angles = np.linspace(0, 2 * np.pi, len(nodes), endpoint=False)
    positions = {node: (np.cos(a), np.sin(a)) for node, a in zip(nodes, angles)}

    fig, ax = plt.subplots(figsize=(12, 10))
    fig.patch.set_facecolor(DARK_BG)
    ax.set_facecolor(DARK_BG)
    ax.set_aspect("equal")
    ax.axis("off")

    for _, row in top.iterrows():
        color = STRENGTH_COLORS.get(row["strength"], MUTED)
        lw = max(1, row["confidence"] * 6)
        for a in row["antecedents"]:
            for c in row["consequents"]:
                ax.annotate(
                    "",
                    xy=positions[c], xytext=positions[a],
                    arrowprops=dict(arrowstyle="-|>", color=color, lw=lw,
                                    alpha=0.7, mutation_scale=15),
                )

    for node, (x, y) in positions.items():
        ax.scatter(x, y, s=800, color="#1a1e2a", edgecolors="#f97316", linewidths=2, zorder=3)
        ax.text(x, y - 0.15, node, ha="center", va="top", color=TEXT, fontsize=8, fontweight="bold")

    legend_elements = [Line2D([0], [0], color=c, linewidth=3, label=s)
                       for s, c in STRENGTH_COLORS.items()]
    legend = ax.legend(handles=legend_elements, loc="upper left",
                       framealpha=0.2, labelcolor=TEXT, fontsize=9)
    legend.get_frame().set_facecolor("#1a1e2a")

    ax.set_title("Association Rules Graph\nArrows = buy direction  |  Width = Confidence  |  Colour = Lift",
                 color=TEXT, fontsize=12, fontweight="bold", pad=20)
    return _finish(fig, save_path)


def plot_item_frequency(freq: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    """Top items side by side: relative frequency and absolute count."""
    if freq.empty:
        return _placeholder("No items to plot.", save_path)

    fig, (ax_rel, ax_abs) = plt.subplots(1, 2, figsize=(14, 6))
    for ax, column, color, title in [
        (ax_rel, "relative", "skyblue", "Top Items (Relative)"),
        (ax_abs, "count", "orange", "Top Items (Absolute)"),
    ]:
        _apply_dark_style(fig, ax)
        ax.bar(freq["item"], freq[column], color=color, edgecolor="none")
        ax.set_title(title, fontsize=12, fontweight="bold")
        ax.set_ylabel("item frequency (relative)" if column == "relative" else "item frequency (absolute)")
        ax.tick_params(axis="x", rotation=60)
    return _finish(fig, save_path)


# ─────────────────────────────────────────────────────────────────
# DESCRIPTIVE
# ─────────────────────────────────────────────────────────────────

def plot_payment_pie(payments: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    """Payment type shares with percent labels and a legend."""
    if payments.empty:
        return _placeholder("No payment data.", save_path)

    fig, ax = plt.subplots(figsize=(8, 8))
    fig.patch.set_facecolor(DARK_BG)
    colors = [PAYMENT_COLORS[i % len(PAYMENT_COLORS)] for i in range(len(payments))]
    ax.pie(payments["count"], labels=payments["label"], colors=colors,
           textprops={"color": TEXT}, startangle=90, counterclock=False)
    ax.set_title("Payment Types", color=TEXT, fontsize=13, fontweight="bold")
    ax.legend(list(payments["paymentType"].astype(str)), loc="upper right", framealpha=0.2, labelcolor=TEXT)
    return _finish(fig, save_path)


def plot_spend_by_age(age_spend: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)
    ax.bar(age_spend["age"].astype(str), age_spend["Total"], color="#dc2626", edgecolor="none")
    ax.set_xlabel("Age")
    ax.set_ylabel("Total Spending")
    ax.set_title("Total Spending by Age", fontsize=13, fontweight="bold")
    ax.tick_params(axis="x", rotation=90)
    return _finish(fig, save_path)


def plot_spend_by_city(city_spend: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)
    ax.bar(city_spend["city"].astype(str), city_spend["Total"], color="skyblue", edgecolor="none")
    ax.set_xlabel("City")
    ax.set_ylabel("Total Spending")
    ax.set_title("Spending by City", fontsize=13, fontweight="bold")
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, _: f"{x:,.0f}"))
    ax.tick_params(axis="x", rotation=45)
    return _finish(fig, save_path)


def plot_spend_boxplot(records: pd.DataFrame, save_path: Optional[Path] = None) -> Figure:
    fig, ax = plt.subplots(figsize=(7, 7))
    _apply_dark_style(fig, ax)
    sns.boxplot(y=records["total"].dropna(), color="#eab308", ax=ax)
    ax.set_ylabel("total")
    ax.set_title("Total Spending Distribution", fontsize=13, fontweight="bold")
    return _finish(fig, save_path)
