"""
Market basket analysis over the ``items`` column.

APriori finds the itemsets whose support clears ``min_support``; every
frequent itemset of two or more items is then split into antecedent →
consequent rules, kept when their confidence clears ``min_confidence``.

Both steps are delegated to mlxtend. An empty result (nothing frequent, or
no rule confident enough) is a normal outcome and comes back as an empty
DataFrame with the usual columns.
"""

import logging
from typing import List

import pandas as pd
from mlxtend.frequent_patterns import apriori, association_rules

from data_loading import build_basket_matrix

log = logging.getLogger(__name__)

RULE_COLUMNS = [
    "antecedents", "consequents",
    "antecedents_str", "consequents_str", "rule_str",
    "support", "confidence", "coverage", "lift", "count", "strength",
]

NO_RULES_MESSAGE = "No rules found"


# ─────────────────────────────────────────────────────────────────
# 1. FREQUENT ITEMSETS
# ─────────────────────────────────────────────────────────────────

def mine_frequent_itemsets(transactions: List[frozenset],
                           min_support: float = 0.05) -> pd.DataFrame:
    """
    Run APriori over the transactions.

    Candidates grow one item at a time and any candidate with an infrequent
    subset is pruned before its support is counted.

    Args:
        transactions (list): One frozenset of items per record
        min_support (float): Minimum fraction of transactions

    Returns:
        pd.DataFrame: ``support``, ``itemsets`` (frozenset) and ``length``
    """
    basket = build_basket_matrix(transactions)
    if basket.empty or basket.shape[1] == 0:
        log.warning("  No items in any transaction, nothing to mine")
        return pd.DataFrame(columns=["support", "itemsets", "length"])

    log.info(f"  Running APriori (min_support={min_support}) ...")
    itemsets = apriori(basket, min_support=min_support, use_colnames=True)
    itemsets["length"] = itemsets["itemsets"].apply(len)

    log.info(f"  Frequent itemsets found : {len(itemsets):,}")
    log.info(f"  Pairs or larger         : {(itemsets['length'] >= 2).sum():,}")
    return itemsets


# ─────────────────────────────────────────────────────────────────
# 2. RULES
# ─────────────────────────────────────────────────────────────────

def lift_label(lift: float) -> str:
    if lift >= 5:
        return "Very Strong"
    elif lift >= 3:
        return "Strong"
    elif lift >= 2:
        return "Moderate"
    elif lift > 1:
        return "Weak"
    else:
        return "None"


def _empty_rules() -> pd.DataFrame:
    return pd.DataFrame(columns=RULE_COLUMNS)


def generate_rules(itemsets: pd.DataFrame,
                   n_transactions: int,
                   min_confidence: float = 0.06,
                   min_rule_len: int = 2) -> pd.DataFrame:
    """
    Generate association rules from frequent itemsets.

    From itemset {A, B, C} every non-empty proper subset becomes an
    antecedent with the rest as consequent: A→BC, B→AC, C→AB, AB→C, AC→B,
    BC→A. Rules below ``min_confidence`` or with fewer than ``min_rule_len``
    items in total are dropped.

    Args:
        itemsets (pd.DataFrame): Output of ``mine_frequent_itemsets``
        n_transactions (int): Number of transactions the itemsets came from
        min_confidence (float): Minimum confidence threshold
        min_rule_len (int): Minimum items in antecedent + consequent

    Returns:
        pd.DataFrame: Rules sorted by confidence, then support, descending
    """
    if itemsets.empty or not (itemsets["length"] >= 2).any():
        log.warning("  No frequent itemset has two or more items, no rules")
        return _empty_rules()

    log.info(f"  Generating rules (confidence≥{min_confidence}, length≥{min_rule_len}) ...")
    rules = association_rules(
        itemsets.drop(columns=["length"]),
        num_itemsets=n_transactions,
        metric="confidence",
        min_threshold=min_confidence,
    )

    rule_len = rules["antecedents"].apply(len) + rules["consequents"].apply(len)
    rules = rules[rule_len >= min_rule_len].copy()
    if rules.empty:
        log.warning("  No rules above thresholds")
        return _empty_rules()

    rules["antecedents_str"] = rules["antecedents"].apply(lambda x: ", ".join(sorted(x)))
    rules["consequents_str"] = rules["consequents"].apply(lambda x: ", ".join(sorted(x)))
    rules["rule_str"] = "{" + rules["antecedents_str"] + "} => {" + rules["consequents_str"] + "}"
    rules["coverage"] = rules["antecedent support"]
    rules["count"] = (rules["support"] * n_transactions).round().astype(int)
    rules["strength"] = rules["lift"].apply(lift_label)

    rules = (
        rules.sort_values(["confidence", "support"], ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )

    log.info(f"  Rules generated   : {len(rules):,}")
    log.info(f"  Strong (lift ≥ 3) : {rules['strength'].isin(['Strong', 'Very Strong']).sum()}")
    return rules[RULE_COLUMNS]


def mine_rules(transactions: List[frozenset],
               min_support: float = 0.05,
               min_confidence: float = 0.06,
               min_rule_len: int = 2) -> pd.DataFrame:
    """Frequent itemsets followed by rule generation, in one call."""
    itemsets = mine_frequent_itemsets(transactions, min_support=min_support)
    return generate_rules(
        itemsets,
        n_transactions=len(transactions),
        min_confidence=min_confidence,
        min_rule_len=min_rule_len,
    )


# ─────────────────────────────────────────────────────────────────
# 3. ITEM FREQUENCY
# ─────────────────────────────────────────────────────────────────

def item_frequency(transactions: List[frozenset], top_n: int = 10) -> pd.DataFrame:
    """
    Most frequent items across transactions.

    Returns:
        pd.DataFrame: ``item``, ``count`` (transactions containing it) and
                      ``relative`` (count / number of transactions)
    """
    counts = pd.Series([item for t in transactions for item in t], dtype="object").value_counts()
    freq = counts.rename_axis("item").reset_index(name="count")
    freq = freq.sort_values(["count", "item"], ascending=[False, True]).head(top_n)
    freq["relative"] = freq["count"] / len(transactions) if transactions else 0.0
    return freq.reset_index(drop=True)


# ─────────────────────────────────────────────────────────────────
# 4. DISPLAY HELPERS
# ─────────────────────────────────────────────────────────────────

def rule_count_text(rules: pd.DataFrame) -> str:
    return f"Number of rules: {len(rules)}"


def format_rules_table(rules: pd.DataFrame) -> pd.DataFrame:
    """
    Rules as a display table, or a single "No rules found" row.

    ``coverage`` is the antecedent support and ``count`` the number of
    transactions holding the whole rule.
    """
    if rules.empty:
        return pd.DataFrame({"Message": [NO_RULES_MESSAGE]})

    table = pd.DataFrame({
        "rules": rules["rule_str"],
        "support": rules["support"].map(lambda x: f"{x:.3f}"),
        "confidence": rules["confidence"].map(lambda x: f"{x:.3f}"),
        "coverage": rules["coverage"].map(lambda x: f"{x:.3f}"),
        "lift": rules["lift"].round(4),
        "count": rules["count"],
    })
    return table.reset_index(drop=True)
