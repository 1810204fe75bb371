import pytest

from market_basket import (
    NO_RULES_MESSAGE,
    RULE_COLUMNS,
    format_rules_table,
    generate_rules,
    item_frequency,
    lift_label,
    mine_frequent_itemsets,
    mine_rules,
    rule_count_text,
)


def _find(rules, antecedent, consequent):
    match = rules[
        (rules["antecedents"] == frozenset(antecedent))
        & (rules["consequents"] == frozenset(consequent))
    ]
    assert len(match) == 1, f"{antecedent} -> {consequent} not found"
    return match.iloc[0]


def test_milk_bread_rules_both_directions(basket_transactions):
    rules = mine_rules(basket_transactions, min_support=0.5, min_confidence=0.5)

    milk_bread = _find(rules, {"milk"}, {"bread"})
    assert milk_bread["support"] == pytest.approx(0.5)
    assert milk_bread["confidence"] == pytest.approx(2 / 3)

    bread_milk = _find(rules, {"bread"}, {"milk"})
    assert bread_milk["confidence"] == pytest.approx(2 / 3)


def test_rules_carry_coverage_and_count(basket_transactions):
    rules = mine_rules(basket_transactions, min_support=0.5, min_confidence=0.5)

    milk_bread = _find(rules, {"milk"}, {"bread"})
    assert milk_bread["coverage"] == pytest.approx(0.75)
    assert milk_bread["count"] == 2

    row = format_rules_table(rules).set_index("rules").loc["{milk} => {bread}"]
    assert row["coverage"] == "0.750"
    assert row["count"] == 2


def test_rule_metrics_respect_thresholds(transactions):
    min_support, min_confidence = 0.2, 0.3
    rules = mine_rules(transactions, min_support=min_support, min_confidence=min_confidence)

    assert not rules.empty
    assert list(rules.columns) == RULE_COLUMNS
    assert rules["support"].between(0, 1).all()
    assert rules["confidence"].between(0, 1).all()
    assert (rules["support"] >= min_support).all()
    assert (rules["confidence"] >= min_confidence).all()
    assert (rules["antecedents"].apply(len) >= 1).all()
    assert (rules["consequents"].apply(len) >= 1).all()


def test_rules_sorted_by_confidence_then_support(transactions):
    rules = mine_rules(transactions, min_support=0.1, min_confidence=0.1)
    keys = list(zip(rules["confidence"], rules["support"]))
    assert keys == sorted(keys, reverse=True)


def test_raising_support_never_adds_itemsets(transactions):
    counts = [len(mine_frequent_itemsets(transactions, min_support=s)) for s in (0.1, 0.2, 0.3, 0.5, 0.9)]
    assert counts == sorted(counts, reverse=True)


def test_empty_transaction_counts_toward_support():
    transactions = [frozenset({"milk"}), frozenset()]
    itemsets = mine_frequent_itemsets(transactions, min_support=0.1)
    assert len(itemsets) == 1
    assert itemsets.iloc[0]["support"] == pytest.approx(0.5)


def test_no_frequent_itemsets_is_empty_not_error(basket_transactions):
    rules = mine_rules(basket_transactions, min_support=0.99, min_confidence=0.5)
    assert rules.empty
    assert list(rules.columns) == RULE_COLUMNS


def test_no_confident_rules_is_empty():
    transactions = [frozenset({"a", "b"}), frozenset({"a"}), frozenset({"b"}), frozenset({"a", "b"})]
    itemsets = mine_frequent_itemsets(transactions, min_support=0.25)
    assert (itemsets["length"] == 2).any()

    rules = generate_rules(itemsets, n_transactions=len(transactions), min_confidence=0.9)
    assert rules.empty
    assert format_rules_table(rules).iloc[0]["Message"] == NO_RULES_MESSAGE


def test_all_transactions_empty():
    rules = mine_rules([frozenset(), frozenset()], min_support=0.1, min_confidence=0.1)
    assert rules.empty


def test_min_rule_len_filters_short_rules(basket_transactions):
    rules = mine_rules(basket_transactions, min_support=0.25, min_confidence=0.1, min_rule_len=3)
    sizes = rules["antecedents"].apply(len) + rules["consequents"].apply(len)
    assert not rules.empty
    assert (sizes >= 3).all()


def test_item_frequency(transactions):
    freq = item_frequency(transactions, top_n=2)
    assert list(freq["item"]) == ["whole milk", "yogurt"]
    assert list(freq["count"]) == [5, 4]
    assert freq.loc[0, "relative"] == pytest.approx(5 / 8)


def test_display_helpers(basket_transactions):
    rules = mine_rules(basket_transactions, min_support=0.5, min_confidence=0.5)
    assert rule_count_text(rules) == f"Number of rules: {len(rules)}"

    table = format_rules_table(rules)
    assert list(table.columns) == ["rules", "support", "confidence", "coverage", "lift", "count"]
    assert "0.667" in set(table["confidence"])

    empty = format_rules_table(rules.iloc[0:0])
    assert list(empty["Message"]) == [NO_RULES_MESSAGE]
    assert rule_count_text(rules.iloc[0:0]) == "Number of rules: 0"


@pytest.mark.parametrize("lift, label", [(6, "Very Strong"), (3, "Strong"), (2.5, "Moderate"), (1.2, "Weak"), (0.8, "None")])
def test_lift_label(lift, label):
    assert lift_label(lift) == label
