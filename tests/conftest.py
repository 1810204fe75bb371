import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from data_loading import encode_transactions, load_transactions

SAMPLE_CSV = """customer,age,city,paymentType,items,total
C1,22,Cairo,Cash,"whole milk, yogurt, bread",120
C2,37,Alexandria,Credit,"whole milk, yogurt",300
C3,55,Cairo,Cash,"rolls/buns, soda",80
C1,22,Cairo,Credit,"yogurt, whole milk",60
C4,37,Giza,Cash,,40
C5,60,Alexandria,Credit,"soda, whole milk, soda",500
C2,37,Alexandria,Credit,"whole milk, yogurt",300
C6,,Giza,Cash,bread,abc
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("GROCERY_NUM_CLUSTERS", "GROCERY_MIN_SUPPORT", "GROCERY_MIN_CONFIDENCE",
                 "GROCERY_RANDOM_STATE", "GROCERY_INPUT_FILE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "transactions.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def records(sample_csv):
    return load_transactions(sample_csv)


@pytest.fixture
def transactions(records):
    return encode_transactions(records)


@pytest.fixture
def basket_transactions():
    return [
        frozenset({"milk", "bread"}),
        frozenset({"milk", "eggs"}),
        frozenset({"milk", "bread", "eggs"}),
        frozenset({"bread"}),
    ]


@pytest.fixture
def outlier_records():
    ages = [20, 20, 40, 40, 60, 60]
    totals = [10, 10, 500, 500, 12, 12]
    return pd.DataFrame({
        "customer": [f"c{i}" for i in range(len(ages))],
        "age": pd.array(ages, dtype="Int64"),
        "city": ["Cairo"] * len(ages),
        "paymentType": ["Cash"] * len(ages),
        "items": ["whole milk"] * len(ages),
        "total": [float(t) for t in totals],
    })
