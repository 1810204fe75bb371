"""
Load uploaded grocery transaction spreadsheets and turn the ``items``
column into per-row transactions for itemset mining.
"""

import logging
import re
import zipfile
from pathlib import Path
from typing import List, Union

import pandas as pd
from mlxtend.preprocessing import TransactionEncoder
from openpyxl.utils.exceptions import InvalidFileException

from dashboard_errors import LoadError

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["customer", "age", "city", "paymentType", "items", "total"]

# Comma optionally followed by whitespace
ITEM_SEPARATOR = re.compile(r",\s*")


# ─────────────────────────────────────────────────────────────────
# 1. DATASET LOADER
# ─────────────────────────────────────────────────────────────────

def _is_csv(source) -> bool:
    name = source if isinstance(source, (str, Path)) else getattr(source, "name", "")
    return str(name).lower().endswith(".csv")


def _read_table(source) -> pd.DataFrame:
    if _is_csv(source):
        return pd.read_csv(source, low_memory=False)
    return pd.read_excel(source, engine="openpyxl")


def load_transactions(source: Union[str, Path, object]) -> pd.DataFrame:
    """
    Read an uploaded transaction table into a DataFrame, one row per record.

    ``.csv`` files go through ``read_csv``; anything else is treated as an
    Excel workbook. ``age`` and ``total`` are parsed as numbers; cells that
    do not parse become missing values instead of failing the load.

    Args:
        source: Path to the file, or a binary file-like object (an upload)

    Returns:
        pd.DataFrame: Records in file order with the required columns

    Raises:
        LoadError: If the file cannot be read or a required column is absent
    """
    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise LoadError(f"Input file not found: {source}")

    label = Path(source).name if isinstance(source, (str, Path)) else getattr(source, "name", "upload")
    log.info(f"Loading {label} ...")

    try:
        df = _read_table(source)
    except (ValueError, OSError, KeyError, zipfile.BadZipFile,
            InvalidFileException, pd.errors.ParserError) as e:
        # A zip that is not a workbook surfaces as KeyError from openpyxl
        raise LoadError(f"Could not parse {label} as tabular data: {e}") from e

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise LoadError(f"Missing columns in {label}: {missing}")

    for col in ("age", "total"):
        parsed = pd.to_numeric(df[col], errors="coerce")
        coerced = int((parsed.isna() & df[col].notna()).sum())
        if coerced:
            log.warning(f"  {coerced} malformed '{col}' cell(s) set to missing")
        df[col] = parsed

    fractional = int((df["age"].notna() & (df["age"] % 1 != 0)).sum())
    if fractional:
        log.warning(f"  {fractional} non-integer 'age' cell(s) rounded to whole years")
    df["age"] = df["age"].round().astype("Int64")

    log.info(f"  Rows      : {len(df):,}")
    log.info(f"  Customers : {df['customer'].nunique():,}")
    log.info(f"  Cities    : {df['city'].nunique():,}")
    return df


# ─────────────────────────────────────────────────────────────────
# 2. TRANSACTION ENCODER
# ─────────────────────────────────────────────────────────────────

def split_items(raw) -> List[str]:
    """
    Split a raw ``items`` cell into trimmed item names.

    Duplicates are kept; empty tokens are dropped. Missing cells give ``[]``.
    """
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return []
    tokens = (token.strip() for token in ITEM_SEPARATOR.split(str(raw)))
    return [token for token in tokens if token]


def encode_transactions(records: pd.DataFrame) -> List[frozenset]:
    """
    Build one transaction (set of distinct items) per record.

    The result has the same length and order as ``records``; rows with no
    items become empty transactions.
    """
    transactions = [frozenset(split_items(raw)) for raw in records["items"]]

    empty = sum(1 for t in transactions if not t)
    log.info(f"  Transactions : {len(transactions):,}  ({empty} empty)")
    return transactions


def build_basket_matrix(transactions: List[frozenset]) -> pd.DataFrame:
    """
    Build the transaction × item boolean matrix expected by mlxtend.

    Each row = one transaction, each column = one item. Empty transactions
    stay in as all-False rows so they still count in the support
    denominator.

    Args:
        transactions (list): Output of ``encode_transactions``

    Returns:
        pd.DataFrame: Boolean matrix, columns sorted by item name
    """
    baskets = [sorted(t) for t in transactions]
    te = TransactionEncoder()
    matrix = te.fit(baskets).transform(baskets)
    basket = pd.DataFrame(matrix, columns=te.columns_)

    if basket.shape[1]:
        log.info(f"  Basket matrix : {basket.shape[0]:,} transactions × {basket.shape[1]} items")
    return basket
