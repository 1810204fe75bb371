"""
Configuration, paths and logging setup for the grocery analytics pipeline.

Defaults mirror the dashboard controls (number of clusters, support,
confidence). Environment variables override them so the batch pipeline can
be tuned without editing code.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dashboard_errors import InvalidConfiguration

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# 1. LOGGING
# ─────────────────────────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for the pipeline entry point."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


# ─────────────────────────────────────────────────────────────────
# 2. DASHBOARD CONFIG
# ─────────────────────────────────────────────────────────────────
DASHBOARD_CONFIG = {
    # Number of k-means clusters over (age, total spend)
    "num_clusters": 3,

    # Itemset must appear in this fraction of all transactions
    "min_support": 0.05,

    # P(consequent | antecedent) threshold for a rule to be kept
    "min_confidence": 0.06,

    # Items in antecedent + consequent; 2 = one item on each side
    "min_rule_len": 2,

    # k-means restarts (best inertia wins) and Lloyd iteration cap
    "kmeans_n_init": 10,
    "kmeans_max_iter": 300,

    # Seed for k-means initialisation; None gives a fresh run every time
    "random_state": 42,

    # Bars shown in the item frequency charts
    "top_n_items": 10,
}

# (min, max) inclusive bounds for the user-facing controls
CONFIG_LIMITS = {
    "num_clusters": (2, 4),
    "min_support": (0.001, 1.0),
    "min_confidence": (0.001, 1.0),
    "min_rule_len": (2, 10),
    "kmeans_n_init": (1, 100),
    "kmeans_max_iter": (1, 10_000),
    "top_n_items": (1, 100),
}

_INT_KEYS = {"num_clusters", "min_rule_len", "kmeans_n_init", "kmeans_max_iter", "top_n_items"}
_FLOAT_KEYS = {"min_support", "min_confidence"}

ENV_OVERRIDES = {
    "GROCERY_NUM_CLUSTERS": "num_clusters",
    "GROCERY_MIN_SUPPORT": "min_support",
    "GROCERY_MIN_CONFIDENCE": "min_confidence",
    "GROCERY_RANDOM_STATE": "random_state",
}


def _coerce(key: str, value: Any) -> Any:
    if key == "random_state":
        if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
            return None
        if isinstance(value, bool):
            raise InvalidConfiguration(f"random_state must be an integer or None, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"random_state must be an integer or None, got {value!r}") from e

    if isinstance(value, bool):
        raise InvalidConfiguration(f"{key} must be numeric, got {value!r}")

    if key in _INT_KEYS:
        try:
            as_float = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"{key} must be an integer, got {value!r}") from e
        if not as_float.is_integer():
            raise InvalidConfiguration(f"{key} must be an integer, got {value!r}")
        return int(as_float)

    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"{key} must be a number, got {value!r}") from e


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a configuration against the allowed ranges.

    Missing keys are filled from DASHBOARD_CONFIG. The input dict is not
    modified.

    Args:
        config (dict): Partial or full configuration

    Returns:
        dict: Normalised copy with every key present and correctly typed

    Raises:
        InvalidConfiguration: Unknown key, wrong type, or value out of range
    """
    unknown = set(config) - set(DASHBOARD_CONFIG)
    if unknown:
        raise InvalidConfiguration(f"Unknown configuration keys: {sorted(unknown)}")

    merged = {**DASHBOARD_CONFIG, **config}
    checked = {}
    for key, value in merged.items():
        value = _coerce(key, value)
        if key in CONFIG_LIMITS:
            low, high = CONFIG_LIMITS[key]
            if not low <= value <= high:
                raise InvalidConfiguration(
                    f"{key}={value} is outside the allowed range [{low}, {high}]"
                )
        checked[key] = value
    return checked


def get_dashboard_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the effective configuration: defaults, then environment, then overrides.

    Raises:
        InvalidConfiguration: If any resulting value is invalid
    """
    config = dict(DASHBOARD_CONFIG)
    for env_name, key in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is not None:
            log.info(f"  Config override from {env_name}: {key}={raw}")
            config[key] = raw
    if overrides:
        config.update(overrides)
    return validate_config(config)


# ─────────────────────────────────────────────────────────────────
# 3. PATHS
# ─────────────────────────────────────────────────────────────────
def get_file_paths(base_dir: Optional[Path] = None) -> dict:
    """Resolve input and output locations relative to the working directory."""
    if base_dir is None:
        base_dir = Path(os.getcwd())
    base_dir = Path(base_dir)

    return {
        "base_dir": base_dir,
        "input_file": Path(os.getenv("GROCERY_INPUT_FILE", base_dir / "grocery_transactions.xlsx")),
        "output_dir": base_dir / "data" / "processed",
        "report_dir": base_dir / "reports",
    }
