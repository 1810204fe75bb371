import pytest

from dashboard_config import DASHBOARD_CONFIG, get_dashboard_config, get_file_paths, validate_config
from dashboard_errors import InvalidConfiguration


def test_defaults_are_valid():
    config = validate_config({})
    assert config == DASHBOARD_CONFIG
    assert (config["num_clusters"], config["min_support"], config["min_confidence"]) == (3, 0.05, 0.06)


def test_validate_does_not_modify_input():
    raw = {"num_clusters": "4"}
    config = validate_config(raw)
    assert config["num_clusters"] == 4
    assert raw == {"num_clusters": "4"}


@pytest.mark.parametrize("changes", [
    {"num_clusters": 1},
    {"num_clusters": 5},
    {"num_clusters": 2.5},
    {"min_support": 0},
    {"min_support": 1.5},
    {"min_confidence": 0.0001},
    {"min_confidence": "high"},
    {"random_state": "seed"},
    {"colour": "blue"},
])
def test_invalid_values_rejected(changes):
    with pytest.raises(InvalidConfiguration):
        validate_config(changes)


def test_bounds_are_inclusive():
    config = validate_config({"num_clusters": 4, "min_support": 1, "min_confidence": 0.001})
    assert config["min_support"] == 1.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GROCERY_NUM_CLUSTERS", "2")
    monkeypatch.setenv("GROCERY_MIN_SUPPORT", "0.1")
    monkeypatch.setenv("GROCERY_RANDOM_STATE", "none")

    config = get_dashboard_config()
    assert config["num_clusters"] == 2
    assert config["min_support"] == 0.1
    assert config["random_state"] is None

    assert get_dashboard_config({"num_clusters": 4})["num_clusters"] == 4


def test_bad_environment_value(monkeypatch):
    monkeypatch.setenv("GROCERY_MIN_CONFIDENCE", "2")
    with pytest.raises(InvalidConfiguration):
        get_dashboard_config()


def test_file_paths(tmp_path, monkeypatch):
    paths = get_file_paths(tmp_path)
    assert paths["output_dir"] == tmp_path / "data" / "processed"
    assert paths["report_dir"] == tmp_path / "reports"
    assert paths["input_file"] == tmp_path / "grocery_transactions.xlsx"

    monkeypatch.setenv("GROCERY_INPUT_FILE", str(tmp_path / "upload.csv"))
    assert get_file_paths(tmp_path)["input_file"] == tmp_path / "upload.csv"
