from data_cleaning import CleaningReport, cleaning_report, format_cleaning_summary, missing_summary


def test_cleaning_report_counts(records):
    report = cleaning_report(records)
    assert report == CleaningReport(duplicate_count=1, missing_count=3)


def test_cleaning_report_is_deterministic_and_pure(records):
    before = records.copy()
    first = cleaning_report(records)
    second = cleaning_report(records)
    assert first == second
    assert records.equals(before)


def test_missing_summary(records):
    summary = missing_summary(records).set_index("column")
    assert summary.loc["items", "Missing"] == 1
    assert summary.loc["age", "Missing"] == 1
    assert summary.loc["customer", "Missing"] == 0
    assert summary.loc["total", "Missing_%"] == 12.5


def test_format_cleaning_summary():
    assert format_cleaning_summary(CleaningReport(2, 7)) == "Duplicates: 2 | Missing values: 7"
