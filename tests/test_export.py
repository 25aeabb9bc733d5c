"""Tests for CSV export."""

from datetime import date

from calorie_logger.services.export import CSV_HEADERS, export_csv, export_filename
from calorie_logger.services.stats import sorted_flat_view
from tests.conftest import make_entry


def test_export_has_header_plus_one_line_per_row() -> None:
    log = {
        "2024-01-01": [make_entry("Apple"), make_entry("Tea")],
        "2024-01-02": [make_entry("Rice")],
    }
    rows = sorted_flat_view(log, "date", "asc")

    lines = export_csv(rows).split("\n")

    assert len(lines) == len(rows) + 1
    assert lines[0] == ",".join(CSV_HEADERS)
    assert lines[1] == '2024-01-01,"Apple","1 medium",95,0,25,0,9'


def test_export_doubles_quotes_in_text_fields() -> None:
    rows = sorted_flat_view(
        {"2024-01-01": [make_entry('12" pizza', quantity='1 "large" slice')]}
    )

    line = export_csv(rows).split("\n")[1]

    assert '"12"" pizza"' in line
    assert '"1 ""large"" slice"' in line


def test_export_of_empty_log_is_header_only() -> None:
    assert export_csv([]) == ",".join(CSV_HEADERS)


def test_export_filename_uses_date() -> None:
    assert export_filename(date(2024, 5, 9)) == "food_log_2024-05-09.csv"
