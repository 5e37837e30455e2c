import re
from datetime import date

import pytest

from newsletter.dates import normalize_issue_month, normalize_to_iso_date


def test_year_omitted_date_takes_issue_year():
    assert normalize_to_iso_date("8-31", "2025-08") == "2025-08-31"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025年8月31日", "2025-08-31"),
        ("２０２５年８月３１日", "2025-08-31"),
        ("2025/8/1", "2025-08-01"),
        ("2025.08.01", "2025-08-01"),
        ("2025-8-1", "2025-08-01"),
        ("8月1日", "2025-08-01"),
        ("８／１", "2025-08-01"),
        (" 9/3 ", "2025-09-03"),
    ],
)
def test_japanese_notations(raw, expected):
    assert normalize_to_iso_date(raw, "2025-07") == expected


def test_year_omitted_date_without_issue_month_uses_current_year():
    assert normalize_to_iso_date("12-24") == f"{date.today().year}-12-24"


def test_bare_day_needs_issue_month():
    assert normalize_to_iso_date("15日", "2025-07") == "2025-07-15"
    assert normalize_to_iso_date("15日") is None


@pytest.mark.parametrize("raw", ["来週", "7月上旬", "2025-13-01", "2025-02-30", "", None, 20250801, "10時"])
def test_unresolvable_dates_are_none(raw):
    assert normalize_to_iso_date(raw, "2025-07") is None


def test_resolved_dates_are_well_formed():
    pattern = re.compile(r"^\d{4}-\d{2}-\d{2}$")
    for raw in ("1-2", "2025年1月2日", "2025/12/31"):
        assert pattern.match(normalize_to_iso_date(raw, "2025-01"))


@pytest.mark.parametrize(
    "raw, expected",
    [("2025-7", "2025-07"), ("2025年7月", "2025-07"), ("2025-07-15", "2025-07"), ("2025-13", None), ("7月", None)],
)
def test_normalize_issue_month(raw, expected):
    assert normalize_issue_month(raw) == expected
