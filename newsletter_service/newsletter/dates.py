"""Normalisation of the date notations found in Japanese school notices."""

from __future__ import annotations

import re
import unicodedata
from datetime import date
from typing import Any, Optional

SEPARATOR_RE = re.compile(r"[年月/.]")
MONTH_DAY_RE = re.compile(r"^(\d{1,2})-(\d{1,2})$")
FULL_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
DAY_ONLY_RE = re.compile(r"^(\d{1,2})日$")
ISSUE_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-\d{1,2})?$")


def normalize_to_iso_date(date_str: Any, issue_month: Optional[str] = None) -> Optional[str]:
    """Resolve ``date_str`` to ``YYYY-MM-DD`` or ``None``.

    Year-omitted dates take their year from ``issue_month`` (current year when
    absent). A bare day such as ``15日`` is resolved only against a known issue
    month. Unknown notations are never guessed.
    """

    if not isinstance(date_str, str):
        return None
    text = unicodedata.normalize("NFKC", date_str).strip()
    if not text:
        return None
    text = re.sub(r"\s+", "", text)

    day_only = DAY_ONLY_RE.match(text)
    if day_only:
        month = normalize_issue_month(issue_month)
        if month is None:
            return None
        year, mon = month.split("-")
        return _build(year, mon, day_only.group(1))

    text = SEPARATOR_RE.sub("-", text).replace("日", "").strip("-")

    month_day = MONTH_DAY_RE.match(text)
    if month_day:
        month = normalize_issue_month(issue_month)
        year = month.split("-")[0] if month else str(date.today().year)
        return _build(year, month_day.group(1), month_day.group(2))

    full = FULL_DATE_RE.match(text)
    if full:
        return _build(*full.groups())

    return None


def normalize_issue_month(value: Any) -> Optional[str]:
    """Normalise an issue month (``2025-7``, ``2025年7月``, ``2025-07-15``) to ``YYYY-MM``."""

    if not isinstance(value, str):
        return None
    text = unicodedata.normalize("NFKC", value).strip()
    text = SEPARATOR_RE.sub("-", re.sub(r"\s+", "", text)).replace("日", "").strip("-")
    match = ISSUE_MONTH_RE.match(text)
    if not match:
        return None
    year, month = match.group(1), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return f"{year}-{month:02d}"


def _build(year: str, month: str, day: str) -> Optional[str]:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None
