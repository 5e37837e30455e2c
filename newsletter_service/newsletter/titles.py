"""Heuristic newsletter title inference from the AI header and raw OCR text."""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .task_types import NewsletterHeader

logger = logging.getLogger(__name__)

KEEP_CHARS = set("々ー・、。-")

MONTH_RE = re.compile(r"(?<!\d)(\d{1,2})\s*月(?!曜)")
NEWSLETTER_WORD_RE = re.compile(r"(だより|便り|お知らせ|通信|レター)")
GENERIC_TITLE_RE = re.compile(r"^(園|学年|学級|クラス)?(だより|便り|お知らせ)$")
TRAILING_PUNCT_RE = re.compile(r"\s*[、。]+\s*$")
TERMINAL_PUNCT_RE = re.compile(r"[。.!?？！]$")
SENTENCE_ENDING_RE = re.compile(r"(です|ます|でした|だった|しています|されます)$")
COMMA_PERIOD_RE = re.compile(r"[、。,.]")


@dataclass(frozen=True)
class TitleWeights:
    """Tunable weights and thresholds of the title scorer."""

    position_weight: float = 0.8
    position_base: int = 10
    ideal_length: Tuple[int, int] = (4, 20)
    ideal_length_bonus: float = 2.0
    acceptable_length: int = 28
    acceptable_length_bonus: float = 0.5
    overlong_penalty: float = -2.0
    high_jp_ratio: float = 0.8
    high_jp_bonus: float = 1.5
    mid_jp_ratio: float = 0.6
    mid_jp_bonus: float = 0.5
    low_jp_penalty: float = -0.5
    sentence_length: int = 26
    sentence_penalty: float = -2.0
    no_punctuation_bonus: float = 0.5
    month_bonus: float = 1.0
    keyword_bonus: float = 1.0
    month_hint_bonus: float = 0.5
    min_score: float = 2.5
    min_jp_ratio: float = 0.6
    max_length: int = 24
    line_window: int = 12
    join_window: int = 8
    month_scan_lines: int = 20


DEFAULT_WEIGHTS = TitleWeights()


# ----------------------------------------------------------------------
# Text helpers
# ----------------------------------------------------------------------

def clean_line(text: Optional[str]) -> str:
    """NFKC-normalise a line, drop stray symbols and trailing 、。."""

    if not text:
        return ""
    normalized = unicodedata.normalize("NFKC", text)
    normalized = re.sub(r"[ \t　]+", " ", normalized)
    kept = "".join(
        ch
        for ch in normalized
        if ch in KEEP_CHARS or ch.isspace() or unicodedata.category(ch)[0] in ("L", "N")
    )
    return TRAILING_PUNCT_RE.sub("", kept).strip()


def _is_japanese(ch: str) -> bool:
    code = ord(ch)
    return (
        0x3041 <= code <= 0x309F  # hiragana
        or 0x30A1 <= code <= 0x30FA  # katakana
        or 0x30FD <= code <= 0x30FF
        or 0x31F0 <= code <= 0x31FF
        or 0x3400 <= code <= 0x4DBF  # CJK ext A
        or 0x4E00 <= code <= 0x9FFF
        or 0xF900 <= code <= 0xFAFF
        or 0x20000 <= code <= 0x2FFFF
        or ch in "々ー"
    )


def jp_ratio(text: str) -> float:
    """Share of Japanese characters, whitespace excluded."""

    chars = [ch for ch in text if not ch.isspace()]
    if not chars:
        return 0.0
    return sum(_is_japanese(ch) for ch in chars) / len(chars)


def has_month(text: Optional[str]) -> bool:
    if not text:
        return False
    return MONTH_RE.search(unicodedata.normalize("NFKC", text)) is not None


def has_newsletter_word(text: Optional[str]) -> bool:
    return bool(text) and NEWSLETTER_WORD_RE.search(text) is not None


def is_too_generic_title(text: Optional[str]) -> bool:
    """A missing, very short or bare 「園だより」-style title carries no information."""

    if not text:
        return True
    stripped = text.strip()
    if len(stripped) < 3:
        return True
    return GENERIC_TITLE_RE.match(stripped) is not None and not has_month(stripped)


def looks_sentence_like(text: str, weights: TitleWeights = DEFAULT_WEIGHTS) -> bool:
    if len(text) >= weights.sentence_length:
        return True
    return TERMINAL_PUNCT_RE.search(text) is not None or SENTENCE_ENDING_RE.search(text) is not None


def month_label(issue_month: Optional[str], issue_date: Optional[str] = None) -> Optional[str]:
    """Return ``"7月"`` for an issue month/date in July, else ``None``."""

    year_month = issue_month or (issue_date[:7] if issue_date else None)
    if not year_month or "-" not in year_month:
        return None
    try:
        month = int(year_month.split("-")[1])
    except ValueError:
        return None
    return f"{month}月" if 1 <= month <= 12 else None


def detect_month_from_text(raw_text: Optional[str], weights: TitleWeights = DEFAULT_WEIGHTS) -> Optional[str]:
    """Scan the top of the OCR text for a month token such as ``7月``."""

    if not raw_text:
        return None
    head = " ".join(raw_text.splitlines()[: weights.month_scan_lines])
    for match in MONTH_RE.finditer(unicodedata.normalize("NFKC", head)):
        month = int(match.group(1))
        if 1 <= month <= 12:
            return f"{month}月"
    return None


# ----------------------------------------------------------------------
# Candidates and scoring
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class TitleCandidate:
    """Candidate title with the OCR line index it starts at."""

    text: str
    line_index: int


def collect_title_candidates(
    raw_text: Optional[str], weights: TitleWeights = DEFAULT_WEIGHTS
) -> List[TitleCandidate]:
    """Leading OCR lines plus joins of short neighbouring lines.

    Layouts often print the month and the newsletter name on separate lines
    (「7月」 / 「園だより」), sometimes with a line in between. A join keeps
    the index of its first line.
    """

    if not raw_text:
        return []
    lines: List[str] = []
    for raw_line in raw_text.splitlines():
        cleaned = clean_line(raw_line)
        if cleaned and cleaned not in lines:
            lines.append(cleaned)
        if len(lines) >= weights.line_window:
            break

    candidates = [TitleCandidate(line, index) for index, line in enumerate(lines)]
    for i in range(min(len(lines) - 1, weights.join_window)):
        first, second = lines[i], lines[i + 1]
        if len(first) <= 8 and len(second) <= 10:
            candidates.append(TitleCandidate(clean_line(f"{first} {second}"), i))
        if i + 2 < len(lines):
            third = lines[i + 2]
            if len(first) <= 4 and len(third) <= 10:
                candidates.append(TitleCandidate(clean_line(f"{first} {third}"), i))
    return _unique(candidates)


def score_title(
    candidate: str,
    index: int,
    month_hint: Optional[str] = None,
    weights: TitleWeights = DEFAULT_WEIGHTS,
) -> float:
    text = clean_line(candidate)
    if not text:
        return float("-inf")

    score = max(0, weights.position_base - index) * weights.position_weight

    low, high = weights.ideal_length
    if low <= len(text) <= high:
        score += weights.ideal_length_bonus
    elif len(text) <= weights.acceptable_length:
        score += weights.acceptable_length_bonus
    else:
        score += weights.overlong_penalty

    ratio = jp_ratio(text)
    if ratio >= weights.high_jp_ratio:
        score += weights.high_jp_bonus
    elif ratio >= weights.mid_jp_ratio:
        score += weights.mid_jp_bonus
    else:
        score += weights.low_jp_penalty

    if looks_sentence_like(text, weights):
        score += weights.sentence_penalty
    if COMMA_PERIOD_RE.search(text) is None:
        score += weights.no_punctuation_bonus
    if has_month(text):
        score += weights.month_bonus
    if has_newsletter_word(text):
        score += weights.keyword_bonus
    if month_hint and month_hint in text:
        score += weights.month_hint_bonus
    return score


def choose_title(
    candidates: Iterable[TitleCandidate],
    month_hint: Optional[str] = None,
    weights: TitleWeights = DEFAULT_WEIGHTS,
) -> Optional[str]:
    """Pick the best candidate, or ``None`` when nothing is title-like enough."""

    best: Optional[Tuple[str, float]] = None
    for candidate in candidates:
        score = score_title(candidate.text, candidate.line_index, month_hint, weights)
        if best is None or score > best[1]:
            best = (clean_line(candidate.text), score)
    if best is None:
        return None
    text, score = best
    if score >= weights.min_score and jp_ratio(text) >= weights.min_jp_ratio:
        return text[: weights.max_length]
    return None


def fallback_title(month: Optional[str], class_name: Optional[str]) -> str:
    if month and class_name:
        return f"{month} {class_name}だより"
    if class_name:
        return f"{class_name}だより"
    if month:
        return f"{month} おたより"
    return "おたより"


def infer_title(
    header: NewsletterHeader,
    raw_text: Optional[str],
    weights: TitleWeights = DEFAULT_WEIGHTS,
) -> str:
    """Return the final header title; never empty, at most ``max_length`` chars.

    The AI title is kept unless it is empty, generic, or lacks a month the
    inferred candidate has.
    """

    month = month_label(header.issue_month, header.issue_date) or detect_month_from_text(raw_text, weights)
    class_name = clean_line(header.class_name) or None

    ocr_candidates = collect_title_candidates(raw_text, weights)
    line_count = len({candidate.line_index for candidate in ocr_candidates})
    extras = [
        clean_line(header.title),
        f"{class_name}だより" if class_name else "",
        f"{month} {class_name}だより" if month and class_name else "",
        f"{month} おたより" if month else "",
    ]
    synthetic = [
        TitleCandidate(text, line_count + offset)
        for offset, text in enumerate(text for text in extras if text)
    ]
    candidates = _unique(ocr_candidates + synthetic)
    chosen = choose_title(candidates, month, weights)

    current = header.title
    replace = (
        not current
        or is_too_generic_title(current)
        or (not has_month(current) and has_month(chosen))
    )
    title = clean_line(chosen or fallback_title(month, class_name)) if replace else clean_line(current)
    if not title:
        title = clean_line(fallback_title(month, class_name))
    logger.debug(
        "Title inferred",
        extra={"kept_existing": not replace, "candidates": len(candidates), "month_hint": month},
    )
    return title[: weights.max_length].strip() or "おたより"


def _unique(candidates: Iterable[TitleCandidate]) -> List[TitleCandidate]:
    seen: set[str] = set()
    unique: List[TitleCandidate] = []
    for candidate in candidates:
        if candidate.text and candidate.text not in seen:
            seen.add(candidate.text)
            unique.append(candidate)
    return unique
