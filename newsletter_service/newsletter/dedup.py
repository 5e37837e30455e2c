"""Deduplication, event preference and ordering of normalised actions."""

from __future__ import annotations

import logging
import unicodedata
from collections import OrderedDict
from typing import Dict, Iterable, List

from .task_types import NewsletterAction

logger = logging.getLogger(__name__)

MIN_NAME_WIDTH = 3


def normalized_key(name: str) -> str:
    """Lower-case ``name`` and strip whitespace and punctuation."""

    normalized = unicodedata.normalize("NFKC", name or "").lower()
    return "".join(
        ch for ch in normalized if not ch.isspace() and not unicodedata.category(ch).startswith("P")
    )


def display_width(text: str) -> int:
    """Width in terminal columns; wide (CJK) characters count twice."""

    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text)


def is_degenerate_name(name: str) -> bool:
    """One or two narrow glyphs are OCR noise; a two-kanji word such as 遠足 is not."""

    stripped = (name or "").strip()
    return not normalized_key(stripped) or display_width(stripped) < MIN_NAME_WIDTH


def information_score(action: NewsletterAction) -> int:
    return (1 if action.event_date else 0) + (1 if action.due_date else 0) + len(action.items)


def has_signal(action: NewsletterAction) -> bool:
    return bool(action.event_date or action.due_date or action.items or action.fee or action.notes)


def dedupe_actions(actions: Iterable[NewsletterAction]) -> List[NewsletterAction]:
    """Keep at most one action per normalised name.

    Names narrower than three columns are OCR noise and dropped. On a key
    collision the variant with more dates/items wins; ties keep the earlier
    one. Only one low-signal to-do survives per document.
    """

    kept: "OrderedDict[str, NewsletterAction]" = OrderedDict()
    seen_ambiguous_todo = False
    for action in actions:
        if is_degenerate_name(action.event_name):
            logger.debug("Dropping degenerate action name %r", action.event_name)
            continue
        key = normalized_key(action.event_name)

        if key in kept:
            if information_score(action) > information_score(kept[key]):
                kept[key] = action
            continue

        if action.type == "todo" and not has_signal(action):
            if seen_ambiguous_todo:
                logger.debug("Collapsing ambiguous to-do %r", action.event_name)
                continue
            seen_ambiguous_todo = True

        kept[key] = action
    return list(kept.values())


def prefer_dated_events(
    survivors: Iterable[NewsletterAction],
    variants: Iterable[NewsletterAction],
) -> List[NewsletterAction]:
    """Replace a surviving to-do with a dated event variant of the same name."""

    dated_events: Dict[str, NewsletterAction] = {}
    for variant in variants:
        if variant.type == "event" and variant.event_date:
            dated_events.setdefault(normalized_key(variant.event_name), variant)

    result: List[NewsletterAction] = []
    for action in survivors:
        replacement = dated_events.get(normalized_key(action.event_name))
        if action.type == "todo" and replacement is not None:
            result.append(replacement)
        else:
            result.append(action)
    return result


def sort_actions(actions: Iterable[NewsletterAction]) -> List[NewsletterAction]:
    """Chronological order; events before to-dos on the same day, then by name."""

    return sorted(
        actions,
        key=lambda action: (action.effective_date, 0 if action.type == "event" else 1, action.event_name),
    )


def merge_actions(actions: Iterable[NewsletterAction]) -> List[NewsletterAction]:
    variants = list(actions)
    survivors = dedupe_actions(variants)
    merged = sort_actions(prefer_dated_events(survivors, variants))
    logger.debug("Merged actions", extra={"incoming": len(variants), "kept": len(merged)})
    return merged
