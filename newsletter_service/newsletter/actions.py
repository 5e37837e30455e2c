"""Mapping of the historical AI action shapes onto :class:`NewsletterAction`."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from .dates import normalize_to_iso_date
from .task_types import ActionConfidence, NewsletterAction, NewsletterInfo, RepeatRule

logger = logging.getLogger(__name__)

SOURCE_ARRAYS = ("actions", "todos", "tasks", "events")
IMPORTANCE_LEVELS = {"high", "medium", "low"}
WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
PLACEHOLDER_NAME = "要確認"
DEFAULT_CONFIDENCE = 0.7


def first_present(record: Dict[str, Any], *keys: str) -> Any:
    """Return the first value that is not ``None`` (``a ?? b ?? c``)."""

    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def optional_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def to_confidence(value: Any) -> ActionConfidence:
    source = value if isinstance(value, dict) else {}
    return ActionConfidence(
        date=_unit_interval(source.get("date")),
        due=_unit_interval(source.get("due")),
        items=_unit_interval(source.get("items")),
    )


def _unit_interval(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def to_repeat_rule(value: Any) -> Optional[RepeatRule]:
    """Accept a recurrence only when both the weekdays and the time are usable."""

    if not isinstance(value, dict):
        return None
    by_day = first_present(value, "byDay", "by_day", "days")
    if not isinstance(by_day, list):
        return None
    days: List[str] = []
    for day in by_day:
        code = str(day).strip().upper()[:2]
        if code in WEEKDAY_CODES and code not in days:
            days.append(code)
    time = _normalise_time(value.get("time"))
    if not days or time is None:
        return None
    return RepeatRule(by_day=days, time=time)


def _normalise_time(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    match = TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def _items(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (optional_text(item) for item in value) if text]


def _importance(record: Dict[str, Any]) -> str:
    value = first_present(record, "importance", "priority")
    level = str(value).strip().lower() if value is not None else "medium"
    return level if level in IMPORTANCE_LEVELS else "medium"


def _name(value: Any) -> str:
    if value is None:
        return PLACEHOLDER_NAME
    return str(value).strip()


# ----------------------------------------------------------------------
# Record adapters
# ----------------------------------------------------------------------

class RecordAdapter:
    """Adapter for one historical shape of an action record."""

    def matches(self, record: Any, source: str) -> bool:
        raise NotImplementedError

    def convert(self, record: Any, issue_month: Optional[str]) -> NewsletterAction:
        raise NotImplementedError

    def _build(
        self,
        record: Dict[str, Any],
        *,
        kind: str,
        name: str,
        event_date: Any,
        due_date: Any,
        notes: Any,
        issue_month: Optional[str],
    ) -> NewsletterAction:
        return NewsletterAction(
            type=kind,
            event_name=name,
            is_continuation=bool(record.get("is_continuation")),
            event_date=normalize_to_iso_date(event_date, issue_month),
            due_date=normalize_to_iso_date(due_date, issue_month),
            items=_items(record.get("items")),
            fee=optional_text(record.get("fee")),
            repeat_rule=to_repeat_rule(record.get("repeat_rule")),
            audience=optional_text(record.get("audience")),
            importance=_importance(record),
            notes=optional_text(notes),
            confidence=to_confidence(record.get("confidence")),
        )


class CanonicalActionAdapter(RecordAdapter):
    """Records already in the canonical shape (string ``event_name``).

    Records from the ``events`` array are always events and are left to
    :class:`EventRecordAdapter`.
    """

    def matches(self, record: Any, source: str) -> bool:
        if source == "events":
            return False
        return isinstance(record, dict) and isinstance(record.get("event_name"), str)

    def convert(self, record: Any, issue_month: Optional[str]) -> NewsletterAction:
        kind = record.get("type") if record.get("type") in ("event", "todo") else "todo"
        return self._build(
            record,
            kind=kind,
            name=record["event_name"].strip(),
            event_date=first_present(record, "event_date", "date"),
            due_date=first_present(record, "due_date", "deadline", "dueDate"),
            notes=first_present(record, "notes", "description"),
            issue_month=issue_month,
        )


class EventRecordAdapter(RecordAdapter):
    """Calendar entries: ``{"title", "date", "description"}``."""

    def matches(self, record: Any, source: str) -> bool:
        if not isinstance(record, dict):
            return False
        return source == "events" or record.get("type") == "event"

    def convert(self, record: Any, issue_month: Optional[str]) -> NewsletterAction:
        return self._build(
            record,
            kind="event",
            name=_name(first_present(record, "title", "event_name", "name")),
            event_date=first_present(record, "event_date", "date"),
            due_date=first_present(record, "due_date", "deadline", "dueDate"),
            notes=first_present(record, "notes", "description"),
            issue_month=issue_month,
        )


class TodoRecordAdapter(RecordAdapter):
    """Free-form to-dos: ``{"title"|"task", "deadline"|"dueDate", "priority"}``."""

    def matches(self, record: Any, source: str) -> bool:
        return isinstance(record, dict)

    def convert(self, record: Any, issue_month: Optional[str]) -> NewsletterAction:
        return self._build(
            record,
            kind="todo",
            name=_name(first_present(record, "title", "task", "event_name", "name")),
            event_date=record.get("event_date"),
            due_date=first_present(record, "due_date", "deadline", "dueDate"),
            notes=first_present(record, "notes", "description"),
            issue_month=issue_month,
        )


class TextRecordAdapter(RecordAdapter):
    """A bare string naming a to-do."""

    def matches(self, record: Any, source: str) -> bool:
        return isinstance(record, str)

    def convert(self, record: Any, issue_month: Optional[str]) -> NewsletterAction:
        return NewsletterAction(type="todo", event_name=record.strip() or PLACEHOLDER_NAME)


RECORD_ADAPTERS: List[RecordAdapter] = [
    CanonicalActionAdapter(),
    EventRecordAdapter(),
    TodoRecordAdapter(),
    TextRecordAdapter(),
]


def select_adapter(record: Any, source: str) -> Optional[RecordAdapter]:
    for adapter in RECORD_ADAPTERS:
        if adapter.matches(record, source):
            return adapter
    return None


def normalize_actions(payload: Dict[str, Any], issue_month: Optional[str] = None) -> List[NewsletterAction]:
    """Collect action records from every known source array, in source order."""

    actions: List[NewsletterAction] = []
    for source in SOURCE_ARRAYS:
        records = payload.get(source)
        if not isinstance(records, list):
            continue
        for record in records:
            adapter = select_adapter(record, source)
            if adapter is None:
                logger.debug("Skipping unrecognised %s record of type %s", source, type(record).__name__)
                continue
            actions.append(adapter.convert(record, issue_month))
    return actions


def normalize_infos(payload: Dict[str, Any]) -> List[NewsletterInfo]:
    records = _first_list(payload, "infos", "notices")
    infos: List[NewsletterInfo] = []
    for record in records:
        if isinstance(record, str) and record.strip():
            infos.append(NewsletterInfo(title="お知らせ", summary=record.strip()))
        elif isinstance(record, dict):
            infos.append(
                NewsletterInfo(
                    title=optional_text(record.get("title")) or "お知らせ",
                    summary=optional_text(first_present(record, "summary", "content", "description")) or "",
                    audience=optional_text(record.get("audience")),
                )
            )
    return infos


def _first_list(payload: Dict[str, Any], *keys: str) -> Iterable[Any]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list) and value:
            return value
    return []
