"""Domain entities used by the newsletter normalization service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RepeatRule:
    """Weekly recurrence of a habitual request (e.g. bring a towel every Monday)."""

    by_day: List[str]
    time: str

    def to_payload(self) -> dict[str, object]:
        return {"byDay": list(self.by_day), "time": self.time}


@dataclass(frozen=True)
class ActionConfidence:
    """Heuristic certainty of the extracted date, due date and items."""

    date: float = 0.7
    due: float = 0.7
    items: float = 0.7

    def to_payload(self) -> dict[str, object]:
        return {
            "date": round(self.date, 4),
            "due": round(self.due, 4),
            "items": round(self.items, 4),
        }


@dataclass(frozen=True)
class NewsletterHeader:
    """Header block of a school newsletter."""

    title: Optional[str] = None
    class_name: Optional[str] = None
    school_name: Optional[str] = None
    issue_month: Optional[str] = None
    issue_date: Optional[str] = None

    def to_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "class_name": self.class_name,
            "school_name": self.school_name,
            "issue_month": self.issue_month,
            "issue_date": self.issue_date,
        }


@dataclass(frozen=True)
class NewsletterAction:
    """Structured representation of an event or to-do parents have to act on."""

    type: str
    event_name: str
    is_continuation: bool = False
    event_date: Optional[str] = None
    due_date: Optional[str] = None
    items: List[str] = field(default_factory=list)
    fee: Optional[str] = None
    repeat_rule: Optional[RepeatRule] = None
    audience: Optional[str] = None
    importance: str = "medium"
    action_required: bool = True
    notes: Optional[str] = None
    confidence: ActionConfidence = field(default_factory=ActionConfidence)

    @property
    def effective_date(self) -> str:
        """Date used for ordering; undated actions sort last."""

        return self.event_date or self.due_date or "9999-12-31"

    def to_payload(self) -> dict[str, object]:
        """Convert the dataclass into a serialisable dictionary."""

        return {
            "type": self.type,
            "event_name": self.event_name,
            "is_continuation": self.is_continuation,
            "event_date": self.event_date,
            "due_date": self.due_date,
            "items": list(self.items),
            "fee": self.fee,
            "repeat_rule": self.repeat_rule.to_payload() if self.repeat_rule else None,
            "audience": self.audience,
            "importance": self.importance,
            "action_required": True,
            "notes": self.notes,
            "confidence": self.confidence.to_payload(),
        }


@dataclass(frozen=True)
class NewsletterInfo:
    """Purely informational section; never turns into a task."""

    title: str
    summary: str
    audience: Optional[str] = None

    def to_payload(self) -> dict[str, object]:
        return {"title": self.title, "summary": self.summary, "audience": self.audience}


@dataclass(frozen=True)
class CanonicalNewsletter:
    """Validated newsletter record produced once per upload."""

    header: NewsletterHeader
    overview: str
    key_points: List[str] = field(default_factory=list)
    actions: List[NewsletterAction] = field(default_factory=list)
    infos: List[NewsletterInfo] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "header": self.header.to_payload(),
            "overview": self.overview,
            "key_points": list(self.key_points),
            "actions": [action.to_payload() for action in self.actions],
            "infos": [info.to_payload() for info in self.infos],
        }


@dataclass
class Task:
    """Task handed over to the scheduling layer; mutable after creation."""

    id: str
    title: str
    due_at: Optional[str]
    is_continuation: bool
    repeat_rule: Optional[RepeatRule]
    assignee_cid: str
    created_at: str
    completed: bool = False
    notes: Optional[str] = None
    child_ids: List[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "dueAt": self.due_at,
            "isContinuation": self.is_continuation,
            "repeatRule": self.repeat_rule.to_payload() if self.repeat_rule else None,
            "assigneeCid": self.assignee_cid,
            "completed": self.completed,
            "createdAt": self.created_at,
            "notes": self.notes,
            "childIds": list(self.child_ids),
        }


@dataclass(frozen=True)
class Reminder:
    """Scheduled notification derived from a dated action."""

    title: str
    message: str
    kind: str
    scheduled_for: str
    action_name: str

    def to_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "message": self.message,
            "kind": self.kind,
            "scheduledFor": self.scheduled_for,
            "actionName": self.action_name,
        }
