"""Derivation of scheduling tasks from a canonical newsletter."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .dates import normalize_to_iso_date
from .task_types import CanonicalNewsletter, NewsletterAction, Task

UNASSIGNED = "未割り当て"
CONTINUATION_PREFIX = "(継続) "


def new_task_id() -> str:
    return f"task-{uuid.uuid4()}"


def task_title(action: NewsletterAction) -> str:
    prefix = CONTINUATION_PREFIX if action.is_continuation else ""
    return f"{prefix}{action.event_name}"


def generate_tasks(
    newsletter: CanonicalNewsletter,
    child_ids: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = new_task_id,
) -> List[Task]:
    """Create one task per action. Performs no I/O; persisting is up to the caller."""

    created_at = (now or datetime.now(timezone.utc)).isoformat()
    children = [child for child in (child_ids or []) if child]
    assignee = children[0] if children else UNASSIGNED
    issue_month = newsletter.header.issue_month

    return [
        Task(
            id=id_factory(),
            title=task_title(action),
            due_at=normalize_to_iso_date(action.due_date or action.event_date, issue_month),
            is_continuation=action.is_continuation,
            repeat_rule=action.repeat_rule,
            assignee_cid=assignee,
            created_at=created_at,
            notes=action.notes,
            child_ids=list(children),
        )
        for action in newsletter.actions
    ]
