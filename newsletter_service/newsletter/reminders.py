"""Reminder notifications for deadlines and events of a newsletter."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from .task_types import CanonicalNewsletter, Reminder

DEADLINE_LEAD_DAYS = 3
EVENT_LEAD_DAYS = 1


def build_reminders(newsletter: CanonicalNewsletter, today: Optional[date] = None) -> List[Reminder]:
    """Reminders three days before and on each deadline, and the day before each event.

    Only reminders scheduled after ``today`` are returned.
    """

    today = today or date.today()
    reminders: List[Reminder] = []
    for action in newsletter.actions:
        due = _parse(action.due_date)
        if due is not None:
            heads_up = due - timedelta(days=DEADLINE_LEAD_DAYS)
            if heads_up > today:
                reminders.append(
                    Reminder(
                        title="期限のリマインダー",
                        message=f"{action.event_name}の期限が近づいています（期限: {action.due_date}）",
                        kind="deadline",
                        scheduled_for=heads_up.isoformat(),
                        action_name=action.event_name,
                    )
                )
            if due > today:
                reminders.append(
                    Reminder(
                        title="期限です！",
                        message=f"{action.event_name}の期限日です",
                        kind="deadline",
                        scheduled_for=due.isoformat(),
                        action_name=action.event_name,
                    )
                )

        event_day = _parse(action.event_date) if action.type == "event" else None
        if event_day is not None:
            eve = event_day - timedelta(days=EVENT_LEAD_DAYS)
            if eve > today:
                reminders.append(
                    Reminder(
                        title="イベントのお知らせ",
                        message=f"明日は{action.event_name}です",
                        kind="event",
                        scheduled_for=eve.isoformat(),
                        action_name=action.event_name,
                    )
                )
    return sorted(reminders, key=lambda reminder: reminder.scheduled_for)


def _parse(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
