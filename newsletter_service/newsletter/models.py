"""Pydantic models for the newsletter normalization API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .task_types import CanonicalNewsletter, Reminder, Task


class NewsletterInput(BaseModel):
    """Request payload for newsletter normalization."""

    raw_text: str = Field(default="", description="OCR済みのおたより本文")
    ai_payload: str | dict[str, Any] | None = Field(
        default=None, description="AIモデルの応答（JSON文字列またはオブジェクト）"
    )
    issue_month: str | None = Field(default=None, description="発行月 (YYYY-MM)。既知の場合のみ")
    child_ids: list[str] = Field(default_factory=list, description="アップロード時に選択された子どものID")


class RepeatRuleModel(BaseModel):
    byDay: list[str] = Field(..., description="曜日 (MO, TU, WE, TH, FR, SA, SU)")
    time: str = Field(..., description="時間 (HH:mm)")


class ConfidenceModel(BaseModel):
    date: float = Field(..., ge=0.0, le=1.0)
    due: float = Field(..., ge=0.0, le=1.0)
    items: float = Field(..., ge=0.0, le=1.0)


class HeaderModel(BaseModel):
    title: str = Field(..., min_length=1, max_length=24, description="おたよりのタイトル")
    class_name: str | None = None
    school_name: str | None = None
    issue_month: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    issue_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")


class ActionModel(BaseModel):
    """Structured representation returned to the frontend."""

    type: Literal["event", "todo"]
    event_name: str = Field(..., min_length=1, description="イベントやTODOの名称")
    is_continuation: bool = False
    event_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    due_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    items: list[str] = Field(default_factory=list, description="持ち物や提出物")
    fee: str | None = None
    repeat_rule: RepeatRuleModel | None = None
    audience: str | None = None
    importance: Literal["high", "medium", "low"] = "medium"
    action_required: Literal[True] = True
    notes: str | None = None
    confidence: ConfidenceModel


class InfoModel(BaseModel):
    title: str
    summary: str
    audience: str | None = None


class NewsletterModel(BaseModel):
    header: HeaderModel
    overview: str
    key_points: list[str]
    actions: list[ActionModel]
    infos: list[InfoModel]

    @classmethod
    def from_entity(cls, newsletter: CanonicalNewsletter) -> "NewsletterModel":
        return cls(**newsletter.to_payload())


class TaskModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    due_at: str | None = Field(default=None, alias="dueAt")
    is_continuation: bool = Field(default=False, alias="isContinuation")
    repeat_rule: RepeatRuleModel | None = Field(default=None, alias="repeatRule")
    assignee_cid: str = Field(..., alias="assigneeCid", description="担当する子どものID、または未割り当て")
    completed: bool = False
    created_at: str = Field(..., alias="createdAt")
    notes: str | None = None
    child_ids: list[str] = Field(default_factory=list, alias="childIds")

    @classmethod
    def from_entity(cls, task: Task) -> "TaskModel":
        return cls(**task.to_payload())


class ReminderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    message: str
    kind: Literal["deadline", "event"]
    scheduled_for: str = Field(..., alias="scheduledFor")
    action_name: str = Field(..., alias="actionName")

    @classmethod
    def from_entity(cls, reminder: Reminder) -> "ReminderModel":
        return cls(**reminder.to_payload())


class NewsletterOutput(BaseModel):
    """Response payload containing the canonical newsletter and derived entities."""

    newsletter: NewsletterModel
    tasks: list[TaskModel]
    reminders: list[ReminderModel]


class OcrOutput(BaseModel):
    text: str


class HealthResponse(BaseModel):
    """Simple health-check response."""

    status: str
