"""Core newsletter normalization pipeline used by the FastAPI service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from .actions import first_present, normalize_actions, normalize_infos, optional_text
from .dates import normalize_issue_month, normalize_to_iso_date
from .dedup import merge_actions
from .ocr import OcrEngine, OcrUnavailableError
from .payload import parse_payload
from .reminders import build_reminders
from .task_generator import generate_tasks
from .task_types import CanonicalNewsletter, NewsletterHeader, Reminder, Task
from .titles import DEFAULT_WEIGHTS, TitleWeights, infer_title

logger = logging.getLogger(__name__)

DEFAULT_OVERVIEW = "内容を分析しました"


@dataclass
class PipelineResult:
    """Canonical newsletter together with the entities derived from it."""

    newsletter: CanonicalNewsletter
    tasks: List[Task] = field(default_factory=list)
    reminders: List[Reminder] = field(default_factory=list)


class NewsletterPipeline:
    """High-level facade that encapsulates all normalization steps."""

    def __init__(self, weights: TitleWeights = DEFAULT_WEIGHTS, ocr: Optional[OcrEngine] = None) -> None:
        self._weights = weights
        self._ocr = ocr

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def normalize(
        self,
        raw_text: Optional[str],
        ai_payload: Any,
        issue_month_hint: Optional[str] = None,
    ) -> CanonicalNewsletter:
        """Build the canonical record. Malformed input degrades to defaults."""

        payload = parse_payload(ai_payload)
        if not payload:
            logger.info("AI payload empty or unparseable, using defaults")

        header = self._resolve_header(payload, issue_month_hint)
        header = NewsletterHeader(
            title=infer_title(header, raw_text, self._weights),
            class_name=header.class_name,
            school_name=header.school_name,
            issue_month=header.issue_month,
            issue_date=header.issue_date,
        )

        incoming = normalize_actions(payload, header.issue_month)
        actions = merge_actions(incoming)
        newsletter = CanonicalNewsletter(
            header=header,
            overview=self._overview(payload),
            key_points=self._key_points(payload),
            actions=actions,
            infos=normalize_infos(payload),
        )
        logger.info(
            "Newsletter normalized",
            extra={
                "title": header.title,
                "issue_month": header.issue_month,
                "incoming_actions": len(incoming),
                "actions": len(actions),
                "infos": len(newsletter.infos),
            },
        )
        return newsletter

    def process(
        self,
        raw_text: Optional[str],
        ai_payload: Any,
        issue_month_hint: Optional[str] = None,
        child_ids: Optional[Sequence[str]] = None,
        now: Optional[datetime] = None,
        today: Optional[date] = None,
    ) -> PipelineResult:
        newsletter = self.normalize(raw_text, ai_payload, issue_month_hint)
        tasks = generate_tasks(newsletter, child_ids=child_ids, now=now)
        reminders = build_reminders(newsletter, today=today)
        return PipelineResult(newsletter=newsletter, tasks=tasks, reminders=reminders)

    def recognize_text(self, image_bytes: bytes) -> str:
        if self._ocr is None:
            raise OcrUnavailableError("No OCR engine configured")
        with self._ocr.session() as engine:
            return engine.recognize(image_bytes)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _resolve_header(payload: Dict[str, Any], issue_month_hint: Optional[str]) -> NewsletterHeader:
        nested = payload.get("header") if isinstance(payload.get("header"), dict) else {}
        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}

        hint = normalize_issue_month(issue_month_hint)
        # a month the caller already knows beats whatever the extraction claims
        issue_month = hint or normalize_issue_month(nested.get("issue_month") or payload.get("issue_month"))
        raw_issue_date = nested.get("issue_date") or meta.get("date") or payload.get("date")
        issue_date = normalize_to_iso_date(raw_issue_date, issue_month)
        if issue_month is None and issue_date:
            issue_month = issue_date[:7]

        return NewsletterHeader(
            title=optional_text(
                nested.get("title") or first_present(payload, "title", "headline", "newsletterTitle")
            ),
            class_name=optional_text(nested.get("class_name") or payload.get("class_name")),
            school_name=optional_text(nested.get("school_name") or payload.get("school_name")),
            issue_month=issue_month,
            issue_date=issue_date,
        )

    @staticmethod
    def _overview(payload: Dict[str, Any]) -> str:
        for key in ("overview", "summary", "excerpt", "body"):
            text = optional_text(payload.get(key)) if isinstance(payload.get(key), str) else None
            if text:
                return text
        return DEFAULT_OVERVIEW

    @staticmethod
    def _key_points(payload: Dict[str, Any]) -> List[str]:
        points = payload.get("key_points")
        if not isinstance(points, list):
            return []
        return [point.strip() for point in points if isinstance(point, str) and point.strip()]
