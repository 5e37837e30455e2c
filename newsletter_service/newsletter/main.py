"""FastAPI entrypoint for the newsletter normalization service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .logic import NewsletterPipeline
from .models import (
    HealthResponse,
    NewsletterInput,
    NewsletterModel,
    NewsletterOutput,
    OcrOutput,
    ReminderModel,
    TaskModel,
)
from .ocr import OcrEngine, OcrUnavailableError

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("newsletter_service")

ocr_engine = OcrEngine()
pipeline = NewsletterPipeline(ocr=ocr_engine)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Hold the OCR model for the lifetime of the process."""

    ocr_engine.acquire()
    try:
        yield
    finally:
        ocr_engine.release()


app = FastAPI(
    title="Newsletter Normalization Service",
    version="1.0.0",
    description="Microservice turning OCR text and AI extraction output into canonical school newsletters.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)


@app.post("/normalize-newsletter", response_model=NewsletterOutput)
async def normalize_newsletter(payload: NewsletterInput, request: Request) -> NewsletterOutput:
    """Normalize an AI extraction result into the canonical newsletter schema."""

    logger.info(
        "normalize_newsletter request",
        extra={
            "client": request.client.host if request.client else None,
            "text_length": len(payload.raw_text),
            "children": len(payload.child_ids),
        },
    )
    try:
        result = pipeline.process(
            payload.raw_text,
            payload.ai_payload,
            issue_month_hint=payload.issue_month,
            child_ids=payload.child_ids,
        )
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.exception("Unexpected normalization failure")
        raise HTTPException(status_code=500, detail="Internal error during normalization") from exc

    logger.info(
        "normalization completed",
        extra={"actions_count": len(result.newsletter.actions), "tasks_count": len(result.tasks)},
    )
    return NewsletterOutput(
        newsletter=NewsletterModel.from_entity(result.newsletter),
        tasks=[TaskModel.from_entity(task) for task in result.tasks],
        reminders=[ReminderModel.from_entity(reminder) for reminder in result.reminders],
    )


@app.post("/ocr", response_model=OcrOutput)
async def recognize(request: Request) -> OcrOutput:
    """Recognise text in the uploaded image (raw request body)."""

    image = await request.body()
    if not image:
        raise HTTPException(status_code=400, detail="Empty image body")
    try:
        text = pipeline.recognize_text(image)
    except OcrUnavailableError as exc:
        logger.warning("OCR unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return OcrOutput(text=text)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health-check endpoint used by orchestration."""

    return HealthResponse(status="ok")
