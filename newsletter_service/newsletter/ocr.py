"""Scoped OCR engine handle backed by a transformers image-to-text pipeline."""

from __future__ import annotations

import io
import logging
import os
import threading
import time
from contextlib import contextmanager
from typing import Any, Iterator

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional dependency guard
    from transformers import pipeline  # type: ignore[import-not-found]
except Exception as exc:  # pragma: no cover - runtime fallback
    pipeline = None  # type: ignore[assignment]
    logger.warning("Transformers image-to-text stack unavailable: %s", exc)


class OcrUnavailableError(RuntimeError):
    """Raised when text recognition cannot be performed."""


def _resolve_model_path() -> tuple[str, bool]:
    local_dir = os.getenv("OCR_MODEL_DIR")
    if local_dir and os.path.isdir(local_dir):
        return local_dir, True
    model_id = os.getenv("OCR_MODEL_ID", "kha-white/manga-ocr-base")
    return model_id, False


class OcrEngine:
    """Reference-counted handle around the OCR model.

    The model is loaded by the first :meth:`acquire` and dropped again when the
    last holder calls :meth:`release`. Use :meth:`session` for scoped access.
    A failed load is not retried; :meth:`recognize` then raises
    :class:`OcrUnavailableError` straight away.
    """

    def __init__(self) -> None:
        self._recognizer: Any = None
        self._load_failed = False
        self._holders = 0
        self._lock = threading.Lock()
        self._max_new_tokens = int(os.getenv("OCR_MAX_NEW_TOKENS", "300"))
        self._disabled = os.getenv("OCR_DISABLED") == "1"

    @property
    def available(self) -> bool:
        return self._recognizer is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def acquire(self) -> "OcrEngine":
        with self._lock:
            self._holders += 1
            if self._recognizer is None and not self._load_failed:
                self._recognizer = self._load()
                self._load_failed = self._recognizer is None
        return self

    def release(self) -> None:
        with self._lock:
            if self._holders == 0:
                logger.debug("release() called on an engine nobody holds")
                return
            self._holders -= 1
            if self._holders == 0 and self._recognizer is not None:
                self._recognizer = None
                logger.info("OCR model released")

    @contextmanager
    def session(self) -> Iterator["OcrEngine"]:
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def recognize(self, image_bytes: bytes) -> str:
        """Return the UTF-8 text recognised in ``image_bytes``."""

        recognizer = self._recognizer
        if recognizer is None:
            raise OcrUnavailableError("OCR engine is not loaded")
        try:
            image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Uploaded data is not a readable image") from exc

        start = time.perf_counter()
        try:
            outputs = recognizer(image, generate_kwargs={"max_new_tokens": self._max_new_tokens})
        except Exception as exc:  # pragma: no cover - depends on model runtime
            raise OcrUnavailableError(f"OCR inference failed: {exc}") from exc
        text = "\n".join(
            str(output.get("generated_text", "")) for output in outputs or [] if isinstance(output, dict)
        ).strip()
        logger.info(
            "OCR completed",
            extra={"elapsed_sec": round(time.perf_counter() - start, 2), "text_length": len(text)},
        )
        return text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load(self) -> Any:
        if self._disabled:
            logger.info("OCR explicitly disabled via OCR_DISABLED")
            return None
        if pipeline is None:
            logger.warning("Transformers pipeline is unavailable, OCR disabled")
            return None

        model_path, local_only = _resolve_model_path()
        start = time.perf_counter()
        try:
            recognizer = pipeline(
                "image-to-text",
                model=model_path,
                model_kwargs={"local_files_only": local_only},
            )
        except Exception as exc:
            logger.warning(
                "Failed to load OCR model",
                extra={"path": model_path, "local_only": local_only, "error": str(exc)},
            )
            return None
        logger.info(
            "Loaded OCR model",
            extra={
                "path": model_path,
                "local_only": local_only,
                "elapsed_sec": round(time.perf_counter() - start, 2),
            },
        )
        return recognizer
