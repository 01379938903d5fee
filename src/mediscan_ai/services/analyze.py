from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from ..config import settings
from ..errors import (
    AnalysisError,
    AnalysisFailed,
    InvalidCredentials,
    MalformedResponse,
    MissingInput,
    NetworkFailure,
)
from ..logging import get_logger
from ..preprocess.ingestor import NormalizedImage
from ..schemas import AnalysisResult
from .gemini import GeminiService, Submitter, build_request

logger = get_logger("mediscan.services.analyze")


def classify_failure(exc: BaseException) -> AnalysisError:
    """Map a provider/transport error onto a user-facing AnalysisError."""
    if isinstance(exc, AnalysisError):
        return exc
    message = str(exc)
    if "API key not valid" in message or "API_KEY_INVALID" in message:
        return InvalidCredentials()
    if "network" in message.lower() or isinstance(exc, (ConnectionError, httpx.TransportError)):
        return NetworkFailure()
    return AnalysisFailed()


def parse_result(text: str) -> AnalysisResult:
    # strict: no coercion of wrong-typed fields (true -> 1.0, "0.73" -> 0.73)
    try:
        return AnalysisResult.model_validate_json(text.strip(), strict=True)
    except ValidationError as e:
        raise MalformedResponse() from e


def normalize_question(question: Optional[str]) -> str:
    """Strip and cap the free-text question; this is the text actually sent."""
    question = (question or "").strip()
    if len(question) > settings.max_question_chars:
        logger.warning(
            "Question truncated from %d to %d chars", len(question), settings.max_question_chars
        )
        question = question[: settings.max_question_chars].rstrip()
    return question


class Analyzer:
    def __init__(self, service: Optional[Submitter] = None) -> None:
        self.service = service if service is not None else GeminiService()

    def analyze(self, image: Optional[NormalizedImage], question: str = "") -> AnalysisResult:
        if image is None or not image.data or not image.mime_type:
            raise MissingInput()

        question = normalize_question(question)

        request = build_request(image, question)
        logger.info(
            "Analyze: type=%s b64_len=%d question=%s",
            image.mime_type,
            len(image.data),
            "yes" if question else "no",
        )

        try:
            text = self.service.submit(request)
        except Exception as e:
            err = classify_failure(e)
            logger.exception("Analysis request failed (%s)", err.kind.value)
            if err is e:
                raise
            raise err from e

        try:
            result = parse_result(text)
        except MalformedResponse:
            logger.error("Analysis response did not match schema (%d chars)", len(text))
            raise

        logger.info(
            "Analyzed document | type=%s labs=%d meds=%d confidence=%.2f",
            result.document_type,
            len(result.lab_results or []),
            len(result.medications or []),
            result.potential_diagnosis.confidence_score,
        )
        return result
