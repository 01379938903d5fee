from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from google import genai
from google.genai import types

from ..config import settings
from ..errors import AnalysisFailed, InvalidCredentials
from ..logging import get_logger
from ..preprocess.ingestor import NormalizedImage
from ..schemas import analysis_response_schema

logger = get_logger("mediscan.services.gemini")

SYSTEM_INSTRUCTION = (
    "You are an expert AI medical document analyst. Your task is to interpret the provided image "
    "of a medical document (lab report, prescription, etc.) and return a structured JSON analysis. "
    "First, classify the document type. Then, be objective, precise, and extract all relevant "
    "information that is present in the document, and nothing that is not. Provide a potential "
    "diagnosis based ONLY on the evidence in the document. Conclude with general recommendations. "
    "Crucially, your entire response must strictly adhere to the provided JSON schema."
)

# Low temperature: literal extraction over creative variation.
TEMPERATURE = 0.2


@dataclass(frozen=True)
class AnalysisRequest:
    image: NormalizedImage
    question: str = ""
    system_instruction: str = SYSTEM_INSTRUCTION
    response_schema: Dict[str, Any] = field(default_factory=analysis_response_schema)
    temperature: float = TEMPERATURE

    @property
    def prompt(self) -> str:
        text = "Analyze the following medical document."
        if self.question:
            text += f' User\'s specific question: "{self.question}"'
        return text


def build_request(image: NormalizedImage, question: str = "") -> AnalysisRequest:
    return AnalysisRequest(image=image, question=(question or "").strip())


class Submitter(Protocol):
    def submit(self, request: AnalysisRequest) -> str:
        """Send one request, return the raw response text."""


class GeminiService:
    """Thin adapter over the google-genai SDK. One call per submit, no retries."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise InvalidCredentials()
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
            logger.info("Initialized Gemini client for model %s", self.model)
        return self._client

    def submit(self, request: AnalysisRequest) -> str:
        client = self._get_client()
        image_part = types.Part.from_bytes(
            data=request.image.raw_bytes(),
            mime_type=request.image.mime_type,
        )
        response = client.models.generate_content(
            model=self.model,
            contents=[image_part, request.prompt],
            config=types.GenerateContentConfig(
                system_instruction=request.system_instruction,
                response_mime_type="application/json",
                response_schema=request.response_schema,
                temperature=request.temperature,
            ),
        )
        text = response.text
        if not text:
            # safety block or empty candidate list
            logger.warning("Gemini returned no text (model=%s)", self.model)
            raise AnalysisFailed()
        return text
