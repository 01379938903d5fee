from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .errors import IngestError, MediScanError, MissingInput, SessionBusy
from .logging import get_logger
from .preprocess.ingestor import NormalizedImage, SourceFile, ingest
from .schemas import AnalysisResult

logger = get_logger("mediscan.session")


@dataclass(frozen=True)
class Session:
    """
    State of one user's workbench: selected file, normalized image, last
    result and status flags. Every transition returns a new Session.

    `generation` increases on each new selection or reset. Completions carry
    the generation they were started under and are dropped when it is stale,
    which is how a new upload supersedes work still in flight.
    """

    generation: int = 0
    file_name: Optional[str] = None
    image: Optional[NormalizedImage] = None
    question: str = ""
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    processing_pdf: bool = False
    analyzing: bool = False

    @property
    def is_busy(self) -> bool:
        return self.processing_pdf or self.analyzing

    @property
    def can_analyze(self) -> bool:
        return self.image is not None and not self.is_busy

    def _is_stale(self, generation: int) -> bool:
        if generation != self.generation:
            logger.debug("Dropping stale completion (gen %d, current %d)", generation, self.generation)
            return True
        return False

    # ----- ingestion -----
    def select(self, source: SourceFile) -> "Session":
        return Session(
            generation=self.generation + 1,
            file_name=source.name,
            question=self.question,
            processing_pdf=source.is_pdf,
        )

    def ingested(self, generation: int, image: NormalizedImage) -> "Session":
        if self._is_stale(generation):
            return self
        return replace(self, image=image, error=None, processing_pdf=False)

    def ingest_failed(self, generation: int, error: MediScanError) -> "Session":
        if self._is_stale(generation):
            return self
        # no dangling preview/file paired with a failed upload
        return Session(generation=self.generation, error=error.message)

    # ----- analysis -----
    def with_question(self, question: str) -> "Session":
        return replace(self, question=question or "")

    def start_analysis(self) -> Tuple["Session", int]:
        if self.image is None:
            raise MissingInput()
        if self.is_busy:
            raise SessionBusy()
        return replace(self, analyzing=True, result=None, error=None), self.generation

    def analyzed(self, generation: int, result: AnalysisResult) -> "Session":
        if self._is_stale(generation):
            return self
        return replace(self, analyzing=False, result=result, error=None)

    def analysis_failed(self, generation: int, error: MediScanError) -> "Session":
        if self._is_stale(generation):
            return self
        # keep file + image so the user can retry without re-uploading
        return replace(self, analyzing=False, result=None, error=error.message)

    def reset(self) -> "Session":
        return Session(generation=self.generation + 1)


def run_ingest(session: Session, source: SourceFile) -> Session:
    session = session.select(source)
    generation = session.generation
    try:
        image = ingest(source)
    except IngestError as e:
        logger.warning("Ingest failed (%s): %s", e.kind.value, e.message)
        return session.ingest_failed(generation, e)
    return session.ingested(generation, image)


def run_analysis(session: Session, analyzer) -> Session:
    try:
        session, generation = session.start_analysis()
    except MissingInput as e:
        return replace(session, error=e.message)
    try:
        result = analyzer.analyze(session.image, session.question)
    except MediScanError as e:
        return session.analysis_failed(generation, e)
    return session.analyzed(generation, result)
