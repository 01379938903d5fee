from typing import Dict

from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from .config import settings
from .errors import ErrorKind, MediScanError
from .logging import get_logger
from .preprocess.ingestor import NormalizedImage, SourceFile, ingest
from .schemas import AnalyzeResponse, ErrorResponse, IngestResponse, NormalizedImageOut
from .services.analyze import Analyzer, normalize_question

logger = get_logger("mediscan.api")
app = FastAPI(title="MediScan AI — Medical Document Analysis")

# Gemini client is created lazily, so this is cheap even without a key
analyzer = Analyzer()

if not settings.gemini_api_key:
    logger.warning("GEMINI_API_KEY / API_KEY not set; /analyze will fail with InvalidCredentials")

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.UNSUPPORTED_FILE_KIND: 415,
    ErrorKind.CORRUPT_OR_UNSUPPORTED_PDF: 422,
    ErrorKind.MISSING_INPUT: 400,
    ErrorKind.INVALID_CREDENTIALS: 500,
    ErrorKind.NETWORK_FAILURE: 503,
    ErrorKind.MALFORMED_RESPONSE: 502,
    ErrorKind.ANALYSIS_FAILED: 422,
}


def _http_error(e: MediScanError) -> HTTPException:
    status = STATUS_BY_KIND.get(e.kind, 500)
    body = ErrorResponse(kind=e.kind.value, message=e.message)
    return HTTPException(status_code=status, detail=body.model_dump())


def _source_from_upload(file: UploadFile) -> SourceFile:
    data = file.file.read()
    return SourceFile(data=data, mime_type=file.content_type or "", name=file.filename)


def _image_out(image: NormalizedImage) -> NormalizedImageOut:
    return NormalizedImageOut(mime_type=image.mime_type, byte_count=len(image.raw_bytes()), data=image.data)


@app.get("/health")
def health():
    return {"status": "ok", "version": "0.1.0", "model": settings.gemini_model}


@app.post("/ingest", response_model=IngestResponse)
def ingest_document(file: UploadFile = File(...)):
    source = _source_from_upload(file)
    try:
        image = ingest(source)
    except MediScanError as e:
        raise _http_error(e)

    return IngestResponse(
        ok=True,
        file_name=source.name,
        source_mime_type=source.mime_type,
        image=_image_out(image),
    )


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze_document(file: UploadFile = File(...), question: str = Form("")):
    source = _source_from_upload(file)
    question = normalize_question(question)
    try:
        image = ingest(source)
        result = analyzer.analyze(image, question)
    except MediScanError as e:
        raise _http_error(e)

    logger.info(
        "Analyzed upload | name=%s type=%s doc=%s",
        source.name,
        image.mime_type,
        result.document_type,
    )

    return AnalyzeResponse(
        ok=True,
        file_name=source.name,
        mime_type=image.mime_type,
        question=question,
        result=result.to_wire(),
        confidence_percent=result.potential_diagnosis.confidence_percent,
    )
