from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UNSUPPORTED_FILE_KIND = "UnsupportedFileKind"
    CORRUPT_OR_UNSUPPORTED_PDF = "CorruptOrUnsupportedPdf"
    MISSING_INPUT = "MissingInput"
    INVALID_CREDENTIALS = "InvalidCredentials"
    NETWORK_FAILURE = "NetworkFailure"
    MALFORMED_RESPONSE = "MalformedResponse"
    ANALYSIS_FAILED = "AnalysisFailed"


class MediScanError(Exception):
    """Base error. `message` is safe to show to the end user as-is."""

    kind: Optional[ErrorKind] = None
    default_message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class SessionBusy(MediScanError):
    default_message = "An analysis is already in progress."


# ---------------------------
# Ingestion
# ---------------------------
class IngestError(MediScanError):
    pass


class UnsupportedFileKind(IngestError):
    kind = ErrorKind.UNSUPPORTED_FILE_KIND
    default_message = "Please select a valid image or PDF file."


class CorruptOrUnsupportedPdf(IngestError):
    kind = ErrorKind.CORRUPT_OR_UNSUPPORTED_PDF
    default_message = "Failed to process PDF. It might be corrupted or unsupported."


# ---------------------------
# Analysis
# ---------------------------
class AnalysisError(MediScanError):
    kind = ErrorKind.ANALYSIS_FAILED


class MissingInput(AnalysisError):
    kind = ErrorKind.MISSING_INPUT
    default_message = "Please select an image or PDF file first."


class InvalidCredentials(AnalysisError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "API Key is invalid. Please ensure it is configured correctly."


class NetworkFailure(AnalysisError):
    kind = ErrorKind.NETWORK_FAILURE
    default_message = "Network error. Please check your internet connection and try again."


class MalformedResponse(AnalysisError):
    kind = ErrorKind.MALFORMED_RESPONSE
    default_message = (
        "The AI service returned a response that does not match the expected format. "
        "Please try again."
    )


class AnalysisFailed(AnalysisError):
    kind = ErrorKind.ANALYSIS_FAILED
    default_message = (
        "AI analysis failed. The document might be blurry, unreadable, or not a valid "
        "medical document. Please try again with a clearer image."
    )
