from __future__ import annotations

import base64
import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import fitz  # PyMuPDF
from PIL import Image

from ..errors import CorruptOrUnsupportedPdf, UnsupportedFileKind
from ..logging import get_logger

logger = get_logger("mediscan.preprocess.ingestor")

PDF_MIME_TYPE = "application/pdf"
IMAGE_PREFIX = "image/"
JPEG_MIME_TYPE = "image/jpeg"

# Oversampling for legibility of small print; fixed, not a setting.
PDF_RENDER_SCALE = 2.0
JPEG_QUALITY = 95


@dataclass(frozen=True)
class SourceFile:
    data: bytes
    mime_type: str
    name: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceFile":
        path = Path(path)
        mime, _ = mimetypes.guess_type(path.name)
        return cls(data=path.read_bytes(), mime_type=mime or "application/octet-stream", name=path.name)

    @property
    def is_image(self) -> bool:
        return (self.mime_type or "").lower().startswith(IMAGE_PREFIX)

    @property
    def is_pdf(self) -> bool:
        return (self.mime_type or "").lower() == PDF_MIME_TYPE


@dataclass(frozen=True)
class NormalizedImage:
    """Exactly one page/image, base64-encoded, always a raster media type."""

    data: str
    mime_type: str
    preview_url: Optional[str] = None

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def _encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _data_url(mime_type: str, b64: str) -> str:
    return f"data:{mime_type};base64,{b64}"


def render_first_page(pdf_bytes: bytes) -> bytes:
    """Rasterize page 1 of a PDF at PDF_RENDER_SCALE and return JPEG bytes."""
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise CorruptOrUnsupportedPdf() from e

    try:
        page_count = doc.page_count
        if page_count < 1:
            raise CorruptOrUnsupportedPdf()
        page = doc.load_page(0)
        matrix = fitz.Matrix(PDF_RENDER_SCALE, PDF_RENDER_SCALE)
        pix = page.get_pixmap(matrix=matrix, alpha=False)
        img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=JPEG_QUALITY)
    except CorruptOrUnsupportedPdf:
        raise
    except Exception as e:
        raise CorruptOrUnsupportedPdf() from e
    finally:
        doc.close()

    logger.info(
        "Rendered PDF page 1/%d at %.1fx -> %dx%d px (%d JPEG bytes)",
        page_count,
        PDF_RENDER_SCALE,
        pix.width,
        pix.height,
        buf.tell(),
    )
    return buf.getvalue()


def ingest(file: SourceFile) -> NormalizedImage:
    """
    Normalize an uploaded document into a single image payload.

    Images pass through unchanged with their own media type; PDFs are reduced
    to a JPEG of their first page. Anything else raises UnsupportedFileKind.
    """
    if file is None:
        raise ValueError("ingest() requires a file")

    if file.is_image:
        if not file.data:
            logger.warning("Rejected empty image | name=%s type=%s", file.name, file.mime_type)
            raise UnsupportedFileKind()
        b64 = _encode(file.data)
        logger.info("Ingested image | name=%s type=%s bytes=%d", file.name, file.mime_type, len(file.data))
        return NormalizedImage(data=b64, mime_type=file.mime_type, preview_url=_data_url(file.mime_type, b64))

    if file.is_pdf:
        logger.info("Ingesting PDF | name=%s bytes=%d", file.name, len(file.data))
        jpeg = render_first_page(file.data)
        b64 = _encode(jpeg)
        return NormalizedImage(data=b64, mime_type=JPEG_MIME_TYPE, preview_url=_data_url(JPEG_MIME_TYPE, b64))

    logger.warning("Rejected upload | name=%s type=%s", file.name, file.mime_type)
    raise UnsupportedFileKind()
