import base64
import io

import pytest
from PIL import Image

from mediscan_ai.errors import CorruptOrUnsupportedPdf, UnsupportedFileKind
from mediscan_ai.preprocess.ingestor import PDF_RENDER_SCALE, SourceFile, ingest


@pytest.mark.parametrize("mime", ["image/png", "image/jpeg", "image/webp", "image/gif", "image/heic"])
def test_image_passthrough(mime):
    raw = b"\x89fake-image-bytes\x00\xff" + mime.encode()
    img = ingest(SourceFile(data=raw, mime_type=mime, name="scan"))
    assert img.mime_type == mime
    assert base64.b64decode(img.data) == raw
    assert img.preview_url == f"data:{mime};base64,{img.data}"


@pytest.mark.parametrize("mime", ["text/plain", "application/zip", "", "application/pdfx", "video/mp4"])
def test_unsupported_kind(mime):
    with pytest.raises(UnsupportedFileKind):
        ingest(SourceFile(data=b"hello", mime_type=mime, name="notes.txt"))


def test_pdf_first_page_to_jpeg(pdf_bytes):
    img = ingest(SourceFile(data=pdf_bytes, mime_type="application/pdf", name="labs.pdf"))
    assert img.mime_type == "image/jpeg"
    raw = img.raw_bytes()
    assert raw
    assert img.preview_url.startswith("data:image/jpeg;base64,")
    decoded = Image.open(io.BytesIO(raw))
    assert decoded.format == "JPEG"
    assert decoded.size == (int(200 * PDF_RENDER_SCALE), int(100 * PDF_RENDER_SCALE))


def test_pdf_only_first_page_is_rendered(pdf_factory):
    data = pdf_factory(pages=3, width=300, height=150)
    img = ingest(SourceFile(data=data, mime_type="application/pdf"))
    decoded = Image.open(io.BytesIO(img.raw_bytes()))
    assert decoded.size == (600, 300)


@pytest.mark.parametrize("data", [b"this is not a pdf at all", b"", b"%PDF-1.7\n%%EOF"])
def test_corrupt_pdf(data):
    with pytest.raises(CorruptOrUnsupportedPdf):
        ingest(SourceFile(data=data, mime_type="application/pdf", name="broken.pdf"))


def test_ingest_is_deterministic(pdf_bytes):
    png = SourceFile(data=b"same-bytes", mime_type="image/png")
    assert ingest(png) == ingest(png)

    pdf = SourceFile(data=pdf_bytes, mime_type="application/pdf")
    a, b = ingest(pdf), ingest(pdf)
    assert a.data == b.data
    assert a.mime_type == b.mime_type


def test_source_from_path(tmp_path, pdf_bytes):
    p = tmp_path / "report.pdf"
    p.write_bytes(pdf_bytes)
    src = SourceFile.from_path(p)
    assert src.is_pdf and not src.is_image
    assert src.name == "report.pdf"

    unknown = tmp_path / "blob.unknownext"
    unknown.write_bytes(b"x")
    assert SourceFile.from_path(unknown).mime_type == "application/octet-stream"


def test_empty_image_rejected():
    with pytest.raises(UnsupportedFileKind):
        ingest(SourceFile(data=b"", mime_type="image/png", name="empty.png"))
