import pytest

from mediscan_ai.errors import AnalysisFailed, CorruptOrUnsupportedPdf, MissingInput, SessionBusy
from mediscan_ai.preprocess.ingestor import NormalizedImage, SourceFile
from mediscan_ai.schemas import AnalysisResult
from mediscan_ai.services.analyze import Analyzer
from mediscan_ai.session import Session, run_analysis, run_ingest

PNG = SourceFile(data=b"png-bytes", mime_type="image/png", name="a.png")


def test_image_ingest_sets_image():
    s = run_ingest(Session(), PNG)
    assert s.generation == 1
    assert s.file_name == "a.png"
    assert s.image.raw_bytes() == b"png-bytes"
    assert s.can_analyze
    assert s.error is None


def test_failed_ingest_resets_everything():
    s = run_ingest(Session(), PNG)
    s = run_ingest(s, SourceFile(data=b"garbage", mime_type="application/pdf", name="b.pdf"))
    assert s.image is None
    assert s.file_name is None
    assert s.result is None
    assert not s.processing_pdf
    assert s.error == CorruptOrUnsupportedPdf.default_message


def test_unsupported_kind_clears_prior_image():
    s = run_ingest(Session(), PNG)
    s = run_ingest(s, SourceFile(data=b"x", mime_type="text/plain", name="c.txt"))
    assert s.image is None
    assert "valid image or PDF" in s.error


def test_pdf_selection_marks_processing(pdf_bytes):
    pending = Session().select(SourceFile(data=pdf_bytes, mime_type="application/pdf"))
    assert pending.processing_pdf
    assert not pending.can_analyze
    done = run_ingest(Session(), SourceFile(data=pdf_bytes, mime_type="application/pdf"))
    assert not done.processing_pdf
    assert done.image.mime_type == "image/jpeg"


def test_stale_ingest_completion_is_dropped():
    first = Session().select(SourceFile(data=b"old", mime_type="application/pdf", name="old.pdf"))
    old_gen = first.generation
    second = first.select(PNG)
    late = second.ingested(old_gen, NormalizedImage(data="b2xk", mime_type="image/jpeg"))
    assert late is second
    assert second.ingest_failed(old_gen, CorruptOrUnsupportedPdf()) is second


def test_analysis_success(stub_service, result_json):
    s = run_ingest(Session(), PNG).with_question("Is my WBC high?")
    svc = stub_service(text=result_json)
    s = run_analysis(s, Analyzer(service=svc))
    assert isinstance(s.result, AnalysisResult)
    assert not s.analyzing
    assert svc.calls[0].question == "Is my WBC high?"


def test_analysis_failure_keeps_image_for_retry(stub_service):
    s = run_ingest(Session(), PNG)
    s = run_analysis(s, Analyzer(service=stub_service(error=RuntimeError("boom"))))
    assert s.error == AnalysisFailed.default_message
    assert s.image is not None
    assert s.file_name == "a.png"
    assert s.can_analyze


def test_analysis_without_image():
    with pytest.raises(MissingInput):
        Session().start_analysis()
    s = run_analysis(Session(), Analyzer(service=object()))
    assert s.error == MissingInput.default_message


def test_single_flight_analysis():
    s = run_ingest(Session(), PNG)
    busy, _ = s.start_analysis()
    assert not busy.can_analyze
    with pytest.raises(SessionBusy):
        busy.start_analysis()


def test_new_selection_supersedes_running_analysis(result_payload):
    s = run_ingest(Session(), PNG)
    running, gen = s.start_analysis()
    replaced = running.select(SourceFile(data=b"new", mime_type="image/jpeg", name="new.jpg"))
    assert not replaced.analyzing
    result = AnalysisResult.model_validate(result_payload)
    assert replaced.analyzed(gen, result) is replaced
    assert replaced.analysis_failed(gen, AnalysisFailed()) is replaced


def test_reset():
    s = run_ingest(Session(), PNG).with_question("q")
    r = s.reset()
    assert r.generation == s.generation + 1
    assert r.image is None and r.question == "" and r.file_name is None


def test_empty_image_never_becomes_analyzable():
    s = run_ingest(Session(), SourceFile(data=b"", mime_type="image/png", name="empty.png"))
    assert s.image is None
    assert not s.can_analyze
    assert "valid image or PDF" in s.error
