import copy
import json

import fitz
import pytest

SAMPLE_RESULT = {
    "documentType": "Lab Report",
    "documentSummary": "Complete blood count drawn on a routine visit.",
    "labResults": [
        {
            "testName": "WBC",
            "value": "13.2 x10^9/L",
            "referenceRange": "4.0-11.0",
            "interpretation": "High",
        },
        {
            "testName": "Hemoglobin",
            "value": "13.9 g/dL",
            "referenceRange": "13.5-17.5",
            "interpretation": "Normal",
        },
    ],
    "potentialDiagnosis": {
        "condition": "Leukocytosis",
        "reasoning": "WBC is above the reference range while other values are normal.",
        "confidenceScore": 0.73,
    },
    "recommendations": ["Repeat the CBC in two weeks.", "Discuss symptoms of infection with a physician."],
}


class StubService:
    """Stands in for GeminiService; records every submitted request."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def submit(self, request):
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return self.text


def make_pdf(pages=1, width=200, height=100):
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 50), f"Hemoglobin 13.9 g/dL (page {i + 1})")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def result_payload():
    return copy.deepcopy(SAMPLE_RESULT)


@pytest.fixture
def result_json(result_payload):
    return json.dumps(result_payload)


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def stub_service():
    return StubService
