from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DocumentType = Literal["Lab Report", "Prescription", "Medicine Label", "Other Medical Document"]
DOCUMENT_TYPES: List[str] = list(get_args(DocumentType))


class _CamelModel(BaseModel):
    """Wire names are camelCase (provider contract), attributes snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------
# Analysis result contract
# ---------------------------
class LabResult(_CamelModel):
    test_name: str
    value: str
    reference_range: str
    interpretation: str


class Medication(_CamelModel):
    name: str
    dosage: str
    purpose: str


class PotentialDiagnosis(_CamelModel):
    condition: str
    reasoning: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence_score * 100)


class AnalysisResult(_CamelModel):
    document_type: DocumentType
    document_summary: str
    lab_results: Optional[List[LabResult]] = None
    medications: Optional[List[Medication]] = None
    potential_diagnosis: PotentialDiagnosis
    recommendations: List[str]

    # absent and empty-but-present both mean "no data"
    @property
    def has_lab_results(self) -> bool:
        return bool(self.lab_results)

    @property
    def has_medications(self) -> bool:
        return bool(self.medications)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def analysis_response_schema() -> Dict[str, Any]:
    """Response schema handed to the model. Field names, required sets and the
    confidenceScore range are part of the external contract."""
    return {
        "type": "OBJECT",
        "properties": {
            "documentType": {
                "type": "STRING",
                "enum": list(DOCUMENT_TYPES),
                "description": (
                    "Classify the document into one of the following categories: "
                    "'Lab Report', 'Prescription', 'Medicine Label', or 'Other Medical Document'."
                ),
            },
            "documentSummary": {
                "type": "STRING",
                "description": "A brief, one-paragraph summary of the provided document's content and purpose.",
            },
            "labResults": {
                "type": "ARRAY",
                "description": "An array of all identified lab results. Omit if not a lab report.",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "testName": {"type": "STRING", "description": "The name of the lab test."},
                        "value": {"type": "STRING", "description": "The patient's result for the test."},
                        "referenceRange": {
                            "type": "STRING",
                            "description": "The normal or reference range for the test.",
                        },
                        "interpretation": {
                            "type": "STRING",
                            "description": "A simple explanation of what the result means (e.g., 'Normal', 'High', 'Low').",
                        },
                    },
                    "required": ["testName", "value", "referenceRange", "interpretation"],
                },
            },
            "medications": {
                "type": "ARRAY",
                "description": "An array of all identified medications. Omit if no medications are listed.",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "name": {"type": "STRING", "description": "The name of the medication."},
                        "dosage": {
                            "type": "STRING",
                            "description": "The prescribed dosage (e.g., '500mg, twice daily').",
                        },
                        "purpose": {
                            "type": "STRING",
                            "description": "The reason or condition this medication is prescribed for.",
                        },
                    },
                    "required": ["name", "dosage", "purpose"],
                },
            },
            "potentialDiagnosis": {
                "type": "OBJECT",
                "description": "The most likely diagnosis based on the provided document.",
                "properties": {
                    "condition": {
                        "type": "STRING",
                        "description": "The name of the potential condition or diagnosis.",
                    },
                    "reasoning": {
                        "type": "STRING",
                        "description": "A detailed explanation of how the document's information supports this diagnosis.",
                    },
                    "confidenceScore": {
                        "type": "NUMBER",
                        "minimum": 0.0,
                        "maximum": 1.0,
                        "description": "A score from 0.0 to 1.0 indicating confidence in this diagnosis.",
                    },
                },
                "required": ["condition", "reasoning", "confidenceScore"],
            },
            "recommendations": {
                "type": "ARRAY",
                "description": "A list of general, non-prescriptive next steps or recommendations.",
                "items": {"type": "STRING"},
            },
        },
        "required": ["documentType", "documentSummary", "potentialDiagnosis", "recommendations"],
    }


# ---------------------------
# HTTP payloads
# ---------------------------
class NormalizedImageOut(BaseModel):
    mime_type: str
    byte_count: int
    data: str = Field(..., description="Base64-encoded image bytes")


class IngestResponse(BaseModel):
    ok: bool = True
    file_name: Optional[str]
    source_mime_type: str
    image: NormalizedImageOut


class AnalyzeResponse(BaseModel):
    ok: bool = True
    file_name: Optional[str]
    mime_type: str
    question: str = ""
    result: Dict[str, Any]
    confidence_percent: int


class ErrorResponse(BaseModel):
    ok: bool = False
    kind: str
    message: str
