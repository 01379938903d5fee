# app_streamlit.py
from __future__ import annotations

import html
from typing import List, Optional, Tuple

import altair as alt
import pandas as pd
import streamlit as st

from mediscan_ai.config import settings
from mediscan_ai.preprocess.ingestor import SourceFile
from mediscan_ai.schemas import AnalysisResult, LabResult, Medication
from mediscan_ai.services.analyze import Analyzer
from mediscan_ai.session import Session, run_analysis, run_ingest


# ---------------------------
# Streamlit page config / CSS
# ---------------------------
st.set_page_config(
    page_title="MediScan AI — Medical Document Interpreter",
    layout="wide",
    page_icon="🩺",
)

CUSTOM_CSS = """
<style>
.badge {
  display:inline-block; padding:4px 12px; border-radius:999px; font-weight:600; font-size:0.9rem;
}
.badge.blue { background:#e8f0fe; color:#1a4fa0; border:1px solid #b6cdf7; }
.badge.orange { background:#fff7e6; color:#8a5a00; border:1px solid #ffe0a3; }
.badge.gray { background:#f1f3f5; color:#3f4752; border:1px solid #d5d9de; }
.card-title { font-weight:700; font-size:1.05rem; margin-bottom:.25rem; }
.smallmeta { font-size: 0.9rem; color: #6b7280; }
</style>
"""
st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

BADGE_COLORS = {
    "Lab Report": "blue",
    "Prescription": "orange",
    "Medicine Label": "orange",
    "Other Medical Document": "gray",
}

UPLOAD_TYPES = ["png", "jpg", "jpeg", "webp", "gif", "bmp", "pdf"]


# ---------------------------
# Caching / session
# ---------------------------
@st.cache_resource(show_spinner=False)
def get_analyzer() -> Analyzer:
    return Analyzer()


def _session() -> Session:
    if "session" not in st.session_state:
        st.session_state["session"] = Session()
    return st.session_state["session"]


def _store(session: Session) -> None:
    st.session_state["session"] = session


# ---------------------------
# Helpers: badges, gauge, tables
# ---------------------------
def document_badge(doc_type: str) -> str:
    css = BADGE_COLORS.get(doc_type, "gray")
    return f'<span class="badge {css}">{html.escape(doc_type)}</span>'


def confidence_gauge(percent: int):
    df = pd.DataFrame({"part": ["confidence", "rest"], "value": [percent, 100 - percent]})
    arc = (
        alt.Chart(df)
        .mark_arc(innerRadius=45)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color(
                "part:N",
                scale=alt.Scale(domain=["confidence", "rest"], range=["#c026d3", "#e5e7eb"]),
                legend=None,
            ),
            tooltip=[alt.Tooltip("value:Q", title="%")],
        )
    )
    label = alt.Chart(pd.DataFrame({"text": [f"{percent}%"]})).mark_text(size=20, fontWeight="bold").encode(
        text="text:N"
    )
    st.altair_chart((arc + label).properties(height=150, width=150), use_container_width=False)


def lab_table(results: List[LabResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Test": r.test_name,
                "Value": r.value,
                "Reference range": r.reference_range,
                "Interpretation": r.interpretation,
            }
            for r in results
        ]
    )


def medication_table(meds: List[Medication]) -> pd.DataFrame:
    return pd.DataFrame([{"Medication": m.name, "Dosage": m.dosage, "Purpose": m.purpose} for m in meds])


def render_result(result: AnalysisResult) -> None:
    st.markdown(document_badge(result.document_type), unsafe_allow_html=True)

    st.markdown("**Document Summary**")
    st.write(result.document_summary)

    st.markdown("**Potential Diagnosis**")
    dx = result.potential_diagnosis
    g, txt = st.columns([0.3, 0.7])
    with g:
        confidence_gauge(dx.confidence_percent)
        st.markdown('<div class="smallmeta">Confidence</div>', unsafe_allow_html=True)
    with txt:
        st.markdown(f"### {dx.condition}")
        st.write(dx.reasoning)

    if result.has_lab_results:
        st.markdown("**Lab Results**")
        st.dataframe(lab_table(result.lab_results), hide_index=True, use_container_width=True)

    if result.has_medications:
        st.markdown("**Medications**")
        st.dataframe(medication_table(result.medications), hide_index=True, use_container_width=True)

    st.markdown("**Recommendations**")
    if result.recommendations:
        st.markdown("\n".join(f"- {rec}" for rec in result.recommendations))
    else:
        st.caption("No recommendations.")


def _upload_key(uploaded) -> Optional[Tuple[str, int]]:
    if uploaded is None:
        return None
    return uploaded.name, uploaded.size


# ---------------------------
# UI
# ---------------------------
st.title("🩺 MediScan AI")
st.caption("Harnessing AI to interpret your medical documents: lab reports, prescriptions, medicine labels.")

with st.sidebar:
    st.header("Settings")
    st.write(f"**Model**: `{settings.gemini_model}`")
    st.write(f"**API key**: {'configured' if settings.gemini_api_key else 'missing'}")
    st.caption("Env-driven settings (editable via `.env` before launch).")

col1, col2 = st.columns([0.9, 1.1], gap="large")

with col1:
    st.subheader("Document")
    uploaded = st.file_uploader(
        "Image or PDF (first page is analyzed)",
        type=UPLOAD_TYPES,
        accept_multiple_files=False,
        key=f"uploader-{st.session_state.get('uploader_nonce', 0)}",
    )

    key = _upload_key(uploaded)
    if key is not None and key != st.session_state.get("upload_key"):
        st.session_state["upload_key"] = key
        source = SourceFile(data=uploaded.getvalue(), mime_type=uploaded.type or "", name=uploaded.name)
        with st.spinner("Processing PDF…" if source.is_pdf else "Reading image…"):
            _store(run_ingest(_session(), source))
    elif key is None and st.session_state.get("upload_key") is not None:
        # uploader cleared: the removed file must not stay analyzable
        st.session_state.pop("upload_key")
        _store(_session().reset())

    session = _session()
    if session.image is not None:
        st.image(session.image.raw_bytes(), caption=session.file_name, use_container_width=True)

    question = st.text_area(
        "Specific Question (Optional)",
        value=session.question,
        height=90,
        placeholder="e.g., 'What does the high WBC count mean?'",
    )
    if question != session.question:
        session = session.with_question(question)
        _store(session)

    b1, b2 = st.columns(2)
    go = b1.button("Analyze Document", type="primary", disabled=not session.can_analyze, key="analyze")
    if b2.button("Reset", key="reset"):
        _store(session.reset())
        st.session_state.pop("upload_key", None)
        # new widget key drops the uploader's file
        st.session_state["uploader_nonce"] = st.session_state.get("uploader_nonce", 0) + 1
        st.rerun()

with col2:
    st.subheader("Analysis")

    if go:
        with st.spinner("Analyzing document… this may take a moment."):
            _store(run_analysis(_session(), get_analyzer()))

    session = _session()
    if session.error:
        st.error(session.error)
    elif session.result is not None:
        render_result(session.result)
    else:
        st.info("Upload a lab report, prescription or medicine label, then click **Analyze Document**.")

st.markdown("---")
st.caption(
    "MediScan AI demo • Gemini multimodal analysis • Not a substitute for professional medical advice."
)
