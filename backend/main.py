"""
FIR Drafting Backend -- FastAPI service
Helps an officer turn a spoken or written complaint into a draft First
Information Report with the applicable legal sections.

Per-session pipeline:
  1. Statement arrives as audio (remote transcription) or typed text
  2. Event pipeline: narrative -> event segments -> crime modalities
  3. Section pipeline: narrative -> modalities -> predicted sections -> ledger
  4. Officer edits sections (add / remove / keyword suggestion) and the body (undo / redo)
  5. Preview, local PDF, or .docx export through the remote export service

Sessions live in memory only; restarting the server discards all drafts.
"""

import logging
import os
import uuid
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from analysis_client import (
    DEFAULT_ANALYSIS_URL,
    DEFAULT_EXPORT_URL,
    DEFAULT_PREDICTION_URL,
    LANGUAGES,
    REQUEST_TIMEOUT,
    AnalysisClient,
)
from fir_assembler import DEFAULT_PLACE
from fir_pdf_builder import build_fir_pdf
from fir_schemas import (
    AnalysisResponse,
    DocumentFormat,
    FormUpdateRequest,
    InsertRequest,
    ManualSectionRequest,
    NarrativeRequest,
    PredictionResult,
    Section,
    SuggestRequest,
)
from fir_session import FIRSession
from pipeline_errors import AnalysisError, EmptyNarrativeError
from reference_data import get_scenario, load_master_data, load_scenarios

# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("fir.api")

ANALYSIS_SERVICE_URL: str = os.getenv("ANALYSIS_SERVICE_URL", DEFAULT_ANALYSIS_URL)
PREDICTION_SERVICE_URL: str = os.getenv("PREDICTION_SERVICE_URL", DEFAULT_PREDICTION_URL)
EXPORT_SERVICE_URL: str = os.getenv("EXPORT_SERVICE_URL", DEFAULT_EXPORT_URL)
SERVICE_TIMEOUT: float = float(os.getenv("SERVICE_TIMEOUT", str(REQUEST_TIMEOUT)))
FIR_PLACE: str = os.getenv("FIR_PLACE", DEFAULT_PLACE)
FIR_PDF_FONT: Optional[Path] = Path(os.environ["FIR_PDF_FONT"]) if os.getenv("FIR_PDF_FONT") else None

analysis_client = AnalysisClient(
    analysis_url=ANALYSIS_SERVICE_URL,
    prediction_url=PREDICTION_SERVICE_URL,
    export_url=EXPORT_SERVICE_URL,
    timeout=SERVICE_TIMEOUT,
)

BASE_DIR = Path(__file__).parent
STATIC_DIR = BASE_DIR / "static"
STATIC_DIR.mkdir(exist_ok=True)

app = FastAPI(title="FIR Drafting API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

_sessions: dict[str, FIRSession] = {}


def _get_session(session_id: str) -> FIRSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


# ---------------------------------------------------------------------------
# Audio MIME types
# ---------------------------------------------------------------------------

AUDIO_MIME_MAP = {
    ".webm": "audio/webm",
    ".mp3":  "audio/mpeg",
    ".mp4":  "audio/mp4",
    ".wav":  "audio/wav",
    ".ogg":  "audio/ogg",
    ".flac": "audio/flac",
    ".m4a":  "audio/mp4",
}

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def get_mime_type(suffix: str) -> str:
    return AUDIO_MIME_MAP.get(suffix.lower(), "audio/webm")


# ---------------------------------------------------------------------------
# Route 1 -- sessions
# ---------------------------------------------------------------------------


@app.post("/api/sessions")
async def create_session():
    session = FIRSession(analysis_client, place=FIR_PLACE)
    _sessions[session.session_id] = session
    logger.info("Session %s created", session.session_id)
    return session.snapshot()


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    return _get_session(session_id).snapshot()


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    _get_session(session_id)
    del _sessions[session_id]
    return {"deleted": session_id}


# ---------------------------------------------------------------------------
# Route 2 -- form & report body
# ---------------------------------------------------------------------------


@app.put("/api/sessions/{session_id}/form")
async def update_form(session_id: str, request: FormUpdateRequest):
    session = _get_session(session_id)
    try:
        session.update_form(complainant=request.complainant, incident=request.incident)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid form data: {exc}") from exc
    return session.snapshot()


@app.put("/api/sessions/{session_id}/narrative")
async def set_narrative(session_id: str, request: NarrativeRequest):
    session = _get_session(session_id)
    session.set_narrative(request.text)
    return session.snapshot()


@app.post("/api/sessions/{session_id}/insert")
async def insert_text(session_id: str, request: InsertRequest):
    """Toolbar insert: literal text, or stamp='date' / 'time' for the current value."""
    session = _get_session(session_id)
    if request.stamp:
        try:
            session.insert_stamp(request.stamp, request.position)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    elif request.text:
        session.insert_text(request.text, request.position)
    else:
        raise HTTPException(status_code=400, detail="Provide either 'text' or 'stamp'")
    return session.snapshot()


@app.post("/api/sessions/{session_id}/undo")
async def undo(session_id: str):
    session = _get_session(session_id)
    session.undo()
    return session.snapshot()


@app.post("/api/sessions/{session_id}/redo")
async def redo(session_id: str):
    session = _get_session(session_id)
    session.redo()
    return session.snapshot()


# ---------------------------------------------------------------------------
# Route 3 -- analysis pipelines
# ---------------------------------------------------------------------------


@app.post("/api/sessions/{session_id}/analyze", response_model=AnalysisResponse)
async def analyze(session_id: str):
    """Narrative -> event segments -> crime modalities."""
    session = _get_session(session_id)
    try:
        result = await session.run_analysis()
    except EmptyNarrativeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    stage = session.orchestrator.events_state.stage.value
    if result is None:
        return AnalysisResponse(applied=False, stage=stage)
    return AnalysisResponse(applied=True, stage=stage, events=result.events, modalities=result.modalities)


@app.post("/api/sessions/{session_id}/predict-sections", response_model=PredictionResult)
async def predict_sections(session_id: str):
    """Narrative -> modalities -> predicted sections, replacing the ledger."""
    session = _get_session(session_id)
    try:
        sections = await session.run_prediction()
    except EmptyNarrativeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    stage = session.orchestrator.sections_state.stage.value
    if sections is None:
        return PredictionResult(applied=False, stage=stage)
    return PredictionResult(applied=True, stage=stage, sections=sections)


# ---------------------------------------------------------------------------
# Route 4 -- section ledger
# ---------------------------------------------------------------------------


@app.post("/api/sessions/{session_id}/sections")
async def add_section(session_id: str, request: ManualSectionRequest):
    session = _get_session(session_id)
    added = session.add_section(Section(**request.model_dump()))
    return {"added": added, "sections": [s.model_dump() for s in session.ledger]}


@app.delete("/api/sessions/{session_id}/sections/{name:path}")
async def remove_section(session_id: str, name: str):
    session = _get_session(session_id)
    removed = session.remove_section(name)
    return {"removed": removed, "sections": [s.model_dump() for s in session.ledger]}


@app.post("/api/sessions/{session_id}/sections/suggest")
async def suggest_section(session_id: str, request: SuggestRequest):
    """Keyword lookup on the text the officer selected in the preview."""
    session = _get_session(session_id)
    suggested = session.suggest_section(request.selected_text)
    return {
        "suggested": suggested.model_dump() if suggested else None,
        "sections": [s.model_dump() for s in session.ledger],
    }


# ---------------------------------------------------------------------------
# Route 5 -- preview / PDF / .docx export
# ---------------------------------------------------------------------------


@app.get("/api/sessions/{session_id}/preview")
async def preview(session_id: str, format: DocumentFormat = DocumentFormat.LETTER, issued_on: Optional[date] = None):
    doc = _get_session(session_id).preview(format, issued_on=issued_on)
    return doc.model_dump(mode="json")


@app.post("/api/sessions/{session_id}/pdf")
async def generate_pdf(session_id: str, format: DocumentFormat = DocumentFormat.LETTER):
    doc = _get_session(session_id).preview(format)
    pdf_filename = f"fir_{uuid.uuid4().hex}.pdf"
    try:
        build_fir_pdf(doc, STATIC_DIR / pdf_filename, font_path=FIR_PDF_FONT)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"PDF generation error: {exc}") from exc
    return {"pdf_url": f"/static/{pdf_filename}", "pdf_filename": pdf_filename}


@app.post("/api/sessions/{session_id}/download")
async def download(session_id: str):
    """Proxy the remote .docx export; in-memory draft state is never touched."""
    session = _get_session(session_id)
    try:
        content, filename = await session.download()
    except AnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return Response(
        content=content,
        media_type=DOCX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Route 6 -- audio transcription
# ---------------------------------------------------------------------------


@app.post("/api/sessions/{session_id}/transcribe")
async def transcribe(session_id: str, audio: UploadFile = File(...), language: str = Form(...)):
    """Audio blob -> remote speech-to-text -> form prefill."""
    session = _get_session(session_id)
    if language not in LANGUAGES:
        raise HTTPException(status_code=400, detail=f"Unsupported language {language!r}; use one of {LANGUAGES}")
    filename = audio.filename or "audio.webm"
    suffix = Path(filename).suffix or ".webm"
    try:
        text = await session.transcribe(await audio.read(), filename, language, get_mime_type(suffix))
    except AnalysisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"text": text, **session.snapshot()}


# ---------------------------------------------------------------------------
# Route 7 -- reference data
# ---------------------------------------------------------------------------


@app.get("/api/scenarios")
async def list_scenarios():
    return [
        {"key": s.key, "title": s.title, "type": s.incident.type, "severity": s.incident.severity}
        for s in load_scenarios().values()
    ]


@app.post("/api/sessions/{session_id}/scenario/{key}")
async def apply_scenario(session_id: str, key: str):
    session = _get_session(session_id)
    try:
        scenario = get_scenario(key)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown scenario: {key}") from exc
    session.apply_scenario(scenario)
    return session.snapshot()


@app.get("/api/master-data")
async def master_data():
    return [c.model_dump() for c in load_master_data()]
