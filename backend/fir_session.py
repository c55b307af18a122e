"""
fir_session.py -- FIR Drafting Backend
One officer's draft FIR: form state, narrative, section ledger, document
history and the analysis pipelines that feed them.

The HTTP layer may call into a session from the event loop or from a worker
thread, so every ledger/history mutation happens under the session lock.
Network calls are never made while the lock is held.
"""

import logging
import threading
import uuid
from datetime import date, datetime
from typing import Optional

from analysis_client import AnalysisClient
from analysis_orchestrator import AnalysisOrchestrator, AnalysisResult
from document_history import DocumentHistory
from fir_assembler import DEFAULT_PLACE, assemble
from fir_schemas import (
    Complainant,
    CrimeScenario,
    DocumentFormat,
    Event,
    Incident,
    ModalityMap,
    RenderableDocument,
    Section,
)
from pipeline_errors import ExportFailed, ServiceError, TranscriptionFailed
from section_ledger import SectionLedger
from transcript_parser import parse_transcript

logger = logging.getLogger("fir.session")


class FIRSession:
    def __init__(
        self,
        client: AnalysisClient,
        session_id: Optional[str] = None,
        place: str = DEFAULT_PLACE,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.created_at = datetime.now().isoformat()
        self.place = place
        self.complainant = Complainant()
        self.incident = Incident()
        self.transcript = ""
        self.ledger = SectionLedger()
        self.history = DocumentHistory("")
        self.orchestrator = AnalysisOrchestrator(client)
        self.events: Optional[list[Event]] = None
        self.modalities: Optional[ModalityMap] = None
        self._lock = threading.RLock()

    # -----------------------------------------------------------------------
    # Narrative
    # -----------------------------------------------------------------------

    @property
    def narrative(self) -> str:
        """The report body: the typed description, else the transcript."""
        return self.incident.description or self.transcript

    def _apply_narrative(self, text: str) -> None:
        # caller holds the lock
        self.incident = self.incident.model_copy(update={"description": text})
        self.orchestrator.invalidate()
        self.events = None
        self.modalities = None

    def set_narrative(self, text: str) -> None:
        with self._lock:
            if text == self.incident.description:
                return
            self._apply_narrative(text)
            self.history.record(self.narrative)

    def insert_text(self, text: str, position: Optional[int] = None) -> str:
        """Insert ``text`` into the body at ``position`` (end when None)."""
        with self._lock:
            body = self.narrative
            pos = len(body) if position is None else max(0, min(position, len(body)))
            self._apply_narrative(body[:pos] + text + body[pos:])
            self.history.record(self.narrative)
            return self.narrative

    def insert_stamp(self, kind: str, position: Optional[int] = None) -> str:
        now = datetime.now()
        if kind == "date":
            return self.insert_text(now.strftime("%d/%m/%Y"), position)
        if kind == "time":
            return self.insert_text(now.strftime("%H:%M:%S"), position)
        raise ValueError(f"Unknown stamp {kind!r}; expected 'date' or 'time'")

    def _restore(self, snapshot: str) -> str:
        # caller holds the lock
        if snapshot != self.narrative:
            if not snapshot:
                # an empty description would fall back to the transcript
                self.transcript = ""
            self._apply_narrative(snapshot)
        return snapshot

    def undo(self) -> str:
        with self._lock:
            return self._restore(self.history.undo())

    def redo(self) -> str:
        with self._lock:
            return self._restore(self.history.redo())

    # -----------------------------------------------------------------------
    # Form
    # -----------------------------------------------------------------------

    def update_form(self, complainant: Optional[dict] = None, incident: Optional[dict] = None) -> None:
        """Merge partial field updates; a changed description goes through history."""
        with self._lock:
            if complainant:
                self.complainant = Complainant.model_validate(
                    {**self.complainant.model_dump(), **complainant}
                )
            if incident:
                fields = dict(incident)
                description = fields.pop("description", None)
                self.incident = Incident.model_validate({**self.incident.model_dump(), **fields})
                if description is not None:
                    self.set_narrative(description)

    def apply_transcript(self, text: str) -> None:
        parsed = parse_transcript(text)
        with self._lock:
            self.transcript = text
            self.update_form(complainant=parsed["complainant"], incident=parsed["incident"])
        logger.info("Session %s: transcript applied (%d chars)", self.session_id, len(text))

    def apply_scenario(self, scenario: CrimeScenario) -> None:
        with self._lock:
            self.complainant = scenario.complainant.model_copy()
            self.incident = scenario.incident.model_copy(update={"description": ""})
            self.set_narrative(scenario.incident.description)
            self.ledger.replace_all(scenario.sections)
        logger.info("Session %s: scenario %s applied", self.session_id, scenario.key)

    # -----------------------------------------------------------------------
    # Pipelines
    # -----------------------------------------------------------------------

    async def run_analysis(self) -> Optional[AnalysisResult]:
        result = await self.orchestrator.analyze(self.narrative)
        if result is None:
            return None
        with self._lock:
            # an edit may have landed between completion and here
            if self.orchestrator.result is not result:
                return None
            self.events = result.events
            self.modalities = result.modalities
        return result

    async def run_prediction(self) -> Optional[list[Section]]:
        sections = await self.orchestrator.predict_sections(self.narrative)
        if sections is None:
            return None
        with self._lock:
            if self.orchestrator.predicted is not sections:
                return None
            self.ledger.replace_all(sections)
        return sections

    # -----------------------------------------------------------------------
    # Sections
    # -----------------------------------------------------------------------

    def add_section(self, section: Section) -> bool:
        with self._lock:
            return self.ledger.add(section)

    def remove_section(self, name: str) -> bool:
        with self._lock:
            return self.ledger.remove(name)

    def suggest_section(self, selected_text: str) -> Optional[Section]:
        with self._lock:
            return self.ledger.suggest_from_keyword_match(selected_text)

    # -----------------------------------------------------------------------
    # Output
    # -----------------------------------------------------------------------

    def preview(self, fmt: DocumentFormat = DocumentFormat.LETTER, issued_on: Optional[date] = None) -> RenderableDocument:
        with self._lock:
            return assemble(
                self.complainant,
                self.incident,
                self.ledger.to_list(),
                fmt,
                narrative=self.narrative,
                issued_on=issued_on,
                place=self.place,
            )

    def export_payload(self) -> dict:
        """Request body for the remote .docx export service."""
        with self._lock:
            form = {**self.complainant.model_dump(), **self.incident.model_dump()}
            return {
                "form": form,
                "firText": self.narrative,
                "sections": [s.model_dump() for s in self.ledger],
            }

    async def download(self) -> tuple[bytes, str]:
        try:
            return await self.orchestrator.client.download_fir(self.export_payload())
        except ServiceError as exc:
            logger.warning("Session %s: export failed: %s", self.session_id, exc)
            raise ExportFailed(exc) from exc

    async def transcribe(self, audio: bytes, filename: str, language: str, content_type: str) -> str:
        try:
            text = await self.orchestrator.client.transcribe(audio, filename, language, content_type)
        except ServiceError as exc:
            raise TranscriptionFailed(exc) from exc
        self.apply_transcript(text)
        return text

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "session_id": self.session_id,
                "created_at": self.created_at,
                "complainant": self.complainant.model_dump(),
                "incident": self.incident.model_dump(),
                "transcript": self.transcript,
                "narrative": self.narrative,
                "sections": [s.model_dump() for s in self.ledger],
                "events": [e.model_dump() for e in self.events] if self.events is not None else None,
                "modalities": self.modalities,
                "analysis": self.orchestrator.events_state.as_dict(),
                "prediction": self.orchestrator.sections_state.as_dict(),
                "history": {
                    "cursor": self.history.cursor,
                    "length": len(self.history),
                    "can_undo": self.history.can_undo,
                    "can_redo": self.history.can_redo,
                },
            }
