"""
analysis_orchestrator.py -- FIR Drafting Backend
Runs the two remote analysis pipelines over the complaint narrative.

  Event pipeline:     narrative -> segment_events -> detect_from_events -> (events, modalities)
  Section pipeline:   narrative -> detect_from_narrative -> predict_sections -> [Section]

The stages of one pipeline always run in order; the second stage consumes the
first stage's output. The two pipelines are independent and may overlap.

Each pipeline hands out a new generation token per run. A run may only touch
shared state while its token is still the newest one, so when the narrative
changes mid-flight the slow, older run is dropped on arrival and the newer run
wins regardless of which finished first.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from analysis_client import AnalysisClient
from fir_schemas import Event, ModalityMap, Section
from pipeline_errors import (
    AnalysisError,
    EmptyNarrativeError,
    EventSegmentationFailed,
    ModalityDetectionFailed,
    SectionPredictionFailed,
    ServiceError,
)

logger = logging.getLogger("fir.orchestrator")


class PipelineStage(str, Enum):
    IDLE = "idle"
    RUNNING_STAGE1 = "running_stage1"
    RUNNING_STAGE2 = "running_stage2"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PipelineState:
    """Loading/error state of one pipeline plus its generation counter."""

    name: str
    stage: PipelineStage = PipelineStage.IDLE
    message: str = ""
    error: Optional[AnalysisError] = None
    generation: int = 0

    @property
    def loading(self) -> bool:
        return self.stage in (PipelineStage.RUNNING_STAGE1, PipelineStage.RUNNING_STAGE2)

    def begin(self, message: str) -> int:
        self.generation += 1
        self.stage = PipelineStage.RUNNING_STAGE1
        self.message = message
        self.error = None
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def advance(self, token: int, message: str) -> bool:
        if not self.is_current(token):
            return False
        self.stage = PipelineStage.RUNNING_STAGE2
        self.message = message
        return True

    def succeed(self, token: int) -> None:
        if self.is_current(token):
            self.stage = PipelineStage.SUCCEEDED
            self.message = ""

    def fail(self, token: int, error: AnalysisError) -> bool:
        if not self.is_current(token):
            return False
        self.stage = PipelineStage.FAILED
        self.message = ""
        self.error = error
        return True

    def invalidate(self) -> None:
        self.generation += 1
        self.stage = PipelineStage.IDLE
        self.message = ""
        self.error = None

    def as_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "loading": self.loading,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class AnalysisResult:
    generation: int
    narrative: str
    events: list[Event] = field(default_factory=list)
    modalities: ModalityMap = field(default_factory=dict)


def _require_text(narrative: str) -> None:
    if not narrative or not narrative.strip():
        raise EmptyNarrativeError("Narrative is empty; nothing to analyze")


class AnalysisOrchestrator:
    def __init__(self, client: AnalysisClient):
        self.client = client
        self.events_state = PipelineState("events")
        self.sections_state = PipelineState("sections")
        self.result: Optional[AnalysisResult] = None
        self.predicted: Optional[list[Section]] = None

    def invalidate(self) -> None:
        """The narrative changed: forget results and orphan in-flight runs."""
        self.events_state.invalidate()
        self.sections_state.invalidate()
        self.result = None
        self.predicted = None

    def _stale(self, state: PipelineState, token: int) -> None:
        logger.debug(
            "Dropping stale %s result (generation %d, current %d)",
            state.name, token, state.generation,
        )

    def _raise_if_current(self, state: PipelineState, token: int, error: AnalysisError) -> None:
        if state.fail(token, error):
            logger.warning("%s pipeline failed: %s", state.name, error)
            raise error
        self._stale(state, token)

    # -----------------------------------------------------------------------
    # Event pipeline
    # -----------------------------------------------------------------------

    async def analyze(self, narrative: str) -> Optional[AnalysisResult]:
        """
        Segment the narrative into events, then detect modalities from those
        events. Returns None when a newer run or a narrative edit superseded
        this one while it was in flight.
        """
        _require_text(narrative)
        state = self.events_state
        token = state.begin("Analyzing event sequence...")
        self.result = None

        try:
            events = await self.client.segment_events(narrative)
        except ServiceError as exc:
            self._raise_if_current(state, token, EventSegmentationFailed(exc))
            return None

        if not state.advance(token, "Detecting crime modalities..."):
            self._stale(state, token)
            return None

        try:
            modalities = await self.client.detect_from_events(events)
        except ServiceError as exc:
            self._raise_if_current(state, token, ModalityDetectionFailed(exc))
            return None

        if not state.is_current(token):
            self._stale(state, token)
            return None

        self.result = AnalysisResult(token, narrative, events, modalities)
        state.succeed(token)
        logger.info("Analysis %d: %d events, %d modality categories",
                    token, len(events), len(modalities))
        return self.result

    # -----------------------------------------------------------------------
    # Section pipeline
    # -----------------------------------------------------------------------

    async def predict_sections(self, narrative: str) -> Optional[list[Section]]:
        """
        Detect modalities straight from the narrative and feed them to the
        section prediction service. Returns None when superseded.
        """
        _require_text(narrative)
        state = self.sections_state
        token = state.begin("Analyzing sections...")

        try:
            modalities = await self.client.detect_from_narrative(narrative)
        except ServiceError as exc:
            self._raise_if_current(state, token, ModalityDetectionFailed(exc))
            return None

        if not state.advance(token, "Predicting applicable sections..."):
            self._stale(state, token)
            return None

        try:
            sections = await self.client.predict_sections(modalities)
        except ServiceError as exc:
            self._raise_if_current(state, token, SectionPredictionFailed(exc))
            return None

        if not state.is_current(token):
            self._stale(state, token)
            return None

        self.predicted = sections
        state.succeed(token)
        logger.info("Prediction %d: %d sections", token, len(sections))
        return sections
