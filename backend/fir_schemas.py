"""
fir_schemas.py -- FIR Drafting Backend
Pydantic records shared by the analysis pipeline, the section ledger,
the document assembler and the HTTP routes.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Analysis records
# ---------------------------------------------------------------------------


class Event(BaseModel):
    event_id: str
    type: str = ""
    event_name: str = ""
    text: str = ""
    timestamp_text: Optional[str] = None
    location: Optional[str] = None
    actors_involved: List[str] = []
    is_crucial: bool = False

    @field_validator("event_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # the segmentation service sometimes numbers events
        return str(value) if isinstance(value, int) else value


class EventBatch(BaseModel):
    event_segments: List[Event]

    @field_validator("event_segments")
    @classmethod
    def _unique_ids(cls, events: List[Event]) -> List[Event]:
        seen: set[str] = set()
        for event in events:
            if event.event_id in seen:
                raise ValueError(f"duplicate event_id {event.event_id!r} in batch")
            seen.add(event.event_id)
        return events


ModalityMap = Dict[str, List[str]]


class PredictionRow(BaseModel):
    predicted_offence: str
    intent: str = ""
    similarity_score: float = Field(ge=0.0, le=1.0)
    predicted_section: str = Field(
        validation_alias=AliasChoices("predicted_section", "predicted_bns_section"),
    )


class PredictionResponse(BaseModel):
    results: List[PredictionRow]


# ---------------------------------------------------------------------------
# Ledger / form records
# ---------------------------------------------------------------------------


class Section(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    ipc: str = ""


class Complainant(BaseModel):
    name: str = ""
    age: int = Field(default=0, ge=0)
    phone: str = ""
    gender: str = "Male"
    address: str = ""
    profession: Optional[str] = None


class Incident(BaseModel):
    date: str = ""
    time: str = ""
    location: str = ""
    description: str = ""
    type: str = ""
    severity: str = ""


class DocumentFormat(str, Enum):
    LETTER = "letter"
    PLAIN = "plain"


class RenderableDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    format: DocumentFormat
    title: str = ""
    reference_line: str = ""
    header_fields: List[tuple[str, str]] = []
    body: str = ""
    closing: List[str] = []
    signature: List[str] = []
    sections: List[Section] = []
    text: str = ""


class CrimeScenario(BaseModel):
    key: str
    title: str
    complainant: Complainant
    incident: Incident
    sections: List[Section] = []


class MasterCategory(BaseModel):
    key: str
    label: str
    items: List[str]


# ---------------------------------------------------------------------------
# HTTP request / response bodies
# ---------------------------------------------------------------------------


class FormUpdateRequest(BaseModel):
    complainant: Optional[Dict[str, object]] = None
    incident: Optional[Dict[str, object]] = None


class NarrativeRequest(BaseModel):
    text: str


class InsertRequest(BaseModel):
    position: Optional[int] = None     # None -> append at the end
    text: Optional[str] = None
    stamp: Optional[str] = Field(default=None, description="'date' or 'time' inserts the current value")


class ManualSectionRequest(BaseModel):
    """An officer-typed section; every field must be filled in."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    ipc: str = Field(min_length=1)


class SuggestRequest(BaseModel):
    selected_text: str


class AnalysisResponse(BaseModel):
    applied: bool
    stage: str
    events: List[Event] = []
    modalities: ModalityMap = {}


class PredictionResult(BaseModel):
    applied: bool
    stage: str
    sections: List[Section] = []
