"""
analysis_client.py -- FIR Drafting Backend
Async HTTP client for the remote services the drafting pipeline depends on.

Endpoints (JSON over HTTP unless noted):
  POST {analysis}/analyze-events       {description}            -> {event_segments: [...]}
  POST {analysis}/analyze-modalities   {events} | {description} -> {category: [values]}
  POST {prediction}/predict-sections   modality map             -> {results: [...]}
  POST {analysis}/transcribe           multipart audio+language -> {text}
  POST {export}/download               {form, firText, sections} -> .docx bytes

Every failure is raised as one of NetworkFailure / RemoteError / ParseFailure.
The client never retries; callers decide what a failure means for their stage.
"""

import json
import logging
import re
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from fir_schemas import (
    Event,
    EventBatch,
    ModalityMap,
    PredictionResponse,
    Section,
)
from pipeline_errors import NetworkFailure, ParseFailure, RemoteError

logger = logging.getLogger("fir.analysis_client")

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_ANALYSIS_URL: str = "http://localhost:3000/openai"
DEFAULT_PREDICTION_URL: str = "http://localhost:5000"
DEFAULT_EXPORT_URL: str = "http://localhost:3000/fir"
REQUEST_TIMEOUT: float = 60.0      # event segmentation on long statements is slow
EXPORT_FILENAME: str = "FIR.docx"
LANGUAGES: tuple[str, ...] = ("hi", "en")

_modality_adapter = TypeAdapter(ModalityMap)
_filename_re = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _error_detail(resp: httpx.Response) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip()[:300] or resp.reason_phrase
    if isinstance(data, dict):
        for key in ("details", "detail", "error", "message"):
            if data.get(key):
                return str(data[key])
    return str(data)[:300]


def _parse_json(resp: httpx.Response, url: str) -> Any:
    try:
        return resp.json()
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Malformed JSON from %s: %s", url, exc)
        raise ParseFailure(f"Malformed response from {url}: {exc}") from exc


def format_prediction(offence: str, intent: str, score: float, section: str) -> Section:
    """Map one prediction row onto a ledger Section."""
    return Section(
        name=offence,
        description=f"Intent: {intent}. Similarity Score: {score * 100:.1f}%",
        ipc=section,
    )


def filename_from_disposition(header: Optional[str]) -> str:
    if header:
        match = _filename_re.search(header)
        if match:
            return match.group(1).strip()
    return EXPORT_FILENAME


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class AnalysisClient:
    """Thin async wrapper around the analysis, prediction and export services."""

    def __init__(
        self,
        analysis_url: str = DEFAULT_ANALYSIS_URL,
        prediction_url: str = DEFAULT_PREDICTION_URL,
        export_url: str = DEFAULT_EXPORT_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.analysis_url = analysis_url.rstrip("/")
        self.prediction_url = prediction_url.rstrip("/")
        self.export_url = export_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            follow_redirects=True,
        )

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            logger.info("POST %s", url)
            async with self._client() as client:
                resp = await client.post(url, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            logger.warning("Network error for %s: %s", url, exc)
            raise NetworkFailure(f"Could not reach {url}: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error for %s: %s", url, exc)
            raise NetworkFailure(f"Request to {url} failed: {exc}") from exc

        if not resp.is_success:
            detail = _error_detail(resp)
            logger.warning("HTTP %d from %s: %s", resp.status_code, url, detail)
            raise RemoteError(resp.status_code, detail)
        return resp

    async def _post_json(self, url: str, payload: Any) -> Any:
        resp = await self._post(url, json=payload)
        return _parse_json(resp, url)

    # -- event pipeline -----------------------------------------------------

    async def segment_events(self, narrative: str) -> list[Event]:
        url = f"{self.analysis_url}/analyze-events"
        data = await self._post_json(url, {"description": narrative})
        try:
            batch = EventBatch.model_validate(data)
        except ValidationError as exc:
            raise ParseFailure(f"Unexpected event segmentation payload: {exc}") from exc
        logger.info("Segmented narrative into %d events", len(batch.event_segments))
        return batch.event_segments

    async def detect_from_events(self, events: list[Event]) -> ModalityMap:
        url = f"{self.analysis_url}/analyze-modalities"
        payload = {"events": [e.model_dump() for e in events]}
        return self._modalities(await self._post_json(url, payload))

    # -- narrative pipeline -------------------------------------------------

    async def detect_from_narrative(self, narrative: str) -> ModalityMap:
        url = f"{self.analysis_url}/analyze-modalities"
        return self._modalities(await self._post_json(url, {"description": narrative}))

    async def predict_sections(self, modalities: ModalityMap) -> list[Section]:
        url = f"{self.prediction_url}/predict-sections"
        data = await self._post_json(url, modalities)
        try:
            parsed = PredictionResponse.model_validate(data)
        except ValidationError as exc:
            raise ParseFailure(f"Unexpected prediction payload: {exc}") from exc
        return [
            format_prediction(r.predicted_offence, r.intent, r.similarity_score, r.predicted_section)
            for r in parsed.results
        ]

    @staticmethod
    def _modalities(data: Any) -> ModalityMap:
        try:
            return _modality_adapter.validate_python(data)
        except ValidationError as exc:
            raise ParseFailure(f"Unexpected modality payload: {exc}") from exc

    # -- transcription / export ---------------------------------------------

    async def transcribe(self, audio: bytes, filename: str, language: str, content_type: str) -> str:
        url = f"{self.analysis_url}/transcribe"
        resp = await self._post(
            url,
            files={"audio": (filename, audio, content_type)},
            data={"language": language},
        )
        data = _parse_json(resp, url)
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ParseFailure("Transcription response has no 'text' field")
        return data["text"].strip()

    async def download_fir(self, payload: dict) -> tuple[bytes, str]:
        """Ask the export service for a .docx; returns (content, filename)."""
        url = f"{self.export_url}/download"
        resp = await self._post(url, json=payload)
        if not resp.content:
            raise ParseFailure("Export service returned an empty document")
        filename = filename_from_disposition(resp.headers.get("content-disposition"))
        logger.info("OK -- %d bytes of %s from %s", len(resp.content), filename, url)
        return resp.content, filename
