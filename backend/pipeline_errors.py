"""
pipeline_errors.py -- FIR Drafting Backend
Error taxonomy for the remote analysis services.

Transport errors (raised by analysis_client):
  NetworkFailure  -- request could not be sent or no response arrived
  RemoteError     -- the service answered with a non-2xx status
  ParseFailure    -- the body was not the JSON shape we expected

Stage errors (raised by the orchestrator / session) wrap a transport error
and name the pipeline stage that failed. None of them is fatal: the officer
can always retry or edit sections by hand.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for anything that went wrong talking to a remote service."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NetworkFailure(ServiceError):
    pass


class RemoteError(ServiceError):
    def __init__(self, status: int, message: str):
        super().__init__(message, status=status)


class ParseFailure(ServiceError):
    pass


class EmptyNarrativeError(ValueError):
    """Raised before a pipeline starts when there is no text to analyse."""


class AnalysisError(Exception):
    stage_message = "Analysis failed"

    def __init__(self, cause: ServiceError):
        super().__init__(f"{self.stage_message}: {cause.message}")
        self.cause = cause

    @property
    def status(self) -> Optional[int]:
        return self.cause.status

    @property
    def message(self) -> str:
        return self.cause.message


class EventSegmentationFailed(AnalysisError):
    stage_message = "Failed to analyze events"


class ModalityDetectionFailed(AnalysisError):
    stage_message = "Failed to analyze modalities"


class SectionPredictionFailed(AnalysisError):
    stage_message = "Failed to predict BNS sections"


class TranscriptionFailed(AnalysisError):
    stage_message = "Transcription failed"


class ExportFailed(AnalysisError):
    stage_message = "Download failed"
