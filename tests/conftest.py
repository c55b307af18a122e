"""
Shared fixtures: an in-process stand-in for the remote analysis services.

Calls can be held open per narrative with ``client.hold(text)`` and released
with ``client.release(text)``, which lets tests finish runs out of order.
"""

import asyncio

import pytest

from fir_schemas import Event, Section
from pipeline_errors import RemoteError


class FakeAnalysisClient:
    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.failures: dict[str, RemoteError] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self.transcript = "मेरा नाम राजेश मेरा नंबर 9876543210 है, मेरे साथ मारपीट हुई"
        self.exported: list[dict] = []

    def hold(self, narrative: str) -> None:
        self._gates[narrative] = asyncio.Event()

    def release(self, narrative: str) -> None:
        self._gates[narrative].set()

    async def _wait(self, narrative: str) -> None:
        gate = self._gates.get(narrative)
        if gate is not None:
            await gate.wait()

    def _maybe_fail(self, call: str) -> None:
        if call in self.failures:
            raise self.failures[call]

    async def segment_events(self, narrative):
        self.calls.append(("segment_events", narrative))
        await self._wait(narrative)
        self._maybe_fail("segment_events")
        return [Event(event_id="E1", event_name="incident", text=narrative)]

    async def detect_from_events(self, events):
        self.calls.append(("detect_from_events", events))
        self._maybe_fail("detect_from_events")
        return {"source": [events[0].text]}

    async def detect_from_narrative(self, narrative):
        self.calls.append(("detect_from_narrative", narrative))
        await self._wait(narrative)
        self._maybe_fail("detect_from_narrative")
        return {"source": [narrative]}

    async def predict_sections(self, modalities):
        self.calls.append(("predict_sections", modalities))
        self._maybe_fail("predict_sections")
        text = modalities["source"][0]
        return [
            Section(name=f"Predicted for {text}", description="Intent: x. Similarity Score: 90.0%", ipc="BNS 1"),
            Section(name="Physical Assault", description="predicted", ipc="BNS 115"),
        ]

    async def transcribe(self, audio, filename, language, content_type):
        self.calls.append(("transcribe", language))
        self._maybe_fail("transcribe")
        return self.transcript

    async def download_fir(self, payload):
        self.calls.append(("download_fir", payload))
        self._maybe_fail("download_fir")
        self.exported.append(payload)
        return b"PK\x03\x04", "FIR.docx"

    def called(self, name: str) -> list:
        return [arg for call, arg in self.calls if call == name]


@pytest.fixture
def fake_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()
