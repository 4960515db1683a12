# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides settings without a .env file, sample artifacts, canned Gemini
responses and a mock clock. No network access — the HTTP gate is either
mocked or backed by httpx.MockTransport.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from cinearchive.config.settings import Settings
from cinearchive.core.models import Artifact, RawResponse
from cinearchive.pipeline.health import HealthFlag

BLADE_RUNNER = {
    "title": "BLADE RUNNER",
    "year": "1982",
    "genre": "Sci-Fi",
    "is_person": False,
    "description": "Rain-soaked neon and a replicant's last words.",
}


def gemini_body(
    fields: dict[str, Any] | None = None,
    text: str | None = None,
    attributions: list[dict[str, Any]] | None = None,
) -> str:
    """Serialize a generateContent success body."""
    part_text = text if text is not None else json.dumps(fields or BLADE_RUNNER)
    candidate: dict[str, Any] = {"content": {"role": "model", "parts": [{"text": part_text}]}}
    if attributions is not None:
        candidate["groundingMetadata"] = {"groundingAttributions": attributions}
    return json.dumps({"candidates": [candidate]})


def ok_response(**kwargs: Any) -> RawResponse:
    return RawResponse(status_code=200, body=gemini_body(**kwargs))


class MockClock:
    """Records requested sleeps instead of sleeping."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    @property
    def elapsed(self) -> float:
        return sum(self.sleeps)


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Configured settings with no perceptual delay."""
    return Settings(_env_file=None, gemini_api_key="test-key", result_delay_s=0)


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(_env_file=None, gemini_api_key="", result_delay_s=0)


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_artifact() -> Artifact:
    """Minimal valid poster artifact."""
    return Artifact(
        data=b"\x89PNG\r\n\x1a\nFAKE_POSTER",
        media_type="image/png",
        name="blade_runner.png",
        size=19,
        modified_at=1_700_000_000.0,
    )


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def health() -> HealthFlag:
    return HealthFlag()


# === FIXTURES: Mock gate ===


@pytest.fixture
def mock_gate() -> AsyncMock:
    """Mock HttpGate answering every send with a Blade Runner result."""
    gate = AsyncMock()
    gate.send = AsyncMock(return_value=ok_response())
    gate.probe = AsyncMock(return_value=RawResponse(status_code=200, body="{}"))
    return gate
