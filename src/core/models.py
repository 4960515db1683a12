# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

import json
import mimetypes
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# === ENUMS ===


class AnalysisMode(StrEnum):
    """How the model is asked to identify an artifact."""

    STANDARD = "standard"
    GROUNDED = "grounded"


class PipelineState(StrEnum):
    """Lifecycle of a single artifact's analysis."""

    IDLE = "idle"
    SCANNING = "scanning"
    DEEP_SEARCHING = "deep_searching"
    RESULT = "result"
    RESTRICTED = "restricted"
    AUTH_ERROR = "auth_error"
    NETWORK_ERROR = "network_error"
    API_OFFLINE = "api_offline"
    ERROR = "error"

    @property
    def is_busy(self) -> bool:
        return self in (PipelineState.SCANNING, PipelineState.DEEP_SEARCHING)


class ServiceHealth(StrEnum):
    """Process-wide liveness of the inference endpoint."""

    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"
    NOT_CONFIGURED = "not_configured"


# === ARTIFACT ===


class Artifact(BaseModel):
    """One user-submitted image.

    Identity is derived from name, size and modification time, never from
    the content, so two drops of the same file collapse into one entry.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    media_type: str
    name: str
    size: int
    modified_at: float = 0.0

    @property
    def identity(self) -> str:
        return f"{self.name}:{self.size}:{self.modified_at}"

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")

    @classmethod
    def from_path(cls, path: str | Path) -> Artifact:
        """Load an artifact from disk, guessing its media type from the name."""
        p = Path(path).expanduser()
        stat = p.stat()
        media_type, _ = mimetypes.guess_type(p.name)
        return cls(
            data=p.read_bytes(),
            media_type=media_type or "application/octet-stream",
            name=p.name,
            size=stat.st_size,
            modified_at=stat.st_mtime,
        )


# === WIRE ===


class RawResponse(BaseModel):
    """Status and body of one HTTP exchange, before interpretation."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def decode(self) -> Any:
        """Decode the body. Raises ValueError on invalid JSON."""
        return json.loads(self.body)


class SafetySetting(BaseModel):
    """One harm category and its blocking threshold."""

    model_config = ConfigDict(frozen=True)

    category: str
    threshold: str = "BLOCK_NONE"


class AnalysisRequest(BaseModel):
    """Ephemeral, fully-built inference request for one attempt."""

    model_config = ConfigDict(frozen=True)

    image_b64: str = Field(repr=False)
    media_type: str
    prompt: str
    mode: AnalysisMode
    safety_settings: tuple[SafetySetting, ...]
    response_mime_type: str = "application/json"

    @property
    def grounded(self) -> bool:
        return self.mode is AnalysisMode.GROUNDED

    def to_payload(self) -> dict[str, Any]:
        """Render the generateContent request body."""
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": self.prompt},
                        {"inlineData": {"mimeType": self.media_type, "data": self.image_b64}},
                    ],
                }
            ],
            "safetySettings": [s.model_dump() for s in self.safety_settings],
            "generationConfig": {"responseMimeType": self.response_mime_type},
        }
        if self.grounded:
            payload["tools"] = [{"google_search": {}}]
        return payload


# === RESULTS ===


class SourceCitation(BaseModel):
    """A web source the model grounded its answer on."""

    model_config = ConfigDict(frozen=True)

    uri: str
    title: str


class AnalysisResult(BaseModel):
    """Identification of a poster, cover or person."""

    model_config = ConfigDict(frozen=True)

    title: str
    year: str
    genre: str
    description: str
    is_person: bool = False
    source_citations: tuple[SourceCitation, ...] = ()

    @property
    def display_year(self) -> str:
        """Year as shown to the user; people get a birth annotation."""
        return f"BIRTH: {self.year}" if self.is_person else self.year

    def top_citations(self, limit: int = 3) -> tuple[SourceCitation, ...]:
        return self.source_citations[:limit]


class ErrorInfo(BaseModel):
    """Presentation snapshot of a terminal error."""

    model_config = ConfigDict(frozen=True)

    kind: str
    title: str
    message: str
    suggestion: str


class ArtifactRecord(BaseModel):
    """Snapshot of one artifact's pipeline, handed to the caller by value."""

    model_config = ConfigDict(frozen=True)

    identity: str
    state: PipelineState = PipelineState.IDLE
    mode: AnalysisMode | None = None
    result: AnalysisResult | None = None
    error: ErrorInfo | None = None
    generation: int = 0
