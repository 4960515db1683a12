# src/api/facade.py — v1
"""Public API facade — one session wires settings, gate, health probe and arena.

Usage:
    from cinearchive.api.facade import ArchiveSession

    async with ArchiveSession() as session:
        [identity] = session.submit("poster.jpg")
        record = await session.analyze(identity)
        if record.state is PipelineState.RESTRICTED:
            record = await session.analyze(identity, AnalysisMode.GROUNDED)

Or, for a single image without a background probe:
    record = await identify(Artifact.from_path("poster.jpg"))
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable

from cinearchive.config.settings import Settings
from cinearchive.core.models import AnalysisMode, Artifact, ArtifactRecord, ServiceHealth
from cinearchive.llm.http_gate import HttpGate
from cinearchive.logging.logger import setup_logging
from cinearchive.pipeline.arena import ArtifactArena
from cinearchive.pipeline.health import HealthFlag, ServiceHealthProbe
from cinearchive.pipeline.state_machine import ArtifactPipeline, Listener

logger = logging.getLogger(__name__)


class ArchiveSession:
    """Process-level owner of the shared collaborators.

    Args:
        settings: Global settings. Loaded from .env if None.
        gate: HTTP gate. A private one is created (and closed) if None.
        start_probe: Run the periodic health probe while the session is open.
        configure_logging: Apply the logging section of settings on enter.
        listener: Called with every new ArtifactRecord of every artifact.
        sleep: Backoff and perceptual-delay sleeper (tests pass a mock clock).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        gate: HttpGate | None = None,
        *,
        start_probe: bool = True,
        configure_logging: bool = True,
        listener: Listener | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or Settings()
        self.gate = gate or HttpGate()
        self._owns_gate = gate is None
        self.health = HealthFlag()
        self.probe = ServiceHealthProbe(self.gate, self.health, self.settings)
        self.arena = ArtifactArena(self._new_pipeline)
        self._start_probe = start_probe
        self._configure_logging = configure_logging
        self._listener = listener
        self._sleep = sleep

    async def __aenter__(self) -> ArchiveSession:
        if self._configure_logging:
            setup_logging(
                level=self.settings.log_level,
                log_format=self.settings.log_format,
                log_file=self.settings.log_file,
                rotation=self.settings.log_rotation,
                retention=self.settings.log_retention,
            )
        if not self.settings.is_configured:
            logger.warning("GEMINI_API_KEY is not set; scans will report NOT_CONFIGURED")
        if self._start_probe:
            self.probe.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.probe.stop()
        if self._owns_gate:
            await self.gate.aclose()

    @property
    def service_health(self) -> ServiceHealth:
        return self.health.get()

    def submit(self, *items: Artifact | str | Path) -> list[str]:
        """Add artifacts (or image paths) and return the identities added."""
        artifacts = [
            item if isinstance(item, Artifact) else Artifact.from_path(item) for item in items
        ]
        return self.arena.add(*artifacts)

    def remove(self, identity: str) -> bool:
        return self.arena.remove(identity)

    async def analyze(
        self, identity: str, mode: AnalysisMode = AnalysisMode.STANDARD,
    ) -> ArtifactRecord:
        return await self.arena.get(identity).start(mode)

    def records(self) -> list[ArtifactRecord]:
        return self.arena.records()

    def _new_pipeline(self, artifact: Artifact) -> ArtifactPipeline:
        return ArtifactPipeline(
            artifact,
            gate=self.gate,
            health=self.health,
            settings=self.settings,
            listener=self._listener,
            sleep=self._sleep,
        )


async def identify(
    artifact: Artifact,
    mode: AnalysisMode = AnalysisMode.STANDARD,
    settings: Settings | None = None,
    gate: HttpGate | None = None,
) -> ArtifactRecord:
    """One-shot analysis of a single artifact, without a background probe."""
    async with ArchiveSession(
        settings, gate, start_probe=False, configure_logging=False,
    ) as session:
        pipeline = session._new_pipeline(artifact)
        return await pipeline.start(mode)
