# src/pipeline/state_machine.py — v1
"""Per-artifact analysis lifecycle.

    IDLE --start(mode)--> SCANNING | DEEP_SEARCHING
        --success--------------> RESULT
        --ServiceRefused-------> RESTRICTED
        --auth / no key--------> AUTH_ERROR
        --timeout / unreachable> NETWORK_ERROR
        --known outage---------> API_OFFLINE   (pre-flight, no network call)
        --anything else--------> ERROR

Any terminal state may call start() again, with the same mode (manual
retry) or with GROUNDED (deep search). Each start() bumps a generation
counter; an outcome is applied only if its generation is still the latest,
so a superseded invocation never overwrites a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from cinearchive.core.errors import (
    AccessForbidden,
    AnalysisError,
    ApiOffline,
    AuthFailure,
    NetworkTimeout,
    NetworkUnreachable,
    NotConfigured,
    ServiceRefused,
)
from cinearchive.core.models import (
    AnalysisMode,
    AnalysisResult,
    Artifact,
    ArtifactRecord,
    ErrorInfo,
    PipelineState,
    ServiceHealth,
)
from cinearchive.llm import request_builder
from cinearchive.llm.interpreter import interpret
from cinearchive.llm.retry import RetryConfig, RetryCoordinator
from cinearchive.logging.context import clear_context, set_analysis_context

if TYPE_CHECKING:
    from cinearchive.config.settings import Settings
    from cinearchive.core.models import AnalysisRequest, RawResponse
    from cinearchive.llm.http_gate import HttpGate
    from cinearchive.pipeline.health import HealthFlag

logger = logging.getLogger(__name__)

Listener = Callable[[ArtifactRecord], None]

_ERROR_STATES: tuple[tuple[type[AnalysisError], PipelineState], ...] = (
    (ServiceRefused, PipelineState.RESTRICTED),
    (AuthFailure, PipelineState.AUTH_ERROR),
    (AccessForbidden, PipelineState.AUTH_ERROR),
    (NotConfigured, PipelineState.AUTH_ERROR),
    (NetworkTimeout, PipelineState.NETWORK_ERROR),
    (NetworkUnreachable, PipelineState.NETWORK_ERROR),
    (ApiOffline, PipelineState.API_OFFLINE),
)


def state_for(error: AnalysisError) -> PipelineState:
    """Terminal state an error resolves to."""
    for error_type, state in _ERROR_STATES:
        if isinstance(error, error_type):
            return state
    return PipelineState.ERROR


def active_state_for(mode: AnalysisMode) -> PipelineState:
    if mode is AnalysisMode.GROUNDED:
        return PipelineState.DEEP_SEARCHING
    return PipelineState.SCANNING


class ArtifactPipeline:
    """Owns one artifact's state, result and error."""

    def __init__(
        self,
        artifact: Artifact,
        gate: HttpGate,
        health: HealthFlag,
        settings: Settings,
        retry: RetryCoordinator | None = None,
        listener: Listener | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.artifact = artifact
        self._gate = gate
        self._health = health
        self._settings = settings
        self._retry = retry or RetryCoordinator(RetryConfig.from_settings(settings), sleep=sleep)
        self._listener = listener
        self._sleep = sleep

        self._state = PipelineState.IDLE
        self._mode: AnalysisMode | None = None
        self._result: AnalysisResult | None = None
        self._error: ErrorInfo | None = None
        self._generation = 0

    # --- Read side ---

    @property
    def identity(self) -> str:
        return self.artifact.identity

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def record(self) -> ArtifactRecord:
        return ArtifactRecord(
            identity=self.identity,
            state=self._state,
            mode=self._mode,
            result=self._result,
            error=self._error,
            generation=self._generation,
        )

    # --- Entry points ---

    async def start(self, mode: AnalysisMode = AnalysisMode.STANDARD) -> ArtifactRecord:
        """Run one analysis to a terminal state and return the final record.

        Raises:
            ValueError: If the artifact has no image data.
        """
        mode = AnalysisMode(mode)
        self._generation += 1
        generation = self._generation
        set_analysis_context(self.identity, mode.value, generation)
        try:
            await self._analyze(mode, generation)
        finally:
            clear_context()
        return self.record

    async def retry(self) -> ArtifactRecord:
        """Repeat the last analysis in the same mode."""
        return await self.start(self._mode or AnalysisMode.STANDARD)

    async def deep_search(self) -> ArtifactRecord:
        """Escalate to the grounded, web-search-backed analysis."""
        return await self.start(AnalysisMode.GROUNDED)

    def discard(self) -> None:
        """Invalidate any in-flight invocation; its outcome will be dropped."""
        self._generation += 1

    # --- Internals ---

    async def _analyze(self, mode: AnalysisMode, generation: int) -> None:
        preflight = self._preflight()
        if preflight is not None:
            logger.info("Pre-flight check failed: %s", preflight.kind)
            self._apply(generation, mode, state_for(preflight), error=preflight.to_info())
            return

        request = request_builder.build(self.artifact, mode)
        self._apply(generation, mode, active_state_for(mode))

        try:
            result = await self._call(request)
        except ServiceRefused as exc:
            logger.info("Service refused: %s", exc.message)
            await self._perceptual_delay()
            self._apply(
                generation, mode, PipelineState.RESTRICTED,
                result=exc.placeholder, error=exc.to_info(),
            )
            return
        except AnalysisError as exc:
            logger.warning("Analysis failed (%s): %s", exc.kind, exc.message)
            self._apply(generation, mode, state_for(exc), error=exc.to_info())
            return
        except Exception as exc:
            logger.exception("Unexpected error during analysis")
            error = AnalysisError(f"Unexpected failure: {type(exc).__name__}")
            self._apply(generation, mode, PipelineState.ERROR, error=error.to_info())
            return

        await self._perceptual_delay()
        logger.info("Identified %r (%d sources)", result.title, len(result.source_citations))
        self._apply(generation, mode, PipelineState.RESULT, result=result)

    def _preflight(self) -> AnalysisError | None:
        health = self._health.get()
        if not self._settings.is_configured or health is ServiceHealth.NOT_CONFIGURED:
            return NotConfigured()
        if health is ServiceHealth.OFFLINE:
            return ApiOffline()
        return None

    async def _call(self, request: AnalysisRequest) -> AnalysisResult:
        payload = request.to_payload()

        async def send_once() -> RawResponse:
            return await self._gate.send(
                self._settings.generate_url,
                method="POST",
                headers={"Content-Type": "application/json"},
                body=payload,
                timeout_s=self._settings.analysis_timeout_s,
            )

        raw = await self._retry.execute(send_once)
        return interpret(raw, request.mode)

    async def _perceptual_delay(self) -> None:
        if self._settings.result_delay_s > 0:
            await self._sleep(self._settings.result_delay_s)

    def _apply(
        self,
        generation: int,
        mode: AnalysisMode,
        state: PipelineState,
        result: AnalysisResult | None = None,
        error: ErrorInfo | None = None,
    ) -> None:
        if generation != self._generation:
            logger.info(
                "Dropping stale outcome %s (generation %d, current %d)",
                state, generation, self._generation,
            )
            return
        logger.debug("%s -> %s", self._state, state)
        self._state = state
        self._mode = mode
        self._result = result
        self._error = error
        if self._listener is None:
            return
        try:
            self._listener(self.record)
        except Exception:
            logger.exception("Listener failed on transition to %s", state)
