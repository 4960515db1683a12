# src/pipeline/health.py — v1
"""Periodic liveness check of the inference endpoint.

The probe hits the model metadata lookup (GET {endpoint}/{model}), never a
generation call, so it costs no quota. Its only effect is writing the shared
HealthFlag that pipelines read before starting a scan.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from cinearchive.core.errors import AnalysisError
from cinearchive.core.models import ServiceHealth

if TYPE_CHECKING:
    from cinearchive.config.settings import Settings
    from cinearchive.llm.http_gate import HttpGate

logger = logging.getLogger(__name__)


class HealthFlag:
    """Process-wide health value.

    Reads and writes replace a single enum reference, so a reader always
    sees one consistent value.
    """

    def __init__(self, value: ServiceHealth = ServiceHealth.CHECKING):
        self._value = value

    def get(self) -> ServiceHealth:
        return self._value

    def set(self, value: ServiceHealth) -> None:
        if value is not self._value:
            logger.info("Service health: %s -> %s", self._value, value)
        self._value = value


class ServiceHealthProbe:
    """Checks once at start, then every interval, until stopped."""

    def __init__(self, gate: HttpGate, flag: HealthFlag, settings: Settings):
        self._gate = gate
        self._flag = flag
        self._settings = settings
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> ServiceHealth:
        """Run one probe and publish its outcome."""
        status = await self._probe()
        self._flag.set(status)
        return status

    async def _probe(self) -> ServiceHealth:
        if not self._settings.is_configured:
            return ServiceHealth.NOT_CONFIGURED
        try:
            raw = await self._gate.probe(
                self._settings.model_url, timeout_s=self._settings.probe_timeout_s,
            )
        except AnalysisError as exc:
            logger.warning("Health probe failed: %s", exc.message)
            return ServiceHealth.OFFLINE
        except Exception:
            logger.exception("Unexpected error in health probe")
            return ServiceHealth.OFFLINE

        if raw.ok:
            return ServiceHealth.ONLINE
        if raw.status_code in (401, 403):
            return ServiceHealth.NOT_CONFIGURED
        logger.warning("Health probe answered %d", raw.status_code)
        return ServiceHealth.OFFLINE

    def start(self, interval_s: float | None = None) -> asyncio.Task[None]:
        """Spawn the background loop. Must be called from a running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        interval = interval_s if interval_s is not None else self._settings.health_interval_s
        self._task = asyncio.create_task(self._run(interval), name="cinearchive-health-probe")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self, interval_s: float) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(interval_s)
