# src/pipeline/arena.py — v1
"""Artifacts in submission order, each with its own pipeline.

Entries are keyed by artifact identity (name + size + mtime). Newest
submissions come first. Nothing is shared between entries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterator

if TYPE_CHECKING:
    from cinearchive.core.models import Artifact, ArtifactRecord
    from cinearchive.pipeline.state_machine import ArtifactPipeline

logger = logging.getLogger(__name__)

PipelineFactory = Callable[["Artifact"], "ArtifactPipeline"]


class ArtifactArena:
    """Ordered identity -> pipeline map."""

    def __init__(self, factory: PipelineFactory):
        self._factory = factory
        self._entries: dict[str, ArtifactPipeline] = {}

    def add(self, *artifacts: Artifact) -> list[str]:
        """Register artifacts ahead of existing ones.

        Non-image media types and identities already present are skipped.

        Returns:
            Identities actually added, in the order given.
        """
        added: dict[str, ArtifactPipeline] = {}
        for artifact in artifacts:
            if not artifact.is_image:
                logger.info("Skipping %s: not an image (%s)", artifact.name, artifact.media_type)
                continue
            identity = artifact.identity
            if identity in self._entries or identity in added:
                logger.debug("Skipping duplicate artifact %s", identity)
                continue
            added[identity] = self._factory(artifact)
        if added:
            self._entries = {**added, **self._entries}
        return list(added)

    def remove(self, identity: str) -> bool:
        pipeline = self._entries.pop(identity, None)
        if pipeline is None:
            return False
        pipeline.discard()
        return True

    def get(self, identity: str) -> ArtifactPipeline:
        try:
            return self._entries[identity]
        except KeyError:
            raise KeyError(f"Unknown artifact: {identity}") from None

    def records(self) -> list[ArtifactRecord]:
        return [p.record for p in self._entries.values()]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
