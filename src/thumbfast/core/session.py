"""Caller-side generation flow: generate, then record stats and history.

:class:`GenerationSession` wires the orchestrator to the two local stores.
Recording is best-effort.  A storage fault is logged and never turns a
successful generation into a failure.
"""

from __future__ import annotations

import logging
import time
import uuid

from thumbfast.core.catalog import clamp_variant_count, resolve_model
from thumbfast.core.errors import HistoryStoreError
from thumbfast.core.history_store import HistoryStore
from thumbfast.core.models import (
    GenerationRequest,
    GenerationResult,
    HistoryEntry,
    HistorySettings,
)
from thumbfast.core.orchestrator import GenerationOrchestrator
from thumbfast.core.stats_tracker import StatsTracker

logger = logging.getLogger(__name__)


def settings_snapshot(request: GenerationRequest) -> HistorySettings:
    """Capture the non-image configuration of *request*."""
    return HistorySettings(
        model=resolve_model(request.model_id).id,
        modes=tuple(request.modes),
        layout=request.layout,
        blend=request.blend,
        variant_count=clamp_variant_count(request.variant_count),
    )


class GenerationSession:
    """Run generations and keep the local history and usage stats current."""

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        history: HistoryStore,
        stats: StatsTracker,
    ) -> None:
        self.orchestrator = orchestrator
        self.history = history
        self.stats = stats

    async def run(self, request: GenerationRequest) -> GenerationResult:
        """Generate *request* and record the outcome.

        Nothing is recorded for an empty result.

        Raises:
            InvalidRequestError: Propagated from the orchestrator.
            GenerationFailedError: Propagated from the orchestrator.
        """
        result = await self.orchestrator.generate(request)
        if result.is_empty:
            logger.info("No images were generated; nothing recorded.")
            return result

        self.stats.track(len(result.images), request.model_id)

        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            timestamp=int(time.time() * 1000),
            prompt=request.trimmed_prompt,
            settings=settings_snapshot(request),
            images=tuple(result.images),
        )
        try:
            self.history.add(entry)
        except HistoryStoreError as e:
            logger.warning("Generation not saved to history: %s", e)

        return result

    def restore(self, entry_id: str) -> tuple[str, HistorySettings] | None:
        """Return the prompt and settings of a history entry, if present."""
        entry = self.history.get(entry_id)
        if entry is None:
            return None
        return entry.prompt, entry.settings
