"""Core functionality for Thumbfast.

- **catalog**: Output modes, panel layouts and the model allow-list
- **prompt_composer**: Deterministic instruction text for the image model
- **gemini_client**: Async client for the Gemini ``generateContent`` API
- **orchestrator**: Parallel variant fan-out with partial-failure tolerance
- **history_store**: SQLite history capped at 50 entries, oldest evicted first
- **stats_tracker**: Usage counters persisted as a single JSON record
- **session**: Generate-then-record flow tying the pieces together
- **config**: Pydantic Settings configuration (``THUMBFAST_`` prefix)

Usage Example
-------------
::

    from thumbfast.core import GenerationOrchestrator, GenerationRequest
    from thumbfast.core.gemini_client import GeminiImageClient

    orchestrator = GenerationOrchestrator(GeminiImageClient(api_key))
    result = await orchestrator.generate(
        GenerationRequest(prompt="A robot holding a sign", variant_count=2)
    )
"""

from thumbfast.core.errors import (
    AccessDeniedError,
    GenerationFailedError,
    HistoryStoreError,
    InvalidRequestError,
    ThumbfastError,
)
from thumbfast.core.history_store import HistoryStore
from thumbfast.core.models import GenerationRequest, GenerationResult
from thumbfast.core.orchestrator import GenerationOrchestrator
from thumbfast.core.stats_tracker import StatsTracker

__all__ = [
    "AccessDeniedError",
    "GenerationFailedError",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "HistoryStore",
    "HistoryStoreError",
    "InvalidRequestError",
    "StatsTracker",
    "ThumbfastError",
]
