"""Thumbfast - thumbnail, icon and logo generation with Gemini image models."""

__version__ = "0.1.0"

from thumbfast.core.config import ThumbfastConfig, config
from thumbfast.core.models import GenerationRequest, GenerationResult
from thumbfast.core.orchestrator import GenerationOrchestrator
from thumbfast.core.prompt_composer import compose

__all__ = [
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "ThumbfastConfig",
    "compose",
    "config",
]
