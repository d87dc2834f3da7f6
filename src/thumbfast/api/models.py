"""Pydantic request and response models for the Thumbfast API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Field names on the wire follow the browser client (``personImages``,
``grid``, ``count``...); Python attribute names are snake_case and mapped
through aliases.  Both spellings are accepted on input.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
GeneratedImageModel
    One image in a generation response or history entry.
GenerateResponse
    Response of ``POST /api/generate``.
HistorySettingsModel / HistoryEntryModel
    History entries for ``/api/history``.
TrackRequest
    Payload for ``POST /api/stats/track``.
UsageStatsModel
    Response of the ``/api/stats`` endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from thumbfast.core.models import (
    GeneratedImage,
    GenerationRequest,
    HistoryEntry,
    HistorySettings,
    UsageStats,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerateRequest(_WireModel):
    """Request body for the ``POST /api/generate`` endpoint.

    ``prompt`` is untyped at the schema level so that a missing or
    non-string prompt is reported by the route as
    ``{"error": "Prompt is required"}`` instead of a generic schema error.  ``count`` accepts any number; it is rounded and
    clamped to 1–4 when the batch is dispatched.

    Attributes:
        prompt: Free-text request.  Must be non-blank.
        extra_images: Additional assets to integrate (data URLs).
        inspiration_images: Style/composition reference (data URLs).
        person_images: Photos whose likeness must be preserved (data URLs).
        model: Requested model id; unknown ids fall back to the default.
        modes: Selected output modes, at least one.
        grid: Number of panels in the single output image (1–4).
        blend: Seamless transitions between panels (only when grid > 1).
        count: Number of variants to request.
    """

    prompt: Any = Field(default=None, description="Free-text prompt.")
    extra_images: list[str] = Field(
        default_factory=list,
        alias="extraImages",
        description="Extra images to integrate, as data URLs.",
    )
    inspiration_images: list[str] = Field(
        default_factory=list,
        alias="inspirationImages",
        description="Style inspiration images, as data URLs.",
    )
    person_images: list[str] = Field(
        default_factory=list,
        alias="personImages",
        description="Photos of people whose likeness must be preserved.",
    )
    model: str | None = Field(
        default=None,
        description="Model identifier; unknown values use the default model.",
    )
    modes: list[str] = Field(
        default_factory=lambda: ["thumbnail"],
        description="Output modes (e.g. 'thumbnail', 'logo').",
    )
    grid: int = Field(default=1, ge=1, le=4, description="Panel count (1-4).")
    blend: bool = Field(default=False, description="Blend panels seamlessly.")
    count: float = Field(default=1, description="Number of variants (clamped to 1-4).")

    def to_domain(self) -> GenerationRequest:
        """Convert to the core :class:`GenerationRequest`."""
        return GenerationRequest(
            prompt=self.prompt if isinstance(self.prompt, str) else "",
            modes=list(self.modes),
            person_images=list(self.person_images),
            inspiration_images=list(self.inspiration_images),
            extra_images=list(self.extra_images),
            layout=self.grid,
            blend=self.blend,
            variant_count=self.count,
            model_id=self.model,
        )


class GeneratedImageModel(_WireModel):
    """A generated image: base64 payload plus its media type."""

    data: str = Field(..., description="Base64-encoded image bytes.")
    media_type: str = Field(
        ...,
        alias="mediaType",
        pattern=r"^image/",
        description="MIME type of the image.",
    )

    @classmethod
    def from_domain(cls, image: GeneratedImage) -> GeneratedImageModel:
        return cls(data=image.data, media_type=image.media_type)

    def to_domain(self) -> GeneratedImage:
        return GeneratedImage(data=self.data, media_type=self.media_type)


class GenerateResponse(_WireModel):
    """Response of ``POST /api/generate``.

    An empty ``images`` list means the model produced nothing; it is not an
    error.
    """

    images: list[GeneratedImageModel]
    model: str


class HistorySettingsModel(_WireModel):
    """Non-image configuration captured with a history entry."""

    model: str
    modes: list[str]
    grid: int = Field(ge=1, le=4)
    blend: bool = False
    count: int = Field(ge=1, le=4)

    @classmethod
    def from_domain(cls, settings: HistorySettings) -> HistorySettingsModel:
        return cls(
            model=settings.model,
            modes=list(settings.modes),
            grid=settings.layout,
            blend=settings.blend,
            count=settings.variant_count,
        )

    def to_domain(self) -> HistorySettings:
        return HistorySettings(
            model=self.model,
            modes=tuple(self.modes),
            layout=self.grid,
            blend=self.blend,
            variant_count=self.count,
        )


class HistoryEntryModel(_WireModel):
    """A stored generation batch.

    Attributes:
        id: Unique identifier.
        timestamp: Creation time in milliseconds since the epoch.
        prompt: Trimmed prompt text.
        settings: Request configuration snapshot.
        images: Generated images (at least one).
    """

    id: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0)
    prompt: str
    settings: HistorySettingsModel
    images: list[GeneratedImageModel] = Field(..., min_length=1)

    @classmethod
    def from_domain(cls, entry: HistoryEntry) -> HistoryEntryModel:
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            prompt=entry.prompt,
            settings=HistorySettingsModel.from_domain(entry.settings),
            images=[GeneratedImageModel.from_domain(img) for img in entry.images],
        )

    def to_domain(self) -> HistoryEntry:
        return HistoryEntry(
            id=self.id,
            timestamp=self.timestamp,
            prompt=self.prompt,
            settings=self.settings.to_domain(),
            images=tuple(img.to_domain() for img in self.images),
        )


class TrackRequest(_WireModel):
    """Request body for ``POST /api/stats/track``."""

    image_count: int = Field(..., ge=0, alias="imageCount")
    model: str | None = None


class UsageStatsModel(_WireModel):
    """Usage counters as returned by the ``/api/stats`` endpoints."""

    total_images: int = Field(alias="totalImages")
    total_requests: int = Field(alias="totalRequests")
    estimated_cost: float = Field(alias="estimatedCost")
    last_generation_cost: float = Field(alias="lastGenerationCost")
    last_reset: str = Field(alias="lastReset")

    @classmethod
    def from_domain(cls, stats: UsageStats) -> UsageStatsModel:
        return cls(
            total_images=stats.total_images,
            total_requests=stats.total_requests,
            estimated_cost=stats.estimated_cost,
            last_generation_cost=stats.last_generation_cost,
            last_reset=stats.last_reset,
        )
