"""Domain data models for generation requests, results and history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class GenerationRequest:
    """Everything needed to compose a prompt and run a generation batch.

    Images are grouped by role.  Each image is an opaque encoded string,
    normally a ``data:<mime>;base64,...`` URL produced by the browser.

    ``variant_count`` and ``model_id`` are stored as given; the orchestrator
    clamps and resolves them when the batch is dispatched.
    """

    prompt: str
    modes: list[str] = field(default_factory=lambda: ["thumbnail"])
    person_images: list[str] = field(default_factory=list)
    inspiration_images: list[str] = field(default_factory=list)
    extra_images: list[str] = field(default_factory=list)
    layout: int = 1
    blend: bool = False
    variant_count: Any = 1
    model_id: str | None = None

    @property
    def trimmed_prompt(self) -> str:
        """Return the prompt with surrounding whitespace removed."""
        return (self.prompt or "").strip()

    @property
    def has_images(self) -> bool:
        """Check if any reference image is attached."""
        return bool(self.person_images or self.inspiration_images or self.extra_images)

    def ordered_images(self) -> list[str]:
        """Return all attached images, identity images first.

        Returns:
            Person images, then inspiration images, then extra images.
        """
        return [*self.person_images, *self.inspiration_images, *self.extra_images]


@dataclass(frozen=True)
class GeneratedImage:
    """A single image returned by the remote model.

    Attributes:
        data: Base64-encoded image payload (no data URL prefix).
        media_type: MIME type, always ``image/*``.
    """

    data: str
    media_type: str

    def to_dict(self) -> dict[str, str]:
        return {"data": self.data, "mediaType": self.media_type}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> GeneratedImage:
        return cls(data=raw["data"], media_type=raw.get("mediaType") or raw["media_type"])


@dataclass
class GenerationResult:
    """Aggregated outcome of one generation batch.

    An empty ``images`` list is a legitimate "nothing produced" outcome,
    not an error.
    """

    images: list[GeneratedImage]
    model_used: str

    @property
    def is_empty(self) -> bool:
        return not self.images


@dataclass(frozen=True)
class HistorySettings:
    """Snapshot of the non-image configuration of a request."""

    model: str
    modes: tuple[str, ...]
    layout: int
    blend: bool
    variant_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "modes": list(self.modes),
            "grid": self.layout,
            "blend": self.blend,
            "count": self.variant_count,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> HistorySettings:
        return cls(
            model=raw["model"],
            modes=tuple(raw.get("modes", ())),
            layout=int(raw.get("grid", 1)),
            blend=bool(raw.get("blend", False)),
            variant_count=int(raw.get("count", 1)),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One completed generation batch that produced at least one image.

    Attributes:
        id: Unique identifier (UUID4 string).
        timestamp: Creation instant in milliseconds since the epoch.
        prompt: Trimmed prompt text.
        settings: Non-image configuration of the request.
        images: Generated images in result order.
    """

    id: str
    timestamp: int
    prompt: str
    settings: HistorySettings
    images: tuple[GeneratedImage, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "prompt": self.prompt,
            "settings": self.settings.to_dict(),
            "images": [image.to_dict() for image in self.images],
        }


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class UsageStats:
    """Process-wide usage counters.

    Costs are in USD and kept rounded to three decimals.
    """

    total_images: int = 0
    total_requests: int = 0
    estimated_cost: float = 0.0
    last_generation_cost: float = 0.0
    last_reset: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalImages": self.total_images,
            "totalRequests": self.total_requests,
            "estimatedCost": self.estimated_cost,
            "lastGenerationCost": self.last_generation_cost,
            "lastReset": self.last_reset,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> UsageStats:
        """Build stats from a persisted record, tolerating missing keys."""
        return cls(
            total_images=max(int(raw.get("totalImages", 0)), 0),
            total_requests=max(int(raw.get("totalRequests", 0)), 0),
            estimated_cost=max(float(raw.get("estimatedCost", 0.0)), 0.0),
            last_generation_cost=max(float(raw.get("lastGenerationCost", 0.0)), 0.0),
            last_reset=str(raw.get("lastReset") or now_iso()),
        )
