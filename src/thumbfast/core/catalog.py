"""Fixed enumerations shared by the composer, orchestrator and API.

Output modes, panel layouts and the model allow-list are constants rather
than configuration: the prompt text depends on them, and the frontend reads
them from ``GET /api/config``.

The order of :data:`OUTPUT_MODES` is significant.  The prompt composer
appends per-mode reinforcement clauses in this order regardless of the
order in which the user selected the modes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class OutputMode:
    """A named visual style preset.

    Attributes:
        id: Stable identifier sent by the client (e.g. ``"thumbnail"``).
        label: Human-readable label for the UI.
        description: Short UI hint.
        style: Style description injected into the composed prompt.
    """

    id: str
    label: str
    description: str
    style: str


@dataclass(frozen=True)
class ModelOption:
    """An allow-listed remote image model.

    Attributes:
        id: Remote model identifier.
        label: Human-readable label including the price hint.
        cost_per_image: Estimated cost of one generated image in USD.
        needs_explicit_prompt: Whether the composer must add hard
            single-image constraints for this model.
    """

    id: str
    label: str
    cost_per_image: float
    needs_explicit_prompt: bool = False


OUTPUT_MODES: tuple[OutputMode, ...] = (
    OutputMode(
        "thumbnail",
        "Thumbnail",
        "YouTube thumbnail with bold text",
        "YouTube thumbnail, 16:9 landscape, bold text, click-worthy, cinematic lighting, "
        "high contrast",
    ),
    OutputMode(
        "icon",
        "App Icon",
        "Square app icon, minimal, recognizable",
        "App icon, square 1:1, minimal, recognizable at small sizes, no text unless requested",
    ),
    OutputMode(
        "logo",
        "Logo",
        "Clean logo design, vector-style",
        "Logo design, clean vector-style, scalable, professional, transparent-friendly",
    ),
    OutputMode(
        "cartoon",
        "Cartoon",
        "Cartoon/illustrated style",
        "Cartoon/illustrated style, exaggerated features, vivid colors, comic-like",
    ),
    OutputMode(
        "avatar",
        "Avatar",
        "Profile picture / avatar",
        "Profile picture, centered face/subject, square 1:1, clean background",
    ),
    OutputMode(
        "social",
        "Social Post",
        "Instagram/social media visual",
        "Social media post, square 1:1, engaging, scroll-stopping",
    ),
    OutputMode(
        "banner",
        "Banner",
        "Wide banner / cover image",
        "Wide banner, 3:1 ratio, horizontal composition, clean with space for overlay",
    ),
)

MODE_IDS: tuple[str, ...] = tuple(mode.id for mode in OUTPUT_MODES)

_MODES_BY_ID: dict[str, OutputMode] = {mode.id: mode for mode in OUTPUT_MODES}

# Layout value → UI label.  Value 1 means a single, undivided image.
LAYOUT_OPTIONS: dict[int, str] = {
    1: "Single",
    2: "2-up",
    3: "3-up",
    4: "4-up",
}

LAYOUT_PROMPTS: dict[int, str] = {
    2: "Compose the image as a side-by-side split (2 panels).",
    3: "Compose the image as a triptych (3 panels).",
    4: "Compose the image as a 2x2 grid (4 panels/quadrants).",
}

DEFAULT_MODEL_ID = "gemini-2.5-flash-image"

MODEL_OPTIONS: tuple[ModelOption, ...] = (
    ModelOption(
        "gemini-2.5-flash-image",
        "Flash (free)",
        0.0,
        needs_explicit_prompt=True,
    ),
    ModelOption(
        "gemini-3-pro-image-preview",
        "Pro ($0.13/img)",
        0.134,
    ),
)

_MODELS_BY_ID: dict[str, ModelOption] = {model.id: model for model in MODEL_OPTIONS}

MIN_VARIANTS = 1
MAX_VARIANTS = 4


def get_mode(mode_id: str) -> OutputMode | None:
    """Return the :class:`OutputMode` for *mode_id*, or ``None``."""
    return _MODES_BY_ID.get(mode_id)


def resolve_model(model_id: str | None) -> ModelOption:
    """Resolve *model_id* against the allow-list.

    Any identifier that is not allow-listed (including ``None`` and the
    empty string) resolves to the default model rather than failing.
    """
    if model_id and model_id in _MODELS_BY_ID:
        return _MODELS_BY_ID[model_id]
    return _MODELS_BY_ID[DEFAULT_MODEL_ID]


def cost_per_image(model_id: str | None) -> float:
    """Return the per-image cost of *model_id*; unknown models cost nothing."""
    model = _MODELS_BY_ID.get(model_id or "")
    return model.cost_per_image if model else 0.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round *value* to *digits* decimals with halves rounded towards +inf.

    :func:`round` uses banker's rounding, which would turn a requested count
    of ``2.5`` into ``2``; the client-facing semantics round it to ``3``.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def clamp_variant_count(value: object) -> int:
    """Return ``clamp(round(value), 1, 4)`` for any caller input.

    Out-of-range or fractional counts are rounded and clamped, never
    rejected.  Values that are not finite numbers fall back to a single
    variant.
    """
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return MIN_VARIANTS
    if math.isnan(number):
        return MIN_VARIANTS
    if math.isinf(number):
        return MAX_VARIANTS if number > 0 else MIN_VARIANTS
    rounded = int(round_half_up(number))
    return min(max(MIN_VARIANTS, rounded), MAX_VARIANTS)
