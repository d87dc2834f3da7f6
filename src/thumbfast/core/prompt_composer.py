"""Instruction text composition for the remote image model.

The composer turns a :class:`~thumbfast.core.models.GenerationRequest` into a
single natural-language instruction.  It is a pure function: no I/O, no
randomness, and the same request always yields the same text.

Template Structure::

    You are an expert visual designer. Generate an image with the following
    style: [mode styles].

    [Explicit models only: single-finished-image constraint]
    [Explicit models only: per-mode reinforcement]

    User request: [trimmed prompt]

    Context about the attached images:          (only when images attached)
    - PERSONS: ...
    - INSPIRATION: ...
    - EXTRA IMAGES: ...

    Layout: [panel arrangement]                 (only when layout > 1)
    [Explicit models only: exactly-N-sections constraint]
    [Blend only: seamless transitions]

    Mandatory requirements:
    - ...

    REMINDER: ...                               (explicit models only)

Clauses are joined with single newlines; clauses that open a new section
carry their own leading newline, which produces the blank separator lines.

Rejecting an empty mode selection is the caller's job.  With no modes the
composer still returns well-formed (if minimal) text.

Usage
-----
::

    text = compose(GenerationRequest(prompt="A robot holding a sign"))
"""

from __future__ import annotations

from thumbfast.core.catalog import LAYOUT_PROMPTS, MODE_IDS, get_mode, resolve_model
from thumbfast.core.models import GenerationRequest

# ---------------------------------------------------------------------------
# Fixed clauses.
# ---------------------------------------------------------------------------

_SINGLE_IMAGE_CONSTRAINT = (
    "IMPORTANT: You MUST produce a single, high-quality, finished image. Do NOT return text "
    "descriptions, sketches, or placeholder graphics. Output a fully rendered, "
    "production-ready image."
)

# Reinforcement for models that need extra explicitness.  Keyed by mode id;
# applied in catalog order, not in the order of this mapping.
_MODE_REINFORCEMENTS: dict[str, str] = {
    "thumbnail": (
        "The image MUST be in 16:9 landscape format (wider than tall), resembling a real "
        "YouTube thumbnail with photorealistic quality, dramatic lighting, and vivid saturated "
        "colors."
    ),
    "cartoon": (
        "The cartoon style must have clean outlines, cel-shading, vibrant flat colors, and "
        "exaggerated proportions like a professional illustration."
    ),
    "logo": (
        "The logo must be crisp, centered, with clean geometric shapes and minimal detail. "
        "Think professional brand identity, not clip-art."
    ),
    "icon": (
        "The icon must be extremely simple, with a single recognizable symbol, solid colors, "
        "and no fine details that would be lost at 64x64 pixels."
    ),
}

# Catalog order: thumbnail, icon, logo, cartoon.
_REINFORCED_MODES: tuple[str, ...] = tuple(m for m in MODE_IDS if m in _MODE_REINFORCEMENTS)

_PERSONS_CLAUSE = (
    "- PERSONS: Photos of real people provided. You MUST include these exact faces/people "
    "prominently in the image. Preserve their likeness accurately."
)
_INSPIRATION_CLAUSE = (
    "- INSPIRATION: A reference image provided. Match its style, composition, color grading, "
    "and layout. Do NOT copy it literally, use it as a visual direction guide."
)
_EXTRA_IMAGES_CLAUSE = (
    "- EXTRA IMAGES: Additional visual assets provided. Integrate them naturally into the "
    "composition."
)

_BLEND_CLAUSE = (
    "The panels should blend smoothly into each other with seamless transitions and gradients "
    "between sections, not hard borders."
)

_MANDATORY_REQUIREMENTS: tuple[str, ...] = (
    "\nMandatory requirements:",
    "- Colors: vibrant, saturated, eye-catching",
    "- Composition: bold, dramatic, with a clear focal point and visual hierarchy",
    "- If text is requested, make it large, bold, with strong contrast against the background "
    "(use outlines, shadows, or colored backgrounds behind text)",
    "- Generate a COMPLETE new image, not just overlays or edits",
)

_FINAL_REMINDER = (
    "\nREMINDER: Output exactly ONE finished image. No text-only responses. No wireframes. "
    "A real, rendered, high-quality image."
)


def _mode_descriptions(modes: list[str]) -> str:
    """Join the style descriptions of *modes*, skipping unknown ids."""
    styles = [mode.style for mode in (get_mode(m) for m in modes) if mode is not None]
    return ". ".join(styles)


def compose(request: GenerationRequest) -> str:
    """Compose the full instruction text for *request*.

    Args:
        request: The generation request.  ``model_id`` is resolved against
            the allow-list to decide whether the explicit clauses apply.

    Returns:
        The instruction text, clauses separated by single newlines.
    """
    parts: list[str] = []
    explicit = resolve_model(request.model_id).needs_explicit_prompt
    modes = list(request.modes or [])

    # --- Task and style ----------------------------------------------------
    parts.append(
        "You are an expert visual designer. Generate an image with the following style: "
        f"{_mode_descriptions(modes)}."
    )

    # --- Hard constraints for models that drift into sketches or text ------
    if explicit:
        parts.append(_SINGLE_IMAGE_CONSTRAINT)
        for mode_id in _REINFORCED_MODES:
            if mode_id in modes:
                parts.append(_MODE_REINFORCEMENTS[mode_id])

    # --- User request ------------------------------------------------------
    parts.append(f"\nUser request: {request.trimmed_prompt}")

    # --- Attached image context --------------------------------------------
    # Identity first, then style guide, then assets to integrate.
    if request.has_images:
        parts.append("\nContext about the attached images:")
        if request.person_images:
            parts.append(_PERSONS_CLAUSE)
        if request.inspiration_images:
            parts.append(_INSPIRATION_CLAUSE)
        if request.extra_images:
            parts.append(_EXTRA_IMAGES_CLAUSE)

    # --- Panel layout ------------------------------------------------------
    layout = request.layout
    if layout in LAYOUT_PROMPTS:
        parts.append(f"\nLayout: {LAYOUT_PROMPTS[layout]}")
        if explicit:
            parts.append(
                f"The final output MUST be a single image divided into exactly {layout} "
                f"distinct visual sections/panels. Do NOT generate {layout} separate images."
            )
        if request.blend:
            parts.append(_BLEND_CLAUSE)

    parts.extend(_MANDATORY_REQUIREMENTS)

    if explicit:
        parts.append(_FINAL_REMINDER)

    return "\n".join(parts)


def variation_clause(index: int, total: int) -> str:
    """Return the per-call distinctness instruction for variant *index*.

    Args:
        index: Zero-based dispatch index of the call.
        total: Number of variants in the batch.
    """
    return (
        f"\nThis is variation {index + 1} of {total}. "
        "Make it visually distinct from other variations."
    )
