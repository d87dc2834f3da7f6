"""Parallel variant generation against the remote image model.

:class:`GenerationOrchestrator` turns one request into ``variant_count``
independent remote calls, waits for every one of them to settle, and folds
the images of the successful calls into a single ordered list.

Failure Policy
--------------
- Validation problems (blank prompt, no or unknown output mode) raise
  :class:`~thumbfast.core.errors.InvalidRequestError` before anything is
  dispatched.
- A failed call contributes zero images.  Siblings are never cancelled and
  failed calls are never retried.
- Non-image attachments in a successful response are dropped silently.
- Zero images overall is returned as an empty
  :class:`~thumbfast.core.models.GenerationResult`, not raised.
- :class:`~thumbfast.core.errors.GenerationFailedError` is raised only when
  the batch could not be dispatched at all, or when every call failed
  because the remote service was unreachable or rejected our credentials.

Ordering
--------
Variant indices follow dispatch order.  Results are folded in dispatch
order (``asyncio.gather`` preserves it), never in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Protocol

import httpx

from thumbfast.core.catalog import clamp_variant_count, get_mode, resolve_model
from thumbfast.core.errors import GenerationFailedError, InvalidRequestError, RemoteModelError
from thumbfast.core.gemini_client import to_inline_part
from thumbfast.core.models import GeneratedImage, GenerationRequest, GenerationResult
from thumbfast.core.prompt_composer import compose, variation_clause

logger = logging.getLogger(__name__)

# Remote statuses that mean "the credentials are wrong", not "this call failed".
_AUTH_STATUSES = frozenset({401, 403})


class ImageModelClient(Protocol):
    """Anything that can run one generation call."""

    async def generate(
        self, model: str, parts: list[dict[str, Any]]
    ) -> list[tuple[str, str]]: ...


def validate_request(request: GenerationRequest) -> None:
    """Reject requests that must never reach the remote model.

    Raises:
        InvalidRequestError: If the prompt is blank, no mode is selected,
            or a selected mode is not in the catalog.
    """
    if not request.trimmed_prompt:
        raise InvalidRequestError("Prompt is required")
    if not request.modes:
        raise InvalidRequestError("At least one output mode must be selected")
    unknown = [m for m in request.modes if get_mode(m) is None]
    if unknown:
        raise InvalidRequestError(f"Unknown output mode(s): {', '.join(map(str, unknown))}")


def _is_fatal(error: BaseException) -> bool:
    """Whether *error* means the service cannot be used at all."""
    if isinstance(error, httpx.TransportError):
        return True
    return isinstance(error, RemoteModelError) and error.status_code in _AUTH_STATUSES


class GenerationOrchestrator:
    """Fan a request out to the remote model and collect the images."""

    def __init__(self, client: ImageModelClient) -> None:
        self._client = client

    def build_parts(self, request: GenerationRequest, model_id: str) -> list[dict[str, Any]]:
        """Build the message parts shared by every variant of *request*.

        The composed instruction comes first, followed by person images,
        inspiration images and extra images, in that order.
        """
        resolved = replace(request, model_id=model_id)
        parts: list[dict[str, Any]] = [{"text": compose(resolved)}]
        parts.extend(to_inline_part(image) for image in request.ordered_images())
        return parts

    async def _call(self, model_id: str, parts: list[dict[str, Any]]) -> list[GeneratedImage]:
        files = await self._client.generate(model_id, parts)
        images: list[GeneratedImage] = []
        for media_type, data in files:
            if media_type.startswith("image/"):
                images.append(GeneratedImage(data=data, media_type=media_type))
            else:
                logger.debug("Dropping non-image attachment of type %r.", media_type)
        return images

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate every variant of *request* and aggregate the images.

        Args:
            request: The generation request.

        Returns:
            The images of all successful calls, in dispatch order, and the
            resolved model identifier.

        Raises:
            InvalidRequestError: If the request fails validation.
            GenerationFailedError: If no call could produce a result for a
                reason that affects every call.
        """
        validate_request(request)

        model_id = resolve_model(request.model_id).id
        total = clamp_variant_count(request.variant_count)

        try:
            base_parts = self.build_parts(request, model_id)
        except Exception as e:
            logger.exception("Failed to prepare generation batch.")
            raise GenerationFailedError(str(e) or "Image generation failed") from e

        calls = []
        for index in range(total):
            parts = base_parts
            if total > 1:
                parts = [*base_parts, {"text": variation_clause(index, total)}]
            calls.append(self._call(model_id, parts))

        logger.info("Dispatching %d variant(s) to %s.", total, model_id)
        outcomes = await asyncio.gather(*calls, return_exceptions=True)

        images: list[GeneratedImage] = []
        failures: list[BaseException] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Variant %d/%d failed: %s", index + 1, total, outcome)
                failures.append(outcome)
                continue
            images.extend(outcome)

        if failures and len(failures) == total and all(_is_fatal(f) for f in failures):
            raise GenerationFailedError(str(failures[0]) or "Image generation failed")

        logger.info(
            "Generation finished: %d image(s) from %d/%d successful call(s).",
            len(images),
            total - len(failures),
            total,
        )
        return GenerationResult(images=images, model_used=model_id)
