"""Gemini image generation over the Generative Language REST API.

:class:`GeminiImageClient` sends one ``generateContent`` request per call
and returns every inline image found in the response.  It knows nothing
about variants, prompts or partial failure; the orchestrator owns those.

Request Shape
-------------
::

    POST {base_url}/models/{model}:generateContent
    x-goog-api-key: <key>

    {
      "contents": [{"role": "user", "parts": [
          {"text": "..."},
          {"inline_data": {"mime_type": "image/png", "data": "<base64>"}},
          ...
      ]}],
      "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]}
    }

Response parts may use either ``inline_data``/``mime_type`` or the
camel-cased ``inlineData``/``mimeType`` spelling; both are accepted.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from thumbfast.core.errors import RemoteModelError

logger = logging.getLogger(__name__)

_DEFAULT_IMAGE_MIME = "image/png"


def to_inline_part(image: str) -> dict[str, Any]:
    """Convert an encoded image into a Gemini ``inline_data`` part.

    Args:
        image: Either a ``data:<mime>;base64,<payload>`` URL (as produced
            by a browser ``FileReader``) or a bare base64 payload, which is
            assumed to be PNG.

    Returns:
        A request part dictionary.
    """
    mime_type = _DEFAULT_IMAGE_MIME
    data = image
    if image.startswith("data:") and "," in image:
        header, data = image.split(",", 1)
        declared = header[len("data:") :].split(";", 1)[0]
        if declared:
            mime_type = declared
    return {"inline_data": {"mime_type": mime_type, "data": data}}


def extract_inline_files(payload: dict[str, Any]) -> list[tuple[str, str]]:
    """Return ``(media_type, base64_data)`` for every inline file in *payload*.

    Text parts and malformed parts are skipped.  The media type is returned
    as declared; filtering to images is the caller's decision.
    """
    files: list[tuple[str, str]] = []
    if not isinstance(payload, dict):
        return files
    for candidate in payload.get("candidates") or []:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            if not isinstance(part, dict):
                continue
            inline = part.get("inline_data") or part.get("inlineData")
            if not isinstance(inline, dict):
                continue
            media_type = inline.get("mime_type") or inline.get("mimeType") or ""
            data = inline.get("data")
            if data:
                files.append((media_type, data))
    return files


class GeminiImageClient:
    """Async client for Gemini image-capable models.

    Attributes:
        base_url: Base URL of the REST API, without trailing slash.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            api_key: Google AI Studio key.  May be ``None`` in tests or when
                the remote service is replaced by *transport*.
            base_url: REST API base URL.
            timeout: Per-request timeout in seconds, ``None`` for no timeout.
            transport: Optional httpx transport, used to fake the remote
                service in tests.
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-goog-api-key"] = api_key
        else:
            logger.warning("No Gemini API key configured; remote calls will be rejected.")
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def generate(self, model: str, parts: list[dict[str, Any]]) -> list[tuple[str, str]]:
        """Run one ``generateContent`` call.

        Args:
            model: Allow-listed model identifier.
            parts: Request parts (text and ``inline_data``), in order.

        Returns:
            ``(media_type, base64_data)`` pairs for every inline file in the
            response, in response order.

        Raises:
            RemoteModelError: If the service responds with a non-2xx status
                or a body that is not JSON.
            httpx.HTTPError: On transport failures.
        """
        body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        url = f"{self.base_url}/models/{model}:generateContent"
        response = await self._client.post(url, json=body)

        if response.status_code >= 400:
            raise RemoteModelError(
                f"Gemini API returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteModelError(f"Gemini API returned invalid JSON: {e}") from e

        files = extract_inline_files(payload)
        logger.debug("Gemini call to %s returned %d inline file(s).", model, len(files))
        return files

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
