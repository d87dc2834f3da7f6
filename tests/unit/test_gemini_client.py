"""Tests for thumbfast.core.gemini_client — REST calls via httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from thumbfast.core.errors import RemoteModelError
from thumbfast.core.gemini_client import GeminiImageClient, extract_inline_files, to_inline_part


def _run(coro):
    return asyncio.run(coro)


def _client(handler) -> GeminiImageClient:
    return GeminiImageClient(
        "test-key",
        base_url="https://gemini.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )


class TestToInlinePart:
    def test_data_url(self):
        part = to_inline_part("data:image/jpeg;base64,QUJD")
        assert part == {"inline_data": {"mime_type": "image/jpeg", "data": "QUJD"}}

    def test_bare_base64_defaults_to_png(self):
        part = to_inline_part("QUJD")
        assert part == {"inline_data": {"mime_type": "image/png", "data": "QUJD"}}

    def test_data_url_without_mime(self):
        part = to_inline_part("data:;base64,QUJD")
        assert part["inline_data"]["mime_type"] == "image/png"


class TestExtractInlineFiles:
    def test_snake_and_camel_case_parts(self):
        payload = {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": "Here is your image"},
                            {"inline_data": {"mime_type": "image/png", "data": "AAA"}},
                            {"inlineData": {"mimeType": "image/webp", "data": "BBB"}},
                        ]
                    }
                }
            ]
        }
        assert extract_inline_files(payload) == [("image/png", "AAA"), ("image/webp", "BBB")]

    def test_non_image_types_are_returned_as_declared(self):
        payload = {
            "candidates": [
                {"content": {"parts": [{"inlineData": {"mimeType": "text/plain", "data": "x"}}]}}
            ]
        }
        assert extract_inline_files(payload) == [("text/plain", "x")]

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"candidates": None},
            {"candidates": [{"finishReason": "SAFETY"}]},
            {"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png"}}]}}]},
            {"candidates": ["garbage"]},
            [],
        ],
    )
    def test_malformed_payloads_yield_nothing(self, payload):
        assert extract_inline_files(payload) == []


class TestGenerate:
    def test_request_shape(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "candidates": [
                        {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "AAA"}}]}}
                    ]
                },
            )

        client = _client(handler)
        parts = [{"text": "hello"}, to_inline_part("data:image/png;base64,QUJD")]
        files = _run(client.generate("gemini-2.5-flash-image", parts))

        assert files == [("image/png", "AAA")]
        assert seen["url"] == (
            "https://gemini.test/v1beta/models/gemini-2.5-flash-image:generateContent"
        )
        assert seen["key"] == "test-key"
        assert seen["body"]["contents"] == [{"role": "user", "parts": parts}]
        assert seen["body"]["generationConfig"] == {"responseModalities": ["TEXT", "IMAGE"]}

    def test_error_status_raises_remote_model_error(self):
        client = _client(lambda request: httpx.Response(429, text="quota exceeded"))
        with pytest.raises(RemoteModelError) as exc_info:
            _run(client.generate("gemini-2.5-flash-image", [{"text": "x"}]))
        assert exc_info.value.status_code == 429
        assert "quota exceeded" in str(exc_info.value)

    def test_invalid_json_raises_remote_model_error(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteModelError):
            _run(client.generate("gemini-2.5-flash-image", [{"text": "x"}]))

    def test_transport_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(httpx.ConnectError):
            _run(client.generate("gemini-2.5-flash-image", [{"text": "x"}]))

    def test_no_api_key_sends_no_key_header(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["has_key"] = "x-goog-api-key" in request.headers
            return httpx.Response(200, json={})

        client = GeminiImageClient(None, transport=httpx.MockTransport(handler))
        assert _run(client.generate("gemini-2.5-flash-image", [{"text": "x"}])) == []
        assert seen["has_key"] is False
