"""Shared pytest fixtures for Thumbfast tests."""

import base64
import shutil
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from thumbfast.core.config import ThumbfastConfig

PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\nfake-image-bytes").decode()


class FakeImageClient:
    """In-memory stand-in for :class:`GeminiImageClient`.

    Each call pops the next scripted outcome.  An outcome is either a list
    of ``(media_type, data)`` pairs or an exception instance to raise.
    When the script runs out, every call returns one PNG.

    Attributes:
        calls: ``(model, parts)`` for every call, in dispatch order.
    """

    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.outcomes = list(outcomes or [])
        self.calls: list[tuple[str, list[dict[str, Any]]]] = []
        self.closed = False

    async def generate(self, model: str, parts: list[dict[str, Any]]) -> list[tuple[str, str]]:
        self.calls.append((model, parts))
        outcome = self.outcomes.pop(0) if self.outcomes else [("image/png", PNG_B64)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True

    def texts(self, call_index: int) -> list[str]:
        """Return the text parts sent in call *call_index*."""
        _, parts = self.calls[call_index]
        return [p["text"] for p in parts if "text" in p]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> ThumbfastConfig:
    """Create a test configuration with temporary storage paths.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        ThumbfastConfig instance for testing
    """
    return ThumbfastConfig(
        _env_file=None,
        data_dir=str(temp_dir / "data"),
        gemini_api_key="test-key",
        access_password="s3cret",
        history_max_entries=50,
    )


@pytest.fixture
def fake_client() -> FakeImageClient:
    """Fake remote model that returns one PNG per call."""
    return FakeImageClient()


@pytest.fixture
def test_client(test_config: ThumbfastConfig, fake_client: FakeImageClient):
    """FastAPI TestClient wired to temporary stores and a fake model.

    Yields:
        TestClient with the lifespan running
    """
    from thumbfast.api.main import app, init_state

    init_state(app, test_config, fake_client)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers carrying the shared secret configured in ``test_config``."""
    return {"x-access-password": "s3cret"}
