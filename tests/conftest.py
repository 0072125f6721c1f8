"""Pytest configuration and fixtures for WeatherCanvas tests."""

from __future__ import annotations

import base64
import io
import os
import sys
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

TEST_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(TEST_DIR)
BACKEND_DIR = os.path.join(PROJECT_ROOT, "backend")
APP_DIR = os.path.join(PROJECT_ROOT, "app")

for path in (BACKEND_DIR, APP_DIR):
    if path not in sys.path:
        sys.path.insert(0, path)


def text_response(text: str | None) -> SimpleNamespace:
    """Mimic a GenerateContentResponse carrying only text."""
    return SimpleNamespace(text=text, candidates=[])


def image_response(*parts: Any) -> SimpleNamespace:
    """Mimic a GenerateContentResponse whose first candidate holds `parts`."""
    content = SimpleNamespace(parts=list(parts))
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=content)])


def inline_part(data: bytes, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, inline_data=None)


def png_bytes(size: tuple[int, int] = (64, 64), color: tuple[int, int, int] = (200, 210, 220)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def png_data_url(size: tuple[int, int] = (64, 64), color: tuple[int, int, int] = (200, 210, 220)) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(size, color)).decode("ascii")


@pytest.fixture
def genai_client() -> MagicMock:
    """Create a mock google-genai Client with an async models API."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    json_data: dict[str, Any] | None = None,
    text_data: str | None = None,
) -> AsyncMock:
    """Create a configured aiohttp response usable as an async context manager."""
    response = AsyncMock()
    response.status = status
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    response.json.return_value = json_data if json_data is not None else {}
    response.text.return_value = text_data or ""
    return response
