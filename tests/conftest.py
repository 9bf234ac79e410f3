"""Shared fixtures: a BackendClient wired to an in-memory httpx transport."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from core.backend import BackendClient
from core.config import BackendConfig

API_BASE = "https://api.test/api"

# Smallest valid PNG header; the backend is mocked so content does not matter.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class RecordingBackend:
    """Holds a BackendClient plus every request its transport received."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response], **config: Any) -> None:
        self.requests: list[httpx.Request] = []

        def _handle(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        self.client = BackendClient(
            BackendConfig(api_base=API_BASE, **config),
            transport=httpx.MockTransport(_handle),
        )

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def make_backend():
    """Factory: make_backend(json=..., status=..., text=...) or make_backend(handler=...)."""

    def _make(
        json: Any = None,
        status: int = 200,
        text: str | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        **config: Any,
    ) -> RecordingBackend:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                if text is not None:
                    return httpx.Response(status, text=text)
                return httpx.Response(status, json=json)

        return RecordingBackend(handler, **config)

    return _make


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "question.png"
    path.write_bytes(PNG_BYTES)
    return path
