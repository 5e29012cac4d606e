"""Test fixtures for robyn-http-toolkit unit tests."""

import struct
import zlib
from dataclasses import dataclass, field

import pytest

from toolkit.core.settings import ToolkitConfig


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: str | bytes = ""
    files: dict[str, bytes] = field(default_factory=dict)
    headers: MockHeaders = field(default_factory=MockHeaders)
    path_params: dict = field(default_factory=dict)
    method: str = "GET"
    path: str = "/"


# -----------------------------------------------------------------------------
# Payload helpers
# -----------------------------------------------------------------------------


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))


def make_png(width: int = 4, height: int = 4) -> bytes:
    """Build a valid greyscale PNG image in memory."""
    header = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
    raw = b"".join(b"\x00" + bytes(range(width)) for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(raw))
        + _png_chunk(b"IEND", b"")
    )


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def config() -> ToolkitConfig:
    """Default immutable toolkit configuration."""
    return ToolkitConfig()


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(
        body: str | bytes = "",
        files: dict[str, bytes] | None = None,
        headers: dict | None = None,
        path_params: dict | None = None,
    ) -> MockRequest:
        return MockRequest(
            body=body,
            files=files or {},
            headers=MockHeaders(_data=headers or {}),
            path_params=path_params or {},
        )

    return _make
