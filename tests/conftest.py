"""
Pytest fixtures for scrapbook tests
"""

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from scrapbook.main import app
from scrapbook.services.recovery_archive import recovery_archive
from scrapbook.services.scrapbook_store import ScrapbookStore, get_store


def make_image(size=(60, 40), color=(200, 30, 30), fmt="PNG") -> bytes:
    """Encode a solid color image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    return Image.open(io.BytesIO(data)).size


class FakeClock:
    """Deterministic clock that ticks forward by one second per call."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def png_bytes() -> bytes:
    return make_image()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path) -> ScrapbookStore:
    """Store backed by a throwaway SQLite file."""
    return ScrapbookStore(f"sqlite:///{tmp_path / 'scrapbooks.db'}")


@pytest.fixture
def recovery_dir(tmp_path, monkeypatch):
    path = tmp_path / "recovery"
    monkeypatch.setattr(recovery_archive, "root", path)
    return path


@pytest.fixture
def client(store, recovery_dir):
    """TestClient with the store dependency pointed at the temporary store."""
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
