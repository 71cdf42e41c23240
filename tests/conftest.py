"""Shared fixtures for the pagesmith tests."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from pagesmith.layout.context import Paginator
from pagesmith.layout.header_footer import HeaderFooterManager
from pagesmith.layout.presets import STANDARD_PRESET
from pagesmith.layout.surface import DrawingSurface


class RecordingSurface(DrawingSurface):
    """Surface that keeps the recorded operations and skips serialization."""

    def finalize(self) -> bytes:
        return b"%PDF-recorded"


def make_png(width: int = 300, height: int = 100, color: str = "navy") -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def settings():
    return STANDARD_PRESET


@pytest.fixture
def surface(settings):
    return RecordingSurface(settings.page_width, settings.page_height)


@pytest.fixture
def paginator(surface, settings):
    return Paginator(surface, settings, HeaderFooterManager(settings, company_name="Acme Corp"))


@pytest.fixture
def recording_surface():
    """The recording surface class, for tests that build their own."""
    return RecordingSurface


@pytest.fixture
def png_factory():
    return make_png
