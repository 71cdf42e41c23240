"""Fetch logo images from URLs or local files and size them for the header."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import httpx
from reportlab.lib.utils import ImageReader

from .errors import AssetFetchError, DimensionProbeError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_HTTP_PREFIXES = ("http://", "https://")
# "cdn.example.com/logo.png": a host name followed by a path, no scheme
_BARE_HOST_RE = re.compile(r"^[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+/")

DEFAULT_LOGO_WIDTH = 100
DEFAULT_LOGO_HEIGHT = 100


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def normalize_source(source: str) -> str:
    """Tidy a logo reference.

    Backslashes in URLs become forward slashes and a bare ``host/path``
    reference gains an ``https://`` scheme. Local paths are returned as-is.
    """
    source = source.strip()
    if source.lower().startswith(_HTTP_PREFIXES):
        return source.replace("\\", "/")
    if Path(source).expanduser().exists():
        return source
    candidate = source.replace("\\", "/")
    if _BARE_HOST_RE.match(candidate):
        return f"https://{candidate}"
    return source


def is_remote(source: str) -> bool:
    """Return True if *source* should be fetched over HTTP."""
    return source.lower().startswith(_HTTP_PREFIXES)


def fit_scale(natural_width: float, natural_height: float, max_width: float, max_height: float) -> float:
    """Scale factor that fits the image in the box without upscaling."""
    if natural_width <= 0 or natural_height <= 0:
        return 1.0
    return min(max_width / natural_width, max_height / natural_height, 1.0)


# ---------------------------------------------------------------------------
# Logo asset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogoAsset:
    """Raw logo bytes with natural and fitted dimensions."""

    data: bytes
    natural_width: float
    natural_height: float
    scaled_width: float
    scaled_height: float

    @classmethod
    def fit(
        cls,
        data: bytes,
        natural_width: float,
        natural_height: float,
        max_width: float,
        max_height: float,
    ) -> "LogoAsset":
        scale = fit_scale(natural_width, natural_height, max_width, max_height)
        return cls(
            data=data,
            natural_width=natural_width,
            natural_height=natural_height,
            scaled_width=natural_width * scale,
            scaled_height=natural_height * scale,
        )


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class LogoFetcher:
    """Loads logo bytes from an http(s) URL or a local path."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    # -- public API ----------------------------------------------------------

    def fetch(self, source: str) -> bytes:
        """Return the raw bytes behind *source*.

        Raises ``AssetFetchError`` when the resource is unreachable or empty.
        """
        source = normalize_source(source)
        data = self._fetch_remote(source) if is_remote(source) else self._fetch_local(source)
        if not data:
            raise AssetFetchError(f"Logo at {source} is empty")
        return data

    @staticmethod
    def probe_dimensions(data: bytes) -> tuple[float, float]:
        """Return ``(width, height)`` in pixels.

        Raises ``AssetFetchError`` if the bytes are not a decodable image and
        ``DimensionProbeError`` if the image opens but reports no usable size.
        """
        try:
            reader = ImageReader(BytesIO(data))
            # The header alone says nothing about truncated pixel data
            reader.getRGBData()
        except Exception as exc:
            raise AssetFetchError(f"Logo is not a decodable image: {exc}") from exc
        try:
            width, height = reader.getSize()
        except Exception as exc:
            raise DimensionProbeError(f"Could not determine image dimensions: {exc}") from exc
        if not width or not height or width <= 0 or height <= 0:
            raise DimensionProbeError(f"Image reported invalid dimensions {width}x{height}")
        return float(width), float(height)

    def resolve(self, source: str | None, max_width: float, max_height: float) -> LogoAsset | None:
        """Fetch, probe and fit a logo. Returns ``None`` if it cannot be used."""
        if not source or not source.strip():
            return None

        try:
            logger.info("Fetching logo from %s", source)
            data = self.fetch(source)
            try:
                width, height = self.probe_dimensions(data)
            except DimensionProbeError as exc:
                logger.warning("%s; using %dx%d", exc, DEFAULT_LOGO_WIDTH, DEFAULT_LOGO_HEIGHT)
                width, height = DEFAULT_LOGO_WIDTH, DEFAULT_LOGO_HEIGHT
        except AssetFetchError as exc:
            logger.warning("Logo skipped: %s", exc)
            return None

        asset = LogoAsset.fit(data, width, height, max_width, max_height)
        logger.info(
            "Logo fetched (%dx%d, drawn at %.0fx%.0f)",
            width, height, asset.scaled_width, asset.scaled_height,
        )
        return asset

    # -- private -------------------------------------------------------------

    def _fetch_remote(self, url: str) -> bytes:
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                resp = client.get(url)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as exc:
            raise AssetFetchError(f"Could not fetch logo from {url}: {exc}") from exc

    @staticmethod
    def _fetch_local(path_str: str) -> bytes:
        path = Path(path_str).expanduser().resolve()
        if not path.is_file():
            raise AssetFetchError(f"Local logo not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise AssetFetchError(f"Could not read logo {path}: {exc}") from exc
