"""Tests for the logo fetcher."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from pagesmith.core.errors import AssetFetchError, DimensionProbeError
from pagesmith.core.fetcher import (
    DEFAULT_LOGO_HEIGHT,
    DEFAULT_LOGO_WIDTH,
    LogoAsset,
    LogoFetcher,
    fit_scale,
    is_remote,
    normalize_source,
)


def _mock_client(response=None, error=None):
    client = MagicMock()
    client.__enter__ = MagicMock(return_value=client)
    client.__exit__ = MagicMock(return_value=False)
    if error is not None:
        client.get = MagicMock(side_effect=error)
    else:
        client.get = MagicMock(return_value=response)
    return client


def _ok_response(content: bytes):
    resp = MagicMock()
    resp.content = content
    resp.status_code = 200
    resp.raise_for_status = MagicMock()
    return resp


# ---------------------------------------------------------------------------
# Source normalization
# ---------------------------------------------------------------------------

class TestNormalizeSource:
    def test_backslashes_in_url(self):
        assert normalize_source("https://cdn.example.com\\img\\logo.png") == "https://cdn.example.com/img/logo.png"

    def test_bare_host_gains_scheme(self):
        assert normalize_source("cdn.example.com/logo.png") == "https://cdn.example.com/logo.png"

    def test_existing_local_path_untouched(self, tmp_path):
        logo = tmp_path / "logo.png"
        logo.write_bytes(b"x")
        assert normalize_source(str(logo)) == str(logo)

    def test_strips_whitespace(self):
        assert normalize_source("  https://a.io/x.png ") == "https://a.io/x.png"

    def test_is_remote(self):
        assert is_remote("https://a.io/x.png") is True
        assert is_remote("HTTP://a.io/x.png") is True
        assert is_remote("./logo.png") is False


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------

class TestFitScale:
    def test_downscale_uses_tighter_bound(self):
        assert fit_scale(600, 100, 150, 50) == pytest.approx(0.25)

    def test_never_upscales(self):
        assert fit_scale(40, 20, 150, 50) == 1.0

    def test_degenerate_size(self):
        assert fit_scale(0, 10, 150, 50) == 1.0

    def test_asset_keeps_aspect_ratio(self):
        asset = LogoAsset.fit(b"img", 300, 100, 150, 50)
        assert (asset.scaled_width, asset.scaled_height) == (150, 50)
        assert asset.scaled_width / asset.scaled_height == pytest.approx(3.0)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

class TestLocalFetch:
    def test_fetch_local_file(self, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes)
        assert LogoFetcher().fetch(str(logo)) == png_bytes

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(AssetFetchError, match="not found"):
            LogoFetcher().fetch(str(tmp_path / "missing.png"))

    def test_empty_file_raises(self, tmp_path):
        logo = tmp_path / "empty.png"
        logo.write_bytes(b"")
        with pytest.raises(AssetFetchError, match="empty"):
            LogoFetcher().fetch(str(logo))


class TestRemoteFetch:
    def test_fetch_success(self, png_bytes):
        client = _mock_client(_ok_response(png_bytes))
        with patch("pagesmith.core.fetcher.httpx.Client", return_value=client):
            data = LogoFetcher().fetch("https://cdn.example.com/logo.png")
        assert data == png_bytes
        client.get.assert_called_once_with("https://cdn.example.com/logo.png")

    def test_connection_error_raises(self):
        client = _mock_client(error=httpx.ConnectError("name resolution failed"))
        with patch("pagesmith.core.fetcher.httpx.Client", return_value=client):
            with pytest.raises(AssetFetchError, match="Could not fetch"):
                LogoFetcher().fetch("https://unreachable.invalid/logo.png")


# ---------------------------------------------------------------------------
# Probing & resolving
# ---------------------------------------------------------------------------

class TestProbeDimensions:
    def test_png_size(self, png_factory):
        assert LogoFetcher.probe_dimensions(png_factory(320, 80)) == (320.0, 80.0)

    def test_garbage_is_fetch_error(self):
        with pytest.raises(AssetFetchError):
            LogoFetcher.probe_dimensions(b"definitely not an image")

    def test_unknown_size_is_probe_error(self):
        reader = MagicMock()
        reader.getSize.side_effect = ValueError("no size")
        with patch("pagesmith.core.fetcher.ImageReader", return_value=reader):
            with pytest.raises(DimensionProbeError):
                LogoFetcher.probe_dimensions(b"image")

    def test_truncated_image_is_fetch_error(self, png_factory):
        with pytest.raises(AssetFetchError, match="decodable"):
            LogoFetcher.probe_dimensions(png_factory(300, 100)[:60])


class TestResolve:
    def test_resolve_scales_local_logo(self, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes)
        asset = LogoFetcher().resolve(str(logo), 150, 50)
        assert asset is not None
        assert asset.natural_width == 300
        assert (asset.scaled_width, asset.scaled_height) == (150, 50)

    def test_empty_source_returns_none(self):
        assert LogoFetcher().resolve("", 150, 50) is None
        assert LogoFetcher().resolve(None, 150, 50) is None

    def test_unreachable_returns_none(self):
        client = _mock_client(error=httpx.ConnectError("unreachable"))
        with patch("pagesmith.core.fetcher.httpx.Client", return_value=client):
            assert LogoFetcher().resolve("https://unreachable.invalid/logo.png", 150, 50) is None

    def test_truncated_logo_returns_none(self, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes[:60])
        assert LogoFetcher().resolve(str(logo), 150, 50) is None

    def test_probe_failure_uses_default_size(self):
        reader = MagicMock()
        reader.getSize.side_effect = ValueError("no size")
        fetcher = LogoFetcher()
        with patch.object(fetcher, "fetch", return_value=b"image"), \
                patch("pagesmith.core.fetcher.ImageReader", return_value=reader):
            asset = fetcher.resolve("https://a.io/logo.png", 150, 50)
        assert asset is not None
        assert (asset.natural_width, asset.natural_height) == (DEFAULT_LOGO_WIDTH, DEFAULT_LOGO_HEIGHT)
        assert asset.scaled_height == 50
