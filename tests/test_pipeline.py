"""Tests for the end-to-end render pipeline and the CLI."""

from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner

from pagesmith.cli import main
from pagesmith.core.errors import RenderStage
from pagesmith.core.models import DocumentRequest, RenderOptions
from pagesmith.pipeline import DocumentRenderer, generate_unique_filename, render_document


def _rows(n):
    return [{"Product": f"Item {i}", "Units": str(i * 3), "Region": "North"} for i in range(n)]


@pytest.fixture
def renderer(recording_surface):
    return DocumentRenderer(surface_factory=recording_surface)


def _footer_labels(surface):
    labels = []
    for page in range(surface.page_count):
        labels.extend(t for t in surface.texts(page) if t.startswith("Page "))
    return labels


class TestRender:
    def test_single_paragraph(self):
        result = render_document(company_name="Acme Corp", content=["Dear customer, thank you."])
        assert result.ok
        assert result.page_count == 1
        assert result.data.startswith(b"%PDF")
        assert result.output_path is None

    def test_footer_on_single_page(self, renderer):
        result = renderer.render(DocumentRequest(company_name="Acme", content=["Hello"]))
        assert result.ok
        assert _footer_labels(renderer.last_surface) == ["Page 1 of 1"]

    def test_long_table_footers_are_contiguous(self, renderer):
        request = DocumentRequest(company_name="Acme", content=["Quarterly stock"], tables=[{"heading": "Stock", "rows": _rows(50)}])
        result = renderer.render(request)
        assert result.ok
        n = result.page_count
        assert n >= 2
        assert _footer_labels(renderer.last_surface) == [f"Page {i} of {n}" for i in range(1, n + 1)]

    def test_footer_date_option(self, renderer):
        request = DocumentRequest(content=["x"], options=RenderOptions(footer_date=date(2026, 10, 17)))
        renderer.render(request)
        assert "October 17, 2026" in renderer.last_surface.texts(0)

    def test_metadata(self, renderer):
        renderer.render(DocumentRequest(company_name="Acme", content=["x"], options={"subject": "Invoice"}))
        meta = renderer.last_surface.metadata
        assert meta["author"] == "Acme"
        assert meta["subject"] == "Invoice"
        assert meta["creator"] == "pagesmith"

    def test_invalid_chart_skipped_with_warning(self, renderer):
        request = DocumentRequest(
            content=["Report"],
            charts=[{"type": "bar", "labels": ["a"], "data": [-1]}, {"type": "pie", "labels": ["a", "b"], "data": [1, 1]}],
        )
        result = renderer.render(request)
        assert result.ok
        assert len(result.warnings) == 1
        assert "negative" in result.warnings[0]
        assert len(renderer.last_surface.ops(0, "polygon")) == 2

    def test_full_document_renders_pdf(self, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes)
        result = render_document(
            company_name="Acme Corp",
            logo=str(logo),
            content=[
                "Dear Sir or Madam,",
                {"attributeType": "paragraph", "content": "Please find the figures below."},
                {"attributeType": "signature", "content": "Jane Doe"},
                {"attributeType": "designation", "content": "Finance Director"},
            ],
            tables=[{"heading": "Sales", "rows": _rows(30)}],
            charts=[
                {"type": "bar", "title": "Monthly", "labels": ["J", "F", "M"], "data": [1, 3, 2]},
                {"type": "pie", "title": "Share", "labels": ["A", "B"], "data": [60, 40]},
            ],
            preset="report",
        )
        assert result.ok, result.error
        assert result.data.startswith(b"%PDF")
        assert result.page_count >= 2


class TestConcurrency:
    def test_shared_renderer_keeps_per_thread_handles(self, renderer):
        def job(rows):
            result = renderer.render(DocumentRequest(company_name=f"Co {rows}", tables=[{"rows": _rows(rows)}]))
            return result, renderer.last_surface

        with ThreadPoolExecutor(max_workers=4) as pool:
            outcomes = list(pool.map(job, [1, 40, 80, 120]))

        for rows, (result, surface) in zip([1, 40, 80, 120], outcomes):
            assert result.ok
            assert surface.page_count == result.page_count
            assert f"Co {rows}" in surface.texts(0)
        assert renderer.last_surface is None


class TestLogo:
    def test_unreachable_logo_falls_back_to_name(self, renderer):
        client = MagicMock()
        client.__enter__ = MagicMock(return_value=client)
        client.__exit__ = MagicMock(return_value=False)
        client.get = MagicMock(side_effect=httpx.ConnectError("unreachable"))

        with patch("pagesmith.core.fetcher.httpx.Client", return_value=client):
            result = renderer.render(DocumentRequest(
                company_name="Acme Corp", logo="https://unreachable.invalid/logo.png", content=["Hi"],
            ))

        assert result.ok
        assert any("Logo" in w for w in result.warnings)
        surface = renderer.last_surface
        assert surface.ops(0, "image") == []
        assert "Acme Corp" in surface.texts(0)

    def test_truncated_logo_falls_back_to_name(self, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes[:60])
        renderer = DocumentRenderer()
        result = renderer.render(DocumentRequest(company_name="Acme", logo=str(logo), content=["Hi"]))
        assert result.ok, result.error
        assert result.data.startswith(b"%PDF")
        assert any("Logo" in w for w in result.warnings)
        assert renderer.last_surface.ops(0, "image") == []
        assert "Acme" in renderer.last_surface.texts(0)

    def test_local_logo_drawn_on_every_page(self, renderer, tmp_path, png_bytes):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes)
        result = renderer.render(DocumentRequest(company_name="Acme", logo=str(logo), tables=[{"rows": _rows(60)}]))
        assert result.ok
        surface = renderer.last_surface
        for page in range(surface.page_count):
            image = surface.ops(page, "image")[0].params
            assert (image["width"], image["height"]) == (150, 50)


class TestOutput:
    def test_writes_file(self, tmp_path):
        target = tmp_path / "out" / "letter.pdf"
        result = render_document(content=["Hello"], output_path=target)
        assert result.ok
        assert result.output_path == target.resolve()
        assert target.read_bytes().startswith(b"%PDF")
        assert [p.name for p in target.parent.iterdir()] == ["letter.pdf"]

    def test_write_failure_is_reported(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        result = render_document(content=["Hello"], output_path=blocker / "out.pdf")
        assert not result.ok
        assert result.error.stage is RenderStage.FINALIZE
        assert result.error.kind == "StreamWriteError"

    def test_unique_filename(self, tmp_path):
        path = generate_unique_filename(tmp_path)
        assert path.parent == tmp_path
        assert re.fullmatch(r"document-\d+\.pdf", path.name)


class TestFailures:
    def test_unknown_font(self, renderer):
        result = renderer.render(DocumentRequest(content=["x"], options={"font_family": "NoSuchFont"}))
        assert not result.ok
        assert result.error.stage is RenderStage.SETUP

    def test_unknown_preset(self, renderer):
        result = renderer.render(DocumentRequest(content=["x"], options={"preset": "brochure"}))
        assert not result.ok
        assert result.error.stage is RenderStage.SETUP
        assert result.error.kind == "KeyError"

    def test_page_limit(self, renderer):
        request = DocumentRequest(content=["Paragraph text. " * 40] * 30, options={"max_pages": 1})
        result = renderer.render(request)
        assert not result.ok
        assert result.error.stage is RenderStage.CONTENT
        assert result.error.kind == "LayoutInvariantViolation"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCli:
    def test_render_command(self, tmp_path):
        request = tmp_path / "request.json"
        request.write_text(json.dumps({"companyName": "Acme", "content": ["Hello", ""]}), encoding="utf-8")
        out = tmp_path / "hello.pdf"

        result = CliRunner().invoke(main, ["render", str(request), "-o", str(out), "--preset", "compact"])
        assert result.exit_code == 0, result.output
        assert out.read_bytes().startswith(b"%PDF")
        assert "Wrote" in result.output

    def test_render_invalid_json(self, tmp_path):
        request = tmp_path / "broken.json"
        request.write_text("{not json", encoding="utf-8")
        result = CliRunner().invoke(main, ["render", str(request)])
        assert result.exit_code != 0
        assert "Could not read" in result.output

    def test_presets_command(self):
        result = CliRunner().invoke(main, ["presets"])
        assert result.exit_code == 0
        for name in ("standard", "compact", "elegant", "report"):
            assert name in result.output

    def test_inspect_command(self, tmp_path):
        request = tmp_path / "request.json"
        request.write_text(json.dumps({
            "companyName": "Acme",
            "content": ["One", " ", "Two"],
            "tables": [{"heading": "Stock", "rows": [{"a": 1}]}],
        }), encoding="utf-8")
        result = CliRunner().invoke(main, ["inspect", str(request)])
        assert result.exit_code == 0
        assert "Blocks" in result.output
        assert "(2)" in result.output
        assert "Stock" in result.output
