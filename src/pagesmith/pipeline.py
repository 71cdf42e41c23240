"""Render pipeline: ties the logo fetcher, layout engine and footer pass together."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterable

from .core.errors import RenderError, RenderStage, StreamWriteError, in_stage
from .core.fetcher import LogoFetcher
from .core.models import DocumentRequest, RenderOptions, RenderResult
from .layout.context import Paginator
from .layout.flow import ContentFlowRenderer
from .layout.header_footer import HeaderFooterManager
from .layout.presets import resolve_settings
from .layout.surface import DrawingSurface, ReportLabSurface, font_exists

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[float, float], DrawingSurface]


def generate_unique_filename(directory: str | Path = "./output", prefix: str = "document") -> Path:
    """``<directory>/<prefix>-<epoch millis>.pdf``."""
    return Path(directory) / f"{prefix}-{int(time.time() * 1000)}.pdf"


def write_atomic(path: Path, data: bytes) -> Path:
    """Write *data* next to *path* under a temporary name, then rename."""
    path = Path(path).expanduser().resolve()
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False) as fh:
            tmp_name = fh.name
            fh.write(data)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StreamWriteError(f"Could not write {path}: {exc}") from exc
    return path


class DocumentRenderer:
    """One synchronous render per call.

    Renders share no state, so one instance may serve several threads.
    ``last_surface`` and ``last_paginator`` report the most recent render
    made by the calling thread.

    Usage::

        renderer = DocumentRenderer()
        result = renderer.render(DocumentRequest(company_name="Acme", content=["Hello"]))
        if result.ok:
            Path("acme.pdf").write_bytes(result.data)
    """

    def __init__(
        self,
        fetcher: LogoFetcher | None = None,
        surface_factory: SurfaceFactory = ReportLabSurface,
        default_preset: str | None = None,
    ) -> None:
        self.fetcher = fetcher or LogoFetcher()
        self.surface_factory = surface_factory
        self.default_preset = default_preset
        self._local = threading.local()

    @property
    def last_surface(self) -> DrawingSurface | None:
        return getattr(self._local, "surface", None)

    @property
    def last_paginator(self) -> Paginator | None:
        return getattr(self._local, "paginator", None)

    def render(self, request: DocumentRequest) -> RenderResult:
        """Render *request*; failures come back as an unsuccessful result."""
        try:
            return self._render(request)
        except RenderError as exc:
            logger.error("Render failed during %s: %s", exc.stage.value, exc.message)
            return RenderResult.failure(exc.stage, exc.kind, exc.message)
        except Exception as exc:
            logger.exception("Unexpected render failure")
            return RenderResult.failure(RenderStage.FINALIZE, type(exc).__name__, str(exc))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _render(self, request: DocumentRequest) -> RenderResult:
        options = request.options
        warnings: list[str] = []

        with in_stage(RenderStage.SETUP):
            settings = resolve_settings(options, self.default_preset)
            if not font_exists(settings.fonts.family):
                raise ValueError(f"Unknown font family '{settings.fonts.family}'")
            surface = self.surface_factory(settings.page_width, settings.page_height)
        self._local.surface = surface

        with in_stage(RenderStage.FETCH):
            logo = self.fetcher.resolve(request.logo, settings.logo_max_width, settings.logo_max_height)
            if request.logo and logo is None:
                warnings.append(f"Logo '{request.logo}' could not be loaded; header shows the company name only")

        furniture = HeaderFooterManager(
            settings,
            company_name=request.company_name,
            logo=logo,
            footer_date=options.footer_date or date.today(),
        )
        paginator = Paginator(surface, settings, furniture)
        self._local.paginator = paginator

        with in_stage(RenderStage.HEADER):
            ctx = paginator.start()

        flow = ContentFlowRenderer(surface, settings, paginator)
        with in_stage(RenderStage.CONTENT):
            flow.render(ctx, request.flow_items())
        warnings.extend(flow.skipped)
        warnings.extend(paginator.warnings)
        logger.info("Laid out %d page(s) using the '%s' preset", surface.page_count, settings.name)

        with in_stage(RenderStage.FOOTER):
            page_count = furniture.stamp_footers(surface)

        with in_stage(RenderStage.FINALIZE):
            surface.set_metadata(
                title=options.title or request.company_name or None,
                author=options.author or request.company_name or None,
                subject=options.subject,
                keywords=options.keywords,
                creator="pagesmith",
            )
            data = surface.finalize()
            if options.output_path is not None:
                path = write_atomic(options.output_path, data)
                logger.info("Wrote %s (%d bytes)", path, len(data))
                return RenderResult(output_path=path, page_count=page_count, warnings=warnings)

        return RenderResult(data=data, page_count=page_count, warnings=warnings)


def render_document(
    company_name: str = "",
    logo: str | None = None,
    content: Iterable[Any] = (),
    tables: Any = None,
    charts: Any = None,
    options: RenderOptions | dict | None = None,
    **option_overrides: Any,
) -> RenderResult:
    """Convenience wrapper: build a request from plain values and render it.

    ``content`` may mix strings and block dicts. Invalid tables or charts are
    dropped with a warning. Keyword overrides are merged into *options*.
    """
    if isinstance(options, RenderOptions):
        opts = options.model_dump(exclude_none=True)
    else:
        opts = dict(options or {})
    opts.update(option_overrides)

    request = DocumentRequest.from_payload({
        "company_name": company_name,
        "logo": logo,
        "content": list(content),
        "tables": tables,
        "charts": charts,
        "options": opts,
    })
    return DocumentRenderer().render(request)
