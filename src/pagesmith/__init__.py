"""pagesmith: paginated business documents rendered with ReportLab.

Modules
-------
core/       request models, logo fetcher, error hierarchy
layout/     drawing surface, paginator, header/footer, flow, tables, charts
pipeline    ``DocumentRenderer`` and ``render_document``
cli         ``pagesmith`` command line
"""

from .core.errors import PagesmithError, RenderError, RenderStage
from .core.models import DocumentRequest, RenderOptions, RenderResult
from .pipeline import DocumentRenderer, render_document

__version__ = "0.1.0"

__all__ = [
    "DocumentRenderer",
    "DocumentRequest",
    "PagesmithError",
    "RenderError",
    "RenderOptions",
    "RenderResult",
    "RenderStage",
    "render_document",
]
