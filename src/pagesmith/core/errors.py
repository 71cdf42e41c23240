"""Exception hierarchy for the rendering engine.

Fetch and probe errors are absorbed where they happen (the header simply
loses its logo). Validation errors make the offending table or chart drop
out of the document. Everything else surfaces as a :class:`RenderError`
tagged with the stage that failed, which the pipeline turns into a failed
``RenderResult``.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator


class RenderStage(str, Enum):
    """Stages of a single document render."""
    SETUP = "setup"
    FETCH = "fetch"
    HEADER = "header"
    CONTENT = "content"
    TABLE = "table"
    CHART = "chart"
    FOOTER = "footer"
    FINALIZE = "finalize"


class PagesmithError(Exception):
    """Base class for all engine errors."""


class AssetFetchError(PagesmithError):
    """The logo could not be fetched or decoded."""


class DimensionProbeError(PagesmithError):
    """The logo decoded but its pixel size could not be determined."""


class ContentValidationError(PagesmithError):
    """A table or chart descriptor cannot be rendered."""


class StreamWriteError(PagesmithError):
    """Serializing or writing the finished document failed."""


class LayoutInvariantViolation(PagesmithError):
    """The writing cursor left the page box without a page break."""


class RenderError(PagesmithError):
    """A fatal failure, tagged with the stage where it happened."""

    def __init__(self, stage: RenderStage, message: str, kind: str | None = None) -> None:
        super().__init__(f"[{stage.value}] {message}")
        self.stage = stage
        self.kind = kind or type(self).__name__
        self.message = message


@contextmanager
def in_stage(stage: RenderStage) -> Iterator[None]:
    """Re-raise anything escaping the block as a ``RenderError`` for *stage*.

    A ``RenderError`` raised by a nested stage passes through untouched so
    the innermost stage name wins.
    """
    try:
        yield
    except RenderError:
        raise
    except Exception as exc:
        raise RenderError(stage, str(exc) or type(exc).__name__, kind=type(exc).__name__) from exc
