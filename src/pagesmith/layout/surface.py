"""Page-drawing primitive used by the layout engine.

The layout code never talks to a ReportLab canvas directly. It records
operations on a :class:`DrawingSurface`, page by page, with a top-down
coordinate system (``y`` grows towards the bottom of the page, like a
writing cursor). Because pages are kept as operation lists until
:meth:`DrawingSurface.finalize`, any earlier page can be revisited with
:meth:`switch_to_page`, which the footer pass relies on.

:class:`ReportLabSurface` replays the recorded operations onto a
``reportlab.pdfgen.canvas.Canvas`` and returns the PDF bytes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Sequence, Union

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas as rl_canvas

from ..core.errors import StreamWriteError

logger = logging.getLogger(__name__)

Color = Union[tuple, str]
Point = tuple[float, float]

#: line box height as a multiple of the font size, before any line gap
NATURAL_LEADING = 1.2

_BOLD_VARIANTS = {
    "Helvetica": "Helvetica-Bold",
    "Times-Roman": "Times-Bold",
    "Times": "Times-Bold",
    "Courier": "Courier-Bold",
}


def to_color(value: Color) -> colors.Color:
    """Convert an RGB tuple (0-255) or a hex string to a ReportLab color."""
    if isinstance(value, str):
        return colors.HexColor("#" + value.lstrip("#"))
    r, g, b = value[:3]
    return colors.Color(r / 255, g / 255, b / 255)


def font_exists(name: str) -> bool:
    try:
        pdfmetrics.getFont(name)
    except KeyError:
        return False
    return True


def bold_variant(family: str) -> str:
    """Bold face for *family*, or *family* itself when none is known."""
    candidate = _BOLD_VARIANTS.get(family, f"{family}-Bold")
    return candidate if font_exists(candidate) else family


@dataclass
class DrawOp:
    """One recorded drawing operation."""

    kind: str
    params: dict[str, Any] = field(default_factory=dict)


class DrawingSurface(ABC):
    """Records drawing operations per page and measures text.

    Subclasses implement :meth:`finalize` to turn the pages into output.
    """

    def __init__(self, page_width: float, page_height: float) -> None:
        self.page_width = page_width
        self.page_height = page_height
        self.pages: list[list[DrawOp]] = []
        self.metadata: dict[str, str] = {}
        self.font_name = "Helvetica"
        self.font_size = 12.0
        self._current = -1

    # -- pages -----------------------------------------------------------

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def current_page(self) -> int:
        return self._current

    def begin_page(self) -> int:
        """Append an empty page, make it current and return its index."""
        self.pages.append([])
        self._current = len(self.pages) - 1
        return self._current

    def switch_to_page(self, index: int) -> None:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"Page {index} out of range (0..{len(self.pages) - 1})")
        self._current = index

    # -- text ------------------------------------------------------------

    def set_font(self, name: str, size: float) -> None:
        if not font_exists(name):
            raise ValueError(f"Unknown font '{name}'")
        self.font_name = name
        self.font_size = float(size)
        self._record("font", name=name, size=self.font_size)

    def string_width(self, text: str) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, self.font_size)

    def line_height(self, line_gap: float = 0) -> float:
        return self.font_size * NATURAL_LEADING + line_gap

    def wrap(self, text: str, width: float | None = None) -> list[str]:
        """Split *text* into the lines it occupies at *width*."""
        if not text:
            return []
        if width is None:
            return text.split("\n")
        return simpleSplit(text, self.font_name, self.font_size, width)

    def measure_text_height(self, text: str, width: float | None = None, line_gap: float = 0) -> float:
        return len(self.wrap(text, width)) * self.line_height(line_gap)

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        width: float | None = None,
        align: str = "left",
        line_gap: float = 0,
        color: Color = (0, 0, 0),
    ) -> float:
        """Draw *text* with its top at *y*; return the y just below it."""
        lines = self.wrap(text, width)
        self._record(
            "text",
            text=text,
            lines=lines,
            x=x,
            y=y,
            width=width,
            align=align,
            font=self.font_name,
            size=self.font_size,
            leading=self.line_height(line_gap),
            color=color,
        )
        return y + len(lines) * self.line_height(line_gap)

    # -- shapes & images ------------------------------------------------

    def draw_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
        self._record("image", data=data, x=x, y=y, width=width, height=height)

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        color: Color = (0, 0, 0),
        width: float = 1.0,
    ) -> None:
        self._record("line", x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width)

    def draw_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        fill: Color | None = None,
        stroke: Color | None = None,
        line_width: float = 1.0,
    ) -> None:
        self._record(
            "rect", x=x, y=y, width=width, height=height,
            fill=fill, stroke=stroke, line_width=line_width,
        )

    def draw_polygon(self, points: Sequence[Point], fill: Color | None = None, stroke: Color | None = None) -> None:
        self._record("polygon", points=list(points), fill=fill, stroke=stroke)

    # -- document ------------------------------------------------------

    def set_metadata(self, **info: str | None) -> None:
        self.metadata.update({k: v for k, v in info.items() if v})

    def texts(self, page: int) -> list[str]:
        """Text strings drawn on *page*, in drawing order."""
        return [op.params["text"] for op in self.pages[page] if op.kind == "text"]

    def ops(self, page: int, kind: str) -> list[DrawOp]:
        return [op for op in self.pages[page] if op.kind == kind]

    @abstractmethod
    def finalize(self) -> bytes:
        """Serialize every page and return the document bytes."""
        ...

    def _record(self, kind: str, **params: Any) -> None:
        if self._current < 0:
            raise RuntimeError("begin_page() must be called before drawing")
        self.pages[self._current].append(DrawOp(kind, params))


class ReportLabSurface(DrawingSurface):
    """Replays recorded pages onto a ReportLab canvas."""

    def finalize(self) -> bytes:
        buffer = BytesIO()
        try:
            c = rl_canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
            self._apply_metadata(c)
            for ops in self.pages:
                for op in ops:
                    replay = getattr(self, f"_replay_{op.kind}")
                    replay(c, **op.params)
                c.showPage()
            c.save()
        except Exception as exc:
            raise StreamWriteError(f"Could not serialize PDF: {exc}") from exc
        data = buffer.getvalue()
        logger.debug("Serialized %d page(s), %d bytes", self.page_count, len(data))
        return data

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _flip(self, y: float) -> float:
        return self.page_height - y

    def _apply_metadata(self, c: rl_canvas.Canvas) -> None:
        setters = {
            "title": c.setTitle,
            "author": c.setAuthor,
            "subject": c.setSubject,
            "keywords": c.setKeywords,
            "creator": c.setCreator,
        }
        for key, value in self.metadata.items():
            if key in setters:
                setters[key](value)

    def _replay_font(self, c: rl_canvas.Canvas, name: str, size: float) -> None:
        c.setFont(name, size)

    def _replay_text(
        self,
        c: rl_canvas.Canvas,
        text: str,
        lines: list[str],
        x: float,
        y: float,
        width: float | None,
        align: str,
        font: str,
        size: float,
        leading: float,
        color: Color,
    ) -> None:
        c.setFont(font, size)
        c.setFillColor(to_color(color))
        ascent = pdfmetrics.getAscent(font, size)
        for i, line in enumerate(lines):
            baseline = self._flip(y + i * leading + ascent)
            if width is None or align == "left":
                c.drawString(x, baseline, line)
            elif align == "right":
                c.drawRightString(x + width, baseline, line)
            elif align == "center":
                c.drawCentredString(x + width / 2, baseline, line)
            elif align == "justify":
                self._justify_line(c, line, x, baseline, width, font, size, last=i == len(lines) - 1)
            else:
                raise ValueError(f"Unknown alignment '{align}'")

    @staticmethod
    def _justify_line(
        c: rl_canvas.Canvas,
        line: str,
        x: float,
        baseline: float,
        width: float,
        font: str,
        size: float,
        last: bool,
    ) -> None:
        gaps = line.count(" ")
        if last or gaps == 0:
            c.drawString(x, baseline, line)
            return
        slack = width - pdfmetrics.stringWidth(line, font, size)
        t = c.beginText(x, baseline)
        t.setFont(font, size)
        t.setWordSpace(max(slack, 0) / gaps)
        t.textOut(line)
        c.drawText(t)

    def _replay_image(self, c: rl_canvas.Canvas, data: bytes, x: float, y: float, width: float, height: float) -> None:
        c.drawImage(
            ImageReader(BytesIO(data)),
            x,
            self._flip(y + height),
            width=width,
            height=height,
            mask="auto",
        )

    def _replay_line(self, c: rl_canvas.Canvas, x1, y1, x2, y2, color: Color, width: float) -> None:
        c.setStrokeColor(to_color(color))
        c.setLineWidth(width)
        c.line(x1, self._flip(y1), x2, self._flip(y2))

    def _replay_rect(self, c: rl_canvas.Canvas, x, y, width, height, fill, stroke, line_width) -> None:
        if fill is not None:
            c.setFillColor(to_color(fill))
        if stroke is not None:
            c.setStrokeColor(to_color(stroke))
            c.setLineWidth(line_width)
        c.rect(
            x, self._flip(y + height), width, height,
            stroke=int(stroke is not None), fill=int(fill is not None),
        )

    def _replay_polygon(self, c: rl_canvas.Canvas, points: list[Point], fill, stroke) -> None:
        if len(points) < 3:
            return
        if fill is not None:
            c.setFillColor(to_color(fill))
        if stroke is not None:
            c.setStrokeColor(to_color(stroke))
        path = c.beginPath()
        px, py = points[0]
        path.moveTo(px, self._flip(py))
        for px, py in points[1:]:
            path.lineTo(px, self._flip(py))
        path.close()
        c.drawPath(path, stroke=int(stroke is not None), fill=int(fill is not None))
