"""Writing-cursor value and the page-break service.

Every layout function takes a :class:`LayoutContext` and returns a new one;
nothing mutates the cursor in place. The decision *whether* a unit still
fits lives in one place, :meth:`Paginator.ensure_room`, and every renderer
follows the same order: measure, then ensure room, then draw.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Optional

from ..core.errors import LayoutInvariantViolation
from .presets import LayoutPreset
from .surface import DrawingSurface

if TYPE_CHECKING:
    from .header_footer import HeaderFooterManager

logger = logging.getLogger(__name__)

# Float slack when comparing cursor positions
_EPSILON = 1e-6


@dataclass(frozen=True)
class LayoutContext:
    """Where the next unit goes: page index, cursor ``y`` and the page box."""

    page_index: int
    y: float
    page_width: float
    page_height: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    #: first y below the header on this page
    content_top: float

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin_bottom

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def remaining(self) -> float:
        return self.bottom - self.y

    @property
    def at_content_top(self) -> bool:
        return self.y <= self.content_top + _EPSILON

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom + _EPSILON

    def advance(self, dy: float) -> "LayoutContext":
        return replace(self, y=self.y + dy)

    def at(self, y: float) -> "LayoutContext":
        return replace(self, y=y)

    def gap(self, amount: float) -> "LayoutContext":
        """Advance by *amount* unless the cursor sits at the top of a page."""
        return self if self.at_content_top else self.advance(amount)


@dataclass(frozen=True)
class Placement:
    """A unit that was cleared for drawing."""

    context: LayoutContext
    height: float
    label: str


# Callback drawing furniture that repeats after a break (e.g. a table header)
OnNewPage = Callable[[LayoutContext], LayoutContext]


class Paginator:
    """Opens pages, draws the header on each one and decides page breaks."""

    def __init__(
        self,
        surface: DrawingSurface,
        settings: LayoutPreset,
        furniture: Optional["HeaderFooterManager"] = None,
    ) -> None:
        self.surface = surface
        self.settings = settings
        self.furniture = furniture
        #: (before, after) contexts for every page break
        self.transitions: list[tuple[LayoutContext, LayoutContext]] = []
        self.placements: list[Placement] = []
        self.warnings: list[str] = []

    # -- pages ---------------------------------------------------------------

    def start(self) -> LayoutContext:
        """Open page 1 and return the cursor just below its header."""
        return self._open_page()

    def break_page(self, ctx: LayoutContext) -> LayoutContext:
        new = self._open_page()
        self.transitions.append((ctx, new))
        logger.debug(
            "Page break at y=%.1f on page %d -> page %d",
            ctx.y, ctx.page_index + 1, new.page_index + 1,
        )
        return new

    # -- decisions -----------------------------------------------------------

    def ensure_room(
        self,
        ctx: LayoutContext,
        height: float,
        label: str = "block",
        on_new_page: OnNewPage | None = None,
    ) -> LayoutContext:
        """Return a context where a unit of *height* can start drawing.

        Breaks the page when the unit does not fit below the cursor. A unit
        taller than a whole empty page is placed at the top of a page anyway.
        """
        if not ctx.fits(height) and not ctx.at_content_top:
            ctx = self.break_page(ctx)
            if on_new_page is not None:
                ctx = on_new_page(ctx)
        if not ctx.fits(height):
            self._warn(f"{label} ({height:.0f}pt) is taller than the page; it will overflow")
        self.check(ctx)
        self.placements.append(Placement(ctx, height, label))
        return ctx

    def check(self, ctx: LayoutContext) -> None:
        """Raise if the cursor is outside the page box."""
        if ctx.y < ctx.margin_top - _EPSILON or ctx.y > ctx.bottom + _EPSILON:
            raise LayoutInvariantViolation(
                f"Cursor y={ctx.y:.1f} outside [{ctx.margin_top:.1f}, {ctx.bottom:.1f}] "
                f"on page {ctx.page_index + 1}"
            )

    # -- private -------------------------------------------------------------

    def _open_page(self) -> LayoutContext:
        page = self.settings.page
        if self.surface.page_count >= page.max_pages:
            raise LayoutInvariantViolation(f"Page limit of {page.max_pages} exceeded")
        index = self.surface.begin_page()

        header_bottom = page.margin_top
        if self.furniture is not None:
            header_bottom = self.furniture.draw_header(self.surface)
        content_top = header_bottom + (
            self.settings.spacing.header_to_content if header_bottom > page.margin_top else 0
        )
        return LayoutContext(
            page_index=index,
            y=content_top,
            page_width=self.settings.page_width,
            page_height=self.settings.page_height,
            margin_top=page.margin_top,
            margin_bottom=page.margin_bottom,
            margin_left=page.margin_left,
            margin_right=page.margin_right,
            content_top=content_top,
        )

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
