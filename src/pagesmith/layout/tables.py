"""Tables with uniform-height rows, page breaks between rows and the
header row repeated on every continuation page."""

from __future__ import annotations

import logging
from functools import partial

from ..core.errors import ContentValidationError
from ..core.models import TableSpec
from .context import LayoutContext, Paginator
from .presets import LayoutPreset
from .surface import DrawingSurface, bold_variant

logger = logging.getLogger(__name__)


class TableRenderer:
    """Lays out one :class:`TableSpec` at a time."""

    def __init__(self, surface: DrawingSurface, settings: LayoutPreset, paginator: Paginator) -> None:
        self.surface = surface
        self.settings = settings
        self.paginator = paginator

    # ------------------------------------------------------------------
    # Validation & geometry
    # ------------------------------------------------------------------

    @staticmethod
    def validate(table: TableSpec) -> None:
        if not table.rows:
            raise ContentValidationError("table has no rows")
        if not table.columns:
            raise ContentValidationError("first row has no columns")
        if table.widths is not None:
            if len(table.widths) != len(table.columns):
                raise ContentValidationError(
                    f"{len(table.widths)} widths given for {len(table.columns)} columns"
                )
            if any(w <= 0 for w in table.widths):
                raise ContentValidationError("column widths must be positive")

    def column_widths(self, table: TableSpec, available: float) -> list[float]:
        """Even split of *available*, or the given widths shrunk to fit."""
        count = len(table.columns)
        if table.widths is None:
            return [available / count] * count
        total = sum(table.widths)
        if total > available:
            return [w * available / total for w in table.widths]
        return list(table.widths)

    def _cell_font(self, header: bool) -> tuple[str, float]:
        fonts = self.settings.fonts
        if header:
            return bold_variant(fonts.family), fonts.table_header_size
        return fonts.family, fonts.table_cell_size

    def row_height(self, cells: list[str], widths: list[float], header: bool = False) -> float:
        """Tallest wrapped cell plus vertical padding."""
        style = self.settings.table
        font, size = self._cell_font(header)
        self.surface.set_font(font, size)
        inner = [max(w - style.padding_left - style.padding_right, 1.0) for w in widths]
        tallest = max(
            max(self.surface.measure_text_height(text, width) for text, width in zip(cells, inner)),
            self.surface.line_height(),
        )
        return tallest + style.padding_top + style.padding_bottom

    def _heading_height(self, table: TableSpec, width: float) -> float:
        if not table.heading:
            return 0.0
        self.surface.set_font(bold_variant(self.settings.fonts.family), self.settings.fonts.table_heading_size)
        return self.surface.measure_text_height(table.heading, width) + self.settings.spacing.table_heading_gap

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def render(self, ctx: LayoutContext, table: TableSpec) -> LayoutContext:
        self.validate(table)
        columns = table.columns
        widths = self.column_widths(table, ctx.content_width)
        rows = [[TableSpec.cell_text(row, col) for col in columns] for row in table.rows]
        header_height = self.row_height(columns, widths, header=True)

        # Heading, header row and first row move to a new page together
        lead = self._heading_height(table, ctx.content_width) + header_height
        ctx = self.paginator.ensure_room(ctx, lead + self.row_height(rows[0], widths), label="table start")
        if table.heading:
            self.surface.set_font(bold_variant(self.settings.fonts.family), self.settings.fonts.table_heading_size)
            y = self.surface.draw_text(
                table.heading, ctx.margin_left, ctx.y,
                width=ctx.content_width, align="center", color=self.settings.colors.text,
            )
            ctx = ctx.at(y + self.settings.spacing.table_heading_gap)

        draw_header = partial(self._draw_header_row, columns=columns, widths=widths, height=header_height)
        ctx = draw_header(ctx)
        for number, cells in enumerate(rows):
            height = self.row_height(cells, widths)
            ctx = self.paginator.ensure_room(ctx, height, label=f"table row {number + 1}", on_new_page=draw_header)
            ctx = self._draw_row(ctx, cells, widths, height, number)

        logger.debug("Table '%s': %d row(s), ended on page %d", table.heading, len(rows), ctx.page_index + 1)
        return ctx

    def _draw_header_row(
        self,
        ctx: LayoutContext,
        columns: list[str],
        widths: list[float],
        height: float,
    ) -> LayoutContext:
        style = self.settings.table
        return self._draw_cells(ctx, columns, widths, height, style.header_fill, style.header_text, header=True)

    def _draw_row(
        self,
        ctx: LayoutContext,
        cells: list[str],
        widths: list[float],
        height: float,
        number: int,
    ) -> LayoutContext:
        style = self.settings.table
        fills = style.row_fills if style.alternate_rows else style.row_fills[:1]
        fill = fills[number % len(fills)]
        return self._draw_cells(ctx, cells, widths, height, fill, self.settings.colors.text, header=False)

    def _draw_cells(
        self,
        ctx: LayoutContext,
        cells: list[str],
        widths: list[float],
        height: float,
        fill,
        text_color,
        header: bool,
    ) -> LayoutContext:
        style = self.settings.table
        font, size = self._cell_font(header)
        x = ctx.margin_left
        for text, width in zip(cells, widths):
            self.surface.draw_rect(
                x, ctx.y, width, height,
                fill=fill, stroke=style.border, line_width=style.border_width,
            )
            self.surface.set_font(font, size)
            self.surface.draw_text(
                text,
                x + style.padding_left,
                ctx.y + style.padding_top,
                width=max(width - style.padding_left - style.padding_right, 1.0),
                color=text_color,
            )
            x += width
        return ctx.advance(height)
