"""Walk the ordered flow items and place each one on the pages."""

from __future__ import annotations

import logging
from typing import Sequence

from ..core.errors import ContentValidationError, RenderStage, in_stage
from ..core.models import (
    BarChartSpec,
    DesignationBlock,
    ParagraphBlock,
    PieChartSpec,
    SignatureBlock,
    TableSpec,
)
from .charts import ChartRenderer
from .context import LayoutContext, Paginator
from .presets import LayoutPreset
from .surface import DrawingSurface, bold_variant
from .tables import TableRenderer

logger = logging.getLogger(__name__)


class ContentFlowRenderer:
    """Paragraphs, signatures and designations, with tables and charts
    handed to their own renderers.

    A signature and the designation right after it are placed as one unit,
    so a page break never separates a name from its title.
    """

    def __init__(self, surface: DrawingSurface, settings: LayoutPreset, paginator: Paginator) -> None:
        self.surface = surface
        self.settings = settings
        self.paginator = paginator
        self.tables = TableRenderer(surface, settings, paginator)
        self.charts = ChartRenderer(surface, settings, paginator)
        self.skipped: list[str] = []

    def render(self, ctx: LayoutContext, items: Sequence) -> LayoutContext:
        previous = None
        index = 0
        while index < len(items):
            item = items[index]
            if isinstance(item, ParagraphBlock):
                ctx = self.render_paragraph(ctx, item)
            elif isinstance(item, SignatureBlock):
                following = items[index + 1] if index + 1 < len(items) else None
                designation = following if isinstance(following, DesignationBlock) else None
                ctx = self.render_signature(ctx, item, designation)
                if designation is not None:
                    index += 1
            elif isinstance(item, DesignationBlock):
                ctx = self.render_designation(ctx, item)
            elif isinstance(item, TableSpec):
                with in_stage(RenderStage.TABLE):
                    ctx = self._render_table(ctx, item, previous)
            elif isinstance(item, (BarChartSpec, PieChartSpec)):
                with in_stage(RenderStage.CHART):
                    ctx = self._render_chart(ctx, item, previous)
            else:
                raise TypeError(f"Unsupported flow item: {type(item).__name__}")
            previous = item
            index += 1
        return ctx

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def render_paragraph(self, ctx: LayoutContext, block: ParagraphBlock) -> LayoutContext:
        fonts = self.settings.fonts
        size = block.style.font_size or fonts.body_size
        family = bold_variant(fonts.family) if block.style.bold else fonts.family
        align = block.style.align.value if block.style.align else self.settings.paragraph_align
        line_gap = (fonts.line_height - 1) * size
        width = ctx.content_width

        self.surface.set_font(family, size)
        height = self.surface.measure_text_height(block.text, width, line_gap)
        ctx = self.paginator.ensure_room(ctx, height, label="paragraph")
        y_after = self.surface.draw_text(
            block.text, ctx.margin_left, ctx.y,
            width=width, align=align, line_gap=line_gap, color=self.settings.colors.text,
        )
        return ctx.at(y_after + self.settings.spacing.paragraph)

    def render_signature(
        self,
        ctx: LayoutContext,
        block: SignatureBlock,
        designation: DesignationBlock | None = None,
    ) -> LayoutContext:
        spacing = self.settings.spacing
        fonts = self.settings.fonts
        column = min(spacing.signature_column, ctx.content_width)
        x = ctx.margin_left + ctx.content_width - column

        name_font = bold_variant(fonts.family)
        self.surface.set_font(name_font, fonts.signature_size)
        name_height = self.surface.measure_text_height(block.name, column)
        title_height = 0.0
        if designation is not None:
            self.surface.set_font(fonts.family, fonts.designation_size)
            title_height = spacing.designation_gap + self.surface.measure_text_height(designation.title, column)

        ctx = self.paginator.ensure_room(
            ctx, spacing.signature_before + name_height + title_height, label="signature"
        )
        y = ctx.y + spacing.signature_before
        if spacing.signature_rule:
            self.surface.draw_line(x, y - 4, x + column, y - 4, color=self.settings.colors.text, width=0.5)

        self.surface.set_font(name_font, fonts.signature_size)
        y = self.surface.draw_text(block.name, x, y, width=column, align="right", color=self.settings.colors.text)
        if designation is not None:
            self.surface.set_font(fonts.family, fonts.designation_size)
            y = self.surface.draw_text(
                designation.title, x, y + spacing.designation_gap,
                width=column, align="right", color=self.settings.colors.muted,
            )
        return ctx.at(y + spacing.paragraph)

    def render_designation(self, ctx: LayoutContext, block: DesignationBlock) -> LayoutContext:
        fonts = self.settings.fonts
        column = min(self.settings.spacing.signature_column, ctx.content_width)
        x = ctx.margin_left + ctx.content_width - column

        self.surface.set_font(fonts.family, fonts.designation_size)
        height = self.surface.measure_text_height(block.title, column)
        ctx = self.paginator.ensure_room(ctx, height, label="designation")
        y = self.surface.draw_text(block.title, x, ctx.y, width=column, align="right", color=self.settings.colors.muted)
        return ctx.at(y + self.settings.spacing.paragraph)

    # ------------------------------------------------------------------
    # Tables & charts
    # ------------------------------------------------------------------

    def _render_table(self, ctx: LayoutContext, table: TableSpec, previous) -> LayoutContext:
        spacing = self.settings.spacing
        if isinstance(previous, TableSpec):
            lead = spacing.table_to_table
        elif previous is not None:
            lead = spacing.paragraph_to_table
        else:
            lead = 0.0
        try:
            self.tables.validate(table)
        except ContentValidationError as exc:
            self._skip(f"Table '{table.heading or 'untitled'}' skipped: {exc}")
            return ctx
        return self.tables.render(ctx.gap(lead), table)

    def _render_chart(self, ctx: LayoutContext, chart, previous) -> LayoutContext:
        try:
            self.charts.validate(chart)
        except ContentValidationError as exc:
            self._skip(f"{chart.type.capitalize()} chart '{chart.title or 'untitled'}' skipped: {exc}")
            return ctx
        lead = self.settings.spacing.chart if previous is not None else 0.0
        return self.charts.render(ctx.gap(lead), chart)

    def _skip(self, message: str) -> None:
        logger.warning(message)
        self.skipped.append(message)
