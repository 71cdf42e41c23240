"""Bar and pie charts drawn from surface primitives.

The geometry helpers (:func:`bar_geometry`, :func:`pie_wedges`,
:func:`wedge_polygon`, :func:`legend_entries`) are pure functions so the
numbers can be checked without drawing anything.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Union

from ..core.errors import ContentValidationError
from ..core.models import BarChartSpec, PieChartSpec
from .context import LayoutContext, Paginator
from .presets import LayoutPreset
from .surface import DrawingSurface, Point, bold_variant

logger = logging.getLogger(__name__)

AnyChart = Union[BarChartSpec, PieChartSpec]

#: bar share of each slot; the rest is the gap
BAR_FILL_RATIO = 0.8
#: pie wedges start at 12 o'clock
PIE_START_ANGLE = -math.pi / 2

_TITLE_GAP = 8
_LEGEND_SWATCH = 10
_LEGEND_GAP = 20


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def palette_color(index: int, custom: Sequence[str], palette: Sequence[str]) -> str:
    """``custom[index]`` when given, else the palette entry, cycling."""
    if index < len(custom) and custom[index]:
        return custom[index]
    return palette[index % len(palette)]


@dataclass(frozen=True)
class Bar:
    index: int
    value: float
    x: float
    y: float
    width: float
    height: float


def bar_geometry(data: Sequence[float], x: float, top: float, width: float, height: float) -> list[Bar]:
    """Bars for *data* in the plot box ``(x, top, width, height)``.

    Bars stand on the bottom edge; the largest value spans the full height.
    """
    if not data:
        return []
    slot = width / len(data)
    bar_width = slot * BAR_FILL_RATIO
    peak = max(data)
    bars = []
    for i, value in enumerate(data):
        bar_height = height * value / peak if peak > 0 else 0.0
        bars.append(Bar(
            index=i,
            value=value,
            x=x + i * slot + (slot - bar_width) / 2,
            y=top + height - bar_height,
            width=bar_width,
            height=bar_height,
        ))
    return bars


def scale_ticks(peak: float, steps: int) -> list[float]:
    if peak <= 0 or steps <= 0:
        return [0.0]
    return [peak * i / steps for i in range(steps + 1)]


def format_tick(value: float) -> str:
    return f"{value:,.0f}" if abs(value) >= 10 else f"{value:.1f}"


@dataclass(frozen=True)
class Wedge:
    index: int
    value: float
    start: float
    end: float

    @property
    def sweep(self) -> float:
        return self.end - self.start

    @property
    def fraction(self) -> float:
        return self.sweep / (2 * math.pi)

    @property
    def middle(self) -> float:
        return (self.start + self.end) / 2


def pie_wedges(data: Sequence[float], start_angle: float = PIE_START_ANGLE) -> list[Wedge]:
    """Accumulate ``2π · value / total`` per entry from *start_angle*."""
    total = sum(data)
    if total <= 0:
        raise ContentValidationError("pie chart values sum to zero")
    wedges = []
    angle = start_angle
    for i, value in enumerate(data):
        sweep = 2 * math.pi * value / total
        wedges.append(Wedge(index=i, value=value, start=angle, end=angle + sweep))
        angle += sweep
    return wedges


def wedge_polygon(cx: float, cy: float, radius: float, wedge: Wedge, resolution: int = 72) -> list[Point]:
    """Centre, then the arc as a polyline; the path closes back to centre."""
    steps = max(2, math.ceil(resolution * wedge.fraction))
    points: list[Point] = [(cx, cy)]
    for step in range(steps + 1):
        angle = wedge.start + wedge.sweep * step / steps
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def legend_entries(labels: Sequence[str], data: Sequence[float]) -> list[tuple[int, str]]:
    """``(index, "label (xx.x%)")`` for every non-zero entry."""
    total = sum(data)
    if total <= 0:
        return []
    return [
        (i, f"{label} ({value / total * 100:.1f}%)")
        for i, (label, value) in enumerate(zip(labels, data))
        if value != 0
    ]


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class ChartRenderer:
    """Reserves a chart's whole footprint and draws it in one piece."""

    def __init__(self, surface: DrawingSurface, settings: LayoutPreset, paginator: Paginator) -> None:
        self.surface = surface
        self.settings = settings
        self.paginator = paginator

    @staticmethod
    def validate(chart: AnyChart) -> None:
        if not chart.data:
            raise ContentValidationError("no data")
        if chart.labels and len(chart.labels) != len(chart.data):
            raise ContentValidationError(f"{len(chart.labels)} labels for {len(chart.data)} values")
        if any(not math.isfinite(v) for v in chart.data):
            raise ContentValidationError("values must be finite numbers")
        if any(v < 0 for v in chart.data):
            raise ContentValidationError("negative values are not supported")
        if isinstance(chart, PieChartSpec) and sum(chart.data) <= 0:
            raise ContentValidationError("pie chart values sum to zero")

    @staticmethod
    def labels_for(chart: AnyChart) -> list[str]:
        return list(chart.labels) or [str(i + 1) for i in range(len(chart.data))]

    def size_of(self, chart: AnyChart, available: float) -> tuple[float, float]:
        """Plot ``(width, height)`` before title and label space."""
        setup = self.settings.chart
        if isinstance(chart, BarChartSpec):
            width = chart.width or available * setup.bar_width_ratio
            height = chart.height or setup.bar_height
        else:
            width = chart.width or available * setup.pie_width_ratio
            height = chart.height or setup.pie_height
        return min(width, available), height

    def _title_height(self, chart: AnyChart, width: float) -> float:
        if not chart.title:
            return 0.0
        self.surface.set_font(bold_variant(self.settings.fonts.family), self.settings.fonts.chart_title_size)
        return self.surface.measure_text_height(chart.title, width) + _TITLE_GAP

    def _scale_headroom(self) -> float:
        # top tick label is centred on the top grid line
        return self.settings.fonts.chart_label_size * 0.6

    @staticmethod
    def _pie_radius(width: float, height: float) -> float:
        return min(height, width * 0.6) / 2

    def _legend_width(self, width: float, height: float) -> float:
        used = 2 * self._pie_radius(width, height) + _LEGEND_GAP + _LEGEND_SWATCH + 5
        return max(width - used, 1.0)

    def _legend_height(self, chart: PieChartSpec, width: float, height: float) -> float:
        fonts = self.settings.fonts
        legend_width = self._legend_width(width, height)
        self.surface.set_font(fonts.family, fonts.legend_size)
        return sum(
            max(self.surface.measure_text_height(text, legend_width), _LEGEND_SWATCH) + fonts.legend_size * 0.4
            for _, text in legend_entries(self.labels_for(chart), chart.data)
        )

    def footprint(self, chart: AnyChart, available: float) -> float:
        """Height reserved for *chart*, title, scale labels and legend included."""
        width, height = self.size_of(chart, available)
        if isinstance(chart, BarChartSpec):
            body = self._scale_headroom() + height + self.settings.chart.label_area
        else:
            body = max(height, self._legend_height(chart, width, height))
        return self._title_height(chart, width) + body

    def render(self, ctx: LayoutContext, chart: AnyChart) -> LayoutContext:
        self.validate(chart)
        width, height = self.size_of(chart, ctx.content_width)
        total = self.footprint(chart, ctx.content_width)
        ctx = self.paginator.ensure_room(ctx, total, label=f"{chart.type} chart")

        x = ctx.margin_left + (ctx.content_width - width) / 2
        top = ctx.y
        if chart.title:
            self.surface.set_font(bold_variant(self.settings.fonts.family), self.settings.fonts.chart_title_size)
            top = self.surface.draw_text(
                chart.title, x, top, width=width, align="center", color=self.settings.colors.text,
            ) + _TITLE_GAP

        if isinstance(chart, BarChartSpec):
            self._draw_bar(chart, x, top + self._scale_headroom(), width, height)
        elif isinstance(chart, PieChartSpec):
            self._draw_pie(chart, x, top, width, height)
        else:
            raise TypeError(f"Unsupported chart: {type(chart).__name__}")
        return ctx.advance(total)

    # ------------------------------------------------------------------
    # Bar
    # ------------------------------------------------------------------

    def _draw_bar(self, chart: BarChartSpec, x: float, top: float, width: float, height: float) -> None:
        setup = self.settings.chart
        colors = self.settings.colors
        fonts = self.settings.fonts
        plot_x = x + setup.scale_gutter
        plot_width = width - setup.scale_gutter
        baseline = top + height
        peak = max(chart.data)

        self.surface.set_font(fonts.family, fonts.chart_label_size)
        for tick in scale_ticks(peak, setup.scale_steps):
            ty = baseline - (height * tick / peak if peak > 0 else 0.0)
            if tick > 0:
                self.surface.draw_line(plot_x, ty, plot_x + plot_width, ty, color=colors.grid, width=0.5)
            self.surface.draw_text(
                format_tick(tick), x, ty - fonts.chart_label_size * 0.6,
                width=setup.scale_gutter - 4, align="right", color=colors.muted,
            )

        bars = bar_geometry(chart.data, plot_x, top, plot_width, height)
        for bar in bars:
            self.surface.draw_rect(
                bar.x, bar.y, bar.width, bar.height,
                fill=palette_color(bar.index, chart.colors, setup.palette),
            )

        self.surface.draw_line(plot_x, top, plot_x, baseline, color=colors.axis)
        self.surface.draw_line(plot_x, baseline, plot_x + plot_width, baseline, color=colors.axis)

        slot = plot_width / len(bars)
        self.surface.set_font(fonts.family, fonts.chart_label_size)
        for bar, label in zip(bars, self.labels_for(chart)):
            self.surface.draw_text(
                label, plot_x + bar.index * slot, baseline + 4,
                width=slot, align="center", color=colors.text,
            )

    # ------------------------------------------------------------------
    # Pie
    # ------------------------------------------------------------------

    def _draw_pie(self, chart: PieChartSpec, x: float, top: float, width: float, height: float) -> None:
        setup = self.settings.chart
        colors = self.settings.colors
        fonts = self.settings.fonts
        radius = self._pie_radius(width, height)
        cx = x + radius
        cy = top + height / 2

        wedges = pie_wedges(chart.data)
        for wedge in wedges:
            if wedge.value == 0:
                continue
            self.surface.draw_polygon(
                wedge_polygon(cx, cy, radius, wedge, setup.arc_resolution),
                fill=palette_color(wedge.index, chart.colors, setup.palette),
                stroke=(255, 255, 255),
            )

        self.surface.set_font(bold_variant(fonts.family), fonts.chart_label_size)
        for wedge in wedges:
            if wedge.value == 0:
                continue
            lx = cx + radius * 0.65 * math.cos(wedge.middle)
            ly = cy + radius * 0.65 * math.sin(wedge.middle)
            self.surface.draw_text(
                f"{wedge.fraction * 100:.1f}%", lx - 20, ly - fonts.chart_label_size * 0.6,
                width=40, align="center", color=colors.wedge_label,
            )

        legend_x = cx + radius + _LEGEND_GAP
        legend_width = self._legend_width(width, height)
        y = top + max((height - self._legend_height(chart, width, height)) / 2, 0)
        self.surface.set_font(fonts.family, fonts.legend_size)
        for index, text in legend_entries(self.labels_for(chart), chart.data):
            self.surface.draw_rect(
                legend_x, y, _LEGEND_SWATCH, _LEGEND_SWATCH,
                fill=palette_color(index, chart.colors, setup.palette),
            )
            text_bottom = self.surface.draw_text(
                text, legend_x + _LEGEND_SWATCH + 5, y,
                width=legend_width, color=colors.text,
            )
            y = max(text_bottom, y + _LEGEND_SWATCH) + fonts.legend_size * 0.4
