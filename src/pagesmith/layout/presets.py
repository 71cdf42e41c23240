"""Named layout presets and option resolution.

A preset bundles page geometry, fonts, spacing, table styling and chart
defaults. Every render starts from one preset and applies the call-site
``RenderOptions`` on top (call-site values win).

Usage::

    from pagesmith.layout.presets import get_preset, resolve_settings

    settings = resolve_settings(RenderOptions(preset="elegant", font_size=11))
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from reportlab.lib.pagesizes import A4, LETTER

from .surface import NATURAL_LEADING

if TYPE_CHECKING:
    from ..core.models import RenderOptions

RGB = tuple[int, int, int]

_PAGE_SIZES: dict[str, tuple[float, float]] = {"A4": A4, "LETTER": LETTER}

#: gap between the footer rule and the top of the footer text
FOOTER_RULE_GAP = 6

DEFAULT_PALETTE: tuple[str, ...] = (
    "#4F81BD",  # blue
    "#C0504D",  # red
    "#9BBB59",  # green
    "#8064A2",  # purple
    "#F79646",  # orange
    "#4BACC6",  # cyan
    "#A9A9A9",
    "#7F7F7F",
    "#B3B3B3",
    "#595959",
)


# ---------------------------------------------------------------------------
# Preset dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageSetup:
    """Page size, margins and furniture offsets, in points."""

    size: str = "A4"
    margin_top: float = 72
    margin_bottom: float = 72
    margin_left: float = 72
    margin_right: float = 72
    #: distance from the bottom page edge to the top of the footer text
    footer_offset: float = 40
    max_pages: int = 1000

    @property
    def dimensions(self) -> tuple[float, float]:
        return _PAGE_SIZES[self.size.upper()]


@dataclass(frozen=True)
class FontSetup:
    family: str = "Helvetica"
    body_size: float = 12
    line_height: float = 1.5
    company_size: float = 16
    signature_size: float = 12
    designation_size: float = 10
    table_heading_size: float = 14
    table_header_size: float = 12
    table_cell_size: float = 11
    chart_title_size: float = 14
    chart_label_size: float = 8
    legend_size: float = 9
    footer_size: float = 10


@dataclass(frozen=True)
class Spacing:
    header_to_content: float = 30
    paragraph: float = 12
    signature_before: float = 24
    designation_gap: float = 3
    signature_column: float = 200
    paragraph_to_table: float = 20
    table_to_table: float = 30
    table_heading_gap: float = 10
    chart: float = 20
    signature_rule: bool = False


@dataclass(frozen=True)
class TablePalette:
    header_fill: RGB = (211, 211, 211)
    header_text: RGB = (0, 0, 0)
    row_fills: tuple[RGB, ...] = ((255, 255, 255), (245, 245, 245))
    alternate_rows: bool = True
    border: RGB = (0, 0, 0)
    border_width: float = 0.5
    padding_top: float = 5
    padding_right: float = 8
    padding_bottom: float = 5
    padding_left: float = 8


@dataclass(frozen=True)
class ChartSetup:
    #: default chart width as a share of the content width
    bar_width_ratio: float = 0.9
    bar_height: float = 300
    pie_height: float = 250
    #: left gutter for the bar value scale
    scale_gutter: float = 40
    pie_width_ratio: float = 0.7
    #: polyline points per full turn when approximating pie arcs
    arc_resolution: int = 72
    scale_steps: int = 5
    label_area: float = 20
    palette: tuple[str, ...] = DEFAULT_PALETTE


@dataclass(frozen=True)
class PresetColors:
    text: RGB = (0, 0, 0)
    company: RGB = (33, 33, 33)
    muted: RGB = (102, 102, 102)
    rule: RGB = (204, 204, 204)
    axis: RGB = (0, 0, 0)
    grid: RGB = (204, 204, 204)
    wedge_label: RGB = (255, 255, 255)


@dataclass(frozen=True)
class LayoutPreset:
    """Complete layout configuration for one render."""

    name: str = "standard"
    display_name: str = "Standard"
    description: str = "One-inch margins and roomy line spacing for letters and reports."
    page: PageSetup = field(default_factory=PageSetup)
    fonts: FontSetup = field(default_factory=FontSetup)
    spacing: Spacing = field(default_factory=Spacing)
    table: TablePalette = field(default_factory=TablePalette)
    chart: ChartSetup = field(default_factory=ChartSetup)
    colors: PresetColors = field(default_factory=PresetColors)
    paragraph_align: str = "left"
    footer_style: str = "split"
    logo_max_width: float = 150
    logo_max_height: float = 50

    @property
    def page_width(self) -> float:
        return self.page.dimensions[0]

    @property
    def page_height(self) -> float:
        return self.page.dimensions[1]

    @property
    def content_width(self) -> float:
        return self.page_width - self.page.margin_left - self.page.margin_right


# ---------------------------------------------------------------------------
# Built-in presets
# ---------------------------------------------------------------------------

STANDARD_PRESET = LayoutPreset()

COMPACT_PRESET = LayoutPreset(
    name="compact",
    display_name="Compact",
    description="Tight margins and spacing to keep short documents on one page.",
    page=PageSetup(margin_top=30, margin_bottom=50, margin_left=50, margin_right=50, footer_offset=30),
    fonts=FontSetup(
        body_size=11,
        line_height=1.15,
        company_size=14,
        table_heading_size=12,
        table_header_size=10,
        table_cell_size=10,
        footer_size=8,
    ),
    spacing=Spacing(
        header_to_content=15,
        paragraph=4,
        signature_before=10,
        paragraph_to_table=12,
        table_to_table=20,
        table_heading_gap=6,
        chart=12,
    ),
    logo_max_width=80,
    logo_max_height=55,
)

ELEGANT_PRESET = LayoutPreset(
    name="elegant",
    display_name="Elegant",
    description="Generous whitespace, justified text and a ruled signature block.",
    page=PageSetup(margin_top=60, margin_bottom=60, margin_left=60, margin_right=60, footer_offset=36),
    fonts=FontSetup(line_height=1.35, footer_size=9),
    spacing=Spacing(
        header_to_content=40,
        paragraph=20,
        signature_before=60,
        signature_column=150,
        signature_rule=True,
    ),
    colors=PresetColors(company=(20, 20, 20), muted=(90, 90, 90)),
    paragraph_align="justify",
    logo_max_width=60,
    logo_max_height=40,
)

REPORT_PRESET = LayoutPreset(
    name="report",
    display_name="Report",
    description="Data-heavy layout for documents with many tables and charts.",
    page=PageSetup(margin_top=50, margin_bottom=50, margin_left=50, margin_right=50, footer_offset=30),
    fonts=FontSetup(body_size=11, line_height=1.3, table_cell_size=10, footer_size=9),
    spacing=Spacing(header_to_content=24, paragraph=8, table_to_table=30, chart=20),
    logo_max_width=100,
    logo_max_height=50,
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_PRESET_REGISTRY: dict[str, LayoutPreset] = {
    p.name: p for p in [STANDARD_PRESET, COMPACT_PRESET, ELEGANT_PRESET, REPORT_PRESET]
}


def get_preset(name: str) -> LayoutPreset:
    """Get a preset by name. Raises ``KeyError`` if not found."""
    key = name.lower().strip()
    if key not in _PRESET_REGISTRY:
        available = ", ".join(sorted(_PRESET_REGISTRY.keys()))
        raise KeyError(f"Unknown preset '{name}'. Available: {available}")
    return _PRESET_REGISTRY[key]


def list_presets() -> list[LayoutPreset]:
    """Return all registered presets."""
    return list(_PRESET_REGISTRY.values())


def register_preset(preset: LayoutPreset) -> None:
    """Register a custom preset at runtime."""
    _PRESET_REGISTRY[preset.name.lower().strip()] = preset


DEFAULT_PRESET = STANDARD_PRESET


# ---------------------------------------------------------------------------
# Option resolution
# ---------------------------------------------------------------------------

def resolve_settings(options: "RenderOptions | None" = None, default: str | None = None) -> LayoutPreset:
    """Apply call-site options over a preset.

    Precedence: explicit ``margins`` sides > uniform ``margin`` > preset.
    The preset is ``options.preset``, else *default*, else ``standard``.
    """
    if options is None:
        return get_preset(default) if default else DEFAULT_PRESET

    preset_name = options.preset or default
    base = get_preset(preset_name) if preset_name else DEFAULT_PRESET

    page = base.page
    if options.margin is not None:
        page = replace(
            page,
            margin_top=options.margin,
            margin_bottom=options.margin,
            margin_left=options.margin,
            margin_right=options.margin,
        )
    if options.margins is not None:
        sides = {
            f"margin_{side}": value
            for side, value in options.margins.model_dump().items()
            if value is not None
        }
        page = replace(page, **sides)
    if options.page_size is not None:
        page = replace(page, size=options.page_size.value)
    if options.max_pages is not None:
        page = replace(page, max_pages=options.max_pages)

    fonts = base.fonts
    font_overrides = {
        "family": options.font_family,
        "body_size": options.font_size,
        "line_height": options.line_height,
    }
    fonts = replace(fonts, **{k: v for k, v in font_overrides.items() if v is not None})
    page = _fit_footer(page, fonts)

    overrides: dict = {"page": page, "fonts": fonts}
    if options.logo_max_width is not None:
        overrides["logo_max_width"] = options.logo_max_width
    if options.logo_max_height is not None:
        overrides["logo_max_height"] = options.logo_max_height
    if options.footer_style is not None:
        overrides["footer_style"] = options.footer_style.value
    return replace(base, **overrides)


def _fit_footer(page: PageSetup, fonts: FontSetup) -> PageSetup:
    """Keep the footer rule and text inside the bottom margin and on the page.

    A margin too small to hold the footer grows until it can, which raises
    the bottom bound of the content box.
    """
    text_height = fonts.footer_size * NATURAL_LEADING
    margin_bottom = max(page.margin_bottom, text_height + FOOTER_RULE_GAP)
    offset = page.footer_offset
    if offset >= margin_bottom:
        offset = margin_bottom * 0.6
    offset = max(min(offset, margin_bottom - FOOTER_RULE_GAP), text_height)
    return replace(page, margin_bottom=margin_bottom, footer_offset=offset)
