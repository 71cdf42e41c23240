"""Per-page header and the footer stamping pass.

The header is drawn while the page is opened, so its height is known
before any content is placed. Footers need the final page count and are
stamped afterwards by revisiting every page.
"""

from __future__ import annotations

import logging
from datetime import date

from ..core.fetcher import LogoAsset
from .presets import FOOTER_RULE_GAP, LayoutPreset
from .surface import DrawingSurface, bold_variant

logger = logging.getLogger(__name__)

# Horizontal gap between the logo and the company name
_LOGO_GAP = 10


def format_footer_date(value: date) -> str:
    """US long form, e.g. ``October 17, 2026``."""
    return f"{value:%B} {value.day}, {value.year}"


def page_label(number: int, total: int) -> str:
    return f"Page {number} of {total}"


class HeaderFooterManager:
    """Draws the logo/company header and stamps ``Page i of N`` footers."""

    def __init__(
        self,
        settings: LayoutPreset,
        company_name: str = "",
        logo: LogoAsset | None = None,
        footer_date: date | None = None,
    ) -> None:
        self.settings = settings
        self.company_name = company_name.strip()
        self.logo = logo
        self.footer_date = footer_date or date.today()

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    @property
    def _name_font(self) -> str:
        return bold_variant(self.settings.fonts.family)

    def _name_width(self) -> float:
        width = self.settings.content_width
        if self.logo is not None:
            width -= self.logo.scaled_width + _LOGO_GAP
        return max(width, 1.0)

    def _name_height(self, surface: DrawingSurface) -> float:
        if not self.company_name:
            return 0.0
        surface.set_font(self._name_font, self.settings.fonts.company_size)
        return surface.measure_text_height(self.company_name, self._name_width())

    def header_height(self, surface: DrawingSurface) -> float:
        logo_height = self.logo.scaled_height if self.logo is not None else 0.0
        return max(logo_height, self._name_height(surface))

    def draw_header(self, surface: DrawingSurface) -> float:
        """Draw the header on the current page; return the y below it."""
        page = self.settings.page
        top = page.margin_top
        height = self.header_height(surface)

        if self.logo is not None:
            surface.draw_image(
                self.logo.data,
                page.margin_left,
                top + (height - self.logo.scaled_height) / 2,
                self.logo.scaled_width,
                self.logo.scaled_height,
            )

        if self.company_name:
            name_height = self._name_height(surface)
            surface.draw_text(
                self.company_name,
                page.margin_left + self.settings.content_width - self._name_width(),
                top + (height - name_height) / 2,
                width=self._name_width(),
                align="right",
                color=self.settings.colors.company,
            )
        return top + height

    # ------------------------------------------------------------------
    # Footer
    # ------------------------------------------------------------------

    def stamp_footers(self, surface: DrawingSurface) -> int:
        """Stamp every page with the date and its page label; return N."""
        total = surface.page_count
        for index in range(total):
            surface.switch_to_page(index)
            self._draw_footer(surface, index + 1, total)
        logger.debug("Stamped footers on %d page(s)", total)
        return total

    def _draw_footer(self, surface: DrawingSurface, number: int, total: int) -> None:
        s = self.settings
        left = s.page.margin_left
        width = s.content_width
        y = s.page_height - s.page.footer_offset
        when = format_footer_date(self.footer_date)
        label = page_label(number, total)

        surface.draw_line(left, y - FOOTER_RULE_GAP, left + width, y - FOOTER_RULE_GAP, color=s.colors.rule, width=0.5)
        surface.set_font(s.fonts.family, s.fonts.footer_size)
        if s.footer_style == "inline":
            surface.draw_text(f"{when} | {label}", left, y, width=width, align="center", color=s.colors.muted)
        else:
            surface.draw_text(when, left, y, width=width, align="left", color=s.colors.muted)
            surface.draw_text(label, left, y, width=width, align="right", color=s.colors.muted)
