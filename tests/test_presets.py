"""Tests for layout presets and option resolution."""

from __future__ import annotations

import pytest
from reportlab.lib.pagesizes import A4, LETTER

from pagesmith.core.models import Margins, RenderOptions
from pagesmith.layout.presets import (
    COMPACT_PRESET,
    DEFAULT_PALETTE,
    DEFAULT_PRESET,
    ELEGANT_PRESET,
    FOOTER_RULE_GAP,
    STANDARD_PRESET,
    LayoutPreset,
    get_preset,
    list_presets,
    register_preset,
    resolve_settings,
)
from pagesmith.layout.surface import NATURAL_LEADING


class TestPresetRegistry:
    def test_builtin_presets(self):
        names = [p.name for p in list_presets()]
        for expected in ("standard", "compact", "elegant", "report"):
            assert expected in names

    def test_get_preset_case_insensitive(self):
        assert get_preset(" Elegant ") is ELEGANT_PRESET

    def test_unknown_preset_raises(self):
        with pytest.raises(KeyError, match="Available"):
            get_preset("brochure")

    def test_default_is_standard(self):
        assert DEFAULT_PRESET is STANDARD_PRESET

    def test_register_custom_preset(self):
        custom = LayoutPreset(name="test_wide", display_name="Wide")
        register_preset(custom)
        assert get_preset("test_wide") is custom

    def test_standard_values(self):
        p = STANDARD_PRESET
        assert p.page.margin_top == 72
        assert p.fonts.body_size == 12
        assert p.spacing.header_to_content == 30
        assert p.table.header_fill == (211, 211, 211)
        assert p.chart.palette == DEFAULT_PALETTE
        assert p.content_width == pytest.approx(A4[0] - 144)

    def test_elegant_justifies(self):
        assert ELEGANT_PRESET.paragraph_align == "justify"
        assert ELEGANT_PRESET.spacing.signature_rule is True


class TestResolveSettings:
    def test_no_options_is_default(self):
        assert resolve_settings() is DEFAULT_PRESET

    def test_default_name_used_without_preset_option(self):
        assert resolve_settings(RenderOptions(), default="compact").name == "compact"

    def test_option_preset_beats_default(self):
        assert resolve_settings(RenderOptions(preset="elegant"), default="compact").name == "elegant"

    def test_uniform_margin(self):
        s = resolve_settings(RenderOptions(margin=40))
        assert (s.page.margin_top, s.page.margin_bottom, s.page.margin_left, s.page.margin_right) == (40, 40, 40, 40)

    def test_sides_override_uniform_margin(self):
        s = resolve_settings(RenderOptions(margin=40, margins=Margins(left=90)))
        assert s.page.margin_left == 90
        assert s.page.margin_top == 40

    def test_font_overrides(self):
        s = resolve_settings(RenderOptions(font_family="Times-Roman", font_size=10, line_height=1.2))
        assert s.fonts.family == "Times-Roman"
        assert s.fonts.body_size == 10
        assert s.fonts.line_height == 1.2
        # Untouched fields keep the preset's values
        assert s.fonts.company_size == STANDARD_PRESET.fonts.company_size

    def test_page_size_letter(self):
        s = resolve_settings(RenderOptions(page_size="LETTER"))
        assert (s.page_width, s.page_height) == LETTER

    def test_logo_box_and_footer_style(self):
        s = resolve_settings(RenderOptions(logo_max_width=90, logo_max_height=30, footer_style="inline"))
        assert (s.logo_max_width, s.logo_max_height) == (90, 30)
        assert s.footer_style == "inline"

    def test_footer_stays_inside_small_bottom_margin(self):
        s = resolve_settings(RenderOptions(margins=Margins(bottom=30)))
        assert s.page.footer_offset < s.page.margin_bottom

    def test_tiny_bottom_margin_grows_to_hold_footer(self):
        s = resolve_settings(RenderOptions(margin=10))
        text_height = s.fonts.footer_size * NATURAL_LEADING
        assert s.page.margin_bottom == pytest.approx(text_height + FOOTER_RULE_GAP)
        assert s.page.footer_offset >= text_height
        assert s.page.margin_top == 10

    def test_presets_are_not_mutated(self):
        resolve_settings(RenderOptions(preset="compact", margin=5))
        assert COMPACT_PRESET.page.margin_top == 30
