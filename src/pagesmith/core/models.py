"""Pydantic models for the document request and render result.

A ``DocumentRequest`` is the intermediate representation every render
consumes: ordered content blocks, optional tables and charts, and the
call-site options. The layout engine never sees raw dictionaries.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Iterable, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .errors import RenderStage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Kinds of flowing content block."""
    PARAGRAPH = "paragraph"
    SIGNATURE = "signature"
    DESIGNATION = "designation"


class TextAlign(str, Enum):
    LEFT = "left"
    JUSTIFY = "justify"


class ChartType(str, Enum):
    BAR = "bar"
    PIE = "pie"


class PageSize(str, Enum):
    A4 = "A4"
    LETTER = "LETTER"


class FooterStyle(str, Enum):
    """``split`` puts the date left and the page label right; ``inline``
    centres ``date | Page i of N`` on one line."""
    SPLIT = "split"
    INLINE = "inline"


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------

class TextStyle(BaseModel):
    """Per-paragraph style overrides. ``None`` fields use the preset."""
    align: Optional[TextAlign] = None
    font_size: Optional[float] = Field(default=None, gt=0)
    bold: bool = False


class ParagraphBlock(BaseModel):
    """A paragraph of plain text."""
    type: Literal["paragraph"] = "paragraph"
    text: str
    style: TextStyle = Field(default_factory=TextStyle)


class SignatureBlock(BaseModel):
    """A signatory name, drawn right-aligned in bold."""
    type: Literal["signature"] = "signature"
    name: str


class DesignationBlock(BaseModel):
    """A job title, usually following a signature."""
    type: Literal["designation"] = "designation"
    title: str


ContentBlock = Annotated[
    Union[ParagraphBlock, SignatureBlock, DesignationBlock],
    Field(discriminator="type"),
]


def block_text(block: ParagraphBlock | SignatureBlock | DesignationBlock) -> str:
    """Return the drawable text of a content block."""
    if isinstance(block, ParagraphBlock):
        return block.text
    if isinstance(block, SignatureBlock):
        return block.name
    if isinstance(block, DesignationBlock):
        return block.title
    raise TypeError(f"Unknown content block: {type(block).__name__}")


def is_blank(text: str | None) -> bool:
    return text is None or not str(text).strip()


def filter_blank_blocks(blocks: Iterable) -> list:
    """Drop blocks whose text is empty or whitespace-only."""
    return [b for b in blocks if not is_blank(block_text(b))]


def paragraphs_from_strings(
    texts: Iterable[str | None],
    style: TextStyle | None = None,
) -> list[ParagraphBlock]:
    """Build paragraph blocks from raw strings, skipping blank entries."""
    return [
        ParagraphBlock(text=t, style=style or TextStyle())
        for t in texts
        if not is_blank(t)
    ]


def _coerce_block(item: Any) -> Any:
    """Accept shorthand block forms.

    ``"text"`` becomes a paragraph and ``{"attributeType": ..., "content":
    ...}`` items map onto the matching block type.
    """
    if item is None:
        return {"type": BlockType.PARAGRAPH.value, "text": ""}
    if isinstance(item, str):
        return {"type": BlockType.PARAGRAPH.value, "text": item}
    if isinstance(item, dict) and "attributeType" in item:
        kind = item["attributeType"]
        content = item.get("content") or ""
        field = {"paragraph": "text", "signature": "name", "designation": "title"}.get(kind)
        if field is None:
            return item
        return {"type": kind, field: content}
    return item


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

class TableSpec(BaseModel):
    """A heading plus rows keyed by column name.

    Columns come from the first row's keys, in order. Later rows are
    rendered against that column set: missing keys become empty cells and
    extra keys are ignored.
    """
    heading: str = Field(default="", validation_alias=AliasChoices("heading", "tableHeading", "title"))
    rows: list[dict[str, Any]] = Field(
        default_factory=list, validation_alias=AliasChoices("rows", "items")
    )
    widths: Optional[list[float]] = None

    @property
    def columns(self) -> list[str]:
        return list(self.rows[0].keys()) if self.rows else []

    @staticmethod
    def cell_text(row: dict[str, Any], column: str) -> str:
        value = row.get(column)
        return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------

class _ChartBase(BaseModel):
    title: Optional[str] = None
    labels: list[str] = Field(default_factory=list)
    data: list[float] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)


class BarChartSpec(_ChartBase):
    type: Literal["bar"] = "bar"


class PieChartSpec(_ChartBase):
    type: Literal["pie"] = "pie"


ChartSpec = Annotated[Union[BarChartSpec, PieChartSpec], Field(discriminator="type")]

_CHART_ADAPTER: TypeAdapter = TypeAdapter(ChartSpec)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class Margins(BaseModel):
    top: Optional[float] = Field(default=None, ge=0)
    bottom: Optional[float] = Field(default=None, ge=0)
    left: Optional[float] = Field(default=None, ge=0)
    right: Optional[float] = Field(default=None, ge=0)


class RenderOptions(BaseModel):
    """Call-site options. Every field left as ``None`` falls back to the
    selected preset (see :func:`pagesmith.layout.presets.resolve_settings`).

    Field names accept both ``snake_case`` and ``camelCase``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preset: Optional[str] = None
    margin: Optional[float] = Field(default=None, ge=0)
    margins: Optional[Margins] = None
    font_family: Optional[str] = None
    font_size: Optional[float] = Field(default=None, gt=0)
    line_height: Optional[float] = Field(default=None, gt=0)
    logo_max_width: Optional[float] = Field(default=None, gt=0)
    logo_max_height: Optional[float] = Field(default=None, gt=0)
    output_path: Optional[Path] = None
    page_size: Optional[PageSize] = None
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    footer_date: Optional[date] = None
    footer_style: Optional[FooterStyle] = None
    max_pages: Optional[int] = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class DocumentRequest(BaseModel):
    """Everything one render call needs."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    company_name: str = ""
    logo: Optional[str] = Field(default=None, validation_alias=AliasChoices("logo", "logoUrl", "logo_url"))
    content: list[ContentBlock] = Field(default_factory=list)
    tables: list[TableSpec] = Field(default_factory=list)
    charts: list[ChartSpec] = Field(default_factory=list)
    options: RenderOptions = Field(default_factory=RenderOptions)

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        if value is None:
            return []
        return [_coerce_block(item) for item in value]

    @field_validator("content", mode="after")
    @classmethod
    def _drop_blank_content(cls, value: list) -> list:
        return filter_blank_blocks(value)

    @field_validator("tables", "charts", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (dict, BaseModel)):
            return [value]
        return value

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DocumentRequest":
        """Build a request from loosely-typed input.

        Tables and charts are validated one at a time; an entry that fails
        validation is logged and dropped instead of rejecting the request.
        """
        data = dict(payload)
        tables = _parse_each(data.pop("tables", None), TableSpec.model_validate, "table")
        charts = _parse_each(data.pop("charts", None), _CHART_ADAPTER.validate_python, "chart")
        request = cls.model_validate(data)
        return request.model_copy(update={"tables": tables, "charts": charts})

    def flow_items(self) -> list:
        """Content blocks, then tables, then charts, in render order."""
        return [*self.content, *self.tables, *self.charts]


def _parse_each(value: Any, parse, label: str) -> list:
    if value is None:
        return []
    if isinstance(value, dict):
        value = [value]
    parsed = []
    for index, item in enumerate(value):
        try:
            parsed.append(parse(item))
        except ValidationError as exc:
            logger.warning("Skipping %s #%d: %s", label, index + 1, exc.errors()[0].get("msg", exc))
    return parsed


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class RenderFailure(BaseModel):
    """Why a render failed and at which stage."""
    stage: RenderStage
    kind: str
    message: str


class RenderResult(BaseModel):
    """Outcome of one render: PDF bytes or a written path, or a failure."""
    success: bool = True
    data: Optional[bytes] = None
    output_path: Optional[Path] = None
    page_count: int = 0
    warnings: list[str] = Field(default_factory=list)
    error: Optional[RenderFailure] = None

    @property
    def ok(self) -> bool:
        return self.success and self.error is None

    @classmethod
    def failure(cls, stage: RenderStage, kind: str, message: str) -> "RenderResult":
        return cls(success=False, error=RenderFailure(stage=stage, kind=kind, message=message))
