"""Pydantic models for the unified document tree."""

from __future__ import annotations

import base64
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class InputFormat(str, Enum):
    """Input formats the converter can recognize."""

    PDF = "pdf"
    DOCX = "docx"
    PPTX = "pptx"
    XLSX = "xlsx"
    HTML = "html"
    VTT = "vtt"
    SRT = "srt"
    IMAGE = "image"
    CSV = "csv"
    JSON = "json"
    TEXT = "text"
    XML = "xml"
    RSS = "rss"
    ATOM = "atom"
    ZIP = "zip"
    YOUTUBE = "youtube"
    BING_SERP = "bing_serp"
    IPYNB = "ipynb"


class DocumentItemType(str, Enum):
    """Kinds of node in a document's content tree."""

    TEXT = "text"
    TITLE = "title"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    LIST_ITEM = "list_item"
    TABLE = "table"
    TABLE_CELL = "table_cell"
    IMAGE = "image"
    CODE = "code"
    FORMULA = "formula"
    CAPTION = "caption"
    SECTION = "section"
    SUBTITLE = "subtitle"


class ConversionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL_SUCCESS = "partial_success"


class Formatting(BaseModel):
    """Inline character formatting flags."""

    model_config = _MODEL_CONFIG

    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strikethrough: bool | None = None


class TableCell(BaseModel):
    """One table cell; the header flag is per cell, not per row."""

    model_config = _MODEL_CONFIG

    text: str = ""
    row_span: int | None = Field(default=None, ge=1)
    col_span: int | None = Field(default=None, ge=1)
    is_header: bool | None = None


class DocumentItem(BaseModel):
    """A node in the content tree.

    Lists and sections carry their children in ``children``; every other
    kind is a leaf. Items are immutable, so a subtree can never be
    re-parented by mutation.
    """

    model_config = _MODEL_CONFIG

    type: DocumentItemType
    text: str | None = None
    level: int | None = Field(default=None, ge=1)
    formatting: Formatting | None = None
    children: list[AnyItem] | None = None
    metadata: dict[str, Any] | None = None


class TableItem(DocumentItem):
    """A table with redundant, validated dimensions."""

    type: DocumentItemType = DocumentItemType.TABLE
    rows: list[list[TableCell]] = Field(default_factory=list)
    num_rows: int = Field(default=0, ge=0)
    num_cols: int = Field(default=0, ge=0)

    @field_validator("type")
    @classmethod
    def _check_type(cls, value: DocumentItemType) -> DocumentItemType:
        if value is not DocumentItemType.TABLE:
            raise ValueError(f"expected type table, got {value.value}")
        return value

    @model_validator(mode="after")
    def _check_dimensions(self) -> TableItem:
        expected_cols = max((len(row) for row in self.rows), default=0)
        if self.num_rows != len(self.rows):
            raise ValueError(
                f"num_rows={self.num_rows} does not match {len(self.rows)} rows"
            )
        if self.num_cols != expected_cols:
            raise ValueError(
                f"num_cols={self.num_cols} does not match widest row ({expected_cols})"
            )
        return self

    @classmethod
    def from_rows(cls, rows: list[list[TableCell]], **kwargs: Any) -> TableItem:
        """Build a table, deriving num_rows/num_cols from ``rows``."""
        return cls(
            rows=rows,
            num_rows=len(rows),
            num_cols=max((len(row) for row in rows), default=0),
            **kwargs,
        )


class ImageItem(DocumentItem):
    type: DocumentItemType = DocumentItemType.IMAGE
    src: str | None = None
    alt: str | None = None
    width: int | None = None
    height: int | None = None
    data: bytes | None = None

    @field_validator("type")
    @classmethod
    def _check_type(cls, value: DocumentItemType) -> DocumentItemType:
        if value is not DocumentItemType.IMAGE:
            raise ValueError(f"expected type image, got {value.value}")
        return value

    @field_serializer("data", when_used="json-unless-none")
    def _serialize_data(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")


# Table and image items are tried first so their extra fields survive
# validation from plain dicts.
AnyItem = Annotated[
    Union[TableItem, ImageItem, DocumentItem],
    Field(union_mode="left_to_right"),
]

DocumentItem.model_rebuild()
TableItem.model_rebuild()
ImageItem.model_rebuild()

MetadataValue = Union[str, int, float, bool, None]


class DocumentMetadata(BaseModel):
    """Known metadata fields plus a format-specific extension mapping."""

    model_config = _MODEL_CONFIG

    filename: str = Field(min_length=1)
    format: InputFormat
    title: str | None = None
    author: str | None = None
    page_count: int | None = Field(default=None, ge=0)
    creation_date: datetime | None = None
    modification_date: datetime | None = None
    extra: dict[str, MetadataValue] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flatten known fields and ``extra`` into one JSON-ready mapping.

        Known fields win over extension keys of the same name.
        """
        known = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"extra"}
        )
        flat = {k: v for k, v in self.extra.items() if v is not None}
        flat.update(known)
        return flat


class Document(BaseModel):
    """Structural representation of one converted source."""

    model_config = _MODEL_CONFIG

    metadata: DocumentMetadata
    content: list[AnyItem] = Field(default_factory=list)


class ConversionResult(BaseModel):
    """Outcome of a single ``convert`` call."""

    model_config = _MODEL_CONFIG

    status: ConversionStatus
    document: Document | None = None
    json_content: list[AnyItem] | None = None
    markdown_content: str | None = None
    errors: list[str] | None = None
    warnings: list[str] | None = None

    @property
    def ok(self) -> bool:
        return self.status is ConversionStatus.SUCCESS

    @classmethod
    def success(
        cls,
        document: Document,
        markdown_content: str,
        warnings: list[str] | None = None,
    ) -> ConversionResult:
        return cls(
            status=ConversionStatus.SUCCESS,
            document=document,
            json_content=document.content,
            markdown_content=markdown_content,
            warnings=warnings or None,
        )

    @classmethod
    def failure(
        cls, errors: list[str], warnings: list[str] | None = None
    ) -> ConversionResult:
        return cls(
            status=ConversionStatus.FAILURE,
            errors=errors,
            warnings=warnings or None,
        )
