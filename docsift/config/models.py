from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docsift.document.models import InputFormat


class PageRange(BaseModel):
    """1-based, inclusive page window."""

    start: int = Field(default=1, ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "PageRange":
        if self.end < self.start:
            raise ValueError(f"page range end ({self.end}) precedes start ({self.start})")
        return self


class BackendOptions(BaseModel):
    """Options shared by all backends; each backend reads only what it needs."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    extract_images: bool = True
    extract_tables: bool = True
    extract_formatting: bool = True
    ocr_languages: str = "eng"
    page_range: PageRange | None = None
    base_url: str | None = None
    preserve_whitespace: bool = False
    enable_transcript: bool = False
    transcript_language: str = "en"
    url: str | None = None


class MarkdownOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    include_metadata: bool = True
    heading_style: Literal["atx", "setext"] = "atx"
    bullet_char: Literal["-", "*", "+"] = "-"
    code_block_style: Literal["fenced", "indented"] = "fenced"
    preserve_formatting: bool = True


class ArchiveConfig(BaseModel):
    max_depth: int = Field(default=5, ge=0)
    max_total_bytes: int = Field(default=100 * 1024 * 1024, gt=0)
    inline_text_limit: int = Field(default=10_000, gt=0)
    preview_chars: int = Field(default=1_000, gt=0)
    text_extensions: list[str] = Field(default_factory=lambda: [
        ".txt", ".md", ".json", ".xml", ".csv", ".html", ".css", ".js", ".ts",
        ".py", ".yaml", ".yml",
    ])


class ConverterConfig(BaseModel):
    allowed_formats: list[InputFormat] | None = None
    default_options: BackendOptions = Field(default_factory=BackendOptions)
    markdown: MarkdownOptions = Field(default_factory=MarkdownOptions)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
