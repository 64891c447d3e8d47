"""docsift: convert office documents, web pages, feeds and media into one
structured document model, with Markdown and JSON output."""

from docsift.backends import Backend, ConversionError, MissingDependencyError
from docsift.config import BackendOptions, ConverterConfig, MarkdownOptions, load_config
from docsift.converter import (
    DocumentConverter,
    convert_document,
    convert_to_json,
    convert_to_markdown,
)
from docsift.document import (
    ConversionResult,
    ConversionStatus,
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)
from docsift.exporters import MarkdownExporter, export_json, export_markdown

__version__ = "0.1.0"

__all__ = [
    "Backend",
    "BackendOptions",
    "ConversionError",
    "ConversionResult",
    "ConversionStatus",
    "ConverterConfig",
    "Document",
    "DocumentConverter",
    "DocumentItem",
    "DocumentItemType",
    "DocumentMetadata",
    "InputFormat",
    "MarkdownExporter",
    "MarkdownOptions",
    "MissingDependencyError",
    "convert_document",
    "convert_to_json",
    "convert_to_markdown",
    "export_json",
    "export_markdown",
    "load_config",
]
