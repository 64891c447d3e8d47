"""Unified document model shared by every backend and exporter."""

from docsift.document.models import (
    AnyItem,
    ConversionResult,
    ConversionStatus,
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    Formatting,
    ImageItem,
    InputFormat,
    TableCell,
    TableItem,
)

__all__ = [
    "AnyItem",
    "ConversionResult",
    "ConversionStatus",
    "Document",
    "DocumentItem",
    "DocumentItemType",
    "DocumentMetadata",
    "Formatting",
    "ImageItem",
    "InputFormat",
    "TableCell",
    "TableItem",
]
