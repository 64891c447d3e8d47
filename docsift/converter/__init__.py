"""Dispatcher and one-call conversion helpers."""

from docsift.converter.converter import (
    DocumentConverter,
    convert_document,
    convert_to_json,
    convert_to_markdown,
)

__all__ = [
    "DocumentConverter",
    "convert_document",
    "convert_to_json",
    "convert_to_markdown",
]
