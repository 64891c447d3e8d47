"""Markdown and JSON serializers."""

from docsift.exporters.json import export_content, export_json, export_to_dict, item_to_dict
from docsift.exporters.markdown import MarkdownExporter, export_markdown

__all__ = [
    "MarkdownExporter",
    "export_content",
    "export_json",
    "export_markdown",
    "export_to_dict",
    "item_to_dict",
]
