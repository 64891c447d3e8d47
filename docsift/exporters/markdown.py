"""Render a Document as Markdown."""

from __future__ import annotations

import json

from docsift.config.models import MarkdownOptions
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    ImageItem,
    TableItem,
)


class MarkdownExporter:
    """Stateless renderer; the same document and options give the same text."""

    def __init__(self, options: MarkdownOptions | None = None) -> None:
        self.options = options or MarkdownOptions()

    def export(self, document: Document) -> str:
        parts = []
        if self.options.include_metadata:
            parts.append(self._frontmatter(document.metadata))
        parts.append(self.export_content(document.content))
        return "\n\n".join(part for part in parts if part)

    def export_content(self, items: list[DocumentItem], level: int = 0) -> str:
        return "\n\n".join(self.export_item(item, level) for item in items)

    def export_item(self, item: DocumentItem, level: int = 0) -> str:
        kind = item.type
        if kind in (DocumentItemType.HEADING, DocumentItemType.TITLE):
            return self._heading(item)
        if kind in (DocumentItemType.PARAGRAPH, DocumentItemType.TEXT):
            return self._text(item)
        if kind is DocumentItemType.LIST:
            return self._list(item, level)
        if kind is DocumentItemType.LIST_ITEM:
            return f"{'  ' * level}{self.options.bullet_char} {item.text or ''}"
        if kind is DocumentItemType.TABLE:
            return self._table(item)
        if kind is DocumentItemType.CODE:
            return self._code(item)
        if kind is DocumentItemType.FORMULA:
            return f"$${item.text or ''}$$"
        if kind is DocumentItemType.IMAGE:
            return self._image(item)
        if kind is DocumentItemType.SECTION:
            return self.export_content(item.children, level) if item.children else ""
        return item.text or ""

    # ------------------------------------------------------------------
    # Item renderers
    # ------------------------------------------------------------------

    @staticmethod
    def _frontmatter(metadata: DocumentMetadata) -> str:
        lines = ["---"]
        for key, value in metadata.to_dict().items():
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
        lines.append("---")
        return "\n".join(lines)

    def _heading(self, item: DocumentItem) -> str:
        level = item.level or 1
        text = item.text or ""
        if self.options.heading_style == "setext" and level <= 2:
            underline = "=" if level == 1 else "-"
            return f"{text}\n{underline * len(text)}"
        return f"{'#' * level} {text}"

    def _text(self, item: DocumentItem) -> str:
        text = item.text or ""
        fmt = item.formatting
        if self.options.preserve_formatting and fmt is not None:
            # Markdown has no underline.
            if fmt.bold:
                text = f"**{text}**"
            if fmt.italic:
                text = f"*{text}*"
            if fmt.strikethrough:
                text = f"~~{text}~~"
        return text

    def _list(self, item: DocumentItem, level: int) -> str:
        ordered = bool(item.metadata and item.metadata.get("ordered") is True)
        indent = "  " * level
        lines = []
        for index, child in enumerate(item.children or []):
            prefix = f"{index + 1}." if ordered else self.options.bullet_char
            line = f"{indent}{prefix} {child.text or ''}"
            if child.children:
                line += "\n" + self.export_content(child.children, level + 1)
            lines.append(line)
        return "\n".join(lines)

    @staticmethod
    def _table(item: DocumentItem) -> str:
        rows = item.rows if isinstance(item, TableItem) else []
        if not rows:
            return ""
        width = item.num_cols

        def render(row):
            cells = [_cell_text(cell.text) for cell in row]
            cells += [""] * (width - len(cells))
            return f"| {' | '.join(cells)} |"

        # Only row position decides the header.
        lines = [render(rows[0]), f"| {' | '.join('---' for _ in range(width))} |"]
        lines.extend(render(row) for row in rows[1:])
        return "\n".join(lines)

    def _code(self, item: DocumentItem) -> str:
        code = item.text or ""
        if self.options.code_block_style == "fenced":
            return f"```\n{code}\n```"
        return "\n".join(f"    {line}" for line in code.split("\n"))

    @staticmethod
    def _image(item: DocumentItem) -> str:
        meta = item.metadata or {}
        alt = src = None
        if isinstance(item, ImageItem):
            alt, src = item.alt, item.src
        alt = alt or meta.get("alt") or item.text or ""
        src = src or meta.get("src") or ""
        return f"![{alt}]({src})"


def export_markdown(document: Document, options: MarkdownOptions | None = None) -> str:
    """Render ``document`` with a one-off exporter."""
    return MarkdownExporter(options).export(document)


def _cell_text(text: str | None) -> str:
    # A row must stay on one line.
    text = (text or "").replace("|", "\\|")
    return "<br>".join(text.splitlines())
