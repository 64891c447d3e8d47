"""Plain text, CSV and JSON backend."""

from __future__ import annotations

import csv
import io
import json
import re
from typing import Any

from docsift.backends.base import Backend, Source, read_source, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
    TableCell,
    TableItem,
)
from docsift.sniffer.sniffer import detect_from_content, extension_to_format

# JSON object keys worth surfacing as readable paragraphs.
_JSON_TEXT_FIELDS = ("title", "name", "description", "text", "content", "body")

_DEFAULT_NAMES = {
    InputFormat.CSV: "document.csv",
    InputFormat.JSON: "document.json",
    InputFormat.TEXT: "document.txt",
}


class PlainTextBackend(Backend):
    formats = frozenset({InputFormat.CSV, InputFormat.JSON, InputFormat.TEXT})

    def is_valid(self, source: Source) -> bool:
        try:
            return len(read_source(source)) > 0
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        data = read_source(source)
        text = read_text(data)
        fmt = self._resolve_format(source, filename, data)

        if fmt is InputFormat.CSV:
            content = self._parse_csv(text)
        elif fmt is InputFormat.JSON:
            content = self._parse_json(text)
        else:
            content = self._parse_text(text)

        name = resolve_filename(source, filename, _DEFAULT_NAMES[fmt])
        return Document(
            metadata=DocumentMetadata(filename=name, format=fmt, title=name),
            content=content,
        )

    @staticmethod
    def _resolve_format(source: Source, filename: str | None, data: bytes) -> InputFormat:
        for candidate in (filename, None if isinstance(source, bytes) else source):
            fmt = extension_to_format(candidate)
            if fmt in PlainTextBackend.formats:
                return fmt
        fmt = detect_from_content(data)
        return fmt if fmt in PlainTextBackend.formats else InputFormat.TEXT

    def _parse_text(self, text: str) -> list[DocumentItem]:
        if self.options.preserve_whitespace:
            blocks = [b for b in re.split(r"\n\s*\n", text) if b.strip()]
        else:
            blocks = [b.strip() for b in re.split(r"\n\s*\n", text) if b.strip()]
        return [DocumentItem(type=DocumentItemType.PARAGRAPH, text=b) for b in blocks]

    def _parse_csv(self, text: str) -> list[DocumentItem]:
        reader = csv.reader(io.StringIO(text))
        rows = [[cell.strip() for cell in row] for row in reader if any(c.strip() for c in row)]
        if not rows:
            return []

        width = max(len(row) for row in rows)
        table_rows = [
            [
                TableCell(text=row[j] if j < len(row) else "", is_header=i == 0)
                for j in range(width)
            ]
            for i, row in enumerate(rows)
        ]
        return [TableItem.from_rows(table_rows)]

    def _parse_json(self, text: str) -> list[DocumentItem]:
        try:
            data = json.loads(text)
        except ValueError:
            return [DocumentItem(type=DocumentItemType.PARAGRAPH, text=text)]

        items = [
            DocumentItem(
                type=DocumentItemType.CODE,
                text=json.dumps(data, indent=2, ensure_ascii=False),
                metadata={"language": "json"},
            )
        ]
        items.extend(self._json_fields(data))
        return items

    def _json_fields(self, data: Any) -> list[DocumentItem]:
        """Readable paragraphs for well-known text fields, depth-first."""
        if isinstance(data, list):
            items: list[DocumentItem] = []
            for element in data:
                if isinstance(element, (dict, list)):
                    items.extend(self._json_fields(element))
            return items
        if isinstance(data, dict):
            return [
                DocumentItem(
                    type=DocumentItemType.PARAGRAPH,
                    text=f"**{field}**: {data[field]}",
                )
                for field in _JSON_TEXT_FIELDS
                if isinstance(data.get(field), str) and data[field]
            ]
        return []
