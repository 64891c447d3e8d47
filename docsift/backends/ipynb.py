"""Jupyter notebook backend."""

from __future__ import annotations

import json
import re
from typing import Any

from docsift.backends.base import Backend, ConversionError, Source, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
_FIRST_H1 = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def _joined(value: Any) -> str:
    """Notebook text fields are either a string or a list of lines."""
    if isinstance(value, list):
        return "".join(str(v) for v in value)
    return "" if value is None else str(value)


def markdown_cell_items(markdown: str) -> list[DocumentItem]:
    items: list[DocumentItem] = []
    paragraph: list[str] = []

    def flush() -> None:
        text = "\n".join(paragraph).strip()
        if text:
            items.append(DocumentItem(type=DocumentItemType.PARAGRAPH, text=text))
        paragraph.clear()

    for line in markdown.split("\n"):
        heading = _HEADING.match(line)
        if heading:
            flush()
            level = len(heading.group(1))
            items.append(DocumentItem(
                type=DocumentItemType.TITLE if level == 1 else DocumentItemType.HEADING,
                text=heading.group(2).strip(),
                level=level,
            ))
        elif not line.strip():
            flush()
        else:
            paragraph.append(line)
    flush()
    return items


def output_text(outputs: list[dict[str, Any]]) -> str:
    parts: list[str] = []
    for output in outputs:
        kind = output.get("output_type")
        if kind == "stream":
            text = _joined(output.get("text"))
            if text:
                parts.append(text)
        elif kind in ("execute_result", "display_data"):
            data = output.get("data") or {}
            if "text/plain" in data:
                parts.append(_joined(data["text/plain"]))
            elif "text/html" in data:
                parts.append("[HTML output]")
            elif "image/png" in data:
                parts.append("[Image output: PNG]")
            elif "image/jpeg" in data:
                parts.append("[Image output: JPEG]")
        elif kind == "error":
            parts.append(f"**Error:** {output.get('ename') or 'Error'}: {output.get('evalue') or ''}")
    return "\n\n".join(parts).strip()


class IpynbBackend(Backend):
    formats = frozenset({InputFormat.IPYNB})

    def is_valid(self, source: Source) -> bool:
        try:
            data = json.loads(read_text(source))
        except (OSError, ValueError):
            return False
        return (
            isinstance(data, dict)
            and isinstance(data.get("cells"), list)
            and ("nbformat" in data or "metadata" in data)
        )

    def convert(self, source: Source, filename: str | None = None) -> Document:
        try:
            notebook = json.loads(read_text(source))
        except ValueError as exc:
            raise ConversionError(InputFormat.IPYNB, f"Invalid notebook JSON: {exc}") from exc

        nb_meta = notebook.get("metadata") or {}
        language = (
            (nb_meta.get("kernelspec") or {}).get("language")
            or (nb_meta.get("language_info") or {}).get("name")
            or "python"
        )
        title = nb_meta.get("title")
        content: list[DocumentItem] = []

        for cell in notebook.get("cells") or []:
            cell_type = cell.get("cell_type")
            text = _joined(cell.get("source"))
            if cell_type == "markdown":
                content.extend(markdown_cell_items(text))
                if not title:
                    match = _FIRST_H1.search(text)
                    if match:
                        title = match.group(1).strip()
            elif cell_type == "code":
                content.append(DocumentItem(
                    type=DocumentItemType.CODE,
                    text=text.strip(),
                    metadata={"language": language, "execution_count": cell.get("execution_count")},
                ))
                rendered = output_text(cell.get("outputs") or [])
                if rendered:
                    content.append(DocumentItem(
                        type=DocumentItemType.PARAGRAPH,
                        text=f"**Output:**\n{rendered}",
                        metadata={"is_output": True},
                    ))
            elif cell_type == "raw":
                content.append(DocumentItem(
                    type=DocumentItemType.CODE,
                    text=text.strip(),
                    metadata={"language": "text", "cell_type": "raw"},
                ))

        authors = nb_meta.get("authors") or []
        author = authors[0].get("name") if authors and isinstance(authors[0], dict) else None
        return Document(
            metadata=DocumentMetadata(
                filename=resolve_filename(source, filename, "notebook.ipynb"),
                format=InputFormat.IPYNB,
                title=title or "Jupyter Notebook",
                author=author,
                extra={
                    "language": language,
                    "nbformat": notebook.get("nbformat"),
                    "cell_count": len(notebook.get("cells") or []),
                },
            ),
            content=content,
        )
