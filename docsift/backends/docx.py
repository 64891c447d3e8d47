"""DOCX backend: mammoth renders the document to HTML, which is then walked."""

from __future__ import annotations

import io
import logging

from bs4 import BeautifulSoup

from docsift.backends.base import (
    ConversionError,
    MissingDependencyError,
    Source,
    emit_warning,
    read_source,
    resolve_filename,
)
from docsift.backends.html import HtmlBackend
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

logger = logging.getLogger(__name__)

try:
    import mammoth
except ImportError:
    mammoth = None  # type: ignore[assignment]
    logger.warning("mammoth not installed; DOCX conversion disabled")

_STYLE_MAP = "\n".join(
    f"p[style-name='Heading {n}'] => h{n}:fresh" for n in range(1, 7)
)


def _first_title(items: list[DocumentItem]) -> str | None:
    for item in items:
        if item.type is DocumentItemType.HEADING and item.level == 1 and item.text:
            return item.text
        if item.children:
            found = _first_title(item.children)
            if found:
                return found
    return None


class DocxBackend(HtmlBackend):
    formats = frozenset({InputFormat.DOCX})

    def is_valid(self, source: Source) -> bool:
        try:
            return read_source(source)[:2] == b"PK"
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        if mammoth is None:
            raise MissingDependencyError(InputFormat.DOCX, "mammoth")
        try:
            result = mammoth.convert_to_html(
                io.BytesIO(read_source(source)), style_map=_STYLE_MAP
            )
        except Exception as exc:
            raise ConversionError(InputFormat.DOCX, f"Unable to read DOCX: {exc}") from exc

        for message in result.messages:
            if message.type == "error":
                emit_warning(f"DOCX: {message.message}")
            else:
                logger.debug("mammoth %s: %s", message.type, message.message)

        soup = BeautifulSoup(result.value, "html.parser")
        content = self.extract_elements(soup)
        return Document(
            metadata=DocumentMetadata(
                filename=resolve_filename(source, filename, "document.docx"),
                format=InputFormat.DOCX,
                title=_first_title(content) or "Untitled",
            ),
            content=content,
        )
