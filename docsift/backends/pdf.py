"""PDF backend: per-page text extraction with pdfminer.six."""

from __future__ import annotations

import io
import logging

from docsift.backends.base import (
    Backend,
    ConversionError,
    MissingDependencyError,
    Source,
    read_source,
    resolve_filename,
)
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

logger = logging.getLogger(__name__)

try:
    from pdfminer.high_level import extract_pages
    from pdfminer.layout import LTTextContainer
    from pdfminer.pdfpage import PDFPage
except ImportError:
    extract_pages = LTTextContainer = PDFPage = None  # type: ignore[assignment,misc]
    logger.warning("pdfminer.six not installed; PDF conversion disabled")


class PdfBackend(Backend):
    formats = frozenset({InputFormat.PDF})

    def is_valid(self, source: Source) -> bool:
        try:
            return read_source(source)[:5] == b"%PDF-"
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        if extract_pages is None:
            raise MissingDependencyError(InputFormat.PDF, "pdfminer.six")
        data = read_source(source)
        page_numbers: list[int] | None = None
        if self.options.page_range is not None:
            page_numbers = list(range(self.options.page_range.start - 1, self.options.page_range.end))

        try:
            page_count = sum(1 for _ in PDFPage.get_pages(io.BytesIO(data)))
            pages = [
                (
                    page_numbers[position] + 1 if page_numbers is not None else position + 1,
                    self._page_text(layout),
                )
                for position, layout in enumerate(
                    extract_pages(io.BytesIO(data), page_numbers=page_numbers)
                )
            ]
        except Exception as exc:
            raise ConversionError(InputFormat.PDF, f"Unable to read PDF: {exc}") from exc

        content = [
            DocumentItem(
                type=DocumentItemType.PARAGRAPH,
                text=text,
                metadata={"page": page},
            )
            for page, text in pages
            if text
        ]
        name = resolve_filename(source, filename, "document.pdf")
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.PDF,
                title=filename or "Untitled PDF",
                page_count=page_count,
            ),
            content=content,
        )

    @staticmethod
    def _page_text(layout) -> str:
        return "".join(
            element.get_text() for element in layout if isinstance(element, LTTextContainer)
        ).strip()
