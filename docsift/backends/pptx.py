"""PPTX backend using python-pptx."""

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
    ImageItem,
    InputFormat,
    TableCell,
    TableItem,
)

logger = logging.getLogger(__name__)

try:
    from pptx import Presentation
    from pptx.enum.shapes import MSO_SHAPE_TYPE
except ImportError:
    Presentation = MSO_SHAPE_TYPE = None  # type: ignore[assignment,misc]
    logger.warning("python-pptx not installed; PPTX conversion disabled")


def _is_picture(shape) -> bool:
    if shape.shape_type == MSO_SHAPE_TYPE.PICTURE:
        return True
    return shape.shape_type == MSO_SHAPE_TYPE.PLACEHOLDER and hasattr(shape, "image")


def _alt_text(shape) -> str:
    try:
        return shape._element._nvXxPr.cNvPr.attrib.get("descr", "")
    except AttributeError:
        return ""


class PptxBackend(Backend):
    formats = frozenset({InputFormat.PPTX})

    def is_valid(self, source: Source) -> bool:
        try:
            return read_source(source)[:2] == b"PK"
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        if Presentation is None:
            raise MissingDependencyError(InputFormat.PPTX, "python-pptx")
        try:
            presentation = Presentation(io.BytesIO(read_source(source)))
        except Exception as exc:
            raise ConversionError(InputFormat.PPTX, f"Unable to read PPTX: {exc}") from exc

        content: list[DocumentItem] = []
        first_title: str | None = None
        for number, slide in enumerate(presentation.slides, start=1):
            slide_items, slide_title = self._slide(slide, number)
            content.extend(slide_items)
            first_title = first_title or slide_title

        name = resolve_filename(source, filename, "presentation.pptx")
        core = presentation.core_properties
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.PPTX,
                title=core.title or first_title or filename or "Untitled Presentation",
                author=core.author or None,
                page_count=len(presentation.slides),
                creation_date=core.created,
                modification_date=core.modified,
            ),
            content=content,
        )

    def _slide(self, slide, number: int) -> tuple[list[DocumentItem], str | None]:
        title_shape = slide.shapes.title
        title = title_shape.text.strip() if title_shape is not None and title_shape.has_text_frame else ""

        body: list[DocumentItem] = []
        for shape in slide.shapes:
            if title_shape is not None and shape.shape_id == title_shape.shape_id:
                continue
            if _is_picture(shape):
                if self.options.extract_images:
                    body.append(ImageItem(alt=_alt_text(shape) or shape.name, text=shape.name))
            elif shape.has_table:
                if self.options.extract_tables:
                    body.append(self._table(shape.table))
            elif shape.has_text_frame:
                for paragraph in shape.text_frame.paragraphs:
                    text = "".join(run.text for run in paragraph.runs).strip()
                    if not text:
                        continue
                    if not title:
                        title = text
                        continue
                    body.append(DocumentItem(type=DocumentItemType.PARAGRAPH, text=text))

        items = [DocumentItem(
            type=DocumentItemType.HEADING,
            text=title or f"Slide {number}",
            level=1,
            metadata={"slide": number},
        )]
        items.extend(body)

        if slide.has_notes_slide:
            notes_frame = slide.notes_slide.notes_text_frame
            notes = notes_frame.text.strip() if notes_frame is not None else ""
            if notes:
                items.append(DocumentItem(type=DocumentItemType.HEADING, text="Notes", level=3))
                items.append(DocumentItem(type=DocumentItemType.PARAGRAPH, text=notes))
        return items, title or None

    @staticmethod
    def _table(table) -> TableItem:
        rows = [
            [TableCell(text=cell.text.strip(), is_header=i == 0) for cell in row.cells]
            for i, row in enumerate(table.rows)
        ]
        return TableItem.from_rows(rows)
