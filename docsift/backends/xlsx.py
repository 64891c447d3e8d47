"""XLSX backend using openpyxl; one heading and one table per worksheet."""

from __future__ import annotations

import io
import logging
from datetime import date, datetime, time
from typing import Any

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
    TableCell,
    TableItem,
)

logger = logging.getLogger(__name__)

try:
    from openpyxl import load_workbook
except ImportError:
    load_workbook = None  # type: ignore[assignment]
    logger.warning("openpyxl not installed; XLSX conversion disabled")


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class XlsxBackend(Backend):
    formats = frozenset({InputFormat.XLSX})

    def is_valid(self, source: Source) -> bool:
        try:
            return read_source(source)[:2] == b"PK"
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        if load_workbook is None:
            raise MissingDependencyError(InputFormat.XLSX, "openpyxl")
        try:
            workbook = load_workbook(
                io.BytesIO(read_source(source)), read_only=True, data_only=True
            )
        except Exception as exc:
            raise ConversionError(InputFormat.XLSX, f"Unable to read XLSX: {exc}") from exc

        try:
            content: list[DocumentItem] = []
            for sheet in workbook.worksheets:
                content.append(DocumentItem(
                    type=DocumentItemType.HEADING, text=sheet.title, level=1
                ))
                if not self.options.extract_tables:
                    continue
                values = [
                    row for row in sheet.iter_rows(values_only=True)
                    if any(v is not None for v in row)
                ]
                if values:
                    rows = [
                        [TableCell(text=format_cell(v), is_header=i == 0) for v in row]
                        for i, row in enumerate(values)
                    ]
                    content.append(TableItem.from_rows(rows, metadata={"sheet": sheet.title}))
            props = workbook.properties
            sheet_count = len(workbook.worksheets)
        finally:
            workbook.close()

        name = resolve_filename(source, filename, "workbook.xlsx")
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.XLSX,
                title=props.title or filename or "Untitled Workbook",
                author=props.creator or None,
                creation_date=props.created,
                modification_date=props.modified,
                extra={"sheet_count": sheet_count},
            ),
            content=content,
        )
