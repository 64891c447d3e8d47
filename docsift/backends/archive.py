"""ZIP archive backend that expands each entry through the owning converter.

Every file entry is handed back to the converter that owns this backend,
so nested archives recurse. Expansion is bounded by a nesting depth and
by a total decompressed-bytes budget shared across one top-level archive.
"""

from __future__ import annotations

import io
import logging
import zipfile
from contextvars import ContextVar
from pathlib import PurePosixPath
from typing import Protocol

from docsift.backends.base import (
    Backend,
    ConversionError,
    Source,
    emit_warning,
    read_source,
    resolve_filename,
)
from docsift.config.models import ArchiveConfig, BackendOptions
from docsift.document.models import (
    ConversionResult,
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

logger = logging.getLogger(__name__)


class NestedConverter(Protocol):
    """The part of the converter the archive backend calls back into."""

    def convert(self, source: Source, filename: str | None = None) -> ConversionResult: ...


class _Budget:
    def __init__(self, remaining: int) -> None:
        self.remaining = remaining


# Number of archives enclosing the one currently being expanded.
_depth_var: ContextVar[int] = ContextVar("docsift_archive_depth", default=0)
_budget_var: ContextVar[_Budget | None] = ContextVar("docsift_archive_budget", default=None)


class ArchiveBackend(Backend):
    formats = frozenset({InputFormat.ZIP})

    def __init__(
        self,
        converter: NestedConverter | None = None,
        options: BackendOptions | None = None,
        limits: ArchiveConfig | None = None,
    ) -> None:
        super().__init__(options)
        self._converter = converter
        self.limits = limits or ArchiveConfig()

    def is_valid(self, source: Source) -> bool:
        try:
            return read_source(source)[:4] == b"PK\x03\x04"
        except OSError:
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        depth = _depth_var.get()
        if depth > self.limits.max_depth:
            raise ConversionError(
                InputFormat.ZIP,
                f"Archive nesting exceeds the limit of {self.limits.max_depth} levels",
            )

        name = resolve_filename(source, filename, "archive.zip")
        try:
            archive = zipfile.ZipFile(io.BytesIO(read_source(source)))
        except zipfile.BadZipFile as exc:
            raise ConversionError(InputFormat.ZIP, f"Invalid ZIP archive: {exc}") from exc

        budget = _budget_var.get()
        budget_token = None
        if budget is None:
            budget = _Budget(self.limits.max_total_bytes)
            budget_token = _budget_var.set(budget)

        content = [DocumentItem(
            type=DocumentItemType.TITLE, text=f"ZIP Archive: {name}", level=1
        )]
        entry_count = 0
        try:
            with archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    entry_count += 1
                    content.append(DocumentItem(
                        type=DocumentItemType.HEADING, text=f"File: {info.filename}", level=2
                    ))
                    content.extend(self._entry(archive, info, depth, budget))
        finally:
            if budget_token is not None:
                _budget_var.reset(budget_token)

        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.ZIP,
                title=name,
                extra={"entry_count": entry_count},
            ),
            content=content,
        )

    def _entry(
        self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, depth: int, budget: _Budget
    ) -> list[DocumentItem]:
        path = info.filename
        if info.file_size > budget.remaining:
            emit_warning(
                f"{path}: not expanded, archive limit of {self.limits.max_total_bytes} bytes reached"
            )
            return [_paragraph(f"Skipped file ({info.file_size} bytes): expansion limit reached")]

        try:
            data = archive.read(info)
        except (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError) as exc:
            emit_warning(f"{path}: unreadable archive entry: {exc}")
            return [_paragraph(f"Unreadable file: {exc}")]
        budget.remaining -= len(data)

        if self._converter is None:
            return self._raw_content(path, data)

        token = _depth_var.set(depth + 1)
        try:
            result = self._converter.convert(data, path)
        finally:
            _depth_var.reset(token)

        for warning in result.warnings or []:
            emit_warning(f"{path}: {warning}")
        if result.ok and result.document is not None:
            # Copies keep the nested result's tree from being shared.
            return [item.model_copy(deep=True) for item in result.document.content]

        emit_warning(f"{path}: {'; '.join(result.errors or ['conversion failed'])}")
        return self._raw_content(path, data)

    def _raw_content(self, path: str, data: bytes) -> list[DocumentItem]:
        """Placeholder for an entry that could not be converted."""
        ext = PurePosixPath(path).suffix.lower()
        if ext in self.limits.text_extensions:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("%s is not UTF-8; treating as binary", path)
            else:
                language = ext.lstrip(".")
                if len(text) <= self.limits.inline_text_limit:
                    return [DocumentItem(
                        type=DocumentItemType.CODE, text=text, metadata={"language": language}
                    )]
                preview = self.limits.preview_chars
                return [
                    _paragraph(
                        f"File is too large to display ({len(data)} bytes). "
                        f"Showing first {preview} characters:"
                    ),
                    DocumentItem(
                        type=DocumentItemType.CODE,
                        text=text[:preview] + "\n\n... (truncated)",
                        metadata={"language": language},
                    ),
                ]
        return [_paragraph(f"Binary file ({len(data)} bytes)")]


def _paragraph(text: str) -> DocumentItem:
    return DocumentItem(type=DocumentItemType.PARAGRAPH, text=text)
