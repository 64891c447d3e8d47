"""Abstract backend interface and shared helpers for format adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import ClassVar, Union

from docsift.config.models import BackendOptions
from docsift.document.models import Document, InputFormat

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes]

# Warnings emitted by backends during the conversion running in this context.
_warnings_var: ContextVar[list[str] | None] = ContextVar("docsift_warnings", default=None)


class ConversionError(Exception):
    """Raised when a backend cannot structurally interpret its input."""

    def __init__(self, format: InputFormat | str, message: str) -> None:
        self.format = InputFormat(format)
        super().__init__(message)


class MissingDependencyError(ConversionError):
    """Raised when an optional library needed for a format is not installed."""

    def __init__(self, format: InputFormat | str, package: str) -> None:
        self.package = package
        super().__init__(
            format,
            f'Optional dependency "{package}" is not installed. '
            f'Run "pip install {package}" to enable {InputFormat(format).value} support.',
        )


@contextmanager
def collect_warnings() -> Iterator[list[str]]:
    """Collect warnings emitted by backends within the block."""
    collected: list[str] = []
    token = _warnings_var.set(collected)
    try:
        yield collected
    finally:
        _warnings_var.reset(token)


def emit_warning(message: str) -> None:
    """Record a non-fatal problem for the current conversion."""
    logger.warning(message)
    collected = _warnings_var.get()
    if collected is not None:
        collected.append(message)


def read_source(source: Source) -> bytes:
    """Return the raw bytes of a buffer or path source."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    return Path(source).read_bytes()


def read_text(source: Source) -> str:
    """Decode a source as UTF-8 (invalid bytes replaced, BOM dropped)."""
    text = read_source(source).decode("utf-8", errors="replace")
    return text[1:] if text.startswith("\ufeff") else text


def resolve_filename(source: Source, filename: str | None, default: str) -> str:
    """Pick the name recorded in metadata: explicit > path basename > default."""
    if filename:
        return filename
    if isinstance(source, (str, Path)):
        name = Path(source).name
        if name:
            return name
    return default


class Backend(ABC):
    """Adapter turning one format family's raw bytes into a Document.

    Subclasses declare the formats they handle in ``formats`` and keep
    their options fixed after construction, so one instance can serve
    concurrent conversions.
    """

    formats: ClassVar[frozenset[InputFormat]] = frozenset()

    def __init__(self, options: BackendOptions | None = None) -> None:
        self.options = options or BackendOptions()

    def supports_format(self, format: InputFormat) -> bool:
        return format in self.formats

    @abstractmethod
    def is_valid(self, source: Source) -> bool:
        """Cheap, non-throwing pre-check run before ``convert``."""
        ...

    @abstractmethod
    def convert(self, source: Source, filename: str | None = None) -> Document:
        """Parse ``source`` into a Document or raise ConversionError."""
        ...
