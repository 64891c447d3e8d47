"""Format dispatcher: detect, validate, convert, then serialize."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from docsift.backends import Backend, ConversionError, collect_warnings, create_default_backends
from docsift.backends.base import Source
from docsift.config.loader import load_config
from docsift.config.models import ConverterConfig, MarkdownOptions
from docsift.document.models import ConversionResult, InputFormat
from docsift.exporters.json import item_to_dict
from docsift.exporters.markdown import MarkdownExporter
from docsift.sniffer import detect_format

logger = logging.getLogger(__name__)


class DocumentConverter:
    """Routes a source to the backend for its detected format.

    The backend registry and the allowed formats are fixed at construction;
    ``set_backend`` is the only way to change a mapping afterwards. ``convert``
    never raises: every failure comes back as a failed ConversionResult.
    """

    def __init__(self, config: ConverterConfig | None = None) -> None:
        self._config = config or ConverterConfig()
        allowed = self._config.allowed_formats
        self._allowed: frozenset[InputFormat] = frozenset(
            InputFormat if allowed is None else allowed
        )
        self._backends: dict[InputFormat, Backend] = create_default_backends(
            self._config.default_options, self, self._config.archive
        )
        self._markdown = MarkdownExporter(
            self._config.markdown.model_copy(update={"include_metadata": False})
        )

    @classmethod
    def from_config_file(cls, path: str | Path | None = None) -> DocumentConverter:
        """Build a converter from docsift.yaml, following ``load_config``'s search order."""
        return cls(load_config(path))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def available_formats(self) -> list[InputFormat]:
        """Allowed formats, in declaration order."""
        return [fmt for fmt in InputFormat if fmt in self._allowed]

    def set_backend(self, format: InputFormat, backend: Backend) -> None:
        """Replace the backend registered for ``format``."""
        self._backends[InputFormat(format)] = backend

    def convert(self, source: Source, filename: str | None = None) -> ConversionResult:
        """Convert a path (``str``/``Path``) or a byte buffer."""
        label = filename or (str(source) if isinstance(source, (str, Path)) else "<bytes>")
        with collect_warnings() as warnings:
            try:
                return self._convert(source, filename, warnings)
            except ConversionError as exc:
                logger.warning("Conversion failed for %s: %s", label, exc)
                return ConversionResult.failure([str(exc)], warnings)
            except Exception as exc:
                logger.warning("Conversion failed for %s", label, exc_info=True)
                return ConversionResult.failure(
                    [str(exc) or type(exc).__name__], warnings
                )

    def convert_to_markdown(
        self,
        source: Source,
        filename: str | None = None,
        options: MarkdownOptions | None = None,
    ) -> str | None:
        """Markdown for ``source``, or None when conversion fails.

        With ``options`` the document is re-rendered using them, metadata
        frontmatter included if they ask for it.
        """
        result = self.convert(source, filename)
        if not result.ok or result.document is None:
            return None
        if options is None:
            return result.markdown_content
        return MarkdownExporter(options).export(result.document)

    def convert_to_json(
        self,
        source: Source,
        filename: str | None = None,
        indent: int | None = 2,
    ) -> str | None:
        """JSON array of the content items, or None when conversion fails."""
        result = self.convert(source, filename)
        if result.json_content is None:
            return None
        return json.dumps(
            [item_to_dict(item) for item in result.json_content],
            indent=indent,
            ensure_ascii=False,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _convert(
        self, source: Source, filename: str | None, warnings: list[str]
    ) -> ConversionResult:
        fmt = detect_format(source, filename)
        if fmt is None:
            return ConversionResult.failure(["Unable to detect document format"], warnings)
        logger.debug("Converting %s as %s", filename or "source", fmt.value)

        if fmt not in self._allowed:
            return ConversionResult.failure([f"Format {fmt.value} is not allowed"], warnings)

        backend = self._backends.get(fmt)
        if backend is None:
            return ConversionResult.failure(
                [f"No backend available for format {fmt.value}"], warnings
            )

        if not backend.is_valid(source):
            return ConversionResult.failure([f"Invalid {fmt.value} document"], warnings)

        document = backend.convert(source, filename)
        return ConversionResult.success(
            document, self._markdown.export(document), list(warnings)
        )


def convert_document(source: Source, filename: str | None = None) -> ConversionResult:
    """Convert with a default-configured converter."""
    return DocumentConverter().convert(source, filename)


def convert_to_markdown(source: Source, filename: str | None = None) -> str | None:
    return DocumentConverter().convert_to_markdown(source, filename)


def convert_to_json(
    source: Source, filename: str | None = None, indent: int | None = 2
) -> str | None:
    return DocumentConverter().convert_to_json(source, filename, indent)
