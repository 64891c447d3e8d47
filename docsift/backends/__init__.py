"""Format backends and the default format-to-backend registry."""

from docsift.backends.archive import ArchiveBackend, NestedConverter
from docsift.backends.base import (
    Backend,
    ConversionError,
    MissingDependencyError,
    Source,
    collect_warnings,
    emit_warning,
)
from docsift.backends.bingserp import BingSerpBackend
from docsift.backends.docx import DocxBackend
from docsift.backends.html import HtmlBackend
from docsift.backends.image import ImageBackend
from docsift.backends.ipynb import IpynbBackend
from docsift.backends.pdf import PdfBackend
from docsift.backends.plaintext import PlainTextBackend
from docsift.backends.pptx import PptxBackend
from docsift.backends.subtitle import SubtitleBackend
from docsift.backends.xlsx import XlsxBackend
from docsift.backends.xml import XmlBackend
from docsift.backends.youtube import YouTubeBackend
from docsift.config.models import ArchiveConfig, BackendOptions
from docsift.document.models import InputFormat

_BACKEND_CLASSES: list[type[Backend]] = [
    PdfBackend,
    DocxBackend,
    PptxBackend,
    XlsxBackend,
    HtmlBackend,
    SubtitleBackend,
    ImageBackend,
    PlainTextBackend,
    XmlBackend,
    YouTubeBackend,
    BingSerpBackend,
    IpynbBackend,
]


def create_default_backends(
    options: BackendOptions | None = None,
    converter: NestedConverter | None = None,
    archive: ArchiveConfig | None = None,
) -> dict[InputFormat, Backend]:
    """Build one backend instance per family and map every format it handles.

    ``converter`` is what the archive backend calls back into for entries.
    """
    registry: dict[InputFormat, Backend] = {}
    for cls in _BACKEND_CLASSES:
        backend = cls(options)
        for fmt in cls.formats:
            registry[fmt] = backend
    registry[InputFormat.ZIP] = ArchiveBackend(converter, options, archive)
    return registry


__all__ = [
    "ArchiveBackend",
    "Backend",
    "BingSerpBackend",
    "ConversionError",
    "DocxBackend",
    "HtmlBackend",
    "ImageBackend",
    "IpynbBackend",
    "MissingDependencyError",
    "NestedConverter",
    "PdfBackend",
    "PlainTextBackend",
    "PptxBackend",
    "Source",
    "SubtitleBackend",
    "XlsxBackend",
    "XmlBackend",
    "YouTubeBackend",
    "collect_warnings",
    "create_default_backends",
    "emit_warning",
]
