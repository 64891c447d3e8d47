"""Image backend: Pillow for image metadata, Tesseract OCR for text."""

from __future__ import annotations

import io
import logging
import re

from PIL import Image, UnidentifiedImageError

from docsift.backends.base import (
    Backend,
    ConversionError,
    Source,
    emit_warning,
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
)

logger = logging.getLogger(__name__)

try:
    import pytesseract
except ImportError:
    pytesseract = None  # type: ignore[assignment]

_PNG_MAGIC = b"\x89PNG"
_JPEG_MAGIC = b"\xff\xd8\xff"
_NO_TEXT = "[No text detected in image]"


class ImageBackend(Backend):
    formats = frozenset({InputFormat.IMAGE})

    def is_valid(self, source: Source) -> bool:
        try:
            data = read_source(source)
        except OSError:
            return False
        if data.startswith((_PNG_MAGIC, _JPEG_MAGIC)):
            return True
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
            return True
        except Exception:
            logger.debug("Pillow rejected image data", exc_info=True)
            return False

    def convert(self, source: Source, filename: str | None = None) -> Document:
        data = read_source(source)
        name = resolve_filename(source, filename, "image")
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise ConversionError(InputFormat.IMAGE, f"Unable to read image: {exc}") from exc

        content: list[DocumentItem] = []
        if self.options.extract_images:
            content.append(ImageItem(
                src=name, alt=filename or None, width=image.width, height=image.height,
            ))

        languages = self.options.ocr_languages
        text = self._ocr(image, languages)
        if text is None:
            ocr_meta = {}
        else:
            ocr_meta = {"ocr_languages": languages}
            paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]
            content.extend(
                DocumentItem(
                    type=DocumentItemType.PARAGRAPH,
                    text=p,
                    metadata={"ocr_languages": languages},
                )
                for p in paragraphs
            )
            if not paragraphs:
                content.append(DocumentItem(
                    type=DocumentItemType.PARAGRAPH,
                    text=_NO_TEXT,
                    metadata={"note": "The image may not contain readable text"},
                ))

        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.IMAGE,
                title=filename or "Image Document",
                extra={
                    "width": image.width,
                    "height": image.height,
                    "image_format": image.format,
                    **ocr_meta,
                },
            ),
            content=content,
        )

    def _ocr(self, image: Image.Image, languages: str) -> str | None:
        """Run OCR; ``None`` when no OCR engine is available."""
        if pytesseract is None:
            emit_warning("OCR skipped: pytesseract is not installed")
            return None
        try:
            return pytesseract.image_to_string(image, lang=languages)
        except pytesseract.TesseractNotFoundError:
            emit_warning("OCR skipped: tesseract executable not found")
            return None
        except Exception as exc:
            raise ConversionError(InputFormat.IMAGE, f"OCR failed: {exc}") from exc
