"""Format detection: filename extension first, content signature second."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path, PurePath

from docsift.document.models import InputFormat

logger = logging.getLogger(__name__)

EXTENSION_FORMATS: dict[str, InputFormat] = {
    ".pdf": InputFormat.PDF,
    ".docx": InputFormat.DOCX,
    ".pptx": InputFormat.PPTX,
    ".xlsx": InputFormat.XLSX,
    ".html": InputFormat.HTML,
    ".htm": InputFormat.HTML,
    ".vtt": InputFormat.VTT,
    ".srt": InputFormat.SRT,
    ".png": InputFormat.IMAGE,
    ".jpg": InputFormat.IMAGE,
    ".jpeg": InputFormat.IMAGE,
    ".tif": InputFormat.IMAGE,
    ".tiff": InputFormat.IMAGE,
    ".csv": InputFormat.CSV,
    ".json": InputFormat.JSON,
    ".txt": InputFormat.TEXT,
    ".xml": InputFormat.XML,
    ".rss": InputFormat.RSS,
    ".atom": InputFormat.ATOM,
    ".zip": InputFormat.ZIP,
    ".ipynb": InputFormat.IPYNB,
}

ZIP_MAGIC = b"PK\x03\x04"
PDF_MAGIC = b"%PDF-"

HEAD_CHARS = 100
SCAN_CHARS = 10_000
CSV_SAMPLE_LINES = 5

# Markers of a Bing results page: the domain plus a result list or search box.
BING_DOMAIN_MARKER = "bing.com"
BING_PAGE_MARKERS = ("b_algo", "b_searchboxSubmit")
YOUTUBE_MARKERS = ("youtube.com", "ytInitialData")

_SRT_HEAD = re.compile(r"^\d+\s*\n\d{2}:\d{2}")


def extension_to_format(name: str | PurePath | None) -> InputFormat | None:
    """Map a filename's extension to a format, case-insensitively."""
    if not name:
        return None
    return EXTENSION_FORMATS.get(PurePath(str(name)).suffix.lower())


def looks_like_csv(text: str) -> bool:
    """Consistent comma counts (within +/-1) across the first non-blank lines."""
    lines = [line for line in text.splitlines() if line.strip()][:CSV_SAMPLE_LINES]
    if len(lines) < 2:
        return False
    counts = [line.count(",") for line in lines]
    first = counts[0]
    return first > 0 and all(abs(c - first) <= 1 for c in counts)


def _decode(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    return text[1:] if text.startswith("\ufeff") else text


def _classify_zip(data: bytes) -> InputFormat:
    # OOXML packages name their parts in the central directory.
    if b"word/" in data:
        return InputFormat.DOCX
    if b"ppt/" in data:
        return InputFormat.PPTX
    if b"xl/" in data:
        return InputFormat.XLSX
    return InputFormat.ZIP


def _classify_json(text: str) -> InputFormat | None:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if isinstance(parsed, dict) and isinstance(parsed.get("cells"), list):
        return InputFormat.IPYNB
    return InputFormat.JSON


def detect_from_content(data: bytes) -> InputFormat | None:
    """Classify a byte buffer by its signature; ``None`` when nothing matches."""
    if not data:
        return None

    if data.startswith(PDF_MAGIC):
        return InputFormat.PDF

    if data.startswith(ZIP_MAGIC):
        return _classify_zip(data)

    text = _decode(data[: SCAN_CHARS * 4])
    head = text[:HEAD_CHARS]
    scan = text[:SCAN_CHARS]
    stripped = head.lstrip()

    if "<html" in head.lower() or stripped.upper().startswith("<!DOCTYPE"):
        full = _decode(data)
        if BING_DOMAIN_MARKER in full and any(m in full for m in BING_PAGE_MARKERS):
            return InputFormat.BING_SERP
        if all(m in full for m in YOUTUBE_MARKERS):
            return InputFormat.YOUTUBE
        return InputFormat.HTML

    if head.startswith("WEBVTT"):
        return InputFormat.VTT
    if _SRT_HEAD.match(head):
        return InputFormat.SRT

    if stripped.startswith("<"):
        if "<rss" in scan:
            return InputFormat.RSS
        if "<feed" in scan:
            return InputFormat.ATOM
        return InputFormat.XML

    if stripped.startswith(("{", "[")):
        fmt = _classify_json(_decode(data))
        if fmt is not None:
            return fmt

    if looks_like_csv(scan):
        return InputFormat.CSV

    return None


def detect_format(
    source: str | Path | bytes, filename: str | None = None
) -> InputFormat | None:
    """Detect the format of ``source``.

    Priority: the explicit filename's extension, then the extension of a
    path source, then the content signature. A path source is only read
    when neither extension is recognized.
    """
    fmt = extension_to_format(filename)
    if fmt is not None:
        logger.debug("detected %s from filename %s", fmt.value, filename)
        return fmt

    if isinstance(source, (str, Path)):
        fmt = extension_to_format(source)
        if fmt is not None:
            logger.debug("detected %s from path %s", fmt.value, source)
            return fmt
        data = Path(source).read_bytes()
    else:
        data = bytes(source)

    fmt = detect_from_content(data)
    logger.debug("content sniffing result: %s", fmt.value if fmt else None)
    return fmt
