"""YouTube watch-page backend: metadata, description and optional transcript."""

from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from docsift.backends.base import Backend, Source, emit_warning, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

logger = logging.getLogger(__name__)

try:
    from youtube_transcript_api import YouTubeTranscriptApi
except ImportError:
    YouTubeTranscriptApi = None  # type: ignore[assignment,misc]

# Transcript text is regrouped into paragraphs of roughly this many characters.
PARAGRAPH_CHARS = 500
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def find_key(data: Any, key: str) -> Any:
    """Depth-first search for the first value stored under ``key``."""
    if isinstance(data, list):
        for element in data:
            found = find_key(element, key)
            if found is not None:
                return found
    elif isinstance(data, dict):
        for k, v in data.items():
            if k == key:
                return v
            found = find_key(v, key)
            if found is not None:
                return found
    return None


def video_id_from_url(url: str) -> str | None:
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if host.endswith("youtube.com"):
        return parse_qs(parsed.query).get("v", [None])[0]
    if host == "youtu.be":
        return parsed.path.lstrip("/") or None
    return None


def paragraphs_from_transcript(text: str) -> list[str]:
    sentences = _SENTENCE.findall(text) or [text]
    paragraphs: list[str] = []
    current = ""
    for sentence in sentences:
        current += sentence.strip() + " "
        if len(current) > PARAGRAPH_CHARS:
            paragraphs.append(current.strip())
            current = ""
    if current.strip():
        paragraphs.append(current.strip())
    return paragraphs


class YouTubeBackend(Backend):
    formats = frozenset({InputFormat.YOUTUBE})

    def is_valid(self, source: Source) -> bool:
        try:
            text = read_text(source)
        except OSError:
            return False
        return "youtube.com" in text or "ytInitialData" in text

    def convert(self, source: Source, filename: str | None = None) -> Document:
        soup = BeautifulSoup(read_text(source), "html.parser")
        meta = self._page_metadata(soup)

        content = [DocumentItem(type=DocumentItemType.TITLE, text="YouTube Video", level=1)]
        title = self._first(meta, "title", "og:title", "name")
        if title:
            content.append(DocumentItem(type=DocumentItemType.HEADING, text=title, level=2))

        stats = [
            f"**{label}:** {value}"
            for label, value in (
                ("Views", self._first(meta, "interactionCount")),
                ("Keywords", self._first(meta, "keywords")),
                ("Runtime", self._first(meta, "duration")),
            )
            if value
        ]
        if stats:
            content.append(DocumentItem(type=DocumentItemType.HEADING, text="Video Metadata", level=3))
            content.append(DocumentItem(
                type=DocumentItemType.LIST,
                children=[DocumentItem(type=DocumentItemType.LIST_ITEM, text=s) for s in stats],
                metadata={"ordered": False},
            ))

        description = self._first(meta, "description", "og:description")
        if description:
            content.append(DocumentItem(type=DocumentItemType.HEADING, text="Description", level=3))
            content.append(DocumentItem(type=DocumentItemType.PARAGRAPH, text=description))

        if self.options.enable_transcript and self.options.url:
            content.extend(self._transcript(self.options.url, self.options.transcript_language))

        return Document(
            metadata=DocumentMetadata(
                filename=resolve_filename(source, filename, "youtube-video.html"),
                format=InputFormat.YOUTUBE,
                title=title or "YouTube Video",
                extra={"url": self.options.url} if self.options.url else {},
            ),
            content=content,
        )

    @staticmethod
    def _page_metadata(soup: BeautifulSoup) -> dict[str, str]:
        meta: dict[str, str] = {}
        if soup.title and soup.title.string:
            meta["title"] = soup.title.string.strip()
        for tag in soup.find_all("meta"):
            for attr in ("itemprop", "property", "name"):
                if tag.get(attr) and tag.get("content"):
                    meta[tag[attr]] = tag["content"]
                    break

        # The full description lives in the page's ytInitialData blob.
        for script in soup.find_all("script"):
            text = script.string or ""
            if "ytInitialData" not in text:
                continue
            first_line = re.split(r"\r?\n", text)[0]
            start, end = first_line.find("{"), first_line.rfind("}")
            if start >= 0 and end > start:
                try:
                    data = json.loads(first_line[start : end + 1])
                except ValueError:
                    logger.debug("ytInitialData is not valid JSON")
                    break
                attributed = find_key(data, "attributedDescriptionBodyText")
                if isinstance(attributed, dict) and attributed.get("content"):
                    meta["description"] = str(attributed["content"])
            break
        return meta

    @staticmethod
    def _first(meta: dict[str, str], *keys: str) -> str | None:
        for key in keys:
            if meta.get(key):
                return meta[key]
        return None

    def _transcript(self, url: str, language: str) -> list[DocumentItem]:
        if YouTubeTranscriptApi is None:
            emit_warning("Transcript skipped: youtube-transcript-api is not installed")
            return []
        video_id = video_id_from_url(url)
        if not video_id:
            emit_warning(f"Transcript skipped: no video id in {url}")
            return []
        try:
            fetched = YouTubeTranscriptApi().fetch(video_id, languages=[language])
        except Exception as exc:
            emit_warning(f"Transcript not available for {video_id}: {exc}")
            return [DocumentItem(
                type=DocumentItemType.PARAGRAPH,
                text=f"Transcript not available: {exc}",
            )]

        text = " ".join(snippet.text for snippet in fetched)
        if not text.strip():
            return []
        items = [DocumentItem(type=DocumentItemType.HEADING, text="Transcript", level=3)]
        items.extend(
            DocumentItem(type=DocumentItemType.PARAGRAPH, text=p)
            for p in paragraphs_from_transcript(text)
        )
        return items
