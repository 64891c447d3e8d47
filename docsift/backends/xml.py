"""XML backend with RSS and Atom feed support."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from markdownify import markdownify

from docsift.backends.base import (
    Backend,
    ConversionError,
    Source,
    read_source,
    read_text,
    resolve_filename,
)
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    Formatting,
    InputFormat,
)

_DEFAULT_NAMES = {
    InputFormat.XML: "document.xml",
    InputFormat.RSS: "feed.rss",
    InputFormat.ATOM: "feed.atom",
}


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tag names."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> str | None:
    child = _child(element, name)
    if child is None:
        return None
    text = "".join(child.itertext()).strip()
    return text or None


def html_to_paragraphs(fragment: str) -> list[DocumentItem]:
    """Render an HTML fragment to Markdown and split it into paragraphs."""
    markdown = markdownify(fragment, heading_style="ATX")
    return [
        DocumentItem(type=DocumentItemType.PARAGRAPH, text=block.strip())
        for block in re.split(r"\n\s*\n", markdown)
        if block.strip()
    ]


class XmlBackend(Backend):
    formats = frozenset({InputFormat.XML, InputFormat.RSS, InputFormat.ATOM})

    def is_valid(self, source: Source) -> bool:
        try:
            text = read_text(source).lstrip()
        except OSError:
            return False
        return text.startswith("<")

    def convert(self, source: Source, filename: str | None = None) -> Document:
        xml_text = read_text(source)
        try:
            root = ET.fromstring(read_source(source))
        except ET.ParseError as exc:
            raise ConversionError(InputFormat.XML, f"Malformed XML: {exc}") from exc

        root_name = _local(root.tag)
        title: str | None = None
        if root_name == "rss":
            fmt = InputFormat.RSS
            channel = _child(root, "channel")
            content = self._parse_rss(channel) if channel is not None else []
            title = _child_text(channel, "title") if channel is not None else None
        elif root_name == "feed":
            fmt = InputFormat.ATOM
            content = self._parse_atom(root)
            title = _child_text(root, "title")
        else:
            fmt = InputFormat.XML
            content = [DocumentItem(
                type=DocumentItemType.CODE,
                text=xml_text,
                metadata={"language": "xml", "root": root_name},
            )]

        name = resolve_filename(source, filename, _DEFAULT_NAMES[fmt])
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=fmt,
                title=title or filename or "Untitled XML",
            ),
            content=content,
        )

    def _parse_rss(self, channel: ET.Element) -> list[DocumentItem]:
        items = self._feed_header(channel, "title", "description")
        for entry in channel:
            if _local(entry.tag) != "item":
                continue
            items.extend(self._entry(entry, "pubDate", "Published on", ("description", "encoded")))
        return items

    def _parse_atom(self, feed: ET.Element) -> list[DocumentItem]:
        items = self._feed_header(feed, "title", "subtitle")
        for entry in feed:
            if _local(entry.tag) != "entry":
                continue
            items.extend(self._entry(entry, "updated", "Updated on", ("summary", "content")))
        return items

    @staticmethod
    def _feed_header(element: ET.Element, title_tag: str, desc_tag: str) -> list[DocumentItem]:
        items = []
        title = _child_text(element, title_tag)
        if title:
            items.append(DocumentItem(type=DocumentItemType.TITLE, text=title, level=1))
        description = _child_text(element, desc_tag)
        if description:
            items.append(DocumentItem(type=DocumentItemType.PARAGRAPH, text=description))
        return items

    @staticmethod
    def _entry(
        entry: ET.Element, date_tag: str, date_label: str, body_tags: tuple[str, ...]
    ) -> list[DocumentItem]:
        items = []
        title = _child_text(entry, "title")
        if title:
            items.append(DocumentItem(type=DocumentItemType.HEADING, text=title, level=2))
        date = _child_text(entry, date_tag)
        if date:
            items.append(DocumentItem(
                type=DocumentItemType.PARAGRAPH,
                text=f"{date_label}: {date}",
                formatting=Formatting(italic=True),
            ))
        for tag in body_tags:
            body = _child_text(entry, tag)
            if body:
                items.extend(html_to_paragraphs(body))
        return items
