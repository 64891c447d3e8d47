"""HTML backend built on BeautifulSoup.

The element walker here is shared with the DOCX backend, which renders
Word documents to HTML first.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from docsift.backends.base import Backend, Source, read_source, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    Formatting,
    ImageItem,
    InputFormat,
    TableCell,
    TableItem,
)

_HEADING_TAG = re.compile(r"^h([1-6])$")
_CONTAINER_TAGS = {"div", "section", "article", "main", "aside", "header", "footer", "nav"}
_HTML_HINTS = ("<html", "<body", "<div", "<h", "<p")


def _to_int(value: str | None) -> int | None:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def _own_rows(table: Tag) -> list[Tag]:
    """Rows of ``table`` itself, leaving any nested table's rows out."""
    rows = []
    for child in table.find_all(["thead", "tbody", "tfoot", "tr"], recursive=False):
        if child.name == "tr":
            rows.append(child)
        else:
            rows.extend(child.find_all("tr", recursive=False))
    return rows


class HtmlBackend(Backend):
    formats = frozenset({InputFormat.HTML})

    def is_valid(self, source: Source) -> bool:
        try:
            text = read_text(source).lower()
        except OSError:
            return False
        return any(hint in text for hint in _HTML_HINTS)

    def convert(self, source: Source, filename: str | None = None) -> Document:
        soup = BeautifulSoup(read_source(source), "html.parser")
        name = resolve_filename(source, filename, "document.html")

        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else None

        extra: dict[str, str] = {}
        for meta in soup.find_all("meta"):
            key = meta.get("name") or meta.get("property")
            value = meta.get("content")
            if key and value:
                extra[key] = value

        root = soup.body or soup.html or soup
        return Document(
            metadata=DocumentMetadata(
                filename=name,
                format=InputFormat.HTML,
                title=title or filename or "Untitled",
                author=extra.pop("author", None),
                extra=extra,
            ),
            content=self.extract_elements(root),
        )

    # -- element walking ---------------------------------------------------

    def extract_elements(self, element: Tag) -> list[DocumentItem]:
        """Convert the direct children of ``element`` into document items."""
        items: list[DocumentItem] = []
        for child in element.find_all(recursive=False):
            tag = child.name.lower()
            heading = _HEADING_TAG.match(tag)

            if heading:
                items.append(DocumentItem(
                    type=DocumentItemType.HEADING,
                    text=self._text(child),
                    level=int(heading.group(1)),
                    formatting=self._formatting(child),
                ))
            elif tag == "p":
                text = self._text(child)
                if text:
                    items.append(DocumentItem(
                        type=DocumentItemType.PARAGRAPH,
                        text=text,
                        formatting=self._formatting(child),
                    ))
            elif tag in ("ul", "ol"):
                items.append(self._list(child, ordered=tag == "ol"))
            elif tag == "table":
                if self.options.extract_tables:
                    items.append(self._table(child))
            elif tag == "img":
                if self.options.extract_images:
                    items.append(self._image(child))
            elif tag in ("pre", "code"):
                items.append(DocumentItem(
                    type=DocumentItemType.CODE,
                    text=child.get_text(),
                ))
            elif tag == "figure":
                items.extend(self._figure(child))
            elif tag in _CONTAINER_TAGS:
                children = self.extract_elements(child)
                if children:
                    items.append(DocumentItem(type=DocumentItemType.SECTION, children=children))
        return items

    def _text(self, element: Tag) -> str:
        text = element.get_text()
        if self.options.preserve_whitespace:
            return text.strip()
        return " ".join(text.split())

    def _formatting(self, element: Tag) -> Formatting | None:
        if not self.options.extract_formatting:
            return None
        if element.find(["b", "strong", "i", "em", "u", "s", "del", "strike"]) is None:
            return None
        return Formatting(
            bold=element.find(["b", "strong"]) is not None,
            italic=element.find(["i", "em"]) is not None,
            underline=element.find("u") is not None,
            strikethrough=element.find(["s", "del", "strike"]) is not None,
        )

    def _list(self, element: Tag, ordered: bool) -> DocumentItem:
        children = []
        for li in element.find_all("li", recursive=False):
            # Nested lists become the item's children; the item text is
            # whatever remains outside them.
            nested = [
                self._list(sub, ordered=sub.name == "ol")
                for sub in li.find_all(["ul", "ol"], recursive=False)
            ]
            own_parts = [
                part.get_text() if isinstance(part, Tag) else str(part)
                for part in li.children
                if not (isinstance(part, Tag) and part.name in ("ul", "ol"))
            ]
            own_text = " ".join(" ".join(own_parts).split())
            children.append(DocumentItem(
                type=DocumentItemType.LIST_ITEM,
                text=own_text if nested else self._text(li),
                formatting=self._formatting(li),
                children=nested or None,
            ))
        return DocumentItem(
            type=DocumentItemType.LIST,
            children=children,
            metadata={"ordered": ordered},
        )

    def _table(self, element: Tag) -> TableItem:
        rows = []
        for tr in _own_rows(element):
            cells = [
                TableCell(
                    text=self._text(cell),
                    is_header=cell.name == "th",
                    row_span=_to_int(cell.get("rowspan")),
                    col_span=_to_int(cell.get("colspan")),
                )
                for cell in tr.find_all(["td", "th"], recursive=False)
            ]
            rows.append(cells)
        return TableItem.from_rows(rows)

    def _image(self, element: Tag) -> ImageItem:
        src = element.get("src")
        if src and self.options.base_url:
            src = urljoin(self.options.base_url, src)
        return ImageItem(
            src=src or None,
            alt=element.get("alt") or None,
            width=_to_int(element.get("width")) or None,
            height=_to_int(element.get("height")) or None,
        )

    def _figure(self, element: Tag) -> list[DocumentItem]:
        items: list[DocumentItem] = []
        if self.options.extract_images:
            items.extend(self._image(img) for img in element.find_all("img"))
        caption = element.find("figcaption")
        if caption is not None:
            items.append(DocumentItem(type=DocumentItemType.CAPTION, text=self._text(caption)))
        return items
