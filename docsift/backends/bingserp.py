"""Bing search results page backend (organic results only)."""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import parse_qs, unquote_plus, urljoin, urlparse

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter

from docsift.backends.base import Backend, Source, read_text, resolve_filename
from docsift.document.models import (
    Document,
    DocumentItem,
    DocumentItemType,
    DocumentMetadata,
    InputFormat,
)

_QUERY_IN_PAGE = re.compile(r"search\?q=([^\"&]+)")


def decode_redirect(u: str) -> str | None:
    """Decode Bing's ``u`` redirect parameter (2-char prefix + base64url)."""
    try:
        return base64.b64decode(u[2:].strip() + "==", altchars=b"-_").decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


class BingSerpBackend(Backend):
    formats = frozenset({InputFormat.BING_SERP})

    def is_valid(self, source: Source) -> bool:
        try:
            text = read_text(source)
        except OSError:
            return False
        return "bing.com" in text and ("b_algo" in text or "b_searchboxSubmit" in text)

    def convert(self, source: Source, filename: str | None = None) -> Document:
        html = read_text(source)
        soup = BeautifulSoup(html, "html.parser")
        query = self._query(html, soup)

        for tptt in soup.find_all(class_="tptt"):
            if tptt.string:
                tptt.string += " "
        for slug in soup.find_all(class_="algoSlug_icon"):
            slug.decompose()

        content = [DocumentItem(
            type=DocumentItemType.HEADING,
            text=f"A Bing search for '{query}' found the following results:",
            level=2,
        )]

        converter = MarkdownConverter(heading_style="ATX")
        results = soup.find_all(class_="b_algo")
        for index, result in enumerate(results, start=1):
            for anchor in result.find_all("a", href=True):
                params = parse_qs(urlparse(urljoin("https://www.bing.com", anchor["href"])).query)
                if "u" in params:
                    decoded = decode_redirect(params["u"][0])
                    if decoded:
                        anchor["href"] = decoded
            markdown = converter.convert_soup(result).strip()
            lines = [line.strip() for line in re.split(r"\n+", markdown)]
            text = "\n".join(line for line in lines if line)
            if text:
                content.append(DocumentItem(
                    type=DocumentItemType.PARAGRAPH,
                    text=text,
                    metadata={"result_index": index},
                ))

        if not results:
            content.append(DocumentItem(
                type=DocumentItemType.PARAGRAPH, text="No search results found."
            ))

        page_title = soup.title.get_text(strip=True) if soup.title else ""
        return Document(
            metadata=DocumentMetadata(
                filename=resolve_filename(source, filename, "bing-search-results.html"),
                format=InputFormat.BING_SERP,
                title=page_title or f"Bing Search: {query}",
                extra={"query": query, "result_count": len(results)},
            ),
            content=content,
        )

    def _query(self, html: str, soup: BeautifulSoup) -> str:
        if self.options.url:
            query = parse_qs(urlparse(self.options.url).query).get("q", [""])[0]
            if query:
                return query
        match = _QUERY_IN_PAGE.search(html)
        if match:
            return unquote_plus(match.group(1))
        search_box = soup.find(id="sb_form_q")
        if search_box is not None and search_box.get("value"):
            return search_box["value"]
        return "Unknown"
