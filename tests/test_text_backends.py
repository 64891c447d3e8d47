"""Tests for the text-based backends: plain text, CSV, JSON, subtitles, XML, notebooks."""

import json

import pytest

from docsift.backends.base import ConversionError
from docsift.backends.ipynb import IpynbBackend, markdown_cell_items, output_text
from docsift.backends.plaintext import PlainTextBackend
from docsift.backends.subtitle import SubtitleBackend, parse_srt, parse_vtt
from docsift.backends.xml import XmlBackend
from docsift.config.models import BackendOptions
from docsift.document.models import DocumentItemType, InputFormat, TableItem


def _assert_table_invariant(table):
    assert table.num_rows == len(table.rows)
    assert table.num_cols == max((len(r) for r in table.rows), default=0)


# ---------------------------------------------------------------------------
# PlainTextBackend
# ---------------------------------------------------------------------------


class TestPlainTextBackend:
    def test_paragraphs_split_on_blank_lines(self):
        doc = PlainTextBackend().convert(b"one\n\n  two  \n\n\n", "a.txt")
        assert [i.text for i in doc.content] == ["one", "two"]
        assert doc.metadata.format is InputFormat.TEXT
        assert doc.metadata.filename == "a.txt"

    def test_preserve_whitespace(self):
        backend = PlainTextBackend(BackendOptions(preserve_whitespace=True))
        doc = backend.convert(b"  indented\n\nnext", "a.txt")
        assert doc.content[0].text == "  indented"

    def test_csv_ragged_rows_padded(self):
        doc = PlainTextBackend().convert(b"name,age,city\nAnn,30\n\nBob,25,Oslo\n", "p.csv")
        table = doc.content[0]
        assert isinstance(table, TableItem)
        _assert_table_invariant(table)
        assert (table.num_rows, table.num_cols) == (3, 3)
        assert table.rows[1][2].text == ""
        assert table.rows[0][0].is_header is True
        assert table.rows[1][0].is_header is False

    def test_csv_quoted_commas(self):
        doc = PlainTextBackend().convert(b'a,b\n"x, y",2\n', "q.csv")
        assert doc.content[0].rows[1][0].text == "x, y"

    def test_json_code_block_and_fields(self):
        doc = PlainTextBackend().convert(
            b'[{"title": "First", "id": 1}, {"description": "More"}]', "d.json"
        )
        code = doc.content[0]
        assert code.type is DocumentItemType.CODE
        assert code.metadata == {"language": "json"}
        assert json.loads(code.text)[0]["id"] == 1
        assert [i.text for i in doc.content[1:]] == ["**title**: First", "**description**: More"]

    def test_invalid_json_kept_as_paragraph(self):
        doc = PlainTextBackend().convert(b"{oops", "d.json")
        assert doc.content[0].type is DocumentItemType.PARAGRAPH
        assert doc.content[0].text == "{oops"

    def test_format_sniffed_without_filename(self):
        doc = PlainTextBackend().convert(b"a,b\n1,2\n")
        assert doc.metadata.format is InputFormat.CSV
        assert doc.metadata.filename == "document.csv"

    def test_path_source(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text("a,b\n1,2\n")
        doc = PlainTextBackend().convert(path)
        assert doc.metadata.format is InputFormat.CSV
        assert doc.metadata.filename == "rows.csv"

    def test_empty_input_invalid(self):
        assert not PlainTextBackend().is_valid(b"")


# ---------------------------------------------------------------------------
# SubtitleBackend
# ---------------------------------------------------------------------------

VTT = b"""WEBVTT

00:00:01.000 --> 00:00:03.000 align:start
Hello there

00:00:04.000 --> 00:00:06.000
General
Kenobi
"""

SRT = b"""1
00:00:01,000 --> 00:00:02,500
First line

2
00:00:03,000 --> 00:00:04,000
Second
line
"""


class TestSubtitles:
    def test_parse_vtt_strips_cue_settings(self):
        cues = parse_vtt(VTT.decode())
        assert [(c.start_time, c.end_time) for c in cues] == [
            ("00:00:01.000", "00:00:03.000"),
            ("00:00:04.000", "00:00:06.000"),
        ]
        assert cues[1].text == "General Kenobi"

    def test_parse_srt(self):
        cues = parse_srt(SRT.decode())
        assert [c.index for c in cues] == [1, 2]
        assert cues[1].text == "Second line"

    def test_vtt_document(self):
        doc = SubtitleBackend().convert(VTT, "talk.vtt")
        assert doc.metadata.format is InputFormat.VTT
        assert doc.metadata.extra == {"cue_count": 2}
        assert doc.content[0].metadata == {"start_time": "00:00:01.000", "end_time": "00:00:03.000"}

    def test_srt_document_with_crlf(self):
        doc = SubtitleBackend().convert(SRT.replace(b"\n", b"\r\n"))
        assert doc.metadata.format is InputFormat.SRT
        assert doc.metadata.title == "Subtitle File"
        assert doc.content[0].metadata["index"] == 1

    def test_validity(self):
        backend = SubtitleBackend()
        assert backend.is_valid(VTT)
        assert backend.is_valid(SRT)
        assert not backend.is_valid(b"just text")


# ---------------------------------------------------------------------------
# XmlBackend
# ---------------------------------------------------------------------------

RSS = b"""<?xml version="1.0"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Engineering Blog</title>
    <description>Notes from the team</description>
    <item>
      <title>Launch</title>
      <pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate>
      <description>&lt;p&gt;We &lt;b&gt;shipped&lt;/b&gt;.&lt;/p&gt;</description>
    </item>
  </channel>
</rss>
"""

ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Changelog</title>
  <subtitle>Release notes</subtitle>
  <entry>
    <title>v1.0</title>
    <updated>2024-02-01T00:00:00Z</updated>
    <summary>First stable release</summary>
  </entry>
</feed>
"""


class TestXmlBackend:
    def test_rss_feed(self):
        doc = XmlBackend().convert(RSS)
        assert doc.metadata.format is InputFormat.RSS
        assert doc.metadata.title == "Engineering Blog"
        kinds = [(i.type, i.text) for i in doc.content]
        assert kinds[0] == (DocumentItemType.TITLE, "Engineering Blog")
        assert kinds[1] == (DocumentItemType.PARAGRAPH, "Notes from the team")
        assert kinds[2] == (DocumentItemType.HEADING, "Launch")
        assert doc.content[3].text == "Published on: Mon, 01 Jan 2024 00:00:00 GMT"
        assert doc.content[3].formatting.italic is True
        assert doc.content[4].text == "We **shipped**."

    def test_atom_feed_with_namespace(self):
        doc = XmlBackend().convert(ATOM, "changes.atom")
        assert doc.metadata.format is InputFormat.ATOM
        texts = [i.text for i in doc.content]
        assert texts == [
            "Changelog",
            "Release notes",
            "v1.0",
            "Updated on: 2024-02-01T00:00:00Z",
            "First stable release",
        ]

    def test_generic_xml_kept_as_code(self):
        doc = XmlBackend().convert(b"<catalog><book id='1'/></catalog>", "c.xml")
        item = doc.content[0]
        assert item.type is DocumentItemType.CODE
        assert item.metadata == {"language": "xml", "root": "catalog"}
        assert doc.metadata.format is InputFormat.XML

    def test_malformed_xml_raises(self):
        with pytest.raises(ConversionError, match="Malformed XML"):
            XmlBackend().convert(b"<a><b></a>")


# ---------------------------------------------------------------------------
# IpynbBackend
# ---------------------------------------------------------------------------


def _notebook(**overrides):
    nb = {
        "nbformat": 4,
        "metadata": {
            "kernelspec": {"language": "python"},
            "authors": [{"name": "Ada"}],
        },
        "cells": [
            {"cell_type": "markdown", "source": ["# Analysis\n", "\n", "Intro text."]},
            {
                "cell_type": "code",
                "execution_count": 1,
                "source": "print(1 + 1)",
                "outputs": [{"output_type": "stream", "name": "stdout", "text": ["2\n"]}],
            },
            {"cell_type": "raw", "source": "raw stuff"},
        ],
    }
    nb.update(overrides)
    return json.dumps(nb).encode()


class TestIpynbBackend:
    def test_cells_converted(self):
        doc = IpynbBackend().convert(_notebook(), "analysis.ipynb")
        content = doc.content
        assert (content[0].type, content[0].text) == (DocumentItemType.TITLE, "Analysis")
        assert content[1].text == "Intro text."
        assert content[2].type is DocumentItemType.CODE
        assert content[2].metadata == {"language": "python", "execution_count": 1}
        assert content[3].text == "**Output:**\n2"
        assert content[3].metadata == {"is_output": True}
        assert content[4].metadata["cell_type"] == "raw"

    def test_metadata(self):
        doc = IpynbBackend().convert(_notebook())
        meta = doc.metadata
        assert meta.title == "Analysis"
        assert meta.author == "Ada"
        assert meta.extra == {"language": "python", "nbformat": 4, "cell_count": 3}

    def test_markdown_cell_headings(self):
        items = markdown_cell_items("## Setup\nline one\nline two\n\n### Next")
        assert [(i.type, i.level, i.text) for i in items] == [
            (DocumentItemType.HEADING, 2, "Setup"),
            (DocumentItemType.PARAGRAPH, None, "line one\nline two"),
            (DocumentItemType.HEADING, 3, "Next"),
        ]

    def test_output_text_variants(self):
        outputs = [
            {"output_type": "execute_result", "data": {"text/plain": ["42"]}},
            {"output_type": "display_data", "data": {"image/png": "..."}},
            {"output_type": "error", "ename": "ValueError", "evalue": "bad"},
        ]
        assert output_text(outputs) == "42\n\n[Image output: PNG]\n\n**Error:** ValueError: bad"

    def test_validity(self):
        backend = IpynbBackend()
        assert backend.is_valid(_notebook())
        assert not backend.is_valid(b'{"cells": "nope"}')
        assert not backend.is_valid(b"not json")
