"""Tests for ZIP expansion through the owning converter."""

import zipfile

from docsift.backends.archive import ArchiveBackend
from docsift.config.models import ArchiveConfig, ConverterConfig
from docsift.converter import DocumentConverter
from docsift.document.models import (
    ConversionStatus,
    DocumentItemType,
    InputFormat,
    TableItem,
)


def _texts(result):
    return [item.text for item in result.document.content]


class TestArchiveExpansion:
    def test_entries_spliced_in_order(self, converter, zip_factory):
        data = zip_factory({
            "notes.txt": b"Hello from notes.",
            "data.csv": b"a,b\n1,2\n",
        })
        result = converter.convert(data, "bundle.zip")
        assert result.ok
        content = result.document.content
        assert content[0].type is DocumentItemType.TITLE
        assert content[0].text == "ZIP Archive: bundle.zip"
        assert content[1].type is DocumentItemType.HEADING
        assert (content[1].text, content[1].level) == ("File: notes.txt", 2)
        assert content[2].text == "Hello from notes."
        assert content[3].text == "File: data.csv"
        assert isinstance(content[4], TableItem)
        assert result.document.metadata.extra["entry_count"] == 2

    def test_failed_entry_degrades_to_placeholder(self, converter, zip_factory):
        data = zip_factory({
            "good.txt": b"Readable text.",
            "broken.pdf": b"this is not a pdf",
        })
        result = converter.convert(data, "mixed.zip")
        assert result.status is ConversionStatus.SUCCESS
        assert "Readable text." in _texts(result)
        assert _texts(result)[-2:] == ["File: broken.pdf", "Binary file (17 bytes)"]
        assert result.warnings == ["broken.pdf: Invalid pdf document"]

    def test_unsupported_text_entry_inlined_as_code(self, converter, zip_factory):
        data = zip_factory({"script.py": b"print('hi')\n"})
        result = converter.convert(data, "src.zip")
        code = result.document.content[-1]
        assert code.type is DocumentItemType.CODE
        assert code.text == "print('hi')\n"
        assert code.metadata == {"language": "py"}
        assert result.warnings == ["script.py: Unable to detect document format"]

    def test_large_text_entry_truncated(self, zip_factory):
        conv = DocumentConverter(ConverterConfig(
            archive=ArchiveConfig(inline_text_limit=10, preview_chars=4)
        ))
        data = zip_factory({"big.py": b"abcdefghijklmnop"})
        result = conv.convert(data, "src.zip")
        notice, code = result.document.content[-2:]
        assert notice.text == "File is too large to display (16 bytes). Showing first 4 characters:"
        assert code.text == "abcd\n\n... (truncated)"

    def test_directories_skipped(self, converter, zip_factory):
        data = zip_factory({"docs/": b"", "docs/readme.txt": b"Inside."})
        result = converter.convert(data, "tree.zip")
        assert _texts(result) == ["ZIP Archive: tree.zip", "File: docs/readme.txt", "Inside."]

    def test_nested_archive_recurses(self, converter, zip_factory):
        inner = zip_factory({"inner.txt": b"Deep text."})
        outer = zip_factory({"inner.zip": inner}, compression=zipfile.ZIP_STORED)
        result = converter.convert(outer, "outer.zip")
        assert _texts(result) == [
            "ZIP Archive: outer.zip",
            "File: inner.zip",
            "ZIP Archive: inner.zip",
            "File: inner.txt",
            "Deep text.",
        ]

    def test_nested_warnings_propagate(self, converter, zip_factory):
        inner = zip_factory({"x.pdf": b"nope"})
        outer = zip_factory({"inner.zip": inner})
        result = converter.convert(outer, "outer.zip")
        assert result.warnings == ["inner.zip: x.pdf: Invalid pdf document"]

    def test_depth_limit_stops_recursion(self, zip_factory):
        conv = DocumentConverter(ConverterConfig(archive=ArchiveConfig(max_depth=0)))
        inner = zip_factory({"inner.txt": b"Deep text."})
        outer = zip_factory({"inner.zip": inner})
        result = conv.convert(outer, "outer.zip")
        assert result.ok
        assert "Deep text." not in _texts(result)
        assert _texts(result)[-1] == f"Binary file ({len(inner)} bytes)"
        assert "nesting exceeds" in result.warnings[0]

    def test_byte_budget_limits_expansion(self, zip_factory):
        conv = DocumentConverter(ConverterConfig(archive=ArchiveConfig(max_total_bytes=10)))
        data = zip_factory({"a.txt": b"12345678", "b.txt": b"12345678"})
        result = conv.convert(data, "big.zip")
        assert result.ok
        assert "12345678" in _texts(result)
        assert _texts(result)[-1] == "Skipped file (8 bytes): expansion limit reached"
        assert len(result.warnings) == 1

    def test_corrupt_archive_fails_whole_conversion(self, converter):
        result = converter.convert(b"PK\x03\x04garbage", "bad.zip")
        assert result.status is ConversionStatus.FAILURE
        assert result.errors[0].startswith("Invalid ZIP archive")

    def test_non_zip_rejected_by_validity_check(self, converter):
        result = converter.convert(b"plain", "fake.zip")
        assert result.errors == ["Invalid zip document"]


class TestArchiveBackendStandalone:
    def test_without_converter_uses_placeholders(self, zip_factory):
        backend = ArchiveBackend()
        doc = backend.convert(zip_factory({"a.txt": b"alpha", "b.bin": b"\x00\x01"}), "s.zip")
        assert doc.metadata.format is InputFormat.ZIP
        assert doc.content[2].type is DocumentItemType.CODE
        assert doc.content[2].text == "alpha"
        assert doc.content[-1].text == "Binary file (2 bytes)"

    def test_is_valid_checks_signature(self, zip_factory):
        backend = ArchiveBackend()
        assert backend.is_valid(zip_factory({"a.txt": b"x"}))
        assert not backend.is_valid(b"%PDF-")
