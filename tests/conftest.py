"""Shared test fixtures for docsift."""

import io
import zipfile

import pytest

from docsift.converter import DocumentConverter
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


@pytest.fixture
def converter():
    return DocumentConverter()


@pytest.fixture
def zip_factory():
    """Build an in-memory ZIP archive from a ``{path: bytes}`` mapping."""

    def build(entries, compression=zipfile.ZIP_DEFLATED):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
            for path, data in entries.items():
                archive.writestr(path, data)
        return buffer.getvalue()

    return build


@pytest.fixture
def docx_bytes():
    import docx

    document = docx.Document()
    document.add_heading("Quarterly Report", level=1)
    document.add_paragraph("Revenue grew in every region.")
    document.add_heading("Details", level=2)
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Region"
    table.cell(0, 1).text = "Growth"
    table.cell(1, 0).text = "North"
    table.cell(1, 1).text = "12%"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def pptx_bytes():
    from pptx import Presentation
    from pptx.util import Inches

    presentation = Presentation()
    presentation.core_properties.title = "Roadmap"

    slide = presentation.slides.add_slide(presentation.slide_layouts[1])
    slide.shapes.title.text = "Goals"
    slide.placeholders[1].text_frame.text = "Ship the converter"
    slide.notes_slide.notes_text_frame.text = "Mention the deadline"

    table_slide = presentation.slides.add_slide(presentation.slide_layouts[5])
    table_slide.shapes.title.text = "Budget"
    shape = table_slide.shapes.add_table(3, 2, Inches(1), Inches(2), Inches(4), Inches(2))
    for r, row in enumerate([("Item", "Cost"), ("Servers", "100"), ("Licenses", "50")]):
        for c, text in enumerate(row):
            shape.table.cell(r, c).text = text

    buffer = io.BytesIO()
    presentation.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def xlsx_bytes():
    from openpyxl import Workbook

    workbook = Workbook()
    workbook.properties.title = "Inventory"
    workbook.properties.creator = "Grace Hopper"
    sheet = workbook.active
    sheet.title = "Stock"
    sheet.append(["Item", "Count", "Price"])
    sheet.append(["Widget", 4, 2.5])
    sheet.append([None, None, None])
    sheet.append(["Gadget", 10.0])
    workbook.create_sheet("Empty")

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_document():
    """A document touching every item kind the Markdown exporter renders."""
    return Document(
        metadata=DocumentMetadata(
            filename="sample.html",
            format=InputFormat.HTML,
            title="Sample",
            author="Jane Doe",
            extra={"keywords": "demo"},
        ),
        content=[
            DocumentItem(type=DocumentItemType.TITLE, text="Sample", level=1),
            DocumentItem(type=DocumentItemType.HEADING, text="Intro", level=2),
            DocumentItem(
                type=DocumentItemType.PARAGRAPH,
                text="Hello",
                formatting=Formatting(bold=True),
            ),
            DocumentItem(
                type=DocumentItemType.LIST,
                metadata={"ordered": False},
                children=[
                    DocumentItem(type=DocumentItemType.LIST_ITEM, text="one"),
                    DocumentItem(type=DocumentItemType.LIST_ITEM, text="two"),
                ],
            ),
            TableItem.from_rows([
                [TableCell(text="A", is_header=True), TableCell(text="B", is_header=True)],
                [TableCell(text="1"), TableCell(text="2")],
            ]),
            DocumentItem(type=DocumentItemType.CODE, text="print('hi')"),
            ImageItem(src="logo.png", alt="Logo"),
        ],
    )
