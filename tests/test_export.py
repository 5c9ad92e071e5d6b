"""
Tests for the markup serializers and the multi-format exporter.
"""

import json
import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def valid_image():
    from pdfrecon.utils.blocks import Image
    from pdfrecon.utils.images import RasterImage

    pixels = np.full((2, 2, 4), 255, dtype=np.uint8)
    raster = RasterImage(width=2, height=2, pixels=pixels, is_valid=True)
    return Image(pixels=raster, caption="Page 1 - Image 1 (2×2)")


class TestHtmlSerializer:
    """Test HtmlSerializer."""

    @pytest.fixture
    def serializer(self):
        from pdfrecon.utils.export import HtmlSerializer
        return HtmlSerializer()

    def test_heading_and_paragraph(self, serializer):
        """Test headings and paragraphs map to h/p elements."""
        from pdfrecon.utils.blocks import Heading, Paragraph

        html = serializer.serialize([Heading(2, "Intro"), Paragraph("Hello")])

        assert html == "<h2>Intro</h2>\n<p>Hello</p>"

    def test_list_items_grouped(self, serializer):
        """Test consecutive list items share one ul, split by other blocks."""
        from pdfrecon.utils.blocks import ListItem, Paragraph

        html = serializer.serialize([
            ListItem("a"), ListItem("b"), Paragraph("c"), ListItem("d")
        ])

        assert html == (
            "<ul>\n<li>a</li>\n<li>b</li>\n</ul>\n"
            "<p>c</p>\n"
            "<ul>\n<li>d</li>\n</ul>"
        )

    def test_blank_paragraph_skipped(self, serializer):
        """Test whitespace-only paragraphs produce no element."""
        from pdfrecon.utils.blocks import Paragraph

        assert serializer.serialize([Paragraph("   "), Paragraph("x")]) == "<p>x</p>"

    def test_table_header_row(self, serializer):
        """Test the first table row uses th cells."""
        from pdfrecon.utils.blocks import Table

        html = serializer.serialize([Table.from_rows([["Name", "Qty"], ["Apple", "3"]])])

        assert "<tr><th>Name</th><th>Qty</th></tr>" in html
        assert "<tr><td>Apple</td><td>3</td></tr>" in html
        assert html.startswith("<table>") and html.endswith("</table>")

    def test_text_escaped(self, serializer):
        """Test special characters are escaped."""
        from pdfrecon.utils.blocks import Paragraph, Table

        html = serializer.serialize([
            Paragraph('a < b & "c"'),
            Table.from_rows([["<script>"], ["x"]]),
        ])

        assert "<p>a &lt; b &amp; &quot;c&quot;</p>" in html
        assert "<th>&lt;script&gt;</th>" in html
        assert "<script>" not in html

    def test_valid_image_embedded(self, serializer, valid_image):
        """Test valid images become figures with a PNG data URI."""
        html = serializer.serialize([valid_image])

        assert html.startswith("<figure>")
        assert 'src="data:image/png;base64,' in html
        assert "<figcaption>Page 1 - Image 1 (2×2)</figcaption>" in html

    def test_invalid_image_placeholder(self, serializer):
        """Test images without valid pixels keep a placeholder slot."""
        from pdfrecon.utils.blocks import Image

        html = serializer.serialize([Image(caption="Page 2 - Image 1"), Image()])

        assert '<div class="image-placeholder"><p>Page 2 - Image 1</p></div>' in html
        assert "[Image unavailable]" in html
        assert "<img" not in html

    def test_to_page(self, serializer):
        """Test the standalone page wrapper."""
        from pdfrecon.utils.blocks import Paragraph

        page = serializer.to_page([Paragraph("Body")], title="R&D")

        assert page.startswith("<!DOCTYPE html>")
        assert "<title>R&amp;D</title>" in page
        assert "<p>Body</p>" in page
        assert '<meta charset="utf-8">' in page

    def test_empty_sequence(self, serializer):
        """Test no blocks give an empty fragment."""
        assert serializer.serialize([]) == ""


class TestMarkdownSerializer:
    """Test MarkdownSerializer."""

    @pytest.fixture
    def serializer(self):
        from pdfrecon.utils.export import MarkdownSerializer
        return MarkdownSerializer()

    def test_headings_and_lists(self, serializer):
        """Test heading levels and adjacent list items."""
        from pdfrecon.utils.blocks import Heading, ListItem, Paragraph

        md = serializer.serialize([
            Heading(1, "Title"), ListItem("one"), ListItem("two"), Paragraph("End")
        ])

        assert md == "# Title\n\n- one\n- two\n\nEnd\n"

    def test_pipe_table(self, serializer):
        """Test tables render as pipe tables with a separator row."""
        from pdfrecon.utils.blocks import Table

        md = serializer.serialize([Table.from_rows([["A", "B|C"], ["1", "2"]])])

        assert md.splitlines() == [
            "| A | B\\|C |",
            "| --- | --- |",
            "| 1 | 2 |",
        ]

    def test_images(self, serializer, valid_image):
        """Test valid images embed, invalid ones fall back to italics."""
        from pdfrecon.utils.blocks import Image

        md = serializer.serialize([valid_image, Image(caption="Page 3")])

        assert "![Page 1 - Image 1 (2×2)](data:image/png;base64," in md
        assert "*Page 3*" in md


class TestDocumentExporter:
    """Test DocumentExporter."""

    @pytest.fixture
    def document(self):
        from pdfrecon.utils.assembler import Document
        from pdfrecon.utils.blocks import Heading, Paragraph

        return Document(source_file="report.pdf", blocks=[Heading(1, "Report"), Paragraph("Body")])

    def test_export_all(self, tmp_path, document):
        """Test all formats are written."""
        from pdfrecon.utils.export import DocumentExporter

        results = DocumentExporter(tmp_path, "report").export(document, ["all"])

        assert set(results) == {"html", "markdown", "json"}
        assert "<h1>Report</h1>" in (tmp_path / "report.html").read_text(encoding="utf-8")
        assert (tmp_path / "report.md").read_text(encoding="utf-8").startswith("# Report")

        data = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
        assert data["source_file"] == "report.pdf"
        assert data["blocks"][0] == {"type": "heading", "level": 1, "text": "Report"}

    def test_default_formats(self, tmp_path, document):
        """Test HTML and JSON are the defaults."""
        from pdfrecon.utils.export import DocumentExporter

        results = DocumentExporter(tmp_path).export(document)

        assert set(results) == {"html", "json"}

    def test_unknown_format(self, tmp_path, document):
        """Test unknown formats are refused."""
        from pdfrecon.utils.export import DocumentExporter

        with pytest.raises(ValueError):
            DocumentExporter(tmp_path).export(document, ["docx"])
