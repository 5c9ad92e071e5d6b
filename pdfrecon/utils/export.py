"""
Export module for reconstructed documents.

Provides:
- HTML serialization of a block sequence (fragment or standalone page)
- Markdown serialization
- Multi-format export to files (HTML, Markdown, JSON)
"""

import html
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..config import ExportConfig
from .blocks import ContentBlock, Heading, Image, ListItem, Paragraph, Table
from .images import to_data_uri
from .io import save_json, save_text

logger = logging.getLogger(__name__)


PAGE_STYLE = """\
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 800px; margin: 40px auto; padding: 20px; line-height: 1.6; }
    h1, h2, h3 { color: #333; }
    table { border-collapse: collapse; width: 100%; margin: 16px 0; }
    th, td { border: 1px solid #ddd; padding: 8px 12px; text-align: left; }
    th { background-color: #f5f5f5; }
    figure { text-align: center; margin: 24px 0; }
    figcaption { font-size: 14px; color: #6b7280; font-style: italic; }
    img { max-width: 100%; }
    .image-placeholder { margin: 20px 0; padding: 24px; border: 2px dashed #d1d5db; text-align: center; color: #9ca3af; font-style: italic; }"""


def _escape_html(text: str) -> str:
    """Escape special HTML characters."""
    if not text:
        return ""
    return html.escape(text, quote=True)


# ============================================================================
# HTML Serializer
# ============================================================================

class HtmlSerializer:
    """Serialize a block sequence to HTML."""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def serialize(self, blocks: Sequence[ContentBlock]) -> str:
        """
        Convert blocks to an HTML fragment.

        Consecutive list items are grouped into one <ul>.

        Args:
            blocks: Blocks in reading order

        Returns:
            HTML string, one element per line group
        """
        parts: List[str] = []
        list_items: List[str] = []

        def flush_list():
            if list_items:
                parts.append("<ul>")
                parts.extend(f"<li>{_escape_html(item)}</li>" for item in list_items)
                parts.append("</ul>")
                list_items.clear()

        for block in blocks:
            if isinstance(block, ListItem):
                list_items.append(block.text)
                continue

            flush_list()
            rendered = self._block_to_html(block)
            if rendered:
                parts.append(rendered)

        flush_list()

        return "\n".join(parts)

    def _block_to_html(self, block: ContentBlock) -> str:
        if isinstance(block, Heading):
            return f"<h{block.level}>{_escape_html(block.text)}</h{block.level}>"

        elif isinstance(block, Paragraph):
            if not block.text.strip():
                return ""
            return f"<p>{_escape_html(block.text)}</p>"

        elif isinstance(block, Table):
            return self._table_to_html(block)

        elif isinstance(block, Image):
            return self._image_to_html(block)

        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _table_to_html(self, table: Table) -> str:
        lines = ["<table>"]
        for row_index, row in enumerate(table.rows):
            tag = "th" if row_index == 0 else "td"
            cells = "".join(f"<{tag}>{_escape_html(cell)}</{tag}>" for cell in row)
            lines.append(f"<tr>{cells}</tr>")
        lines.append("</table>")
        return "\n".join(lines)

    def _image_to_html(self, image: Image) -> str:
        if not image.renderable:
            text = image.caption or self.config.placeholder_text
            return f'<div class="image-placeholder"><p>{_escape_html(text)}</p></div>'

        alt = _escape_html(image.caption or "Image")
        lines = ["<figure>", f'<img src="{to_data_uri(image.pixels)}" alt="{alt}" />']
        if self.config.include_captions and image.caption:
            lines.append(f"<figcaption>{_escape_html(image.caption)}</figcaption>")
        lines.append("</figure>")
        return "\n".join(lines)

    def to_page(self, blocks: Sequence[ContentBlock], title: str = "Document") -> str:
        """Wrap the serialized blocks in a standalone HTML page."""
        body = self.serialize(blocks)
        return (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head>\n"
            '  <meta charset="utf-8">\n'
            f"  <title>{_escape_html(title)}</title>\n"
            "  <style>\n"
            f"{PAGE_STYLE}\n"
            "  </style>\n"
            "</head>\n"
            "<body>\n"
            f"{body}\n"
            "</body>\n"
            "</html>\n"
        )


# ============================================================================
# Markdown Serializer
# ============================================================================

class MarkdownSerializer:
    """Serialize a block sequence to Markdown."""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def serialize(self, blocks: Sequence[ContentBlock]) -> str:
        chunks: List[str] = []
        list_items: List[str] = []

        for block in blocks:
            if isinstance(block, ListItem):
                list_items.append(f"- {block.text}")
                continue

            if list_items:
                chunks.append("\n".join(list_items))
                list_items = []

            md = self._block_to_markdown(block)
            if md:
                chunks.append(md)

        if list_items:
            chunks.append("\n".join(list_items))

        return "\n\n".join(chunks) + "\n" if chunks else ""

    def _block_to_markdown(self, block: ContentBlock) -> str:
        if isinstance(block, Heading):
            return f"{'#' * block.level} {block.text}"

        elif isinstance(block, Paragraph):
            return block.text.strip()

        elif isinstance(block, Table):
            return self._table_to_markdown(block)

        elif isinstance(block, Image):
            if block.renderable:
                return f"![{block.caption}]({to_data_uri(block.pixels)})"
            return f"*{block.caption or self.config.placeholder_text}*"

        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _table_to_markdown(self, table: Table) -> str:
        def row_to_md(row):
            cells = [cell.replace("|", "\\|") for cell in row]
            return "| " + " | ".join(cells) + " |"

        lines = [row_to_md(table.header)]
        lines.append("| " + " | ".join(["---"] * table.num_cols) + " |")
        lines.extend(row_to_md(row) for row in table.body)
        return "\n".join(lines)


# ============================================================================
# Multi-Format Exporter
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    FORMATS = ("html", "markdown", "json")

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document",
        config: Optional[ExportConfig] = None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name

        self.html_serializer = HtmlSerializer(config)
        self.markdown_serializer = MarkdownSerializer(config)

    def export(self, document, formats: Optional[List[str]] = None) -> Dict[str, Path]:
        """
        Export a document to multiple formats.

        Args:
            document: Document produced by the assembler
            formats: List of formats ('html', 'markdown', 'json', 'all')

        Returns:
            Dictionary mapping format to output path
        """
        if formats is None:
            formats = ["html", "json"]

        if "all" in formats:
            formats = list(self.FORMATS)

        unknown = [f for f in formats if f not in self.FORMATS]
        if unknown:
            raise ValueError(f"Unknown export format(s): {', '.join(unknown)}")

        self.output_dir.mkdir(parents=True, exist_ok=True)

        results = {}

        if "html" in formats:
            page = self.html_serializer.to_page(document.blocks, title=self.base_name)
            results["html"] = save_text(page, self.output_dir / f"{self.base_name}.html")

        if "markdown" in formats:
            markdown = self.markdown_serializer.serialize(document.blocks)
            results["markdown"] = save_text(markdown, self.output_dir / f"{self.base_name}.md")

        if "json" in formats:
            results["json"] = save_json(document.to_dict(), self.output_dir / f"{self.base_name}.json")

        for fmt, path in results.items():
            logger.info(f"Exported {fmt} to: {path}")

        return results
