"""
Utility modules for the layout reconstruction pipeline.
"""

from .io import read_input, save_json, ensure_dir
from .images import RasterImage, RasterDescriptor, decode_raster, validate_raster, to_data_uri
from .blocks import BlockType, ContentBlock, Heading, Paragraph, ListItem, Table, Image
from .layout import TextRun, Line, LayoutClusterer, group_lines
from .tables import TableSynthesizer
from .strategy import PageSignals, PageStrategy, StrategyDecision, select_strategy
from .pdf_source import PageContent, DocumentSource, PyMuPDFSource, Pdf2ImageRasterizer, open_source
from .assembler import DocumentAssembler, Document, PageResult, PageFailure, reconstruct_pdf
from .export import HtmlSerializer, MarkdownSerializer, DocumentExporter

__all__ = [
    # IO
    "read_input", "save_json", "ensure_dir",
    # Images
    "RasterImage", "RasterDescriptor", "decode_raster", "validate_raster", "to_data_uri",
    # Blocks
    "BlockType", "ContentBlock", "Heading", "Paragraph", "ListItem", "Table", "Image",
    # Layout
    "TextRun", "Line", "LayoutClusterer", "group_lines",
    # Tables
    "TableSynthesizer",
    # Strategy
    "PageSignals", "PageStrategy", "StrategyDecision", "select_strategy",
    # Sources
    "PageContent", "DocumentSource", "PyMuPDFSource", "Pdf2ImageRasterizer", "open_source",
    # Assembly
    "DocumentAssembler", "Document", "PageResult", "PageFailure", "reconstruct_pdf",
    # Export
    "HtmlSerializer", "MarkdownSerializer", "DocumentExporter",
]
