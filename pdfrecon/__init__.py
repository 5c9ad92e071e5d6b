"""
PDF Layout Reconstruction
=========================

Rebuilds the logical structure of a PDF from positioned text runs,
embedded images and page-level operator statistics, and serializes it
as HTML, Markdown or JSON.

Main components:
- Geometry clustering (lines, headings, list items, paragraphs)
- Table synthesis from column-aligned lines
- Embedded image decoding and validation
- Per-page strategy (structured extraction or full-page rendering)
- Document assembly with page failure isolation
- Markup export
"""

__version__ = "1.0.0"
__author__ = "pdfrecon contributors"
