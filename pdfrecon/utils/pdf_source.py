"""
PDF collaborators for the reconstruction pipeline.

Provides:
- The page content record and document source interface the assembler uses
- A PyMuPDF-backed source (text runs, operator summary, embedded images)
- A pdf2image (poppler) rasterizer for full-page rendering

Text run coordinates are converted to a bottom-left origin so that larger
Y means higher on the page.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np

from ..config import PipelineConfig
from ..exceptions import CorruptDocumentError, PageRenderError, PasswordProtectedError
from .images import RasterDescriptor, RasterImage, decode_raster
from .io import check_input_size
from .layout import TextRun

logger = logging.getLogger(__name__)


# ============================================================================
# Interfaces
# ============================================================================

@dataclass
class PageContent:
    """Everything the pipeline needs to know about one page."""
    page_number: int
    width: float
    height: float
    text_runs: List[TextRun] = field(default_factory=list)
    image_ops: int = 0
    form_ops: int = 0
    path_ops: int = 0


class DocumentSource:
    """
    Container parser, image extractor and rasterizer for one document.

    Page numbers are 1-indexed.
    """

    @property
    def page_count(self) -> int:
        raise NotImplementedError

    def get_page(self, page_number: int) -> PageContent:
        raise NotImplementedError

    def extract_images(self, page_number: int) -> List[RasterDescriptor]:
        raise NotImplementedError

    def render_page(self, page_number: int, scale: float) -> RasterImage:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


# ============================================================================
# Rasterizer
# ============================================================================

class Pdf2ImageRasterizer:
    """Render single pages with pdf2image (poppler backend)."""

    BASE_DPI = 72

    def __init__(self, data: bytes, thread_count: int = 1):
        self.data = data
        self.thread_count = thread_count

    def render(self, page_number: int, scale: float) -> RasterImage:
        """
        Render a page at `scale` times its natural size.

        Raises:
            PageRenderError: If poppler is missing or the page cannot be rendered
        """
        try:
            from pdf2image import convert_from_bytes
        except ImportError as e:
            raise PageRenderError(page_number, e) from e

        dpi = int(round(self.BASE_DPI * scale))
        try:
            pil_images = convert_from_bytes(
                self.data,
                dpi=dpi,
                first_page=page_number,
                last_page=page_number,
                fmt='png',
                thread_count=self.thread_count
            )
        except Exception as e:
            if "poppler" in str(e).lower():
                logger.error(
                    "Poppler is not installed. Install with:\n"
                    "  macOS: brew install poppler\n"
                    "  Linux: sudo apt-get install poppler-utils"
                )
            raise PageRenderError(page_number, e) from e

        if not pil_images:
            raise PageRenderError(page_number)

        rgba = np.array(pil_images[0].convert("RGBA"))
        height, width = rgba.shape[:2]
        logger.debug(f"Rendered page {page_number} at {dpi} DPI ({width}x{height})")

        return decode_raster(RasterDescriptor(width=width, height=height, channels=4, data=rgba))


# ============================================================================
# PyMuPDF Source
# ============================================================================

class PyMuPDFSource(DocumentSource):
    """Document source backed by PyMuPDF."""

    def __init__(self, data: bytes, rasterizer=None):
        import fitz

        try:
            self._doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise CorruptDocumentError(
                f"Failed to open PDF document: {e}", original_error=e
            ) from e

        if self._doc.needs_pass:
            self._doc.close()
            raise PasswordProtectedError(
                "PDF document is password-protected, remove the password before importing"
            )

        self.rasterizer = rasterizer or Pdf2ImageRasterizer(data)

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def get_page(self, page_number: int) -> PageContent:
        page = self._doc[page_number - 1]
        width, height = page.rect.width, page.rect.height

        runs = []
        page_dict = page.get_text("dict")
        for block in page_dict.get("blocks", []):
            if block.get("type") != 0:  # Text blocks only
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "").replace("\x00", "")
                    if not text:
                        continue
                    x0, y0, x1, y1 = span["bbox"]
                    origin_x, origin_y = span.get("origin", (x0, y1))
                    runs.append(TextRun(
                        text=text,
                        x=float(origin_x),
                        y=float(height - origin_y),
                        font_size=abs(float(span.get("size", 0.0))),
                        width=float(x1 - x0),
                        height=float(y1 - y0),
                        font_name=span.get("font", "")
                    ))

        path_ops = sum(len(d.get("items", [])) for d in page.get_drawings())
        form_ops = sum(1 for _ in page.widgets())
        image_ops = len(page.get_image_info())

        logger.debug(
            f"Page {page_number}: {len(runs)} runs, {image_ops} image ops, "
            f"{form_ops} form ops, {path_ops} path ops"
        )

        return PageContent(
            page_number=page_number,
            width=width,
            height=height,
            text_runs=runs,
            image_ops=image_ops,
            form_ops=form_ops,
            path_ops=path_ops
        )

    def _load_pixmap(self, xref: int, smask: int):
        """Load an image XObject as a gray/RGB pixmap, with alpha from its soft mask."""
        import fitz

        pix = fitz.Pixmap(self._doc, xref)
        if pix.colorspace is not None and pix.colorspace.n not in (1, 3):
            pix = fitz.Pixmap(fitz.csRGB, pix)
        if smask and not pix.alpha:
            pix = fitz.Pixmap(pix, fitz.Pixmap(self._doc, smask))
        if pix.n == 2:  # Gray + alpha
            pix = fitz.Pixmap(fitz.csRGB, pix)
        return pix

    def extract_images(self, page_number: int) -> List[RasterDescriptor]:
        page = self._doc[page_number - 1]
        descriptors = []

        for index, info in enumerate(page.get_images(full=True), 1):
            xref, smask = info[0], info[1]
            name = f"page{page_number}_img{index}"
            try:
                pix = self._load_pixmap(xref, smask)
            except Exception as e:
                logger.warning(f"Could not load image {index} on page {page_number}: {e}")
                continue

            if pix.n in (1, 3, 4):
                descriptors.append(RasterDescriptor(
                    width=pix.width, height=pix.height,
                    channels=pix.n, data=pix.samples, name=name
                ))
            else:
                descriptors.append(RasterDescriptor(
                    width=pix.width, height=pix.height,
                    bitmap=pix.samples, name=name
                ))

        return descriptors

    def render_page(self, page_number: int, scale: float) -> RasterImage:
        return self.rasterizer.render(page_number, scale)

    def close(self):
        self._doc.close()


def open_source(data: bytes, config: Optional[PipelineConfig] = None, rasterizer=None) -> PyMuPDFSource:
    """
    Check the input against the size ceiling and open it.

    Raises:
        InputTooLargeError: If the input exceeds config.max_input_bytes
        CorruptDocumentError: If the bytes are not a readable PDF
        PasswordProtectedError: If the PDF needs a password
    """
    config = config or PipelineConfig()
    check_input_size(len(data), config.max_input_bytes)
    if not data:
        raise CorruptDocumentError("Input is empty")

    source = PyMuPDFSource(data, rasterizer=rasterizer)
    logger.info(f"Opened PDF with {source.page_count} page(s), {len(data) / 1024 / 1024:.2f} MB")
    return source
