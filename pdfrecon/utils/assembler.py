"""
Document assembler module for layout reconstruction.

Provides:
- Document data model (Document, PageResult, PageFailure)
- Per-page pipeline: clustering, table synthesis, image decoding,
  strategy selection
- Page failure isolation
- Metrics calculation
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import PipelineConfig
from ..exceptions import (
    ImageDecodeError,
    NoExtractableContentError,
    PageRenderError,
)
from .blocks import BlockType, ContentBlock, Image
from .images import decode_raster, mark_validated, validate_raster
from .layout import LayoutClusterer
from .pdf_source import DocumentSource, open_source
from .strategy import PageSignals, StrategyDecision, select_strategy

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class PageFailure:
    """A page that contributed no blocks because processing raised."""
    page_number: int
    stage: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"page_number": self.page_number, "stage": self.stage, "error": self.error}


@dataclass
class PageResult:
    """Blocks and diagnostics of one successfully processed page."""
    page_number: int
    blocks: List[ContentBlock] = field(default_factory=list)
    decision: Optional[StrategyDecision] = None
    text_blocks: int = 0
    images_extracted: int = 0
    images_dropped: int = 0

    @property
    def rasterized(self) -> bool:
        return self.decision is not None and self.decision.rasterize

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "strategy": self.decision.strategy.value if self.decision else None,
            "reason": self.decision.reason if self.decision else None,
            "num_blocks": len(self.blocks),
            "text_blocks": self.text_blocks,
            "images_extracted": self.images_extracted,
            "images_dropped": self.images_dropped
        }


@dataclass
class DocumentMetrics:
    """Metrics about document processing."""
    pages_total: int = 0
    pages_processed: int = 0
    pages_failed: int = 0
    pages_rasterized: int = 0

    blocks_total: int = 0
    headings: int = 0
    paragraphs: int = 0
    list_items: int = 0
    tables: int = 0
    images: int = 0
    images_dropped: int = 0

    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": {
                "total": self.pages_total,
                "processed": self.pages_processed,
                "failed": self.pages_failed,
                "rasterized": self.pages_rasterized
            },
            "blocks": {
                "total": self.blocks_total,
                "headings": self.headings,
                "paragraphs": self.paragraphs,
                "list_items": self.list_items,
                "tables": self.tables,
                "images": self.images,
                "images_dropped": self.images_dropped
            },
            "processing_time_seconds": round(self.processing_time_seconds, 2)
        }


@dataclass
class Document:
    """Complete reconstructed document: blocks of all pages in reading order."""
    source_file: str = ""
    blocks: List[ContentBlock] = field(default_factory=list)
    pages: List[PageResult] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)
    metrics: Optional[DocumentMetrics] = None

    task_id: str = ""
    created_at: str = ""
    schema_version: str = "1.0"

    def __post_init__(self):
        if not self.task_id:
            self.task_id = str(uuid.uuid4())
        if not self.created_at:
            self.created_at = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "schema_version": self.schema_version,
            "source_file": self.source_file,
            "created_at": self.created_at,
            "blocks": [b.to_dict() for b in self.blocks],
            "pages": [p.to_dict() for p in self.pages],
            "failures": [f.to_dict() for f in self.failures],
            "metrics": self.metrics.to_dict() if self.metrics else {}
        }


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates the reconstruction pipeline.

    Pages are processed in order. A page that raises contributes no blocks
    and is recorded in Document.failures; the document fails only when no
    page produced anything.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

        # Initialize components lazily
        self._clusterer = None

    @property
    def clusterer(self) -> LayoutClusterer:
        if self._clusterer is None:
            self._clusterer = LayoutClusterer(self.config.layout)
        return self._clusterer

    def _extract_images(
        self,
        source: DocumentSource,
        page_number: int
    ) -> Tuple[List[Image], int]:
        """Decode and validate the embedded images of a page."""
        try:
            descriptors = source.extract_images(page_number)
        except Exception as e:
            logger.warning(f"Image extraction failed on page {page_number}: {e}")
            return [], 0

        images = []
        dropped = 0

        for index, descriptor in enumerate(descriptors, 1):
            try:
                raster = decode_raster(descriptor)
                result = validate_raster(
                    raster,
                    sample_size=self.config.image.sample_size,
                    flat_variance=self.config.image.flat_variance
                )
            except ImageDecodeError as e:
                logger.warning(f"Page {page_number} image {index} skipped: {e}")
                dropped += 1
                continue
            except Exception as e:
                logger.warning(f"Page {page_number} image {index} conversion failed: {e}")
                dropped += 1
                continue

            if not result.accepted:
                logger.warning(f"Page {page_number} image {index} is fully transparent, skipped")
                dropped += 1
                continue

            if result.possibly_flat:
                logger.warning(
                    f"Page {page_number} image {index} may be a flat color "
                    f"(variance {result.variance:.2f}), keeping it"
                )

            logger.debug(
                f"Page {page_number} image {index}: {raster.width}x{raster.height}, "
                f"{result.non_transparent} visible samples, variance {result.variance:.2f}"
            )
            images.append(Image(
                pixels=mark_validated(raster, result),
                caption=f"Page {page_number} - Image {index} ({raster.width}×{raster.height})"
            ))

        return images, dropped

    def _render_full_page(self, source: DocumentSource, page_number: int) -> List[ContentBlock]:
        """Render a page as one image block."""
        try:
            raster = source.render_page(page_number, self.config.strategy.raster_scale)
        except PageRenderError:
            raise
        except Exception as e:
            raise PageRenderError(page_number, e) from e

        result = validate_raster(
            raster,
            sample_size=self.config.image.sample_size,
            flat_variance=self.config.image.flat_variance
        )
        if not result.accepted:
            logger.warning(f"Rendered page {page_number} is fully transparent")
            return []

        logger.info(f"Rendered page {page_number} as image ({raster.width}x{raster.height})")
        return [Image(pixels=mark_validated(raster, result), caption=f"Page {page_number}")]

    def process_page(self, source: DocumentSource, page_number: int) -> PageResult:
        """
        Process a single page.

        Args:
            source: Document source
            page_number: Page number (1-indexed)

        Returns:
            PageResult with the page's blocks in reading order
        """
        page = source.get_page(page_number)
        logger.info(f"Processing page {page_number} ({page.width:.0f}x{page.height:.0f})")

        text_blocks = self.clusterer.cluster(page.text_runs, page.width)
        images, dropped = self._extract_images(source, page_number)

        signals = PageSignals(
            text_blocks=len(text_blocks),
            image_ops=page.image_ops,
            extracted_images=len(images),
            form_ops=page.form_ops,
            path_ops=page.path_ops
        )
        decision = select_strategy(signals, self.config.strategy)
        logger.debug(f"Page {page_number} signals: {signals}, strategy: {decision.strategy.value}")

        result = PageResult(
            page_number=page_number,
            decision=decision,
            text_blocks=len(text_blocks),
            images_extracted=len(images),
            images_dropped=dropped
        )

        if decision.rasterize:
            logger.info(f"Page {page_number} needs full-page rendering ({decision.reason})")
            result.blocks = self._render_full_page(source, page_number)
        else:
            result.blocks = text_blocks + images

        logger.info(
            f"Page {page_number} done - text blocks: {len(text_blocks)}, "
            f"images: {len(images)}, strategy: {decision.strategy.value}"
        )
        return result

    def process_document(
        self,
        source: DocumentSource,
        source_file: str = "",
        pages: Optional[Iterable[int]] = None
    ) -> Document:
        """
        Process a complete document.

        Args:
            source: Document source
            source_file: Original source file path, recorded in the output
            pages: Optional 1-indexed page numbers to process (default all)

        Returns:
            Document with the blocks of all pages

        Raises:
            NoExtractableContentError: If no page produced any block
        """
        start_time = time.time()
        page_count = source.page_count

        if pages is None:
            page_numbers = list(range(1, page_count + 1))
        else:
            page_numbers = [n for n in pages if 1 <= n <= page_count]
        if self.config.max_pages is not None:
            page_numbers = page_numbers[:self.config.max_pages]

        doc = Document(source_file=source_file)

        for page_number in page_numbers:
            try:
                page_result = self.process_page(source, page_number)
            except Exception as e:
                stage = getattr(e, "stage", "process")
                logger.error(f"Page {page_number} failed during {stage}: {e}",
                             exc_info=self.config.debug_mode)
                doc.failures.append(PageFailure(page_number, stage, str(e)))
                continue

            doc.pages.append(page_result)
            doc.blocks.extend(page_result.blocks)

        doc.metrics = self._calculate_metrics(doc, len(page_numbers), time.time() - start_time)

        logger.info(
            f"Document assembled: {doc.metrics.blocks_total} blocks from "
            f"{doc.metrics.pages_processed}/{len(page_numbers)} pages "
            f"({doc.metrics.pages_failed} failed, {doc.metrics.pages_rasterized} rasterized)"
        )

        if not doc.blocks:
            raise NoExtractableContentError(
                "No extractable content found, the PDF may be scanned or image-only"
            )

        return doc

    def _calculate_metrics(
        self,
        doc: Document,
        pages_total: int,
        processing_time: float
    ) -> DocumentMetrics:
        """Calculate document-wide metrics."""
        metrics = DocumentMetrics()
        metrics.processing_time_seconds = processing_time
        metrics.pages_total = pages_total
        metrics.pages_processed = len(doc.pages)
        metrics.pages_failed = len(doc.failures)
        metrics.pages_rasterized = sum(1 for p in doc.pages if p.rasterized)
        metrics.images_dropped = sum(p.images_dropped for p in doc.pages)
        metrics.blocks_total = len(doc.blocks)

        for block in doc.blocks:
            if block.block_type == BlockType.HEADING:
                metrics.headings += 1
            elif block.block_type == BlockType.PARAGRAPH:
                metrics.paragraphs += 1
            elif block.block_type == BlockType.LIST_ITEM:
                metrics.list_items += 1
            elif block.block_type == BlockType.TABLE:
                metrics.tables += 1
            elif block.block_type == BlockType.IMAGE:
                metrics.images += 1

        return metrics


def reconstruct_pdf(
    data: bytes,
    config: Optional[PipelineConfig] = None,
    source_file: str = "",
    pages: Optional[Iterable[int]] = None,
    rasterizer=None
) -> Document:
    """
    Reconstruct a PDF held in memory.

    Raises:
        InputRejectedError: If the input is too large, corrupt or encrypted
        NoExtractableContentError: If no page produced any block
    """
    config = config or PipelineConfig()
    with open_source(data, config, rasterizer=rasterizer) as source:
        assembler = DocumentAssembler(config)
        return assembler.process_document(source, source_file=source_file, pages=pages)
