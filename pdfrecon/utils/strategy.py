"""
Per-page choice between structured extraction and full-page rasterization.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import StrategyConfig

logger = logging.getLogger(__name__)


class PageStrategy(Enum):
    """How a page is reconstructed."""
    STRUCTURED = "structured"
    FULL_PAGE_RASTER = "full_page_raster"


@dataclass(frozen=True)
class PageSignals:
    """Counters describing one page, used only for the strategy decision."""
    text_blocks: int = 0
    image_ops: int = 0
    extracted_images: int = 0
    form_ops: int = 0
    path_ops: int = 0


@dataclass(frozen=True)
class StrategyDecision:
    strategy: PageStrategy
    reason: str

    @property
    def rasterize(self) -> bool:
        return self.strategy is PageStrategy.FULL_PAGE_RASTER


def select_strategy(
    signals: PageSignals,
    config: Optional[StrategyConfig] = None
) -> StrategyDecision:
    """
    Decide how to reconstruct a page. The first matching rule wins:

    1. No text blocks: scanned or image-only page.
    2. Image operators present but no image could be extracted.
    3. Interactive form content.
    4. Heavy vector graphics on a page without text.
    5. Otherwise structured extraction.
    """
    config = config or StrategyConfig()

    if signals.text_blocks == 0:
        return StrategyDecision(PageStrategy.FULL_PAGE_RASTER, "no_text")

    if signals.image_ops > 0 and signals.extracted_images == 0:
        return StrategyDecision(PageStrategy.FULL_PAGE_RASTER, "unextractable_images")

    if signals.form_ops > 0:
        return StrategyDecision(PageStrategy.FULL_PAGE_RASTER, "interactive_forms")

    if signals.path_ops > config.path_op_threshold and signals.text_blocks == 0:
        return StrategyDecision(PageStrategy.FULL_PAGE_RASTER, "complex_graphics")

    return StrategyDecision(PageStrategy.STRUCTURED, "structured")
