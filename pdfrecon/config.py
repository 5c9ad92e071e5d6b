"""
Configuration and constants for the layout reconstruction pipeline.

This module provides:
- Global logging setup
- Heuristic thresholds for line clustering and table detection
- Image validation parameters
- Page strategy parameters
- Input limits
"""

import os
from dataclasses import dataclass, field
from typing import Optional
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdfrecon")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class LayoutConfig:
    """Line clustering and block classification thresholds."""
    # Runs whose origin Y differs by at most this much share a line
    y_tolerance: float = 2.0
    # Horizontal gap (layout units) that separates table columns
    table_gap: float = 80.0
    # A line with many runs spanning this share of the page is a table row
    wide_span_ratio: float = 0.4
    min_wide_runs: int = 3
    min_table_lines: int = 2
    # Font-size ratio to the page mean
    heading1_ratio: float = 1.6
    heading2_ratio: float = 1.3
    heading2_max_length: int = 60


@dataclass
class ImageConfig:
    """Extracted image validation configuration."""
    sample_size: int = 100  # Validation samples at most sample_size x sample_size
    flat_variance: float = 1.0  # Below this the image is flagged as flat color


@dataclass
class StrategyConfig:
    """Per-page structured vs. full-page raster decision."""
    path_op_threshold: int = 100
    raster_scale: float = 2.0


@dataclass
class ExportConfig:
    """Markup export configuration."""
    include_captions: bool = True
    placeholder_text: str = "[Image unavailable]"


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    max_input_bytes: int = 50 * 1024 * 1024
    max_pages: Optional[int] = None  # None = process all pages
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    max_mb = os.environ.get("PDFRECON_MAX_INPUT_MB")
    if max_mb:
        config.max_input_bytes = int(float(max_mb) * 1024 * 1024)

    max_pages = os.environ.get("PDFRECON_MAX_PAGES")
    if max_pages:
        config.max_pages = int(max_pages)

    if os.environ.get("PDFRECON_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
