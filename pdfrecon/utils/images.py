"""
Raster image utilities for the layout reconstruction pipeline.

Provides:
- Canonical RGBA raster container
- Decoding of raw extractor output (RGBA, RGB, grayscale) into RGBA
- Statistical validation of decoded images
- PNG / data URI encoding for markup export
"""

import base64
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union
import numpy as np

from ..exceptions import ImageDecodeError

logger = logging.getLogger(__name__)

RawBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True, eq=False)
class RasterImage:
    """Decoded image with a canonical RGBA buffer of shape (height, width, 4)."""
    width: int
    height: int
    pixels: np.ndarray
    is_valid: bool = False
    possibly_flat: bool = False

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image size: {self.width}x{self.height}")
        if not isinstance(self.pixels, np.ndarray) or self.pixels.dtype != np.uint8:
            raise ValueError("RasterImage pixels must be a uint8 numpy array")
        if self.pixels.size != self.width * self.height * 4:
            raise ValueError(
                f"RGBA buffer has {self.pixels.size} bytes, "
                f"expected {self.width * self.height * 4}"
            )
        if self.pixels.shape != (self.height, self.width, 4):
            object.__setattr__(
                self, "pixels", self.pixels.reshape(self.height, self.width, 4)
            )

    @property
    def nbytes(self) -> int:
        return int(self.pixels.size)

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True)
class RasterDescriptor:
    """
    Raw image as handed over by the image extractor.

    The extractor fills either `data` together with `channels`, or only
    `bitmap`, whose layout is inferred from its length.
    """
    width: int
    height: int
    channels: Optional[int] = None
    data: Optional[RawBuffer] = None
    bitmap: Optional[RawBuffer] = None
    name: str = ""


@dataclass
class ValidationResult:
    """Result of statistical image validation."""
    accepted: bool
    non_transparent: int = 0
    mean_color: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    variance: float = 0.0
    possibly_flat: bool = False


# ============================================================================
# Decoding
# ============================================================================

def _as_uint8(buffer: RawBuffer) -> np.ndarray:
    """View any supported raw buffer as a flat uint8 array."""
    if isinstance(buffer, np.ndarray):
        return buffer.astype(np.uint8, copy=False).ravel()
    return np.frombuffer(buffer, dtype=np.uint8)


def _expand_to_rgba(
    values: np.ndarray,
    width: int,
    height: int,
    channels: int
) -> np.ndarray:
    """Expand a flat 4/3/1 channel buffer into an RGBA array."""
    import cv2

    if channels == 4:
        return values.reshape(height, width, 4).copy()
    elif channels == 3:
        return cv2.cvtColor(values.reshape(height, width, 3), cv2.COLOR_RGB2RGBA)
    elif channels == 1:
        return cv2.cvtColor(values.reshape(height, width), cv2.COLOR_GRAY2RGBA)

    raise ImageDecodeError(f"Unsupported channel count: {channels}")


def decode_raster(descriptor: RasterDescriptor) -> RasterImage:
    """
    Convert an extracted raster descriptor to a canonical RGBA image.

    The primary `data` field is used when the channel count is known and the
    buffer length agrees with it. Otherwise the secondary `bitmap` field is
    tried and its layout guessed from its length (RGBA, RGB, then gray).

    Args:
        descriptor: Raw image from the extractor

    Returns:
        RasterImage with an RGBA buffer of width*height*4 bytes

    Raises:
        ImageDecodeError: If no decoding rule applies
    """
    width, height = descriptor.width, descriptor.height
    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Invalid image dimensions: {width}x{height}")

    pixel_count = width * height

    if descriptor.channels in (1, 3, 4) and descriptor.data is not None:
        values = _as_uint8(descriptor.data)
        if values.size == pixel_count * descriptor.channels:
            rgba = _expand_to_rgba(values, width, height, descriptor.channels)
            logger.debug(f"Decoded {descriptor.channels}-channel data ({width}x{height})")
            return RasterImage(width=width, height=height, pixels=rgba)
        logger.debug(
            f"Data length {values.size} does not match {descriptor.channels} "
            f"channels at {width}x{height}"
        )

    if descriptor.bitmap is not None:
        values = _as_uint8(descriptor.bitmap)
        for channels in (4, 3, 1):
            if values.size == pixel_count * channels:
                rgba = _expand_to_rgba(values, width, height, channels)
                logger.debug(f"Decoded bitmap as {channels}-channel ({width}x{height})")
                return RasterImage(width=width, height=height, pixels=rgba)
        logger.debug(
            f"Unknown bitmap length {values.size}, expected RGBA {pixel_count * 4}, "
            f"RGB {pixel_count * 3} or gray {pixel_count}"
        )

    raise ImageDecodeError(
        f"Unrecognized pixel encoding for {width}x{height} image"
        + (f" '{descriptor.name}'" if descriptor.name else "")
    )


# ============================================================================
# Validation
# ============================================================================

def validate_raster(
    image: RasterImage,
    sample_size: int = 100,
    flat_variance: float = 1.0
) -> ValidationResult:
    """
    Check that a decoded image carries visible content.

    The image is downsampled to at most sample_size x sample_size. Only a
    fully transparent sample is rejected; a color variance below
    flat_variance merely flags the image as possibly flat.

    Args:
        image: Decoded RGBA image
        sample_size: Maximum side of the sampled square
        flat_variance: Variance under which the image is reported as flat

    Returns:
        ValidationResult
    """
    import cv2

    size = max(1, min(image.width, image.height, sample_size))
    if (image.width, image.height) != (size, size):
        sample = cv2.resize(image.pixels, (size, size), interpolation=cv2.INTER_AREA)
    else:
        sample = image.pixels

    visible = sample[..., 3] > 0
    non_transparent = int(np.count_nonzero(visible))

    if non_transparent == 0:
        return ValidationResult(accepted=False)

    rgb = sample[..., :3][visible].astype(np.float64)
    mean = rgb.mean(axis=0)
    variance = float(((rgb - mean) ** 2).sum(axis=1).mean())

    return ValidationResult(
        accepted=True,
        non_transparent=non_transparent,
        mean_color=(float(mean[0]), float(mean[1]), float(mean[2])),
        variance=variance,
        possibly_flat=variance < flat_variance
    )


def mark_validated(image: RasterImage, result: ValidationResult) -> RasterImage:
    """Return a copy of the image carrying the validation flags."""
    return replace(image, is_valid=result.accepted, possibly_flat=result.possibly_flat)


# ============================================================================
# Encoding
# ============================================================================

def encode_png(image: RasterImage) -> bytes:
    """Encode an RGBA raster as PNG bytes."""
    import cv2

    bgra = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGRA)
    ok, buffer = cv2.imencode(".png", bgra)
    if not ok:
        raise ValueError(f"Could not encode {image.width}x{image.height} image as PNG")
    return buffer.tobytes()


def to_data_uri(image: RasterImage) -> str:
    """Encode an RGBA raster as a base64 PNG data URI."""
    encoded = base64.b64encode(encode_png(image)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
