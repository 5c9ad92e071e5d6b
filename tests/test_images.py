"""
Tests for raster decoding and validation.
"""

import base64
import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class TestRasterImage:
    """Test the canonical RGBA container."""

    def test_flat_buffer_reshaped(self):
        """Test a flat RGBA buffer is stored as (height, width, 4)."""
        from pdfrecon.utils.images import RasterImage

        image = RasterImage(width=3, height=2, pixels=np.zeros(24, dtype=np.uint8))

        assert image.pixels.shape == (2, 3, 4)
        assert image.nbytes == 24

    def test_wrong_size_rejected(self):
        """Test a buffer that is not width*height*4 is refused."""
        from pdfrecon.utils.images import RasterImage

        with pytest.raises(ValueError):
            RasterImage(width=3, height=2, pixels=np.zeros(18, dtype=np.uint8))

    def test_wrong_dtype_rejected(self):
        """Test non-uint8 pixel arrays are refused."""
        from pdfrecon.utils.images import RasterImage

        with pytest.raises(ValueError):
            RasterImage(width=1, height=1, pixels=np.zeros(4, dtype=np.float32))


class TestDecodeRaster:
    """Test decode_raster."""

    def test_rgba_data(self):
        """Test 4-channel data is copied verbatim."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        raw = np.arange(2 * 2 * 4, dtype=np.uint8)
        image = decode_raster(RasterDescriptor(width=2, height=2, channels=4, data=raw.tobytes()))

        assert image.pixels.shape == (2, 2, 4)
        np.testing.assert_array_equal(image.pixels.ravel(), raw)

    def test_rgb_data_gets_opaque_alpha(self):
        """Test 3-channel data is expanded with alpha 255."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        raw = np.random.RandomState(0).randint(0, 256, 4 * 3 * 3).astype(np.uint8)
        image = decode_raster(RasterDescriptor(width=4, height=3, channels=3, data=raw.tobytes()))

        assert image.nbytes == 4 * 3 * 4
        np.testing.assert_array_equal(image.pixels[..., :3].reshape(-1), raw)
        assert (image.pixels[..., 3] == 255).all()

    def test_gray_data_replicated(self):
        """Test 1-channel data is replicated into R, G and B."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        raw = bytes([0, 64, 128, 255])
        image = decode_raster(RasterDescriptor(width=2, height=2, channels=1, data=raw))

        for channel in range(3):
            assert image.pixels[..., channel].ravel().tolist() == [0, 64, 128, 255]
        assert (image.pixels[..., 3] == 255).all()

    def test_rgb_bitmap_inferred_from_length(self):
        """Test a bitmap of width*height*3 bytes decodes as RGB with opaque alpha."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        width, height = 2, 3
        raw = np.random.RandomState(1).randint(0, 256, width * height * 3).astype(np.uint8)

        image = decode_raster(RasterDescriptor(width=width, height=height, bitmap=raw.tobytes()))

        assert image.nbytes == width * height * 4
        assert (image.pixels[..., 3] == 255).all()
        np.testing.assert_array_equal(image.pixels[..., :3].reshape(-1), raw)

    @pytest.mark.parametrize("channels", [4, 3, 1])
    def test_bitmap_lengths(self, channels):
        """Test every supported bitmap length converts to RGBA."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        raw = bytes(5 * 4 * channels)
        image = decode_raster(RasterDescriptor(width=5, height=4, bitmap=raw))

        assert image.nbytes == 5 * 4 * 4

    def test_mismatched_data_falls_back_to_bitmap(self):
        """Test the bitmap is used when data disagrees with its channel count."""
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        descriptor = RasterDescriptor(
            width=2, height=2, channels=3,
            data=bytes(5),
            bitmap=bytes([9]) * 4
        )
        image = decode_raster(descriptor)

        assert (image.pixels[..., 0] == 9).all()

    def test_unknown_length_raises(self):
        """Test a length that matches no layout raises ImageDecodeError."""
        from pdfrecon.exceptions import ImageDecodeError
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        with pytest.raises(ImageDecodeError):
            decode_raster(RasterDescriptor(width=2, height=2, bitmap=bytes(7)))

    def test_missing_buffers_raise(self):
        """Test a descriptor without pixel data raises ImageDecodeError."""
        from pdfrecon.exceptions import ImageDecodeError
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        with pytest.raises(ImageDecodeError):
            decode_raster(RasterDescriptor(width=2, height=2))

    def test_zero_size_raises(self):
        """Test non-positive dimensions raise ImageDecodeError."""
        from pdfrecon.exceptions import ImageDecodeError
        from pdfrecon.utils.images import RasterDescriptor, decode_raster

        with pytest.raises(ImageDecodeError):
            decode_raster(RasterDescriptor(width=0, height=2, bitmap=b""))


class TestValidateRaster:
    """Test validate_raster."""

    def _image(self, pixels):
        from pdfrecon.utils.images import RasterImage
        height, width = pixels.shape[:2]
        return RasterImage(width=width, height=height, pixels=pixels.astype(np.uint8))

    def test_fully_transparent_rejected(self):
        """Test an image with zero alpha everywhere is rejected."""
        from pdfrecon.utils.images import validate_raster

        result = validate_raster(self._image(np.zeros((20, 30, 4))))

        assert result.accepted is False

    def test_solid_color_flagged_flat(self):
        """Test a single opaque color is accepted but flagged."""
        from pdfrecon.utils.images import validate_raster

        pixels = np.zeros((40, 40, 4))
        pixels[..., 0] = 200
        pixels[..., 3] = 255

        result = validate_raster(self._image(pixels))

        assert result.accepted is True
        assert result.possibly_flat is True
        assert result.mean_color[0] == pytest.approx(200)

    def test_noise_not_flat(self):
        """Test a noisy image has high variance."""
        from pdfrecon.utils.images import validate_raster

        rng = np.random.RandomState(2)
        pixels = rng.randint(0, 256, (50, 50, 4))
        pixels[..., 3] = 255

        result = validate_raster(self._image(pixels))

        assert result.accepted is True
        assert result.possibly_flat is False
        assert result.variance > 1.0

    def test_large_image_sampled(self):
        """Test validation samples at most 100x100 pixels."""
        from pdfrecon.utils.images import validate_raster

        pixels = np.full((300, 400, 4), 255)

        result = validate_raster(self._image(pixels))

        assert result.accepted is True
        assert result.non_transparent <= 100 * 100

    def test_partly_transparent_accepted(self):
        """Test a small opaque region is enough."""
        from pdfrecon.utils.images import validate_raster

        pixels = np.zeros((10, 10, 4))
        pixels[4:6, 4:6] = 255

        assert validate_raster(self._image(pixels)).accepted is True

    def test_mark_validated(self):
        """Test validation flags are carried on a copy."""
        from pdfrecon.utils.images import mark_validated, validate_raster

        image = self._image(np.full((4, 4, 4), 255))
        marked = mark_validated(image, validate_raster(image))

        assert image.is_valid is False
        assert marked.is_valid is True
        assert marked.possibly_flat is True


class TestEncoding:
    """Test PNG encoding."""

    def test_data_uri(self):
        """Test the data URI carries a PNG."""
        from pdfrecon.utils.images import RasterImage, to_data_uri

        image = RasterImage(width=2, height=2, pixels=np.full((2, 2, 4), 128, dtype=np.uint8))
        uri = to_data_uri(image)

        assert uri.startswith("data:image/png;base64,")
        payload = base64.b64decode(uri.split(",", 1)[1])
        assert payload[:8] == b"\x89PNG\r\n\x1a\n"
