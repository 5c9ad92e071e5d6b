"""
Tests for CLI helpers, configuration and input loading.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class TestParsePageRange:
    """Test parse_page_range."""

    def test_ranges_and_singles(self):
        """Test mixed ranges and single pages."""
        from pdfrecon.cli import parse_page_range

        assert parse_page_range("1-3,5", 10) == [1, 2, 3, 5]

    def test_clamped_to_page_count(self):
        """Test pages beyond the document are dropped."""
        from pdfrecon.cli import parse_page_range

        assert parse_page_range("2-20", 4) == [2, 3, 4]
        assert parse_page_range("7", 4) == []

    def test_duplicates_removed(self):
        """Test overlapping parts are merged."""
        from pdfrecon.cli import parse_page_range

        assert parse_page_range("3, 1-3 ,3", 5) == [1, 2, 3]

    @pytest.mark.parametrize("value", ["abc", "3-1", "0", "1-x"])
    def test_invalid(self, value):
        """Test malformed ranges raise ValueError."""
        from pdfrecon.cli import parse_page_range

        with pytest.raises(ValueError):
            parse_page_range(value, 5)


class TestArgparser:
    """Test argument parsing."""

    def test_defaults(self):
        """Test default formats and flags."""
        from pdfrecon.cli import setup_argparser

        args = setup_argparser().parse_args(["-i", "in.pdf", "-o", "out"])

        assert args.format == ["html", "json"]
        assert args.pages is None
        assert args.max_size_mb is None
        assert not args.debug

    def test_rejects_unknown_format(self):
        """Test unknown formats are refused by argparse."""
        from pdfrecon.cli import setup_argparser

        with pytest.raises(SystemExit):
            setup_argparser().parse_args(["-i", "in.pdf", "-o", "out", "-f", "docx"])


class TestConfig:
    """Test configuration defaults and environment overrides."""

    def test_defaults(self):
        """Test default thresholds."""
        from pdfrecon.config import PipelineConfig

        config = PipelineConfig()

        assert config.layout.y_tolerance == 2.0
        assert config.layout.table_gap == 80.0
        assert config.layout.heading1_ratio == 1.6
        assert config.layout.heading2_ratio == 1.3
        assert config.image.sample_size == 100
        assert config.strategy.path_op_threshold == 100
        assert config.strategy.raster_scale == 2.0
        assert config.max_input_bytes == 50 * 1024 * 1024

    def test_env_overrides(self, monkeypatch):
        """Test environment variables override defaults."""
        from pdfrecon.config import get_config

        monkeypatch.setenv("PDFRECON_MAX_INPUT_MB", "5")
        monkeypatch.setenv("PDFRECON_MAX_PAGES", "3")
        monkeypatch.setenv("PDFRECON_DEBUG", "true")

        config = get_config()

        assert config.max_input_bytes == 5 * 1024 * 1024
        assert config.max_pages == 3
        assert config.debug_mode is True


class TestReadInput:
    """Test input loading."""

    def test_reads_file(self, tmp_path):
        """Test file content is returned."""
        from pdfrecon.utils.io import read_input

        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.7 data")

        assert read_input(path, 1024) == b"%PDF-1.7 data"

    def test_size_checked_before_reading(self, tmp_path):
        """Test oversized files raise InputTooLargeError."""
        from pdfrecon.exceptions import InputTooLargeError
        from pdfrecon.utils.io import read_input

        path = tmp_path / "big.pdf"
        path.write_bytes(b"x" * 2048)

        with pytest.raises(InputTooLargeError) as exc_info:
            read_input(path, 1024)

        assert exc_info.value.size_bytes == 2048

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        from pdfrecon.utils.io import read_input

        with pytest.raises(FileNotFoundError):
            read_input(tmp_path / "missing.pdf", 1024)

    def test_detect_input_type(self, tmp_path):
        """Test PDF detection by suffix and by magic bytes."""
        from pdfrecon.utils.io import detect_input_type

        by_suffix = tmp_path / "a.PDF"
        by_suffix.write_bytes(b"anything")
        by_magic = tmp_path / "scan.bin"
        by_magic.write_bytes(b"%PDF-1.4\n")
        other = tmp_path / "notes.txt"
        other.write_text("hello")

        assert detect_input_type(by_suffix) == "pdf"
        assert detect_input_type(by_magic) == "pdf"
        assert detect_input_type(other) == "unknown"
        assert detect_input_type(tmp_path / "missing.pdf") == "unknown"
