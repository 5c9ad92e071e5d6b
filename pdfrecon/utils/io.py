"""
I/O utilities for the layout reconstruction pipeline.

Handles:
- Input loading with the size ceiling
- File type detection
- JSON serialization
- Directory management
"""

import json
import logging
from pathlib import Path
from typing import Any, Union
from dataclasses import asdict
from enum import Enum

import numpy as np

from ..exceptions import InputTooLargeError

logger = logging.getLogger(__name__)


# ============================================================================
# Input Loading
# ============================================================================

def check_input_size(size_bytes: int, limit_bytes: int) -> None:
    """Raise InputTooLargeError if size_bytes exceeds the ceiling."""
    if size_bytes > limit_bytes:
        raise InputTooLargeError(size_bytes, limit_bytes)


def read_input(input_path: Union[str, Path], limit_bytes: int) -> bytes:
    """
    Read a source document, refusing files above the size ceiling.

    The size is checked on the file system before anything is read.

    Args:
        input_path: Path to the document
        limit_bytes: Maximum accepted size

    Returns:
        Raw file content

    Raises:
        FileNotFoundError: If the file doesn't exist
        InputTooLargeError: If the file is larger than limit_bytes
    """
    input_path = Path(input_path)
    if not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    check_input_size(input_path.stat().st_size, limit_bytes)

    data = input_path.read_bytes()
    logger.debug(f"Read {len(data)} bytes from {input_path}")
    return data


def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of an input file.

    Returns:
        'pdf' or 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return 'unknown'

    if input_path.suffix.lower() == '.pdf':
        return 'pdf'

    with open(input_path, 'rb') as f:
        if f.read(5) == b'%PDF-':
            return 'pdf'

    return 'unknown'


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values, enums and dataclasses."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, 'to_dict'):
            return obj.to_dict()
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def save_text(text: str, output_path: Union[str, Path]) -> Path:
    """Write a text file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding='utf-8')
    logger.debug(f"Saved text: {output_path}")
    return output_path


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
