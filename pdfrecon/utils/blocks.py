"""
Content blocks of a reconstructed document.

A document is an ordered sequence of blocks. The block family is closed:
Heading, Paragraph, ListItem, Table and Image. Each block validates its
payload when it is created and cannot be changed afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from .images import RasterImage


class BlockType(Enum):
    """Types of content blocks."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST_ITEM = "list_item"
    TABLE = "table"
    IMAGE = "image"


class ContentBlock:
    """Base class of all content blocks."""

    block_type: BlockType

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Heading(ContentBlock):
    level: int
    text: str

    block_type = BlockType.HEADING

    def __post_init__(self):
        if self.level not in (1, 2, 3):
            raise ValueError(f"Heading level must be 1..3, got {self.level}")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.block_type.value, "level": self.level, "text": self.text}


@dataclass(frozen=True)
class Paragraph(ContentBlock):
    text: str

    block_type = BlockType.PARAGRAPH

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.block_type.value, "text": self.text}


@dataclass(frozen=True)
class ListItem(ContentBlock):
    text: str

    block_type = BlockType.LIST_ITEM

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.block_type.value, "text": self.text}


@dataclass(frozen=True)
class Table(ContentBlock):
    """Rectangular grid of cell strings; the first row is the header."""
    rows: Tuple[Tuple[str, ...], ...]

    block_type = BlockType.TABLE

    def __post_init__(self):
        rows = tuple(tuple(str(cell) for cell in row) for row in self.rows)
        if not rows:
            raise ValueError("Table needs at least one row")
        widths = {len(row) for row in rows}
        if len(widths) != 1 or 0 in widths:
            raise ValueError(f"Table rows must share one non-zero width, got {sorted(widths)}")
        object.__setattr__(self, "rows", rows)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[str]]) -> 'Table':
        return cls(rows=tuple(tuple(row) for row in rows))

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        return len(self.rows[0])

    @property
    def header(self) -> Tuple[str, ...]:
        return self.rows[0]

    @property
    def body(self) -> Tuple[Tuple[str, ...], ...]:
        return self.rows[1:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.block_type.value,
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "rows": [list(row) for row in self.rows],
        }


@dataclass(frozen=True, eq=False)
class Image(ContentBlock):
    """Embedded raster; pixels is None when the slot has no usable image."""
    pixels: Optional[RasterImage] = None
    caption: str = ""

    block_type = BlockType.IMAGE

    @property
    def renderable(self) -> bool:
        return self.pixels is not None and self.pixels.is_valid

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.block_type.value,
            "caption": self.caption,
            "valid": self.renderable,
        }
        if self.pixels is not None:
            result["width"] = self.pixels.width
            result["height"] = self.pixels.height
            result["possibly_flat"] = self.pixels.possibly_flat
        return result
