"""
Layout reconstruction from positioned text runs.

Provides:
- Grouping of text runs into lines (baseline clustering)
- Line classification (heading, paragraph, list item, table row)
- Buffering of table-row candidates and hand-off to the table synthesizer
- Reading order (top-to-bottom, left-to-right)

Coordinates follow the source convention: origin at the bottom-left of the
page, Y grows upward, so the first line of a page has the largest Y.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..config import LayoutConfig
from .blocks import ContentBlock, Heading, ListItem, Paragraph
from .tables import TableSynthesizer

logger = logging.getLogger(__name__)

# Bullet glyphs, "1." / "1)" / "a." enumerators, and CJK numerals ("一、")
LIST_PREFIX = re.compile(
    r'^(?:[•●○▪▫■□◆◇→➢►✓✔◦‣⁃]+\s*'
    r'|-\s+'
    r'|\d+[.)]\s+'
    r'|[a-z][.)]\s+'
    r'|[一二三四五六七八九十]+[、.]\s*)'
)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class TextRun:
    """A piece of rendered text with its origin and font size."""
    text: str
    x: float
    y: float
    font_size: float
    width: float = 0.0
    height: float = 0.0
    font_name: str = ""

    @property
    def right(self) -> float:
        return self.x + self.width

    @classmethod
    def from_transform(
        cls,
        text: str,
        transform: Sequence[float],
        width: float = 0.0,
        height: float = 0.0,
        font_name: str = ""
    ) -> 'TextRun':
        """Build a run from a text matrix [a, b, c, d, e, f]."""
        return cls(
            text=text,
            x=float(transform[4]),
            y=float(transform[5]),
            font_size=abs(float(transform[0])),
            width=width,
            height=height,
            font_name=font_name
        )


@dataclass
class Line:
    """Text runs sharing one baseline."""
    y: float
    runs: List[TextRun] = field(default_factory=list)

    @property
    def font_size(self) -> float:
        return max((run.font_size for run in self.runs), default=0.0)

    @property
    def sorted_runs(self) -> List[TextRun]:
        return sorted(self.runs, key=lambda r: r.x)

    @property
    def text(self) -> str:
        parts = (run.text.strip() for run in self.sorted_runs)
        return " ".join(p for p in parts if p)

    @property
    def x_min(self) -> float:
        return min(run.x for run in self.runs)

    @property
    def x_max(self) -> float:
        return max(run.right for run in self.runs)

    @property
    def span(self) -> float:
        """Distance between the leftmost and rightmost run origins."""
        xs = [run.x for run in self.runs]
        return max(xs) - min(xs)


@dataclass
class LineRecord:
    """Classification of a single line."""
    kind: str  # heading, paragraph, list_item, table_row
    text: str
    level: int = 0
    line: Optional[Line] = None


# ============================================================================
# Line Grouping
# ============================================================================

def group_lines(runs: Sequence[TextRun], y_tolerance: float = 2.0) -> List[Line]:
    """
    Group runs into lines, ordered top-to-bottom.

    Runs are sorted by descending Y then ascending X first, so the result
    does not depend on the extraction order. A run joins the current line
    when its Y is within y_tolerance of the line's anchor Y.

    Args:
        runs: Text runs of one page
        y_tolerance: Maximum baseline difference inside a line

    Returns:
        Lines sorted by descending Y
    """
    lines: List[Line] = []
    current: Optional[Line] = None

    for run in sorted(runs, key=lambda r: (-r.y, r.x)):
        if current is not None and abs(run.y - current.y) <= y_tolerance:
            current.runs.append(run)
        else:
            current = Line(y=run.y, runs=[run])
            lines.append(current)

    return lines


def mean_font_size(runs: Sequence[TextRun]) -> float:
    """Average font size over all runs of a page."""
    if not runs:
        return 0.0
    return sum(run.font_size for run in runs) / len(runs)


def has_large_gap(line: Line, gap: float = 80.0) -> bool:
    """True if any two neighbouring runs are more than `gap` apart."""
    runs = line.sorted_runs
    for prev, curr in zip(runs, runs[1:]):
        if curr.x - prev.right > gap:
            return True
    return False


def strip_list_prefix(text: str) -> Optional[str]:
    """Return the text without its bullet/enumerator, or None if it has none."""
    match = LIST_PREFIX.match(text)
    if not match:
        return None
    return text[match.end():].strip()


# ============================================================================
# Clusterer
# ============================================================================

class LayoutClusterer:
    """
    Turns the text runs of a page into content blocks.

    Lines that look like table rows are buffered. When the run of candidate
    lines ends, two or more of them become a table; a lone candidate is
    demoted to a paragraph.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        synthesizer: Optional[TableSynthesizer] = None
    ):
        self.config = config or LayoutConfig()
        self.synthesizer = synthesizer or TableSynthesizer(
            column_gap=self.config.table_gap,
            min_lines=self.config.min_table_lines
        )

    def is_table_row(self, line: Line, page_width: float) -> bool:
        """Check whether a line's spacing suggests a table row."""
        if has_large_gap(line, self.config.table_gap):
            return True

        if page_width > 0 and len(line.runs) >= self.config.min_wide_runs:
            return line.span >= page_width * self.config.wide_span_ratio

        return False

    def classify_line(
        self,
        line: Line,
        mean_size: float,
        page_width: float
    ) -> Optional[LineRecord]:
        """
        Classify a line.

        Precedence: table row, list item, heading, paragraph. Returns None
        for lines without text.
        """
        text = line.text
        if not text:
            return None

        if self.is_table_row(line, page_width):
            return LineRecord(kind="table_row", text=text, line=line)

        item_text = strip_list_prefix(text)
        if item_text is not None:
            if not item_text:
                return None
            return LineRecord(kind="list_item", text=item_text, line=line)

        ratio = line.font_size / mean_size if mean_size > 0 else 0.0
        if ratio > self.config.heading1_ratio:
            return LineRecord(kind="heading", text=text, level=1, line=line)
        if ratio > self.config.heading2_ratio and len(text) < self.config.heading2_max_length:
            return LineRecord(kind="heading", text=text, level=2, line=line)

        return LineRecord(kind="paragraph", text=text, line=line)

    def _flush_table(self, candidates: List[Line]) -> List[ContentBlock]:
        """Resolve buffered table-row candidates into blocks."""
        if not candidates:
            return []

        if len(candidates) >= self.config.min_table_lines:
            table = self.synthesizer.synthesize(candidates)
            if table is None:
                logger.debug(f"Discarded degenerate table of {len(candidates)} lines")
                return []
            logger.debug(f"Built {table.num_rows}x{table.num_cols} table")
            return [table]

        return [Paragraph(text=line.text) for line in candidates if line.text]

    def cluster(
        self,
        runs: Sequence[TextRun],
        page_width: float,
        mean_size: Optional[float] = None
    ) -> List[ContentBlock]:
        """
        Reconstruct the content blocks of one page.

        Args:
            runs: All text runs of the page
            page_width: Page width in layout units
            mean_size: Page mean font size (computed from runs if None)

        Returns:
            Blocks in reading order
        """
        if not runs:
            return []

        if mean_size is None:
            mean_size = mean_font_size(runs)

        lines = group_lines(runs, self.config.y_tolerance)
        logger.debug(f"Grouped {len(runs)} runs into {len(lines)} lines (mean size {mean_size:.2f})")

        blocks: List[ContentBlock] = []
        candidates: List[Line] = []

        for line in lines:
            record = self.classify_line(line, mean_size, page_width)
            if record is None:
                continue

            if record.kind == "table_row":
                candidates.append(line)
                continue

            blocks.extend(self._flush_table(candidates))
            candidates = []

            if record.kind == "list_item":
                blocks.append(ListItem(text=record.text))
            elif record.kind == "heading":
                blocks.append(Heading(level=record.level, text=record.text))
            else:
                blocks.append(Paragraph(text=record.text))

        blocks.extend(self._flush_table(candidates))
        return blocks
