"""
Table synthesis from table-row candidate lines.

Provides:
- Column splitting on large horizontal gaps
- Ragged row normalization
- CSV rendering of a table block
"""

import logging
import csv
import io
from typing import TYPE_CHECKING, List, Optional, Sequence

from .blocks import Table

if TYPE_CHECKING:
    from .layout import Line

logger = logging.getLogger(__name__)


class TableSynthesizer:
    """
    Builds a rectangular table from consecutive table-row lines.

    Within a line, a gap wider than `column_gap` between the end of one run
    and the start of the next opens a new column. The same threshold is used
    to flag candidate lines, so every candidate yields at least one column.
    """

    def __init__(self, column_gap: float = 80.0, min_lines: int = 2):
        self.column_gap = column_gap
        self.min_lines = min_lines

    def split_columns(self, line: 'Line') -> List[str]:
        """Split one line into column strings."""
        columns: List[str] = []
        current = ""
        last_end = 0.0

        for run in line.sorted_runs:
            gap = run.x - last_end
            if gap > self.column_gap and current.strip():
                columns.append(current.strip())
                current = run.text
            elif current and run.text:
                current += " " + run.text
            else:
                current += run.text
            last_end = run.right

        if current.strip():
            columns.append(current.strip())

        return columns

    def synthesize(self, lines: Sequence['Line']) -> Optional[Table]:
        """
        Convert candidate lines into a Table block.

        Args:
            lines: Table-row candidate lines, top to bottom

        Returns:
            Table padded to the widest row, or None if there are too few
            lines or no line has any text
        """
        if len(lines) < self.min_lines:
            return None

        rows = [cols for cols in (self.split_columns(line) for line in lines) if cols]
        if not rows:
            return None

        num_cols = max(len(row) for row in rows)
        normalized = [row + [""] * (num_cols - len(row)) for row in rows]

        return Table.from_rows(normalized)


def table_to_csv(table: Table) -> str:
    """Render a table block as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)

    for row in table.rows:
        writer.writerow(row)

    return output.getvalue()
