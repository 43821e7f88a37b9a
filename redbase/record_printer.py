"""Fixed-width table rendering for query results."""

from __future__ import annotations

from typing import Sequence


class RecordPrinter:
    """Formats rows as a bordered text table with fixed column width."""

    COL_WIDTH = 16

    def __init__(self, num_cols: int) -> None:
        if num_cols <= 0:
            raise ValueError("a table needs at least one column")
        self.num_cols = num_cols

    def separator(self) -> str:
        """Return a horizontal border line."""
        return ("+" + "-" * (self.COL_WIDTH + 2)) * self.num_cols + "+\n"

    def format_record(self, values: Sequence[str]) -> str:
        """Return one table row; long values are cut and end in '...'."""
        if len(values) != self.num_cols:
            raise ValueError(f"expected {self.num_cols} values, got {len(values)}")
        cells = []
        for value in values:
            if len(value) > self.COL_WIDTH:
                value = value[: self.COL_WIDTH - 3] + "..."
            cells.append(f"| {value:>{self.COL_WIDTH}} ")
        return "".join(cells) + "|\n"

    @staticmethod
    def record_count(num_records: int) -> str:
        """Return the closing line that reports how many rows were shown."""
        return f"Total record(s): {num_records}\n"