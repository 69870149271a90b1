from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import pandas as pd

from query_bridge.exceptions.errors import DecodeError

Cell = Optional[str]


@dataclass(frozen=True)
class TabularResult:
    """Normalized result returned by every backend.

    Key points:
      - Column names are ordered and need not be unique (``SELECT a, a`` is legal).
      - Every row has exactly ``len(columns)`` cells; construction fails otherwise
        so a ragged payload can never silently shift values into the wrong column.
      - Cells are strings or ``None``; no type inference happens in this layer.
    """

    columns: List[str] = field(default_factory=list)
    rows: List[List[Cell]] = field(default_factory=list)

    def __post_init__(self) -> None:
        width = len(self.columns)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise DecodeError(f"Row {i} has {len(row)} cells, expected {width}")

    @classmethod
    def empty(cls) -> "TabularResult":
        return cls(columns=[], rows=[])

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> Optional[List[Cell]]:
        """Values of the first column named exactly ``name``, or None if absent."""
        try:
            idx = self.columns.index(name)
        except ValueError:
            return None
        return [row[idx] for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        # Duplicate column names are kept as-is; pandas allows them.
        return pd.DataFrame(self.rows, columns=list(self.columns), dtype=object)
