"""
Typed tabular results built from the server's row mappings
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import enum
import structlog

logger = structlog.get_logger()


class CellKind(str, enum.Enum):
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Optional[Union[str, int, float, bool]] = None

    @classmethod
    def of(cls, value: Any) -> "Cell":
        if value is None:
            return cls(CellKind.NULL)
        # bool before number: bool is an int subclass
        if isinstance(value, bool):
            return cls(CellKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            return cls(CellKind.NUMBER, value)
        return cls(CellKind.STRING, value if isinstance(value, str) else str(value))


@dataclass(frozen=True)
class TabularResult:
    """
    Ordered columns plus rows of tagged cells.

    Columns come from the first row. Later rows are read through those
    columns: a missing key becomes a NULL cell and unknown keys are dropped.
    """
    columns: Tuple[str, ...] = ()
    rows: Tuple[Dict[str, Cell], ...] = field(default_factory=tuple)

    @classmethod
    def from_rows(cls, rows: Sequence[Mapping[str, Any]]) -> "TabularResult":
        if not rows:
            return cls()

        columns = tuple(rows[0].keys())
        known = set(columns)
        typed: List[Dict[str, Cell]] = []
        for index, row in enumerate(rows):
            extra = set(row.keys()) - known
            if extra:
                logger.warning("result_row_extra_columns", row=index, columns=sorted(extra))
            typed.append({column: Cell.of(row.get(column)) for column in columns})

        return cls(columns=columns, rows=tuple(typed))

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)

    def values(self) -> List[List[Any]]:
        """Plain values, row by row, in column order."""
        return [[row[column].value for column in self.columns] for row in self.rows]
