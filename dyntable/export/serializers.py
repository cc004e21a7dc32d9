from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

import pandas as pd

from dyntable.core.accessor import MISSING, Row, resolve
from dyntable.core.schema import ColumnDef

CSV_DELIMITER = ","
CSV_LINE_END = "\n"


@dataclass(frozen=True)
class Serializer:
    extension: str
    media_type: str
    write: Callable[[Sequence[Row], Sequence[ColumnDef]], bytes]


def to_csv(rows: Sequence[Row], columns: Sequence[ColumnDef]) -> bytes:
    """
    Header of column labels, then one line per row of display strings.

    Fields are not quoted or escaped: a value containing the delimiter or a
    newline will break its line. Known limitation of the format we emit.
    """
    lines = [CSV_DELIMITER.join(c.label for c in columns)]
    for row in rows:
        lines.append(CSV_DELIMITER.join(c.format(resolve(c.accessor, row)) for c in columns))
    return CSV_LINE_END.join(lines).encode("utf-8")


def _cell_value(column: ColumnDef, value: Any) -> Any:
    if value is MISSING:
        return None
    # Keep numbers numeric in spreadsheets unless the column formats them itself
    if column.formatter is None and isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return column.format(value)


def to_excel(rows: Sequence[Row], columns: Sequence[ColumnDef]) -> bytes:
    records: List[List[Any]] = [
        [_cell_value(c, resolve(c.accessor, row)) for c in columns] for row in rows
    ]
    df = pd.DataFrame(records, columns=[c.label for c in columns])
    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


SERIALIZERS: Dict[str, Serializer] = {
    "csv": Serializer("csv", "text/csv", to_csv),
    "excel": Serializer(
        "xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        to_excel,
    ),
}
