from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from dyntable.core.accessor import Row, row_identity
from dyntable.core.exceptions import ExportError
from dyntable.core.schema import ColumnDef, TableConfig
from dyntable.core.types import ColumnType
from dyntable.export.serializers import SERIALIZERS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str


def export_rows(
    rows: Sequence[Row],
    columns: Sequence[ColumnDef],
    fmt: str,
    *,
    table_id: str,
    today: Optional[dt.date] = None,
) -> ExportFile:
    """
    Serialize rows with the given columns.

    :param fmt: a key of SERIALIZERS ("csv", "excel")
    :param table_id: prefix of the file name, `{table_id}_{YYYY-MM-DD}.{ext}`
    :raises ExportError: if no serializer exists for fmt
    """
    try:
        serializer = SERIALIZERS[fmt]
    except KeyError:
        raise ExportError(f"No serializer for export format '{fmt}'")

    columns = [c for c in columns if c.type != ColumnType.ACTIONS]
    today = today or dt.date.today()
    return ExportFile(
        filename=f"{table_id}_{today.isoformat()}.{serializer.extension}",
        content=serializer.write(rows, columns),
        media_type=serializer.media_type,
    )


class TableExporter:
    """
    Chooses what to export for a table and enforces its export settings.

    Rows are the current selection when there is one, otherwise every
    filtered row (not only the current page). Never touches table state.
    """

    def __init__(self, config: TableConfig, clock: Optional[Callable[[], dt.date]] = None):
        self.config = config
        self._clock = clock or dt.date.today

    def check_format(self, fmt: str) -> None:
        if not self.config.export.enabled:
            raise ExportError(f"Export is disabled for table '{self.config.id}'")
        if fmt not in self.config.export.formats:
            raise ExportError(f"Format '{fmt}' is not enabled for table '{self.config.id}'")

    @staticmethod
    def rows_to_export(filtered_rows: Sequence[Row], selected_ids: Iterable[Any]) -> list:
        selected = set(selected_ids)
        if not selected:
            return list(filtered_rows)
        return [r for r in filtered_rows if row_identity(r) in selected]

    def export(self, filtered_rows: Sequence[Row], selected_ids: Iterable[Any], fmt: str = "csv") -> ExportFile:
        self.check_format(fmt)
        rows = self.rows_to_export(filtered_rows, selected_ids)
        file = export_rows(rows, self.config.columns, fmt, table_id=self.config.id, today=self._clock())
        logger.info(
            "Table exported",
            extra={"table_id": self.config.id, "format": fmt, "n_rows": len(rows), "file_name": file.filename},
        )
        return file
