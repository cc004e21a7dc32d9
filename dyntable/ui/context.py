from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dyntable.services.data_source import DataSource
from dyntable.services.table_controller import TableController


@dataclass
class AppContext:
    """
    Holds shared state for the Dash app: config root, the data source and one
    TableController per configured table. Passed into layout + callback
    registration functions instead of using module-level globals.
    """
    config_root: Path
    data_source: DataSource
    controllers: Dict[str, TableController] = field(default_factory=dict)
    default_table_id: Optional[str] = None
    ui_title: str = "Tables"
    locks: Dict[str, threading.Lock] = field(default_factory=dict)

    def controller(self, table_id: Optional[str]) -> Optional[TableController]:
        if table_id is None:
            return None
        return self.controllers.get(table_id)

    def lock(self, table_id: str) -> threading.Lock:
        """Controllers are shared by every session; callbacks mutate one under its lock."""
        return self.locks.setdefault(table_id, threading.Lock())

    def validate(self) -> None:
        """Ensure there is something to render before the app starts."""
        if not self.controllers:
            raise RuntimeError("AppContext.controllers must contain at least one table.")
        if self.default_table_id not in self.controllers:
            raise RuntimeError(f"Default table '{self.default_table_id}' has no controller.")
