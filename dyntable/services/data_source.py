from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from dyntable.core.accessor import Row, row_identity

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """
    Abstract interface for whatever fetches and persists table records
    (REST API, database, in-memory fixture). Keyed on TableConfig.api_endpoint.
    """

    @abstractmethod
    async def fetch(self, endpoint: str) -> Sequence[Row]:
        pass


class InMemoryDataSource(DataSource):
    """
    Record store held in memory, keyed by endpoint.
    Serves the demo app and tests; `latency` simulates a slow backend.
    """

    def __init__(self, records: Optional[Dict[str, Sequence[Row]]] = None, latency: float = 0.0):
        self._records: Dict[str, List[Dict[str, Any]]] = {
            endpoint: [dict(r) for r in rows] for endpoint, rows in (records or {}).items()
        }
        self.latency = latency
        self.fetch_count = 0

    async def fetch(self, endpoint: str) -> Sequence[Row]:
        if self.latency:
            await asyncio.sleep(self.latency)
        self.fetch_count += 1
        return [dict(r) for r in self._records.get(endpoint, [])]

    def replace(self, endpoint: str, rows: Sequence[Row]) -> None:
        self._records[endpoint] = [dict(r) for r in rows]

    async def delete(self, endpoint: str, row_id: Any) -> None:
        """
        Remove one record.

        Raises:
            KeyError: if no record with that identity exists
        """
        if self.latency:
            await asyncio.sleep(self.latency)
        rows = self._records.get(endpoint, [])
        remaining = [r for r in rows if row_identity(r) != row_id]
        if len(remaining) == len(rows):
            raise KeyError(f"No record '{row_id}' at {endpoint}")
        self._records[endpoint] = remaining
        logger.debug("Record deleted", extra={"endpoint": endpoint, "row_id": row_id})

    async def update(self, endpoint: str, row_id: Any, changes: Dict[str, Any]) -> None:
        for r in self._records.get(endpoint, []):
            if row_identity(r) == row_id:
                r.update(changes)
                return
        raise KeyError(f"No record '{row_id}' at {endpoint}")
