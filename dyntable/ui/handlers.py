"""
Action handlers for the demo host.

Handlers cannot live in table JSON, so the Dash app binds these by action id
when it loads the config directory.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from dyntable.core.accessor import Row, row_identity
from dyntable.services.data_source import InMemoryDataSource

logger = logging.getLogger(__name__)


def record_handlers(data_source: InMemoryDataSource, endpoint: str) -> Dict[str, Callable[..., Any]]:
    """
    CRUD handlers for one endpoint of an in-memory data source.

    Returned ids: delete, feature, bulkDelete (per-row), bulkFeature.
    """

    async def delete(row: Row) -> None:
        await data_source.delete(endpoint, row_identity(row))
        logger.info("Record deleted", extra={"endpoint": endpoint, "row_id": row_identity(row)})

    async def feature(row: Row) -> None:
        await data_source.update(endpoint, row_identity(row), {"featured": not row.get("featured", False)})

    async def bulk_feature(_row: Optional[Row], selected_rows: List[Row]) -> None:
        await asyncio.gather(
            *(data_source.update(endpoint, row_identity(r), {"featured": True}) for r in selected_rows)
        )
        logger.info("Records featured", extra={"endpoint": endpoint, "n_rows": len(selected_rows)})

    return {
        "delete": delete,
        "feature": feature,
        "bulkDelete": delete,
        "bulkFeature": bulk_feature,
    }
