from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .schema import SortSpec, TableConfig


@dataclass
class TableState:
    """
    Represents the current UI state of one table instance.

    Fields:

    - filter_values: filter id -> current value. Empty values are ignored by the pipeline.
    - search_term: free-text search, matched against search.search_fields
    - sort: active sort or None
    - current_page: 1-based page number
    - items_per_page: current page size
    - selected_ids: identities of selected rows (kept in sync by the SelectionTracker)

    """

    filter_values: Dict[str, Any] = field(default_factory=dict)
    search_term: str = ""
    sort: Optional[SortSpec] = None
    current_page: int = 1
    items_per_page: int = 10
    selected_ids: frozenset = field(default_factory=frozenset)

    @classmethod
    def initial(cls, config: TableConfig) -> TableState:
        """Defaults drawn from config: default sort and page size."""
        return cls(
            sort=config.sorting.default_sort if config.sorting.enabled else None,
            items_per_page=config.pagination.items_per_page,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filter_values": dict(self.filter_values),
            "search_term": self.search_term,
            "sort": (
                {"column": self.sort.column, "direction": self.sort.direction.value}
                if self.sort is not None
                else None
            ),
            "current_page": self.current_page,
            "items_per_page": self.items_per_page,
            "selected_ids": sorted(self.selected_ids, key=str),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableState:
        raw_sort = data.get("sort")
        return cls(
            filter_values=dict(data.get("filter_values", {})),
            search_term=str(data.get("search_term", "")),
            sort=SortSpec(raw_sort["column"], raw_sort.get("direction", "asc")) if raw_sort else None,
            current_page=int(data.get("current_page", 1)),
            items_per_page=int(data.get("items_per_page", 10)),
            selected_ids=frozenset(data.get("selected_ids", [])),
        )
