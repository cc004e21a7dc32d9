"""
Core domain layer: config schema, accessors, UI state, the view pipeline
and the selection tracker
"""

from .accessor import MISSING, DeriveAccessor, FieldAccessor, resolve, row_identity
from .pipeline import TableView, ViewRow, compute_view
from .schema import (
    ActionDef,
    AuditConfig,
    ColumnDef,
    ExportConfig,
    FilterDef,
    PaginationConfig,
    SearchConfig,
    SortingConfig,
    SortSpec,
    TableConfig,
)
from .selection import SelectionTracker
from .state import TableState
from .types import Capability, ColumnType, FilterType, SortDirection, Variant

__all__ = [
    "MISSING",
    "DeriveAccessor",
    "FieldAccessor",
    "resolve",
    "row_identity",
    "TableView",
    "ViewRow",
    "compute_view",
    "ActionDef",
    "AuditConfig",
    "ColumnDef",
    "ExportConfig",
    "FilterDef",
    "PaginationConfig",
    "SearchConfig",
    "SortingConfig",
    "SortSpec",
    "TableConfig",
    "SelectionTracker",
    "TableState",
    "Capability",
    "ColumnType",
    "FilterType",
    "SortDirection",
    "Variant",
]
