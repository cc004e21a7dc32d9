from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Mapping, Optional, Sequence, Tuple, Union

from .accessor import Accessor, Row, as_accessor
from .formatters import FORMATTERS, Formatter
from .types import Capability, ColumnType, FilterType, SortDirection, Variant
from .validation import validate_table_config

ActionHandler = Callable[..., Awaitable[Any]]
RowPredicate = Callable[[Optional[Row], Optional[Sequence[Row]]], bool]
AccessorSpec = Union[str, Callable[[Row], Any], Accessor, None]


def _coerce_enum(enum_cls, value):
    # Unknown values are left as-is so validation can report them
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _coerce_roles(roles):
    # A bare string or a non-iterable is left as-is so validation can report it
    if isinstance(roles, str):
        return roles
    try:
        return frozenset(roles)
    except TypeError:
        return roles


@dataclass(frozen=True)
class ColumnDef:
    """
    A single rendered/exported column.

    :param accessor: field name, callable or Accessor. Defaults to the column id.
    :param formatter: overrides the type formatter for display and export
    """
    id: str
    label: str
    type: ColumnType = ColumnType.TEXT
    sortable: bool = False
    filterable: bool = False
    accessor: AccessorSpec = None
    formatter: Optional[Formatter] = None

    def __post_init__(self):
        object.__setattr__(self, "type", _coerce_enum(ColumnType, self.type))
        object.__setattr__(self, "accessor", as_accessor(self.accessor, self.id))

    def format(self, value: Any) -> str:
        if self.formatter is not None:
            return self.formatter(value)
        return FORMATTERS[self.type](value)


@dataclass(frozen=True)
class FilterDef:
    id: str
    label: str
    type: FilterType = FilterType.TEXT
    placeholder: str = ""
    accessor: AccessorSpec = None
    options: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "type", _coerce_enum(FilterType, self.type))
        object.__setattr__(self, "accessor", as_accessor(self.accessor, self.id))
        object.__setattr__(self, "options", tuple(tuple(o) for o in self.options))


@dataclass(frozen=True)
class ActionDef:
    """
    A row-level or bulk action.

    Row actions are called as `on_click(row)`. Bulk actions are called as
    `on_click(None, selected_rows)`, unless `per_row` is set, in which case the
    dispatcher calls `on_click(row)` once per selected row, concurrently.

    `capability` defaults to DELETE for destructive actions and UPDATE otherwise.
    """
    id: str
    label: str
    on_click: ActionHandler
    icon: str = ""
    variant: Variant = Variant.DEFAULT
    capability: Optional[Capability] = None
    visible: Optional[RowPredicate] = None
    disabled: Optional[RowPredicate] = None
    per_row: bool = False

    def __post_init__(self):
        object.__setattr__(self, "variant", _coerce_enum(Variant, self.variant))
        if self.capability is None:
            default = Capability.DELETE if self.variant == Variant.DESTRUCTIVE else Capability.UPDATE
            object.__setattr__(self, "capability", default)
        else:
            object.__setattr__(self, "capability", _coerce_enum(Capability, self.capability))

    @property
    def is_destructive(self) -> bool:
        return self.variant == Variant.DESTRUCTIVE

    def is_visible(self, row: Optional[Row] = None, selected_rows: Optional[Sequence[Row]] = None) -> bool:
        return self.visible is None or bool(self.visible(row, selected_rows))

    def is_disabled(self, row: Optional[Row] = None, selected_rows: Optional[Sequence[Row]] = None) -> bool:
        return self.disabled is not None and bool(self.disabled(row, selected_rows))


@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self):
        object.__setattr__(self, "direction", _coerce_enum(SortDirection, self.direction))


@dataclass(frozen=True)
class PaginationConfig:
    enabled: bool = True
    items_per_page: int = 10
    items_per_page_options: Tuple[int, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items_per_page_options", tuple(self.items_per_page_options))


@dataclass(frozen=True)
class SortingConfig:
    enabled: bool = True
    default_sort: Optional[SortSpec] = None


@dataclass(frozen=True)
class SearchConfig:
    """`search_fields` entries are column ids, row field names or callables."""
    enabled: bool = False
    placeholder: str = ""
    search_fields: Tuple[AccessorSpec, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "search_fields", tuple(self.search_fields))


@dataclass(frozen=True)
class ExportConfig:
    enabled: bool = False
    formats: Tuple[str, ...] = ("csv",)

    def __post_init__(self):
        object.__setattr__(self, "formats", tuple(self.formats))


@dataclass(frozen=True)
class AuditConfig:
    enabled: bool = False
    track_actions: bool = False

    @property
    def active(self) -> bool:
        return self.enabled and self.track_actions


@dataclass(frozen=True)
class TableConfig:
    """
    Declarative description of one table. Immutable for the lifetime of a
    table instance; validated on construction.

    Raises:
        ConfigError: listing every problem found
    """
    id: str
    title: str
    columns: Tuple[ColumnDef, ...]
    description: str = ""
    api_endpoint: str = ""
    filters: Tuple[FilterDef, ...] = ()
    actions: Tuple[ActionDef, ...] = ()
    bulk_actions: Tuple[ActionDef, ...] = ()
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    sorting: SortingConfig = field(default_factory=SortingConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    permissions: Mapping[Capability, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "actions", tuple(self.actions))
        object.__setattr__(self, "bulk_actions", tuple(self.bulk_actions))
        object.__setattr__(
            self,
            "permissions",
            {_coerce_enum(Capability, k): _coerce_roles(v) for k, v in dict(self.permissions).items()},
        )

        validate_table_config(self)

    def column(self, column_id: str) -> Optional[ColumnDef]:
        return next((c for c in self.columns if c.id == column_id), None)

    def filter(self, filter_id: str) -> Optional[FilterDef]:
        return next((f for f in self.filters if f.id == filter_id), None)

    def action(self, action_id: str) -> Optional[ActionDef]:
        return next((a for a in self.actions if a.id == action_id), None)

    def bulk_action(self, action_id: str) -> Optional[ActionDef]:
        return next((a for a in self.bulk_actions if a.id == action_id), None)

    @property
    def data_columns(self) -> Tuple[ColumnDef, ...]:
        """Columns that carry a value (everything except the actions column)."""
        return tuple(c for c in self.columns if c.type != ColumnType.ACTIONS)
