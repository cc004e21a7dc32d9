from __future__ import annotations

import datetime as dt
from dataclasses import replace

from dyntable.core.pipeline import (
    apply_filters,
    apply_search,
    apply_sort,
    build_predicate,
    compute_view,
    is_empty_value,
    search_accessors,
    visible_values,
)
from dyntable.core.schema import (
    ActionDef,
    ColumnDef,
    FilterDef,
    PaginationConfig,
    SearchConfig,
    SortingConfig,
    SortSpec,
    TableConfig,
)
from dyntable.core.state import TableState
from dyntable.core.types import ColumnType, FilterType, SortDirection


async def _noop(*_args):
    return None


def _make_rows(n: int):
    return [
        {
            "_id": f"r{i:02d}",
            "name": f"Item {i:02d}",
            "qty": i % 5,
            "category": "Fruit" if i % 2 else "Veg",
            "active": i % 3 == 0,
            "createdAt": f"2024-01-{i + 1:02d}T10:00:00Z",
        }
        for i in range(n)
    ]


def _make_config(**overrides) -> TableConfig:
    kwargs = dict(
        id="products",
        title="Products",
        columns=[
            ColumnDef("name", "Name", sortable=True),
            ColumnDef("qty", "Qty", type=ColumnType.NUMBER, sortable=True),
            ColumnDef("createdAt", "Created", type=ColumnType.DATE, sortable=True),
            ColumnDef("actions", "Actions", type=ColumnType.ACTIONS),
        ],
        filters=[
            FilterDef("name", "Name"),
            FilterDef("minQty", "Min Qty", type=FilterType.NUMBER, accessor="qty"),
            FilterDef(
                "category",
                "Category",
                type=FilterType.SELECT,
                options=[("Fruit", "Fruit"), ("Veg", "Veg")],
            ),
            FilterDef("created", "Created", type=FilterType.DATE_RANGE, accessor="createdAt"),
            FilterDef("active", "Active", type=FilterType.BOOLEAN),
        ],
        actions=[
            ActionDef("edit", "Edit", _noop),
            ActionDef("delete", "Delete", _noop, variant="destructive"),
        ],
        bulk_actions=[ActionDef("bulkDelete", "Delete Selected", _noop, variant="destructive", per_row=True)],
        pagination=PaginationConfig(items_per_page=10, items_per_page_options=(5, 10, 25)),
        search=SearchConfig(enabled=True, search_fields=("name",)),
    )
    kwargs.update(overrides)
    return TableConfig(**kwargs)


def _state(config: TableConfig, **changes) -> TableState:
    return replace(TableState.initial(config), **changes)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
def test_twelve_rows_split_into_two_pages():
    cfg = _make_config()
    rows = _make_rows(12)

    first = compute_view(rows, cfg, _state(cfg), role=None)
    second = compute_view(rows, cfg, _state(cfg, current_page=2), role=None)

    assert first.total_pages == 2
    assert len(first.page_rows) == 10
    assert len(second.page_rows) == 2
    assert second.total_filtered == 12


def test_pages_concatenate_to_filtered_sequence():
    cfg = _make_config()
    rows = _make_rows(23)
    state = _state(cfg, items_per_page=5, sort=SortSpec("qty", SortDirection.DESC))

    view = compute_view(rows, cfg, state, role=None)
    collected = []
    for page in range(1, view.total_pages + 1):
        collected.extend(compute_view(rows, cfg, replace(state, current_page=page), role=None).page_ids)

    assert collected == view.filtered_ids
    assert len(set(collected)) == len(collected) == 23


def test_page_is_clamped_into_range():
    cfg = _make_config()
    rows = _make_rows(12)

    assert compute_view(rows, cfg, _state(cfg, current_page=9), role=None).current_page == 2
    assert compute_view(rows, cfg, _state(cfg, current_page=0), role=None).current_page == 1


def test_empty_result_still_has_one_page():
    cfg = _make_config()
    view = compute_view([], cfg, _state(cfg), role=None)
    assert view.total_pages == 1
    assert view.current_page == 1
    assert view.page_rows == ()


def test_pagination_disabled_returns_every_row():
    cfg = _make_config(pagination=PaginationConfig(enabled=False))
    view = compute_view(_make_rows(30), cfg, _state(cfg), role=None)
    assert len(view.page_rows) == 30
    assert view.total_pages == 1


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
def test_search_is_case_insensitive_substring():
    cfg = _make_config()
    rows = [{"_id": 1, "name": "Leaf Co"}, {"_id": 2, "name": "Other"}]

    view = compute_view(rows, cfg, _state(cfg, search_term="leaf"), role=None)

    assert list(view.filtered_rows) == [{"_id": 1, "name": "Leaf Co"}]


def test_search_skips_rows_without_a_value():
    rows = [{"name": None}, {"name": "Leafy"}, {}]
    accessors = search_accessors(_make_config())
    assert apply_search(rows, accessors, "leaf") == [{"name": "Leafy"}]


def test_search_ignored_when_disabled():
    cfg = _make_config(search=SearchConfig(enabled=False, search_fields=("name",)))
    view = compute_view(_make_rows(3), cfg, _state(cfg, search_term="zzz"), role=None)
    assert view.total_filtered == 3


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------
def test_filters_compose_with_and():
    cfg = _make_config()
    rows = _make_rows(20)

    out = apply_filters(rows, cfg, {"category": "Fruit", "minQty": 3})

    assert out
    assert all(r["category"] == "Fruit" and r["qty"] >= 3 for r in out)


def test_adding_a_filter_never_grows_the_result():
    cfg = _make_config()
    rows = _make_rows(40)
    base = {"category": "Veg"}

    for extra in ({"minQty": 2}, {"name": "1"}, {"active": True}, {"created": {"from": "2024-01-10"}}):
        narrowed = apply_filters(rows, cfg, {**base, **extra})
        assert len(narrowed) <= len(apply_filters(rows, cfg, base))


def test_empty_filter_values_are_ignored():
    cfg = _make_config()
    rows = _make_rows(5)
    values = {"name": "  ", "category": None, "created": {"from": "", "to": None}, "minQty": []}
    assert apply_filters(rows, cfg, values) == rows
    assert is_empty_value({"from": None, "to": ""})
    assert not is_empty_value(0)
    assert not is_empty_value(False)


def test_number_filter_excludes_non_numeric_rows():
    cfg = _make_config()
    rows = [{"qty": 5}, {"qty": "7"}, {"qty": "n/a"}, {"qty": None}, {"qty": 1}]
    assert apply_filters(rows, cfg, {"minQty": 5}) == [{"qty": 5}, {"qty": "7"}]


def test_number_filter_with_non_numeric_threshold_is_ignored():
    cfg = _make_config()
    assert build_predicate(cfg.filter("minQty"), "lots") is None
    rows = _make_rows(4)
    assert apply_filters(rows, cfg, {"minQty": "lots"}) == rows


def test_select_filter_exact_and_membership():
    cfg = _make_config()
    rows = [{"category": "Fruit"}, {"category": "Veg"}, {"category": "Nuts"}]
    assert apply_filters(rows, cfg, {"category": "Veg"}) == [{"category": "Veg"}]
    assert apply_filters(rows, cfg, {"category": ["Veg", "Nuts"]}) == [{"category": "Veg"}, {"category": "Nuts"}]


def test_date_range_filter_bounds_are_inclusive():
    cfg = _make_config()
    rows = [
        {"createdAt": "2024-01-01T00:00:00"},
        {"createdAt": dt.datetime(2024, 1, 15, 23, 30)},
        {"createdAt": dt.date(2024, 2, 1)},
        {"createdAt": "garbage"},
    ]

    out = apply_filters(rows, cfg, {"created": {"from": "2024-01-01", "to": "2024-01-15"}})
    assert out == rows[:2]

    only_lower = apply_filters(rows, cfg, {"created": ("2024-01-20", None)})
    assert only_lower == [rows[2]]


def test_boolean_filter_accepts_ui_strings():
    cfg = _make_config()
    rows = [{"active": True}, {"active": False}, {}]
    assert apply_filters(rows, cfg, {"active": "true"}) == [{"active": True}]
    assert apply_filters(rows, cfg, {"active": "false"}) == [{"active": False}]


def test_failing_accessor_row_excluded_not_raised():
    cfg = _make_config(filters=[FilterDef("boom", "Boom", accessor=lambda r: r["missing"].upper())])
    assert apply_filters([{"x": 1}], cfg, {"boom": "a"}) == []


def test_unknown_filter_id_is_ignored():
    cfg = _make_config()
    rows = _make_rows(3)
    assert apply_filters(rows, cfg, {"nope": "x"}) == rows


# ---------------------------------------------------------------------------
# Sort
# ---------------------------------------------------------------------------
def test_sort_desc_puts_missing_last():
    column = ColumnDef("revenue", "Revenue", type=ColumnType.NUMBER, sortable=True)
    rows = [{"revenue": 5}, {"revenue": None}, {"revenue": 20}]

    out = apply_sort(rows, column, SortDirection.DESC)

    assert [r["revenue"] for r in out] == [20, 5, None]


def test_sort_asc_also_puts_missing_last():
    column = ColumnDef("revenue", "Revenue", sortable=True)
    rows = [{"revenue": None}, {"revenue": 3}, {}, {"revenue": 1}]
    assert apply_sort(rows, column, SortDirection.ASC) == [{"revenue": 1}, {"revenue": 3}, {"revenue": None}, {}]


def test_sort_is_stable_and_idempotent():
    cfg = _make_config()
    column = cfg.column("qty")
    rows = _make_rows(15)

    once = apply_sort(rows, column, SortDirection.ASC)
    twice = apply_sort(once, column, SortDirection.ASC)

    assert once == twice
    # equal keys keep input order
    zeros = [r["_id"] for r in once if r["qty"] == 0]
    assert zeros == [r["_id"] for r in rows if r["qty"] == 0]


def test_sort_dates_chronologically_across_input_forms():
    column = ColumnDef("createdAt", "Created", type=ColumnType.DATE)
    rows = [
        {"createdAt": "2024-03-01"},
        {"createdAt": dt.date(2023, 12, 31)},
        {"createdAt": dt.datetime(2024, 1, 5, 12)},
    ]
    out = apply_sort(rows, column, SortDirection.ASC)
    assert out == [rows[1], rows[2], rows[0]]


def test_sort_text_is_case_insensitive():
    column = ColumnDef("name", "Name")
    rows = [{"name": "banana"}, {"name": "Apple"}, {"name": "cherry"}]
    assert [r["name"] for r in apply_sort(rows, column, SortDirection.ASC)] == ["Apple", "banana", "cherry"]


# ---------------------------------------------------------------------------
# Whole view
# ---------------------------------------------------------------------------
def test_compute_view_is_deterministic():
    cfg = _make_config()
    rows = _make_rows(25)
    state = _state(cfg, search_term="1", filter_values={"category": "Fruit"}, sort=SortSpec("qty", "desc"))

    assert compute_view(rows, cfg, state, "admin") == compute_view(rows, cfg, state, "admin")


def test_compute_view_does_not_mutate_inputs():
    cfg = _make_config()
    rows = _make_rows(8)
    snapshot = [dict(r) for r in rows]
    state = _state(cfg, sort=SortSpec("name", "desc"))

    compute_view(rows, cfg, state, None)

    assert rows == snapshot
    assert state.current_page == 1


def test_row_actions_are_permission_gated():
    cfg = _make_config(permissions={"delete": ["admin"]})
    rows = _make_rows(2)

    viewer = compute_view(rows, cfg, _state(cfg), role="viewer")
    admin = compute_view(rows, cfg, _state(cfg), role=["viewer", "admin"])

    assert [a.id for a in viewer.page_rows[0].actions] == ["edit"]
    assert viewer.bulk_actions == ()
    assert [a.id for a in admin.page_rows[0].actions] == ["edit", "delete"]
    assert [a.id for a in admin.bulk_actions] == ["bulkDelete"]


def test_row_actions_respect_visibility_predicate():
    cfg = _make_config(
        actions=[ActionDef("archive", "Archive", _noop, visible=lambda row, _sel: row["qty"] > 2)],
    )
    view = compute_view(_make_rows(5), cfg, _state(cfg, sort=None), role=None)
    shown = {vr.row_id: [a.id for a in vr.actions] for vr in view.page_rows}
    assert shown["r03"] == ["archive"]
    assert shown["r01"] == []


def test_visible_values_formats_by_column_type():
    cfg = _make_config(
        columns=[
            ColumnDef("name", "Name"),
            ColumnDef("qty", "Qty", type=ColumnType.NUMBER),
            ColumnDef("createdAt", "Created", type=ColumnType.DATE),
            ColumnDef("shout", "Shout", accessor="name", formatter=lambda v: str(v).upper()),
            ColumnDef("actions", "Actions", type=ColumnType.ACTIONS),
        ],
        sorting=SortingConfig(enabled=False),
    )
    view = compute_view([{"_id": 1, "name": "pear", "qty": 4.0, "createdAt": "2024-05-06T08:00:00"}], cfg, _state(cfg), None)

    assert visible_values(view.page_rows[0], cfg.columns) == {
        "name": "pear",
        "qty": "4",
        "createdAt": "2024-05-06",
        "shout": "PEAR",
        "actions": "",
    }
