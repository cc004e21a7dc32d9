from __future__ import annotations

import pytest

from dyntable.core.accessor import (
    MISSING,
    DeriveAccessor,
    FieldAccessor,
    as_accessor,
    resolve,
    row_identity,
)


def test_as_accessor_normalises_config_forms():
    assert as_accessor("name") == FieldAccessor("name")
    assert as_accessor(None, default_field="qty") == FieldAccessor("qty")

    fn = lambda row: row["a"] + 1  # noqa: E731
    derived = as_accessor(fn)
    assert isinstance(derived, DeriveAccessor)
    assert derived.fn is fn

    existing = FieldAccessor("x")
    assert as_accessor(existing) is existing


def test_as_accessor_rejects_unsupported_input():
    with pytest.raises(TypeError):
        as_accessor(42)


def test_resolve_field_and_derive():
    row = {"name": "Fruits", "subsCount": 3}
    assert resolve(FieldAccessor("name"), row) == "Fruits"
    assert resolve(DeriveAccessor(lambda r: r["subsCount"] * 2), row) == 6


def test_resolve_turns_none_absent_and_errors_into_missing():
    row = {"name": None}
    assert resolve(FieldAccessor("name"), row) is MISSING
    assert resolve(FieldAccessor("nope"), row) is MISSING
    assert resolve(DeriveAccessor(lambda r: r["nope"]["deeper"]), row) is MISSING


def test_missing_is_falsy_singleton():
    assert not MISSING
    assert repr(MISSING) == "MISSING"
    assert type(MISSING)() is MISSING


def test_row_identity_prefers_underscore_id():
    assert row_identity({"_id": "a", "id": 1}) == "a"
    assert row_identity({"_id": None, "id": 1}) == 1
    assert row_identity({"id": 2}) == 2
    assert row_identity({}) is None
