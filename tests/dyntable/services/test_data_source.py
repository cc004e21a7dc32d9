from __future__ import annotations

import asyncio

import pytest

from dyntable.services.data_source import InMemoryDataSource


def test_fetch_returns_copies():
    source = InMemoryDataSource({"/items": [{"_id": 1, "name": "a"}]})

    rows = asyncio.run(source.fetch("/items"))
    rows[0]["name"] = "changed"

    assert asyncio.run(source.fetch("/items"))[0]["name"] == "a"
    assert source.fetch_count == 2


def test_unknown_endpoint_is_empty():
    assert asyncio.run(InMemoryDataSource().fetch("/nothing")) == []


def test_delete_and_update():
    source = InMemoryDataSource({"/items": [{"_id": 1}, {"id": 2}]})

    asyncio.run(source.update("/items", 2, {"name": "two"}))
    asyncio.run(source.delete("/items", 1))

    assert asyncio.run(source.fetch("/items")) == [{"id": 2, "name": "two"}]
    with pytest.raises(KeyError):
        asyncio.run(source.delete("/items", 1))
    with pytest.raises(KeyError):
        asyncio.run(source.update("/items", 9, {}))
