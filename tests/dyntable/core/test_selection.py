from __future__ import annotations

import random

from dyntable.core.selection import SelectionTracker


def test_toggle_select_deselect():
    sel = SelectionTracker()
    sel.toggle("a")
    sel.select("b")
    assert sel.ids == frozenset({"a", "b"})

    sel.toggle("a")
    sel.deselect("b")
    sel.deselect("never-there")
    assert len(sel) == 0


def test_select_all_replaces_and_skips_missing_ids():
    sel = SelectionTracker(["old"])
    sel.select_all(["p1", "p2", None])
    assert sel.ids == frozenset({"p1", "p2"})


def test_reconcile_keeps_selection_inside_filtered_set():
    rng = random.Random(7)
    universe = list(range(50))
    for _ in range(25):
        selected = set(rng.sample(universe, rng.randint(0, 20)))
        filtered = set(rng.sample(universe, rng.randint(0, 30)))
        sel = SelectionTracker(selected)

        dropped = sel.reconcile(filtered)

        assert sel.ids <= filtered
        assert dropped == selected - filtered
        assert sel.ids == selected & filtered


def test_selection_is_by_identity_not_position():
    sel = SelectionTracker(["b"])
    assert "b" in sel
    sel.reconcile(["c", "b", "a"])
    assert "b" in sel


def test_is_all_selected():
    sel = SelectionTracker(["a", "b"])
    assert sel.is_all_selected(["a", "b"])
    assert not sel.is_all_selected(["a", "c"])
    assert not sel.is_all_selected([])
