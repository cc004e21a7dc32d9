from __future__ import annotations

from typing import Any, FrozenSet, Iterable, Iterator, Set


class SelectionTracker:
    """
    Set of selected row identities for one table instance.

    Selection is keyed by identity, never by position, so it survives sorting
    and page changes. `reconcile` is the only operation that reacts to the
    dataset: it drops identities that left the filtered set and never adds any.
    """

    def __init__(self, ids: Iterable[Any] = ()):
        self._ids: Set[Any] = set(ids)

    @property
    def ids(self) -> FrozenSet[Any]:
        return frozenset(self._ids)

    def __contains__(self, row_id: Any) -> bool:
        return row_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._ids)

    def toggle(self, row_id: Any) -> None:
        if row_id in self._ids:
            self._ids.discard(row_id)
        else:
            self._ids.add(row_id)

    def select(self, row_id: Any) -> None:
        self._ids.add(row_id)

    def deselect(self, row_id: Any) -> None:
        self._ids.discard(row_id)

    def select_all(self, visible_ids: Iterable[Any]) -> None:
        """Replace the selection with exactly these identities."""
        self._ids = {i for i in visible_ids if i is not None}

    def clear(self) -> None:
        self._ids.clear()

    def reconcile(self, filtered_ids: Iterable[Any]) -> Set[Any]:
        """
        Drop identities absent from `filtered_ids`.

        :return: the identities that were dropped
        """
        keep = set(filtered_ids)
        dropped = self._ids - keep
        self._ids &= keep
        return dropped

    def is_all_selected(self, ids: Iterable[Any]) -> bool:
        ids = list(ids)
        return bool(ids) and all(i in self._ids for i in ids)
