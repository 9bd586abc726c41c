"""Data providers: the pluggable sources the engine reads rows from.

Any object with ``size()`` and ``fetch(offset, limit)`` works as a provider.
Two implementations are included:

- ListDataProvider: in-memory items with optional filtering and sorting
- CallbackDataProvider: delegates to host callbacks, e.g. a database query
"""

from typing import Any, Callable, Hashable, Iterable, Protocol, Sequence, runtime_checkable

import structlog

log = structlog.stdlib.get_logger()


@runtime_checkable
class DataProvider(Protocol):
    """Source of rows addressed by offset and limit."""

    def size(self) -> int:
        """Get the total number of rows currently available."""
        ...

    def fetch(self, offset: int, limit: int) -> Iterable[Any]:
        """Get at most ``limit`` rows starting at ``offset``, in order."""
        ...


class ListDataProvider:
    """Serves an in-memory list, optionally filtered and sorted."""

    def __init__(
        self,
        items: Iterable[Any],
        id_getter: Callable[[Any], Hashable] | None = None,
        sort_key: Callable[[Any], Any] | None = None,
        reverse: bool = False,
        filter: Callable[[Any], bool] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            items: Backing items
            id_getter: Identity of an item, used for key assignment
            sort_key: Optional sort key applied on every query
            reverse: Sort in descending order
            filter: Optional predicate; only matching items are served
        """
        self._items: list[Any] = list(items)
        self._id_getter = id_getter
        self._sort_key = sort_key
        self._reverse = reverse
        self._filter = filter

    def set_items(self, items: Iterable[Any]) -> None:
        self._items = list(items)

    def set_filter(self, filter: Callable[[Any], bool] | None) -> None:
        self._filter = filter

    def set_sort(self, sort_key: Callable[[Any], Any] | None, reverse: bool = False) -> None:
        self._sort_key = sort_key
        self._reverse = reverse

    def _query(self) -> list[Any]:
        items = self._items
        if self._filter is not None:
            items = [item for item in items if self._filter(item)]
        if self._sort_key is not None:
            items = sorted(items, key=self._sort_key, reverse=self._reverse)
        return items

    def size(self) -> int:
        if self._filter is None:
            return len(self._items)
        return len(self._query())

    def fetch(self, offset: int, limit: int) -> list[Any]:
        return self._query()[offset : offset + limit]

    def get_id(self, item: Any) -> Hashable:
        if self._id_getter is None:
            return item
        return self._id_getter(item)


class CallbackDataProvider:
    """Serves rows through host-supplied fetch and count callbacks."""

    def __init__(
        self,
        fetch_callback: Callable[[int, int], Iterable[Any]],
        count_callback: Callable[[], int],
        id_getter: Callable[[Any], Hashable] | None = None,
    ):
        if fetch_callback is None or count_callback is None:
            raise ValueError("fetch_callback and count_callback are required")
        self._fetch_callback = fetch_callback
        self._count_callback = count_callback
        self._id_getter = id_getter

    def size(self) -> int:
        return self._count_callback()

    def fetch(self, offset: int, limit: int) -> Sequence[Any]:
        return list(self._fetch_callback(offset, limit))

    def get_id(self, item: Any) -> Hashable:
        if self._id_getter is None:
            return item
        return self._id_getter(item)
