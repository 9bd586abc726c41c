"""Key allocation for items tracked by the client window."""

from typing import Any, Callable, Hashable, Iterator

import structlog

log = structlog.stdlib.get_logger()


def _same_item(item: Any) -> Hashable:
    return item


class KeyRegistry:
    """Maps tracked items to stable opaque keys and back.

    Keys come from a monotonically increasing counter and are never handed out
    twice, so a released key can not collide with one still referenced by an
    unacknowledged batch.
    """

    def __init__(self, identity: Callable[[Any], Hashable] | None = None):
        """
        Initialize the key registry.

        Args:
            identity: Function returning the hashable identity of an item. Two
                items with equal identities share a key. Defaults to the item itself.
        """
        self._identity: Callable[[Any], Hashable] = identity or _same_item
        self._key_by_id: dict[Hashable, str] = {}
        self._item_by_key: dict[str, Any] = {}
        self._id_by_key: dict[str, Hashable] = {}
        self._next_key: int = 1

    def assign(self, item: Any) -> str:
        """
        Get the key of an item, allocating one if the item is not tracked.

        Args:
            item: Item to key

        Returns:
            Key of the item
        """
        item_id = self._identity(item)
        key = self._key_by_id.get(item_id)
        if key is not None:
            self._item_by_key[key] = item
            return key

        key = str(self._next_key)
        self._next_key += 1
        self._key_by_id[item_id] = key
        self._item_by_key[key] = item
        self._id_by_key[key] = item_id
        return key

    def release(self, key: str) -> Any | None:
        """
        Stop tracking a key.

        Callers must only release keys that no unacknowledged batch refers to.

        Args:
            key: Key to release

        Returns:
            The item that held the key, or None if the key was not tracked
        """
        if key not in self._item_by_key:
            return None

        item_id = self._id_by_key.pop(key)
        del self._key_by_id[item_id]
        return self._item_by_key.pop(key)

    def get(self, key: str) -> Any | None:
        """Get the item currently holding a key, or None."""
        return self._item_by_key.get(key)

    def key_of(self, item: Any) -> str | None:
        """Get the key of a tracked item without allocating one."""
        return self._key_by_id.get(self._identity(item))

    def has(self, item: Any) -> bool:
        return self._identity(item) in self._key_by_id

    def refresh(self, item: Any) -> str | None:
        """
        Replace the stored instance of a tracked item with a newer one.

        Args:
            item: New instance of an already tracked item

        Returns:
            Key of the item, or None if it is not tracked
        """
        key = self.key_of(item)
        if key is not None:
            self._item_by_key[key] = item
        return key

    def identity(self, item: Any) -> Hashable:
        return self._identity(item)

    def keys(self) -> list[str]:
        return list(self._item_by_key)

    def clear(self) -> None:
        """Release every key. The counter keeps running."""
        log.debug("key_registry_cleared", released=len(self._item_by_key))
        self._key_by_id.clear()
        self._item_by_key.clear()
        self._id_by_key.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._item_by_key

    def __len__(self) -> int:
        return len(self._item_by_key)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._item_by_key))
