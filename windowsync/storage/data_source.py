"""Adapter between the engine and a pluggable data provider."""

from typing import Any, Hashable

import structlog

from windowsync.errors import ProviderError
from windowsync.models.window import Range
from windowsync.storage.providers import DataProvider
from windowsync.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()


class WindowDataSource:
    """Exposes a provider to the engine as ``size()`` and ``fetch(range)``.

    Nothing is cached: every call goes to the provider, so a live provider is
    always read at its current state.
    """

    def __init__(
        self,
        provider: DataProvider,
        max_retries: int = 0,
        retry_base_delay: float = 0.1,
        retry_max_delay: float = 5.0,
    ):
        """
        Initialize the data source.

        Args:
            provider: Object implementing ``size()`` and ``fetch(offset, limit)``
            max_retries: Retries for a failing provider call before giving up
            retry_base_delay: Initial retry delay in seconds
            retry_max_delay: Maximum retry delay in seconds

        Raises:
            ValueError: If provider is None
        """
        if provider is None:
            raise ValueError("The provider cannot be None")

        self._provider: DataProvider = provider
        retry = exponential_backoff_retry(
            max_retries=max_retries,
            base_delay=retry_base_delay,
            max_delay=retry_max_delay,
        )
        self._size_call = retry(provider.size)
        self._fetch_call = retry(provider.fetch)

    @property
    def provider(self) -> DataProvider:
        return self._provider

    def size(self) -> int:
        """
        Get the current number of rows.

        Returns:
            Non-negative row count

        Raises:
            ProviderError: If the provider fails or reports a negative size
        """
        try:
            size = self._size_call()
        except Exception as e:
            log.error("provider_size_failed", error=str(e), error_type=type(e).__name__)
            raise ProviderError(f"Failed to get size from provider: {e}") from e

        if not isinstance(size, int) or size < 0:
            raise ProviderError(f"Provider reported an invalid size: {size!r}")

        return size

    def fetch(self, window: Range, size: int | None = None) -> list[Any]:
        """
        Get the items of a window, in order.

        Args:
            window: Requested window
            size: Dataset size to clamp the window to, if already known

        Returns:
            Items of the clamped window; may be shorter when the provider has
            shrunk since its size was read

        Raises:
            ProviderError: If the provider fails or returns too many items
        """
        if size is not None:
            window = window.clamp(size)
        if window.is_empty:
            return []

        try:
            items = list(self._fetch_call(window.start, window.length))
        except Exception as e:
            log.error(
                "provider_fetch_failed",
                start=window.start,
                length=window.length,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProviderError(f"Failed to fetch {window} from provider: {e}") from e

        if len(items) > window.length:
            raise ProviderError(
                f"Provider returned {len(items)} items for a window of {window.length}"
            )

        log.debug("window_fetched", start=window.start, requested=window.length, fetched=len(items))
        return items

    def identity(self, item: Any) -> Hashable:
        """Get the identity of an item as defined by the provider."""
        get_id = getattr(self._provider, "get_id", None)
        if get_id is None:
            return item
        return get_id(item)
