"""Property-based tests for the window data source and providers.

**Feature: window-sync, Property 5: Range-only fetching**
**Feature: window-sync, Property 6: Provider failures surface as ProviderError**
"""

from unittest.mock import Mock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from windowsync.errors import ProviderError
from windowsync.models.window import Range
from windowsync.storage.data_source import WindowDataSource
from windowsync.storage.providers import CallbackDataProvider, ListDataProvider


class TestRangeOnlyFetching:
    """The data source asks the provider for the requested rows and nothing else."""

    @given(
        size=st.integers(min_value=0, max_value=2000),
        start=st.integers(min_value=0, max_value=2500),
        length=st.integers(min_value=0, max_value=200),
    )
    @settings(max_examples=100)
    def test_fetch_requests_clamped_window(self, size: int, start: int, length: int) -> None:
        calls = []

        def fetch(offset, limit):
            calls.append((offset, limit))
            return range(offset, min(offset + limit, size))

        source = WindowDataSource(CallbackDataProvider(fetch, lambda: size))
        window = Range(start=start, length=length)

        items = source.fetch(window, size)

        expected = window.clamp(size)
        assert items == list(expected.indices())
        if expected.is_empty:
            assert calls == []
        else:
            assert calls == [(expected.start, expected.length)]

    def test_every_call_reaches_provider(self) -> None:
        provider = Mock()
        provider.size.return_value = 10
        provider.fetch.return_value = [1, 2]
        source = WindowDataSource(provider)

        source.size()
        source.size()
        source.fetch(Range(start=0, length=2))
        source.fetch(Range(start=0, length=2))

        assert provider.size.call_count == 2
        assert provider.fetch.call_count == 2


class TestProviderFailures:
    """Provider exceptions and contract violations become ProviderError."""

    def test_size_failure(self) -> None:
        provider = Mock()
        provider.size.side_effect = ConnectionError("database down")
        source = WindowDataSource(provider)

        with pytest.raises(ProviderError) as exc_info:
            source.size()

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_fetch_failure(self) -> None:
        provider = Mock()
        provider.fetch.side_effect = TimeoutError("slow query")
        source = WindowDataSource(provider)

        with pytest.raises(ProviderError, match="slow query"):
            source.fetch(Range(start=0, length=5))

    @pytest.mark.parametrize("bad_size", [-1, "10", None])
    def test_invalid_size_rejected(self, bad_size) -> None:
        provider = Mock()
        provider.size.return_value = bad_size

        with pytest.raises(ProviderError):
            WindowDataSource(provider).size()

    def test_oversized_fetch_rejected(self) -> None:
        provider = Mock()
        provider.fetch.return_value = [1, 2, 3]

        with pytest.raises(ProviderError):
            WindowDataSource(provider).fetch(Range(start=0, length=2))

    def test_retries_before_giving_up(self) -> None:
        provider = Mock()
        provider.size.side_effect = [ConnectionError("blip"), 42]
        source = WindowDataSource(provider, max_retries=1, retry_base_delay=0.0)

        assert source.size() == 42
        assert provider.size.call_count == 2

    def test_none_provider_rejected(self) -> None:
        with pytest.raises(ValueError):
            WindowDataSource(None)


class TestListDataProvider:
    """In-memory provider with filtering and sorting."""

    @given(values=st.lists(st.integers(), max_size=100), threshold=st.integers())
    @settings(max_examples=50)
    def test_filter_and_sort(self, values: list[int], threshold: int) -> None:
        provider = ListDataProvider(values, sort_key=lambda v: v, filter=lambda v: v >= threshold)

        expected = sorted(v for v in values if v >= threshold)
        assert provider.size() == len(expected)
        assert provider.fetch(0, len(expected)) == expected

    def test_set_sort_descending(self) -> None:
        provider = ListDataProvider([3, 1, 2])
        provider.set_sort(lambda v: v, reverse=True)

        assert provider.fetch(0, 3) == [3, 2, 1]

    def test_set_items_and_filter(self) -> None:
        provider = ListDataProvider([])
        provider.set_items(range(10))
        provider.set_filter(lambda v: v % 2 == 0)

        assert provider.size() == 5
        assert provider.fetch(1, 2) == [2, 4]

    def test_identity_from_id_getter(self) -> None:
        provider = ListDataProvider([{"id": 1}], id_getter=lambda row: row["id"])
        source = WindowDataSource(provider)

        assert source.identity({"id": 1, "extra": True}) == 1

    def test_identity_defaults_to_item(self) -> None:
        source = WindowDataSource(CallbackDataProvider(lambda o, l: [], lambda: 0))

        assert source.identity("apple") == "apple"
