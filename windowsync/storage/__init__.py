"""Data providers and the window data source adapter"""

from windowsync.storage.data_source import WindowDataSource
from windowsync.storage.providers import CallbackDataProvider, DataProvider, ListDataProvider

__all__ = ["WindowDataSource", "DataProvider", "ListDataProvider", "CallbackDataProvider"]
