"""Windowed synchronization of a lazily fetched dataset with a client view."""

from windowsync.engine_factory import create_data_source, create_engine
from windowsync.errors import (
    AnnotatorError,
    BatchCommittedError,
    InvalidRangeError,
    ProviderError,
    WindowSyncError,
)
from windowsync.models import Range, SyncConfig, UpdateBatch
from windowsync.processing import (
    ComponentRenderer,
    ItemAnnotationPipeline,
    TemplateRenderer,
    TextRenderer,
)
from windowsync.storage import CallbackDataProvider, ListDataProvider, WindowDataSource
from windowsync.sync import EngineState, KeyRegistry, SyncEngine, UpdateBatchBuilder
from windowsync.transport import CallbackTransport, RecordingTransport, Transport

__all__ = [
    "create_engine",
    "create_data_source",
    "SyncEngine",
    "EngineState",
    "KeyRegistry",
    "UpdateBatchBuilder",
    "ItemAnnotationPipeline",
    "TextRenderer",
    "TemplateRenderer",
    "ComponentRenderer",
    "WindowDataSource",
    "ListDataProvider",
    "CallbackDataProvider",
    "Transport",
    "CallbackTransport",
    "RecordingTransport",
    "Range",
    "SyncConfig",
    "UpdateBatch",
    "WindowSyncError",
    "InvalidRangeError",
    "ProviderError",
    "AnnotatorError",
    "BatchCommittedError",
]
