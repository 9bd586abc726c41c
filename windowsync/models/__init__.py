"""Data models for the window synchronization engine."""

from windowsync.models.artifacts import RefArtifact, TextArtifact
from windowsync.models.config import AppConfig, LoggingConfig, SyncConfig
from windowsync.models.operations import (
    ClearItems,
    Confirm,
    Operation,
    Representation,
    SetItems,
    UpdateBatch,
    UpdateData,
    UpdateSize,
)
from windowsync.models.window import Range

__all__ = [
    "Range",
    "UpdateSize",
    "SetItems",
    "ClearItems",
    "UpdateData",
    "Confirm",
    "Operation",
    "Representation",
    "UpdateBatch",
    "TextArtifact",
    "RefArtifact",
    "AppConfig",
    "LoggingConfig",
    "SyncConfig",
]
