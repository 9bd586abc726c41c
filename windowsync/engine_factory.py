"""Factory functions for wiring an engine from a provider and configuration.

Hosts normally only need ``create_engine``; the other functions are exposed for
hosts that share one data source between several engines.
"""

import structlog

from windowsync.models.config import SyncConfig
from windowsync.processing.annotation_pipeline import Annotator, AnnotatorFunction
from windowsync.storage.data_source import WindowDataSource
from windowsync.storage.providers import DataProvider
from windowsync.sync.sync_engine import SyncEngine
from windowsync.transport import Transport

log = structlog.stdlib.get_logger()


def create_data_source(provider: DataProvider, config: SyncConfig | None = None) -> WindowDataSource:
    """Wrap a provider in a data source using the configured retry policy.

    Args:
        provider: Object implementing ``size()`` and ``fetch(offset, limit)``
        config: Engine configuration (defaults if None)

    Returns:
        WindowDataSource instance

    Raises:
        ValueError: If provider is None or does not look like a provider
    """
    if provider is None:
        raise ValueError("provider cannot be None")
    if not isinstance(provider, DataProvider):
        error_msg = f"{type(provider).__name__} does not implement size() and fetch(offset, limit)"
        log.error("create_data_source_failed", error=error_msg)
        raise ValueError(error_msg)

    config = config or SyncConfig()
    log.info(
        "creating_data_source",
        provider=type(provider).__name__,
        max_retries=config.provider_max_retries,
    )
    return WindowDataSource(
        provider,
        max_retries=config.provider_max_retries,
        retry_base_delay=config.provider_retry_base_delay,
    )


def create_engine(
    provider: DataProvider | WindowDataSource,
    transport: Transport,
    config: SyncConfig | None = None,
    renderer: Annotator | AnnotatorFunction | None = None,
) -> SyncEngine:
    """Create a sync engine for a provider and transport.

    Args:
        provider: Data provider, or an already wrapped data source
        transport: Destination of committed operations
        config: Engine configuration (defaults if None)
        renderer: Initial renderer; the engine default is a text label

    Returns:
        SyncEngine instance in the idle state
    """
    config = config or SyncConfig()
    if isinstance(provider, WindowDataSource):
        data_source = provider
    else:
        data_source = create_data_source(provider, config)

    return SyncEngine(data_source, transport, config=config, renderer=renderer)
