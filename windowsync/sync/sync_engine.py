"""Synchronization engine keeping a client window in step with a data source."""

import threading
from typing import Any, Hashable

import structlog

from windowsync.models.config import SyncConfig
from windowsync.models.operations import Representation, UpdateBatch
from windowsync.models.window import Range
from windowsync.processing.annotation_pipeline import (
    Annotator,
    AnnotatorFunction,
    ItemAnnotationPipeline,
    Registration,
)
from windowsync.processing.renderers import TextRenderer
from windowsync.storage.data_source import WindowDataSource
from windowsync.sync.key_registry import KeyRegistry
from windowsync.sync.models import EngineState, InFlightBatch, SyncStatus
from windowsync.sync.update_batch import UpdateBatchBuilder
from windowsync.transport import Transport

log = structlog.stdlib.get_logger()


class SyncEngine:
    """Drives the request / batch / acknowledge cycle for one client window.

    The engine moves between three states:

    - IDLE: nothing in flight; ``flush()`` builds and commits a batch if a
      request, reset or refresh is pending
    - BUILDING: a batch is being computed inside ``flush()``
    - AWAITING_ACK: one committed batch waits for its update id to come back;
      new requests are recorded and serviced after the acknowledgment

    Acknowledgments are fenced on the in-flight update id. Anything else is a
    stale or duplicate delivery and is ignored, so reordering or duplicating
    transports can not roll back state or release keys twice.

    All public methods serialize on one reentrant lock.
    """

    def __init__(
        self,
        data_source: WindowDataSource,
        transport: Transport,
        pipeline: ItemAnnotationPipeline | None = None,
        key_registry: KeyRegistry | None = None,
        config: SyncConfig | None = None,
        renderer: Annotator | AnnotatorFunction | None = None,
    ):
        """
        Initialize the sync engine.

        Args:
            data_source: Adapter over the data provider
            transport: Receives committed operations in order
            pipeline: Annotation pipeline (a new one is created if None)
            key_registry: Key registry (a new one keyed by the data source's
                item identity is created if None)
            config: Engine configuration (defaults if None)
            renderer: Initial renderer; defaults to a text label of ``str(item)``

        Raises:
            ValueError: If data_source or transport is None
        """
        if data_source is None:
            raise ValueError("The data_source cannot be None")
        if transport is None:
            raise ValueError("The transport cannot be None")

        self._config: SyncConfig = config or SyncConfig()
        self._data_source: WindowDataSource = data_source
        self._transport: Transport = transport
        self._pipeline: ItemAnnotationPipeline = pipeline or ItemAnnotationPipeline(
            key_field=self._config.key_field
        )
        self._keys: KeyRegistry = key_registry or KeyRegistry(identity=self._identity)
        self._lock = threading.RLock()

        self._state: EngineState = EngineState.IDLE
        self._requested: Range | None = None
        self._acked_range: Range = Range()
        self._acked_size: int | None = None
        self._acked_keys: list[str] = []
        self._in_flight: InFlightBatch | None = None
        self._next_update_id: int = 1

        self._dirty: bool = False
        self._resend_all: bool = False
        self._refreshed: set[Hashable] = set()

        self._renderer: Annotator | AnnotatorFunction | None = None
        self._renderer_registration: Registration | None = None
        self._install_renderer(renderer if renderer is not None else TextRenderer())
        self._pipeline.on_change = self._annotators_changed

        log.info("sync_engine_initialized", key_field=self._pipeline.key_field)

    def _identity(self, item: Any) -> Hashable:
        return self._data_source.identity(item)

    # -- read-only views ---------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def pipeline(self) -> ItemAnnotationPipeline:
        return self._pipeline

    @property
    def key_registry(self) -> KeyRegistry:
        return self._keys

    @property
    def data_source(self) -> WindowDataSource:
        return self._data_source

    @property
    def renderer(self) -> Annotator | AnnotatorFunction | None:
        return self._renderer

    @property
    def requested_range(self) -> Range | None:
        return self._requested

    @property
    def acknowledged_range(self) -> Range:
        return self._acked_range

    @property
    def acknowledged_size(self) -> int | None:
        return self._acked_size

    @property
    def active_keys(self) -> list[str]:
        """Keys of the acknowledged window, in row order."""
        return list(self._acked_keys)

    @property
    def in_flight(self) -> InFlightBatch | None:
        return self._in_flight

    @property
    def has_pending_work(self) -> bool:
        return self._dirty

    def status(self) -> SyncStatus:
        with self._lock:
            return SyncStatus(
                state=self._state,
                requested_range=self._requested,
                acknowledged_range=self._acked_range,
                acknowledged_size=self._acked_size,
                in_flight_update_id=self._in_flight.update_id if self._in_flight else None,
                tracked_keys=len(self._keys),
                pending=self._dirty,
            )

    # -- inbound events ----------------------------------------------------

    def request_range(self, start: int, length: int) -> Range:
        """
        Record the window the client wants to see.

        Requests made before the next flush coalesce; the last one wins. While
        a batch awaits acknowledgment the request is kept and serviced by the
        first flush after the acknowledgment.

        Args:
            start: Index of the first requested row
            length: Number of requested rows

        Returns:
            The recorded window, after length clamping

        Raises:
            InvalidRangeError: If start or length is negative
        """
        window = Range.of(start, length)

        max_length = self._config.max_range_length
        if max_length is not None and window.length > max_length:
            log.warning(
                "requested_range_clamped",
                start=window.start,
                requested_length=window.length,
                max_range_length=max_length,
            )
            window = Range(start=window.start, length=max_length)

        with self._lock:
            self._requested = window
            self._dirty = True
            log.debug("range_requested", start=window.start, length=window.length, state=self._state)

        return window

    def acknowledge(self, update_id: int) -> bool:
        """
        Confirm that the remote side has applied a batch.

        Args:
            update_id: Update id echoed back by the remote side

        Returns:
            True if the acknowledgment matched the batch in flight, False if it
            was stale or unexpected and has been ignored
        """
        with self._lock:
            in_flight = self._in_flight
            if (
                self._state is not EngineState.AWAITING_ACK
                or in_flight is None
                or update_id != in_flight.update_id
            ):
                log.warning(
                    "stale_acknowledgment_ignored",
                    update_id=update_id,
                    expected_update_id=in_flight.update_id if in_flight else None,
                    state=self._state,
                )
                return False

            previous_keys = self._acked_keys
            self._acked_range = in_flight.batch.range
            self._acked_size = in_flight.batch.size
            self._acked_keys = list(in_flight.keys)
            self._in_flight = None
            self._state = EngineState.IDLE

            released = self._release_keys(previous_keys, keep=set(self._acked_keys))

            log.info(
                "acknowledgment_accepted",
                update_id=update_id,
                range=str(self._acked_range),
                size=self._acked_size,
                released_keys=released,
                pending=self._dirty,
            )
            return True

    def _release_keys(self, candidates: list[str], keep: set[str]) -> int:
        released = 0
        for key in candidates:
            if key in keep or key not in self._keys:
                continue
            item = self._keys.release(key)
            self._pipeline.release(item, key)
            released += 1
        return released

    # -- configuration changes ---------------------------------------------

    def reset(self) -> None:
        """
        Invalidate every representation on the client.

        The next batch declares the size and the whole requested window again,
        even for rows that have not changed. A batch already in flight keeps
        its fencing and must still be acknowledged first.
        """
        with self._lock:
            self._resend_all = True
            self._dirty = True
            self._pipeline.reset()
            log.info("sync_engine_reset", state=self._state)

    def set_renderer(self, renderer: Annotator | AnnotatorFunction) -> None:
        """
        Replace the renderer and resend the whole window with it.

        Args:
            renderer: New renderer annotator

        Raises:
            ValueError: If renderer is None
        """
        if renderer is None:
            raise ValueError("The renderer must not be None")

        with self._lock:
            self._install_renderer(renderer)
            log.info("renderer_changed", renderer=repr(renderer))

    def _install_renderer(self, renderer: Annotator | AnnotatorFunction) -> None:
        self._renderer_registration = self._pipeline.replace(self._renderer_registration, renderer)
        self._renderer = renderer

    def _annotators_changed(self) -> None:
        with self._lock:
            log.info("annotation_set_changed", annotators=len(self._pipeline))
            self.reset()

    def set_data_source(self, data_source: WindowDataSource) -> None:
        """
        Switch to another data source and resend the whole window from it.

        Args:
            data_source: New data source

        Raises:
            ValueError: If data_source is None
        """
        if data_source is None:
            raise ValueError("The data_source cannot be None")

        with self._lock:
            self._data_source = data_source
            self._refreshed.clear()
            self.reset()
            log.info("data_source_changed")

    def refresh_item(self, item: Any) -> bool:
        """
        Resend the representation of a row the client already shows.

        The row is fetched again from the data source on the next flush; the
        given instance only identifies it. Until then ``resolve_key`` returns
        the given instance.

        Args:
            item: Instance identifying a tracked row

        Returns:
            True if the item is tracked and will be refreshed by the next flush
        """
        with self._lock:
            key = self._keys.refresh(item)
            if key is None:
                log.debug("refresh_ignored_untracked_item")
                return False

            self._refreshed.add(self._keys.identity(item))
            self._dirty = True
            log.debug("item_refresh_requested", key=key)
            return True

    def resolve_key(self, key: str) -> Any | None:
        """Get the item a client-side key refers to, e.g. for event handlers."""
        with self._lock:
            return self._keys.get(key)

    # -- flush -------------------------------------------------------------

    def flush(self) -> UpdateBatch | None:
        """
        Build and commit the next batch, if one is due.

        Hosts call this at a fixed point of their own cycle, e.g. right before
        responding to the client.

        Returns:
            The committed batch, or None when there was nothing to send or a
            batch is still awaiting acknowledgment

        Raises:
            ProviderError: If the data source fails; nothing is committed
            AnnotatorError: If an annotator fails; nothing is committed
        """
        with self._lock:
            if self._state is EngineState.AWAITING_ACK:
                if self._dirty:
                    log.debug(
                        "flush_deferred_awaiting_ack",
                        in_flight_update_id=self._in_flight.update_id if self._in_flight else None,
                    )
                return None
            if self._state is EngineState.BUILDING or not self._dirty:
                return None

            self._state = EngineState.BUILDING
            resend_all = self._resend_all
            refreshed = self._refreshed
            self._dirty = False
            self._resend_all = False
            self._refreshed = set()
            new_keys: list[str] = []

            try:
                batch = self._build(resend_all, refreshed, new_keys)
            except Exception as e:
                if self._state is EngineState.AWAITING_ACK:
                    # committed; the in-flight batch owns its keys now
                    log.error(
                        "batch_send_failed",
                        update_id=self._in_flight.update_id if self._in_flight else None,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise

                for key in new_keys:
                    item = self._keys.release(key)
                    self._pipeline.release(item, key)
                self._dirty = True
                self._resend_all = self._resend_all or resend_all
                self._refreshed = refreshed | self._refreshed
                if self._state is EngineState.BUILDING:
                    self._state = EngineState.IDLE
                log.error(
                    "batch_build_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    rolled_back_keys=len(new_keys),
                )
                raise

            if self._state is EngineState.BUILDING:
                self._state = EngineState.IDLE
            return batch

    def _build(
        self,
        resend_all: bool,
        refreshed: set[Hashable],
        new_keys: list[str],
    ) -> UpdateBatch | None:
        size = self._data_source.size()
        requested = self._requested or Range()
        window = requested.clamp(size)
        items = self._data_source.fetch(window, size)
        if len(items) < window.length:
            # provider shrank between size() and fetch()
            window = Range(start=window.start, length=len(items))

        client_empty = self._acked_size is None
        full = resend_all or client_empty
        size_changed = full or size != self._acked_size

        keys: list[str] = []
        for item in items:
            known = self._keys.has(item)
            key = self._keys.assign(item)
            if not known:
                new_keys.append(key)
            keys.append(key)

        builder = UpdateBatchBuilder(
            self._transport,
            size=size if size_changed else None,
            on_commit=lambda batch: self._on_commit(batch, keys),
        )

        if not client_empty and self._config.clear_evicted_rows:
            visible = Range(start=0, length=size)
            for part in self._acked_range.difference(window):
                part = part.intersect(visible)
                builder.declare_clear(part.start, part.length)

        run_start: int | None = None
        run: list[Representation] = []
        updated: list[Representation] = []
        for offset, (item, key) in enumerate(zip(items, keys)):
            index = window.start + offset
            if full or key != self._acked_key_at(index):
                if run_start is None:
                    run_start = index
                run.append(self._pipeline.annotate(item, key))
                continue

            if run_start is not None:
                builder.declare_run(run_start, run)
                run_start, run = None, []
            if self._keys.identity(item) in refreshed:
                updated.append(self._pipeline.annotate(item, key))

        if run_start is not None:
            builder.declare_run(run_start, run)
        builder.declare_data(updated)

        if len(builder) == 0 and window == self._acked_range:
            log.debug("flush_skipped_no_changes", range=str(window), size=size)
            return None

        update_id = self._next_update_id
        self._next_update_id += 1
        batch = builder.commit(update_id, window, size)

        log.info(
            "batch_committed",
            update_id=update_id,
            range=str(window),
            size=size,
            operations=len(batch.operations),
            full_resend=full,
            new_keys=len(new_keys),
        )
        return batch

    def _acked_key_at(self, index: int) -> str | None:
        if not self._acked_range.contains(index):
            return None
        return self._acked_keys[index - self._acked_range.start]

    def _on_commit(self, batch: UpdateBatch, keys: list[str]) -> None:
        self._in_flight = InFlightBatch(batch=batch, keys=keys)
        self._state = EngineState.AWAITING_ACK
