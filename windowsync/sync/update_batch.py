"""Accumulates the operations of one synchronization cycle."""

from typing import Callable

import structlog

from windowsync.errors import BatchCommittedError
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
from windowsync.transport import Transport

log = structlog.stdlib.get_logger()


class UpdateBatchBuilder:
    """Ordered log of operations with a single commit point.

    Nothing reaches the transport before ``commit``, so the remote side never
    sees a partially built batch.
    """

    def __init__(
        self,
        transport: Transport,
        size: int | None = None,
        on_commit: Callable[[UpdateBatch], None] | None = None,
    ):
        """
        Start a batch.

        Args:
            transport: Destination of the operations on commit
            size: Dataset size to declare first, or None to leave it unchanged
            on_commit: Called with the batch right before it is sent
        """
        self._transport = transport
        self._on_commit = on_commit
        self._queue: list[Operation] = []
        self._committed = False

        if size is not None:
            self._enqueue(UpdateSize(size=size))

    @property
    def operations(self) -> tuple[Operation, ...]:
        return tuple(self._queue)

    @property
    def committed(self) -> bool:
        return self._committed

    def __len__(self) -> int:
        return len(self._queue)

    def declare_run(self, start: int, items: list[Representation]) -> None:
        """Queue the representations of a contiguous run starting at ``start``."""
        if items:
            self._enqueue(SetItems(start=start, items=list(items)))

    def declare_clear(self, start: int, length: int) -> None:
        """Queue a contiguous run of rows to be shown as placeholders."""
        if length > 0:
            self._enqueue(ClearItems(start=start, length=length))

    def declare_data(self, items: list[Representation]) -> None:
        """Queue in-place refreshes of rows the client already has."""
        if items:
            self._enqueue(UpdateData(items=list(items)))

    def _enqueue(self, operation: Operation) -> None:
        if self._committed:
            raise BatchCommittedError("Cannot add operations to a committed batch")
        self._queue.append(operation)

    def commit(self, update_id: int, window: Range, size: int) -> UpdateBatch:
        """
        Send every queued operation followed by ``Confirm(update_id)``.

        Args:
            update_id: Identifier the remote side must acknowledge
            window: Window the batch brings the client to
            size: Dataset size the batch brings the client to

        Returns:
            The committed batch

        Raises:
            BatchCommittedError: If the builder was already committed
        """
        self._enqueue(Confirm(update_id=update_id))
        batch = UpdateBatch(
            update_id=update_id, operations=list(self._queue), range=window, size=size
        )
        self._committed = True

        if self._on_commit is not None:
            self._on_commit(batch)

        for operation in self._queue:
            self._transport.send(operation)

        log.debug(
            "batch_flushed",
            update_id=update_id,
            operations=len(self._queue),
            opcodes=batch.opcodes,
        )
        self._queue.clear()
        return batch
