"""Outbound transport abstraction.

The engine never talks to the network itself. It hands each committed
operation, in order, to a Transport supplied by the host.
"""

from typing import Any, Callable, Protocol, runtime_checkable

import structlog

from windowsync.models.operations import Confirm, Operation

log = structlog.stdlib.get_logger()


@runtime_checkable
class Transport(Protocol):
    """Ordered send primitive towards the remote side."""

    def send(self, operation: Operation) -> None:
        ...


class CallbackTransport:
    """Delivers every operation as ``callback(opcode, *args)``."""

    def __init__(self, callback: Callable[..., Any]):
        self._callback = callback

    def send(self, operation: Operation) -> None:
        self._callback(*operation.to_wire())


class RecordingTransport:
    """Keeps every operation it is sent; useful for tests and simulations."""

    def __init__(self) -> None:
        self.operations: list[Operation] = []

    def send(self, operation: Operation) -> None:
        self.operations.append(operation)

    @property
    def wire(self) -> list[tuple[Any, ...]]:
        return [operation.to_wire() for operation in self.operations]

    def batches(self) -> list[list[Operation]]:
        """Split the received operations into batches closed by Confirm."""
        batches: list[list[Operation]] = []
        current: list[Operation] = []
        for operation in self.operations:
            current.append(operation)
            if isinstance(operation, Confirm):
                batches.append(current)
                current = []
        if current:
            batches.append(current)
        return batches

    def clear(self) -> None:
        self.operations.clear()
