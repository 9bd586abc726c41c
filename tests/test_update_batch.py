"""Unit tests for UpdateBatchBuilder."""

import pytest

from windowsync.errors import BatchCommittedError
from windowsync.models.operations import ClearItems, Confirm, SetItems, UpdateData, UpdateSize
from windowsync.models.window import Range
from windowsync.sync.update_batch import UpdateBatchBuilder
from windowsync.transport import CallbackTransport, RecordingTransport


@pytest.fixture
def transport():
    """Create a recording transport."""
    return RecordingTransport()


def test_nothing_is_sent_before_commit(transport):
    """Test that declared operations stay local until commit."""
    builder = UpdateBatchBuilder(transport, size=100)
    builder.declare_clear(0, 5)
    builder.declare_run(5, [{"key": "1"}])

    assert transport.operations == []
    assert len(builder) == 3


def test_commit_sends_in_fifo_order(transport):
    """Test that commit flushes every operation followed by the confirmation."""
    builder = UpdateBatchBuilder(transport, size=100)
    builder.declare_clear(50, 10)
    builder.declare_run(0, [{"key": "1"}, {"key": "2"}])
    builder.declare_data([{"key": "3"}])

    batch = builder.commit(1, Range(start=0, length=2), 100)

    assert transport.wire == [
        ("updateSize", 100),
        ("clear", 50, 10),
        ("set", 0, [{"key": "1"}, {"key": "2"}]),
        ("updateData", [{"key": "3"}]),
        ("confirm", 1),
    ]
    assert batch.operations == transport.operations
    assert batch.range == Range(start=0, length=2)
    assert len(builder) == 0


def test_size_is_optional(transport):
    """Test that no size is declared when none is given."""
    builder = UpdateBatchBuilder(transport)
    builder.declare_run(0, [{"key": "1"}])
    builder.commit(4, Range(start=0, length=1), 1)

    assert [type(op) for op in transport.operations] == [SetItems, Confirm]


def test_empty_declarations_are_skipped(transport):
    """Test that empty runs, clears and refreshes add nothing."""
    builder = UpdateBatchBuilder(transport)
    builder.declare_run(0, [])
    builder.declare_clear(3, 0)
    builder.declare_data([])

    assert len(builder) == 0


def test_on_commit_runs_before_sending(transport):
    """Test that the engine is notified before the remote side sees anything."""
    seen_by_callback = []

    def on_commit(batch):
        seen_by_callback.append((batch.update_id, len(transport.operations)))

    builder = UpdateBatchBuilder(transport, size=3, on_commit=on_commit)
    builder.commit(9, Range(start=0, length=0), 3)

    assert seen_by_callback == [(9, 0)]
    assert len(transport.operations) == 2


def test_builder_commits_once(transport):
    """Test that a committed builder rejects further use."""
    builder = UpdateBatchBuilder(transport)
    builder.commit(1, Range(), 0)

    assert builder.committed
    with pytest.raises(BatchCommittedError):
        builder.declare_run(0, [{"key": "1"}])
    with pytest.raises(BatchCommittedError):
        builder.commit(2, Range(), 0)


def test_callback_transport_receives_wire_tuples():
    """Test that CallbackTransport unpacks operations into calls."""
    calls = []
    transport = CallbackTransport(lambda opcode, *args: calls.append((opcode, *args)))
    builder = UpdateBatchBuilder(transport, size=5)
    builder.commit(1, Range(start=0, length=0), 5)

    assert calls == [("updateSize", 5), ("confirm", 1)]


def test_recording_transport_splits_batches(transport):
    """Test that recorded operations split into batches at each confirmation."""
    first = UpdateBatchBuilder(transport, size=5)
    first.commit(1, Range(), 5)
    second = UpdateBatchBuilder(transport)
    second.declare_clear(0, 1)
    second.commit(2, Range(), 5)

    batches = transport.batches()

    assert [[type(op) for op in batch] for batch in batches] == [
        [UpdateSize, Confirm],
        [ClearItems, Confirm],
    ]
    assert not any(isinstance(op, UpdateData) for op in transport.operations)
