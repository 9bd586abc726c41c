"""Exception types raised by the window synchronization engine."""


class WindowSyncError(Exception):
    """Base class for all errors raised by windowsync."""

    pass


class InvalidRangeError(WindowSyncError, ValueError):
    """Raised when a requested window has a negative start or length."""

    def __init__(self, start: int, length: int):
        self.start = start
        self.length = length
        super().__init__(
            f"Invalid range: start={start}, length={length}. "
            f"Both start and length must be non-negative."
        )


class ProviderError(WindowSyncError):
    """Raised when the data provider fails to report its size or fetch items."""

    pass


class AnnotatorError(WindowSyncError):
    """Raised when an annotator fails while building an item representation."""

    def __init__(self, annotator: object, item: object, cause: Exception):
        self.annotator = annotator
        self.item = item
        super().__init__(f"Annotator {annotator!r} failed for item {item!r}: {cause}")


class BatchCommittedError(WindowSyncError):
    """Raised when an update batch builder is used after it has been committed."""

    pass
