"""Range model describing a contiguous window into the dataset."""

from pydantic import BaseModel, ConfigDict, Field

from windowsync.errors import InvalidRangeError


class Range(BaseModel):
    """A contiguous window of rows, ``[start, start + length)``."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(default=0, ge=0, description="Index of the first row in the window")
    length: int = Field(default=0, ge=0, description="Number of rows in the window")

    @classmethod
    def of(cls, start: int, length: int) -> "Range":
        """
        Create a range from untrusted boundary input.

        Args:
            start: Index of the first row
            length: Number of rows

        Returns:
            Validated Range

        Raises:
            InvalidRangeError: If start or length is negative
        """
        if start < 0 or length < 0:
            raise InvalidRangeError(start, length)
        return cls(start=start, length=length)

    @classmethod
    def between(cls, start: int, end: int) -> "Range":
        """Create the range ``[start, end)``, empty when end <= start."""
        return cls(start=start, length=max(0, end - start))

    @property
    def end(self) -> int:
        """Exclusive end index."""
        return self.start + self.length

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end

    def clamp(self, size: int) -> "Range":
        """
        Restrict this range to a dataset of the given size.

        Args:
            size: Total number of rows in the dataset

        Returns:
            Range lying entirely within ``[0, size)``
        """
        start = min(self.start, size)
        return Range.between(start, min(self.end, size))

    def intersect(self, other: "Range") -> "Range":
        start = max(self.start, other.start)
        return Range.between(start, min(self.end, other.end))

    def difference(self, other: "Range") -> list["Range"]:
        """
        Get the parts of this range not covered by ``other``.

        Args:
            other: Range to subtract

        Returns:
            Up to two non-empty ranges, in ascending order
        """
        overlap = self.intersect(other)
        if overlap.is_empty:
            return [] if self.is_empty else [self]

        parts = [Range.between(self.start, overlap.start), Range.between(overlap.end, self.end)]
        return [part for part in parts if not part.is_empty]

    def indices(self) -> range:
        return range(self.start, self.end)

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"
