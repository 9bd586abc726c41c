"""Remote operations and update batches sent to the client side."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from windowsync.models.window import Range

Representation = dict[str, Any]


class UpdateSize(BaseModel):
    """Declares or revises the total dataset size."""

    model_config = ConfigDict(frozen=True)

    op: Literal["updateSize"] = "updateSize"
    size: int = Field(default=..., ge=0, description="Total number of rows in the dataset")

    def to_wire(self) -> tuple[Any, ...]:
        return (self.op, self.size)


class SetItems(BaseModel):
    """Declares the representations of a contiguous run beginning at ``start``."""

    model_config = ConfigDict(frozen=True)

    op: Literal["set"] = "set"
    start: int = Field(default=..., ge=0, description="Index of the first row in the run")
    items: list[Representation] = Field(
        default_factory=list, description="Item representations, one per row"
    )

    def to_wire(self) -> tuple[Any, ...]:
        return (self.op, self.start, [dict(item) for item in self.items])


class ClearItems(BaseModel):
    """Declares a contiguous run of rows as placeholders."""

    model_config = ConfigDict(frozen=True)

    op: Literal["clear"] = "clear"
    start: int = Field(default=..., ge=0, description="Index of the first cleared row")
    length: int = Field(default=..., ge=0, description="Number of cleared rows")

    def to_wire(self) -> tuple[Any, ...]:
        return (self.op, self.start, self.length)


class UpdateData(BaseModel):
    """Replaces the representations of rows already shown, matched by key."""

    model_config = ConfigDict(frozen=True)

    op: Literal["updateData"] = "updateData"
    items: list[Representation] = Field(
        default_factory=list, description="Refreshed item representations"
    )

    def to_wire(self) -> tuple[Any, ...]:
        return (self.op, [dict(item) for item in self.items])


class Confirm(BaseModel):
    """Closes a batch; the client echoes ``update_id`` back once it has applied it."""

    model_config = ConfigDict(frozen=True)

    op: Literal["confirm"] = "confirm"
    update_id: int = Field(default=..., ge=1, description="Identifier of the closed batch")

    def to_wire(self) -> tuple[Any, ...]:
        return (self.op, self.update_id)


Operation = Annotated[
    Union[UpdateSize, SetItems, ClearItems, UpdateData, Confirm],
    Field(discriminator="op"),
]


class UpdateBatch(BaseModel):
    """One atomic unit of remote operations describing a window transition."""

    model_config = ConfigDict(frozen=True)

    update_id: int = Field(default=..., ge=1, description="Monotonically increasing batch id")
    operations: list[Operation] = Field(
        default_factory=list, description="Operations in emission order"
    )
    range: Range = Field(default_factory=Range, description="Window the batch describes")
    size: int = Field(default=0, ge=0, description="Dataset size the batch describes")

    def to_wire(self) -> list[tuple[Any, ...]]:
        """Get the batch as a list of ``(opcode, args...)`` tuples."""
        return [operation.to_wire() for operation in self.operations]

    @property
    def opcodes(self) -> list[str]:
        return [operation.op for operation in self.operations]
