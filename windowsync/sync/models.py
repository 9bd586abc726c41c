"""Data models for synchronization engine state."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from windowsync.models.operations import UpdateBatch
from windowsync.models.window import Range


class EngineState(str, Enum):
    """Lifecycle of a synchronization engine."""

    IDLE = "idle"
    BUILDING = "building"
    AWAITING_ACK = "awaiting_ack"


class InFlightBatch(BaseModel):
    """A committed batch the remote side has not acknowledged yet."""

    model_config = ConfigDict(frozen=True)

    batch: UpdateBatch = Field(default=..., description="The committed batch")
    keys: list[str] = Field(
        default_factory=list, description="Row keys of the batch window, in row order"
    )

    @property
    def update_id(self) -> int:
        return self.batch.update_id


class SyncStatus(BaseModel):
    """Snapshot of an engine's state for diagnostics."""

    state: EngineState = Field(default=..., description="Current engine state")
    requested_range: Range | None = Field(
        default=None, description="Last window requested by the client"
    )
    acknowledged_range: Range = Field(
        default_factory=Range, description="Window the client last confirmed"
    )
    acknowledged_size: int | None = Field(
        default=None, description="Dataset size the client last confirmed"
    )
    in_flight_update_id: int | None = Field(
        default=None, description="Update id awaiting acknowledgment"
    )
    tracked_keys: int = Field(default=0, ge=0, description="Number of live row keys")
    pending: bool = Field(default=False, description="Whether a flush has work to do")

    @property
    def awaiting_ack(self) -> bool:
        return self.state is EngineState.AWAITING_ACK
