"""Per-row render artifacts carried inside item representations.

A row is rendered either from plain text or from an externally owned component.
The transport layer resolves ``ref`` artifacts against its own node table; the
engine only carries the identifiers.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextArtifact(BaseModel):
    """Plain text rendering of a row."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str = Field(default="", description="Text shown for the row")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class RefArtifact(BaseModel):
    """Reference to an externally rendered component bound to a row key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["ref"] = "ref"
    key: str = Field(default=..., description="Key of the row the component belongs to")
    external_id: str = Field(
        default=..., alias="externalId", description="Host-side identifier of the component"
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
