"""Models for batch conflict reports."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConflictKind(str, Enum):
    OVERLAPPING_RANGES = "overlapping-ranges"
    MISSING_CONTENT = "missing-content"


class Conflict(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ConflictKind
    description: str
    descriptor_index: int
    descriptor_index2: int | None = None  # Only set for pairwise conflicts


class ConflictReport(BaseModel):
    """All conflicts found for a single file in a batch."""

    model_config = ConfigDict(frozen=True)

    file: str
    conflicts: list[Conflict] = Field(default_factory=list)
