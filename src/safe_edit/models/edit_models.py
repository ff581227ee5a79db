"""Models for edit descriptors and edit batches."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

MAX_CONTEXT_LINES = 10
DEFAULT_CONTEXT_LINES = 3


class SubstringEdit(BaseModel):
    """Replace a literal piece of text in a file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["string"] = "string"
    file: str = Field(min_length=1)
    old: str  # Must appear verbatim in the current content
    new: str


class LineRangeEdit(BaseModel):
    """Replace a 1-indexed inclusive range of lines in a file.

    Range bounds are checked against live content by the resolver, not here,
    so that an invalid range produces a descriptive per-edit failure.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["line-range"] = "line-range"
    file: str = Field(min_length=1)
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    new_content: str = Field(alias="newContent")


EditDescriptor = Annotated[
    Union[SubstringEdit, LineRangeEdit],
    Field(discriminator="type"),
]


class EditBatch(BaseModel):
    """An ordered, non-empty batch of edits plus run options."""

    model_config = ConfigDict(frozen=False, populate_by_name=True)

    edits: list[EditDescriptor] = Field(min_length=1)
    dry_run: bool = Field(default=False, alias="dryRun")
    create_backups: bool = Field(default=True, alias="createBackups")
    validate_conflicts: bool = Field(default=True, alias="validateConflicts")
    show_context: int = Field(
        default=DEFAULT_CONTEXT_LINES,
        ge=0,
        le=MAX_CONTEXT_LINES,
        alias="showContext",
    )
    strict: bool = False  # Abort the whole batch if any descriptor fails
