"""Task model and the task collection ordering."""

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    """A single to-do item as synced from the store."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned document id"
    )
    text: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What needs doing"
    )
    completed: bool = Field(
        default=False,
        description="Whether the task has been ticked off"
    )
    created_at: int = Field(
        ...,
        alias="createdAt",
        ge=0,
        description="Creation time in epoch milliseconds"
    )

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Task":
        return cls.model_validate({**data, "id": document_id})

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


def order_tasks(tasks: Iterable[Task]) -> list[Task]:
    """
    Incomplete tasks first, completed tasks last, newest first within each
    group. Stable for equal timestamps.
    """
    return sorted(tasks, key=lambda t: (t.completed, -t.created_at))
