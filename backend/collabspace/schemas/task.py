"""Task Schemas — create, partial update, move and response shapes.

Invariants:
    - TaskCreate requires listId and a non-blank title
    - dueDate must parse as a datetime (malformed dates rejected at the boundary)
    - TaskUpdate distinguishes "absent" from "null" via model_fields_set
    - targetPosition is not range-checked here: the engine clamps it

Design Decisions:
    - populate_by_name=True: tests and internal callers may use snake_case names
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_title(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("title cannot be empty or whitespace")
    return v


class TaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    list_id: int = Field(alias="listId")
    title: str = Field(min_length=1, max_length=500)
    description: str | None = Field(None, max_length=10_000)
    assigned_to: int | None = Field(None, alias="assignedTo")
    due_date: datetime | None = Field(None, alias="dueDate")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _strip_title(v)


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the body are applied."""
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = Field(None, max_length=10_000)
    assigned_to: int | None = Field(None, alias="assignedTo")
    due_date: datetime | None = Field(None, alias="dueDate")
    list_id: int | None = Field(None, alias="listId")
    position: int | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        return _strip_title(v)

    def payload_fields(self) -> dict:
        """Set fields other than list_id/position."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in ("list_id", "position")
        }


class TaskMove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: int = Field(alias="taskId")
    target_list_id: int = Field(alias="targetListId")
    target_position: int = Field(alias="targetPosition")


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    title: str
    description: str | None = None
    assigned_to: int | None = None
    position: int
    due_date: datetime | None = None
    created_by: int
    created_at: datetime
    updated_at: datetime
