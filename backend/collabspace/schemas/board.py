"""Board Schemas — board creation and the nested board → lists → tasks view."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from collabspace.schemas.task import TaskResponse


class BoardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class BoardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    name: str
    description: str | None = None
    created_by: int
    created_at: datetime


class BoardTaskResponse(TaskResponse):
    assigned_to_name: str | None = None


class BoardListResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    board_id: int
    name: str
    position: int
    tasks: list[BoardTaskResponse] = []


class BoardDetailResponse(BoardResponse):
    lists: list[BoardListResponse] = []
