"""Workspace Schemas — workspace CRUD and membership management.

Invariants:
    - MemberAdd.role is limited to member | admin (owner is only ever the creator)
    - WorkspaceUpdate never clears the name; description may be set to null
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class WorkspaceUpdate(BaseModel):
    """Partial update: only the fields present in the body are written."""
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("name cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_by: int
    created_at: datetime
    user_role: str


class MemberAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    role: Literal["member", "admin"] = "member"


class MemberResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    joined_at: datetime
