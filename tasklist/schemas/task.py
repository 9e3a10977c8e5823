from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class TaskCreate(BaseModel):
    """Schema for creating new tasks.

    ``task`` is accepted as a legacy name for ``text``.
    """
    text: Optional[str] = Field(default=None, validation_alias=AliasChoices("text", "task"))


class TaskComplete(BaseModel):
    """Schema for toggling completion."""
    completed: bool = True


class Task(BaseModel):
    """Task as returned by the API."""
    id: int
    text: str
    completed: bool = False
    created_at: datetime = Field(serialization_alias="createdAt")
    owner_id: str = Field(serialization_alias="ownerId")

    class Config:
        from_attributes = True
