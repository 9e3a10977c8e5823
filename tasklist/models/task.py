from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(SQLModel, table=True):
    """A todo item owned by exactly one subject."""
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    text: str
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    owner_id: str = Field(index=True)
