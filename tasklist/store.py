import logging
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .database import create_db_engine, create_tables
from .errors import UpstreamError, ValidationError
from .models import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """Owner-scoped task persistence.

    Every query filters on ``owner_id``; callers pass the subject taken from a
    verified token and never a value supplied by the client.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "TaskStore":
        return cls(create_db_engine(database_url))

    def create_tables(self) -> None:
        create_tables(self.engine)

    def list_tasks(self, owner_id: str) -> List[Task]:
        """Tasks belonging to ``owner_id``, newest first."""
        try:
            with Session(self.engine) as session:
                query = (
                    select(Task)
                    .where(Task.owner_id == owner_id)
                    .order_by(Task.created_at.desc(), Task.id.desc())
                )
                return list(session.exec(query).all())
        except SQLAlchemyError as exc:
            logger.error("Error fetching todos for user %s: %s", owner_id, exc)
            raise UpstreamError("Failed to fetch todos") from exc

    def create_task(self, owner_id: str, text: Optional[str]) -> Task:
        if text is None or not text.strip():
            raise ValidationError("Task cannot be empty")

        try:
            with Session(self.engine) as session:
                task = Task(text=text, completed=False, owner_id=owner_id)
                session.add(task)
                session.commit()
                session.refresh(task)
                return task
        except SQLAlchemyError as exc:
            logger.error("Error adding todo for user %s: %s", owner_id, exc)
            raise UpstreamError("Failed to add todo") from exc

    def delete_task(self, owner_id: str, task_id: int) -> bool:
        """Delete by id and owner; returns False when nothing matched.

        A task owned by someone else matches zero rows, same as a missing one.
        """
        try:
            with Session(self.engine) as session:
                result = session.exec(
                    delete(Task).where(Task.id == task_id, Task.owner_id == owner_id)
                )
                session.commit()
                deleted = result.rowcount > 0
        except SQLAlchemyError as exc:
            logger.error("Error deleting todo %s for user %s: %s", task_id, owner_id, exc)
            raise UpstreamError("Failed to delete todo") from exc

        if not deleted:
            logger.info("Delete of todo %s for user %s matched no rows", task_id, owner_id)
        return deleted

    def set_completed(self, owner_id: str, task_id: int, completed: bool) -> Optional[Task]:
        try:
            with Session(self.engine) as session:
                task = session.exec(
                    select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
                ).first()
                if task is None:
                    return None
                task.completed = completed
                session.add(task)
                session.commit()
                session.refresh(task)
                return task
        except SQLAlchemyError as exc:
            logger.error("Error updating todo %s for user %s: %s", task_id, owner_id, exc)
            raise UpstreamError("Failed to update todo") from exc
