from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status

from ..errors import NotFound
from ..schemas.task import Task as TaskSchema, TaskComplete, TaskCreate
from ..store import TaskStore
from .auth import get_current_subject

router = APIRouter()


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


@router.get("", response_model=List[TaskSchema])
def list_tasks(
    owner_id: str = Depends(get_current_subject),
    store: TaskStore = Depends(get_store),
):
    """Get all tasks for the authenticated user, newest first."""
    return store.list_tasks(owner_id)


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    task: Optional[TaskCreate] = Body(None),
    owner_id: str = Depends(get_current_subject),
    store: TaskStore = Depends(get_store),
):
    """Create a new task for the authenticated user."""
    return store.create_task(owner_id, task.text if task else None)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    owner_id: str = Depends(get_current_subject),
    store: TaskStore = Depends(get_store),
):
    """Delete a task.

    Answers 204 even when nothing matched, so callers cannot tell a missing
    task from one owned by another user.
    """
    store.delete_task(owner_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{task_id}", response_model=TaskSchema)
def set_task_completed(
    task_id: int,
    payload: TaskComplete,
    owner_id: str = Depends(get_current_subject),
    store: TaskStore = Depends(get_store),
):
    """Mark a task as complete or pending."""
    task = store.set_completed(owner_id, task_id, payload.completed)
    if task is None:
        raise NotFound("Task not found")
    return task
